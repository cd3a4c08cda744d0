"""Transport-agnostic instrument handle.

:func:`connect` resolves a resource address, opens the matching connector and
wraps it in an :class:`Instrument`. The handle forwards commands and queries
to the connector unchanged; its only job is to hide which transport is behind
it.

Handles share their connection: :meth:`Instrument.clone` (or
:func:`copy.copy`) returns another handle on the same connector, which can be
passed to another thread. The connector is closed exactly once, when the last
handle referencing it is garbage collected or the interpreter exits. There is
no explicit disconnect.

Typical usage::

    from instrlink_visa import connect

    scope = connect("USB0::0x0699::0x0368::C012345::INSTR")
    scope.set_timeout(2.0)
    scope.command("*RST")
    print(scope.query("*IDN?"))
    waveform = scope.query_raw("CURVE?")
"""

from __future__ import annotations

import logging
import weakref
from datetime import timedelta
from typing import TYPE_CHECKING

from instrlink_core.errors import TransportConnectError, TransportIOError
from instrlink_core.types.address import InterfaceType, ResourceAddress

from instrlink_visa.address import AddressResolver
from instrlink_visa.config import InstrlinkConfig, config_from_env
from instrlink_visa.registry import ConnectorRegistry, registry_from_config

if TYPE_CHECKING:
    from instrlink_core.interfaces.connector import Connector

logger = logging.getLogger(__name__)


def _release(connector: Connector, name: str) -> None:
    logger.info("Releasing connection to %s", name)
    close = getattr(connector, "close", None)
    if close is not None:
        close()


class _SharedConnection:
    """Owns one connector for as long as any handle refers to it."""

    def __init__(self, connector: Connector, address: ResourceAddress) -> None:
        self.connector = connector
        self.address = address
        self.finalizer = weakref.finalize(self, _release, connector, address.raw)


class Instrument:
    """Handle to a connected instrument.

    Instances are normally created by :func:`connect`. Every handle cloned
    from an instrument talks to the same connector, so a timeout set through
    one handle applies to all of them.

    Args:
        connector: An open connector.
        address: The address the connector was opened for.

    Example:
        >>> dmm = connect("USB::0x2A8D::0x0101::MY57700001::INSTR")
        >>> worker_handle = dmm.clone()
        >>> dmm.set_timeout(5.0)
        >>> worker_handle.query("MEAS:VOLT:DC?")
        '+1.00012300E+00\\n'
    """

    def __init__(self, connector: Connector, address: ResourceAddress) -> None:
        self._shared = _SharedConnection(connector, address)

    @classmethod
    def _from_shared(cls, shared: _SharedConnection) -> Instrument:
        handle = cls.__new__(cls)
        handle._shared = shared
        return handle

    # -- Properties ----------------------------------------------------------

    @property
    def address(self) -> ResourceAddress:
        """The resolved address this instrument was connected with."""
        return self._shared.address

    @property
    def interface(self) -> InterfaceType:
        """The transport family behind this handle."""
        return self._shared.address.interface

    # -- Handle sharing ------------------------------------------------------

    def clone(self) -> Instrument:
        """Return another handle on the same connection."""
        return Instrument._from_shared(self._shared)

    def __copy__(self) -> Instrument:
        return self.clone()

    def shares_connection_with(self, other: Instrument) -> bool:
        """Return True if *other* uses the same connector as this handle."""
        return self._shared is other._shared

    # -- Forwarded operations ------------------------------------------------

    def set_timeout(self, duration: float | timedelta) -> None:
        """Set the I/O timeout for every subsequent operation.

        The timeout belongs to the shared connection and so applies to all
        handles cloned from this one.

        Args:
            duration: Timeout in seconds, or a :class:`~datetime.timedelta`.

        Raises:
            TransportIOError: If the backend rejects the timeout. The
                shipped connectors only store the value, so this is rare.
        """
        seconds = duration.total_seconds() if isinstance(duration, timedelta) else duration
        self._shared.connector.set_timeout(seconds)

    def command(self, cmd: str) -> None:
        """Send a command to the instrument.

        Args:
            cmd: The command to send (e.g. ``"*RST"``).

        Raises:
            TransportIOError: If the transport write fails.
        """
        self._shared.connector.command(cmd)

    def query(self, cmd: str) -> str:
        """Send a command and return the response as UTF-8 text.

        Args:
            cmd: The query to send (e.g. ``"*IDN?"``).

        Returns:
            The response text, unmodified.

        Raises:
            TransportIOError: On transport failure or invalid UTF-8.
        """
        return self._shared.connector.query(cmd)

    def query_raw(self, cmd: str) -> bytes:
        """Send a command and return the raw response bytes.

        Args:
            cmd: The query to send (e.g. ``"CURVE?"``).

        Returns:
            The undecoded response payload.

        Raises:
            TransportIOError: On transport failure.
        """
        return self._shared.connector.query_raw(cmd)

    def __repr__(self) -> str:
        return f"Instrument({self._shared.address.raw!r})"


def connect(
    address: str,
    *,
    resolver: AddressResolver | None = None,
    registry: ConnectorRegistry | None = None,
    config: InstrlinkConfig | None = None,
) -> Instrument:
    """Connect to an instrument by resource address.

    Args:
        address: Resource address (e.g. ``"USB0::0x0699::0x0368::SN::INSTR"``).
        resolver: Address resolver. Defaults to the built-in grammars with
            the configured tag matching.
        registry: Connector registry. Defaults to the built-in connectors
            with the configured overrides.
        config: Configuration. Defaults to the file named by
            ``INSTRLINK_CONFIG``, or built-in defaults.

    Returns:
        A connected instrument handle.

    Raises:
        UnrecognizedInterfaceError: If the address names no known transport.
        MissingFieldError: If a required address field is absent.
        MalformedFieldError: If an address field does not parse.
        TransportConnectError: If the device cannot be opened.
        FileNotFoundError: If no *config* is given and ``INSTRLINK_CONFIG``
            names a file that does not exist.
        ValueError: If no *config* is given and the configuration file is
            malformed.
        ImportError: If a configured connector factory cannot be imported.
    """
    if config is None:
        config = config_from_env()
    if resolver is None:
        resolver = AddressResolver(strict=config.strict_interface_tags)
    if registry is None:
        registry = registry_from_config(config)

    resolved = resolver.resolve(address)
    connector = registry.dispatch(resolved)
    instrument = Instrument(connector, resolved)
    logger.info("Connected to %s over %s", address, resolved.interface.name)

    if config.default_timeout is not None:
        try:
            instrument.set_timeout(config.default_timeout)
        except TransportIOError as exc:
            raise TransportConnectError(
                f"Failed to apply default timeout to {address!r}: {exc}"
            ) from exc
    return instrument
