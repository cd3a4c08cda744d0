"""Connector interface for instrument transports.

This module defines the :class:`Connector` protocol, the narrow contract every
transport backend implements. The instrument facade depends on nothing else
from a transport.

Implementations include:
- :class:`instrlink_visa.connectors.usbtmc.UsbtmcConnector`: python-usbtmc
- :class:`instrlink_visa.connectors.visa.VisaConnector`: PyVISA
"""

# pylint: disable=unnecessary-ellipsis  # Ellipsis required for Protocol method stubs

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from instrlink_core.types.address import ResourceAddress


@runtime_checkable
class Connector(Protocol):
    """Protocol for an open transport connection to one instrument.

    A connector owns its transport handle and exposes only what is needed to
    exchange messages with the device. Connectors may be called from several
    threads at once and must serialize access to the physical transport
    themselves.

    This is a structural subtyping protocol. Any class providing these
    methods with matching signatures is a valid connector.

    Example:
        >>> class LoopbackConnector:
        ...     def set_timeout(self, seconds: float) -> None:
        ...         self.timeout = seconds
        ...     def command(self, cmd: str) -> None:
        ...         self.last = cmd
        ...     def query_raw(self, cmd: str) -> bytes:
        ...         return cmd.encode()
        ...     def query(self, cmd: str) -> str:
        ...         return cmd
        ...     def close(self) -> None:
        ...         pass
    """

    def set_timeout(self, seconds: float) -> None:
        """Set the I/O timeout applied to every subsequent operation.

        Args:
            seconds: Timeout in seconds.
        """
        ...

    def command(self, cmd: str) -> None:
        """Send a command that produces no response.

        Args:
            cmd: The command text.

        Raises:
            TransportIOError: If the write fails.
        """
        ...

    def query_raw(self, cmd: str) -> bytes:
        """Send a command and return the undecoded response payload.

        Args:
            cmd: The command text.

        Returns:
            The response bytes.

        Raises:
            TransportIOError: If the write or read fails.
        """
        ...

    def query(self, cmd: str) -> str:
        """Send a command and return the response decoded as UTF-8.

        Args:
            cmd: The command text.

        Returns:
            The response text.

        Raises:
            TransportIOError: If the transport fails or the payload is not
                valid UTF-8.
        """
        ...

    def close(self) -> None:
        """Release the transport handle. Safe to call more than once."""
        ...


ConnectorFactory = Callable[[ResourceAddress], Connector]
"""Opens a connector for a resolved address.

Raises:
    TransportConnectError: If the device cannot be opened.
"""
