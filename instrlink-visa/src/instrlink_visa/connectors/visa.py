"""PyVISA connector.

Opens the resolved address through a VISA library instead of talking USBTMC
directly. Useful where a vendor VISA (NI-VISA, Keysight IO Libraries) already
owns the USB device, or with the pure-Python ``pyvisa-py`` backend (``"@py"``).

The connector is selected per interface in configuration::

    instrlink:
      connectors:
        USB:
          factory: "instrlink_visa.connectors.visa:connect_visa"
          kwargs:
            backend: "@py"

``pyvisa`` is imported lazily on connect.
"""

from __future__ import annotations

import logging
from typing import Any

from instrlink_core.errors import TransportConnectError
from instrlink_core.types.address import ResourceAddress

from instrlink_visa.connectors.base import LockedConnector

logger = logging.getLogger(__name__)


class VisaConnector(LockedConnector):
    """Connector wrapping an open PyVISA message-based resource.

    The connector owns both the resource and the resource manager it was
    opened from and closes them together.

    Args:
        resource: Open PyVISA resource.
        manager: The ``pyvisa.ResourceManager`` that opened *resource*.
        name: Label used in logs and error messages.
    """

    def __init__(self, resource: Any, manager: Any, name: str) -> None:
        super().__init__(name)
        self._resource = resource
        self._manager = manager

    def _write(self, cmd: str) -> None:
        self._resource.write(cmd)

    def _read_raw(self) -> bytes:
        return bytes(self._resource.read_raw())

    def _apply_timeout(self, seconds: float) -> None:
        # PyVISA timeouts are in milliseconds
        self._resource.timeout = seconds * 1000.0

    def _release(self) -> None:
        try:
            self._resource.close()
        finally:
            self._manager.close()


def connect_visa(
    address: ResourceAddress,
    *,
    backend: str = "",
    write_termination: str = "\n",
) -> VisaConnector:
    """Open an address through PyVISA.

    Args:
        address: A resolved address. Its original text is handed to VISA.
        backend: ``pyvisa.ResourceManager`` library argument (``""`` for
            the default VISA library, ``"@py"`` for pyvisa-py).
        write_termination: Characters appended to every command.

    Returns:
        Connector holding the open resource.

    Raises:
        TransportConnectError: If pyvisa is not installed or the resource
            cannot be opened.
    """
    try:
        import pyvisa  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise TransportConnectError(
            "pyvisa library is not installed. Install with: pip install pyvisa"
        ) from exc

    manager = None
    try:
        manager = pyvisa.ResourceManager(backend)
        resource = manager.open_resource(address.raw, write_termination=write_termination)
    except Exception as exc:
        if manager is not None:
            manager.close()
        raise TransportConnectError(
            f"Failed to open VISA resource {address.raw!r}: {exc}"
        ) from exc

    logger.info("Opened VISA resource %s", address.raw)
    return VisaConnector(resource, manager, address.raw)
