"""USBTMC connector backed by python-usbtmc.

Talks to USB Test and Measurement Class instruments from user space through
the ``usbtmc`` package (distributed as ``python-usbtmc``, built on PyUSB).
The library is imported lazily on connect so the rest of instrlink works
without it installed.

On Linux the current user needs read/write access to the device node, which
usually means a udev rule for the instrument's vendor ID.
"""

from __future__ import annotations

import logging
from typing import Any

from instrlink_core.errors import TransportConnectError
from instrlink_core.types.address import ResourceAddress

from instrlink_visa.connectors.base import LockedConnector

logger = logging.getLogger(__name__)


class UsbtmcConnector(LockedConnector):
    """Connector wrapping an open ``usbtmc.Instrument``.

    Args:
        device: An opened ``usbtmc.Instrument``.
        name: Label used in logs and error messages.

    Example:
        >>> connector = connect_usbtmc(resolve("USB::0x0699::0x0368::C012345::INSTR"))
        >>> connector.query("*IDN?")
        'TEKTRONIX,TDS 2012C,C012345,CF:91.1CT FV:v24.26\\n'
    """

    def __init__(self, device: Any, name: str) -> None:
        super().__init__(name)
        self._device = device

    def _write(self, cmd: str) -> None:
        self._device.write(cmd)

    def _read_raw(self) -> bytes:
        return bytes(self._device.read_raw())

    def _apply_timeout(self, seconds: float) -> None:
        self._device.timeout = seconds

    def _release(self) -> None:
        self._device.close()


def connect_usbtmc(address: ResourceAddress) -> UsbtmcConnector:
    """Open a USBTMC device by vendor ID, product ID and serial number.

    Standard connector factory for the USB interface family.

    Args:
        address: A resolved USB address.

    Returns:
        Connector holding the claimed USB interface.

    Raises:
        TransportConnectError: If python-usbtmc is not installed, no device
            matches, or the device cannot be claimed.
    """
    try:
        import usbtmc  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise TransportConnectError(
            "python-usbtmc library is not installed. Install with: pip install python-usbtmc"
        ) from exc

    args: tuple[Any, ...] = (address.vendor_id, address.product_id)
    if address.serial_number:
        args += (address.serial_number,)

    try:
        device = usbtmc.Instrument(*args)
        device.open()
    except Exception as exc:
        raise TransportConnectError(
            f"Failed to open USBTMC device {address.raw!r}: {exc}"
        ) from exc

    logger.info(
        "Opened USBTMC device %04x:%04x (serial %s)",
        address.vendor_id,
        address.product_id,
        address.serial_number or "any",
    )
    return UsbtmcConnector(device, address.raw)
