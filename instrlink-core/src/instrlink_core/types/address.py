"""Resource address types.

A resource address is a VISA-style string of ``::``-delimited segments whose
first segment names the transport family::

    USB0::0x0699::0x0368::SN123::INSTR

Classes:
    InterfaceType: Transport families addressable by their tag keyword.
    ResourceClass: Resource class suffix that may terminate an address.
    ResourceAddress: The parsed form of an address string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ADDRESS_DELIMITER = "::"
"""Literal separator between address segments."""


class InterfaceType(Enum):
    """Transport families, keyed by their VISA tag keyword.

    Only USB has an address grammar and a connector today. The remaining
    members are reserved so that future transports slot in without renaming.

    Attributes:
        USB: USB Test and Measurement Class devices.
        TCPIP: LAN instruments (VXI-11, HiSLIP, raw socket).
        GPIB: IEEE 488 bus instruments.
        VICP: LeCroy VICP over LAN.
        LSIB: LeCroy LSIB.
    """

    USB = "USB"
    TCPIP = "TCPIP"
    GPIB = "GPIB"
    VICP = "VICP"
    LSIB = "LSIB"

    @property
    def keyword(self) -> str:
        """Return the tag keyword that selects this family."""
        return self.value


class ResourceClass(Enum):
    """VISA resource class suffixes."""

    INSTR = "INSTR"
    RAW = "RAW"
    SOCKET = "SOCKET"

    @classmethod
    def from_segment(cls, segment: str) -> ResourceClass | None:
        """Return the resource class named by *segment*, or None."""
        try:
            return cls(segment)
        except ValueError:
            return None


@dataclass(frozen=True)
class ResourceAddress:
    """A resolved resource address.

    Built once at connect time and handed to the connector factory for the
    matched transport. Nothing holds on to it after the connector exists
    except the instrument handle, for reporting.

    Attributes:
        raw: The original address text.
        interface: The matched transport family.
        tag: The first segment as written (e.g. ``"USB0"``).
        board: Board number trailing the tag keyword, or None.
        fields: Every segment after the tag, verbatim and in order.
        params: Parsed values for the named fields of the transport grammar.
            Derived from the segments, so left out of the hash.
        resource_class: Trailing resource class suffix, or None.
        extra: Segments not consumed by the transport grammar.
    """

    raw: str
    interface: InterfaceType
    tag: str
    board: int | None = None
    fields: tuple[str, ...] = ()
    params: dict[str, Any] = field(default_factory=dict, hash=False)
    resource_class: ResourceClass | None = None
    extra: tuple[str, ...] = ()

    @property
    def vendor_id(self) -> int | None:
        """USB vendor ID, if the address carries one."""
        return self.params.get("vendor_id")

    @property
    def product_id(self) -> int | None:
        """USB product ID, if the address carries one."""
        return self.params.get("product_id")

    @property
    def serial_number(self) -> str | None:
        """Device serial number, if the address carries one."""
        return self.params.get("serial_number")

    def __str__(self) -> str:
        return self.raw
