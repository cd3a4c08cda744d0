"""Data types for instrlink.

Classes:
    InterfaceType: Transport families selected by an address tag.
    ResourceClass: Resource class suffix of an address.
    ResourceAddress: Parsed resource address.
"""

from instrlink_core.types.address import (
    ADDRESS_DELIMITER,
    InterfaceType,
    ResourceAddress,
    ResourceClass,
)

__all__ = [
    "ADDRESS_DELIMITER",
    "InterfaceType",
    "ResourceAddress",
    "ResourceClass",
]
