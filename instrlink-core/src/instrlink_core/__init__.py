"""Core library for instrument addressing.

This package provides the foundational types, the connector interface, and
the error hierarchy shared by every instrlink package. It has no external
dependencies (stdlib-only) so transport packages can build on it freely.

Key components:
    - Types: InterfaceType, ResourceClass, and the parsed ResourceAddress.
    - Interfaces: The Connector protocol implemented by transport backends.
    - Errors: Hierarchy of exception types for address, connect, and I/O
      failures.

Example:
    >>> from instrlink_core import InterfaceType
    >>> InterfaceType.USB.keyword
    'USB'
"""

from instrlink_core.errors import (
    AddressError,
    ConnectError,
    InstrlinkError,
    MalformedFieldError,
    MissingFieldError,
    TransportConnectError,
    TransportIOError,
    UnrecognizedInterfaceError,
)
from instrlink_core.interfaces import Connector, ConnectorFactory
from instrlink_core.types import (
    ADDRESS_DELIMITER,
    InterfaceType,
    ResourceAddress,
    ResourceClass,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Types
    "ADDRESS_DELIMITER",
    "InterfaceType",
    "ResourceAddress",
    "ResourceClass",
    # Interfaces
    "Connector",
    "ConnectorFactory",
    # Errors
    "AddressError",
    "ConnectError",
    "InstrlinkError",
    "MalformedFieldError",
    "MissingFieldError",
    "TransportConnectError",
    "TransportIOError",
    "UnrecognizedInterfaceError",
]
