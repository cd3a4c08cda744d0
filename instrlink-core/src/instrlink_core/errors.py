"""Exception types for instrlink-core.

This module defines the exception hierarchy used throughout instrlink. All
instrlink exceptions inherit from InstrlinkError, allowing consumers to catch
all library-specific errors with a single except clause.

Exception hierarchy:
    InstrlinkError (base)
    +-- ConnectError: Anything that prevents an instrument handle from existing
    |   +-- AddressError: Resource address is invalid
    |   |   +-- UnrecognizedInterfaceError: No known transport matches the tag
    |   |   +-- MissingFieldError: A required address field is absent
    |   |   +-- MalformedFieldError: An address field does not parse
    |   +-- TransportConnectError: The transport could not open the device
    +-- TransportIOError: A command or query failed on an open connection
"""

from __future__ import annotations


class InstrlinkError(Exception):
    """Base exception for all instrlink errors.

    This is the root of the instrlink exception hierarchy. Catch this to
    handle any library-specific error.
    """


class ConnectError(InstrlinkError):
    """Raised when connecting to an instrument fails.

    Umbrella for every error :func:`instrlink_visa.connect` can raise, so a
    caller can handle address and transport failures in one place.
    """


class AddressError(ConnectError):
    """Raised when a resource address is structurally invalid.

    Address errors are not retryable: the caller must supply a different
    address.

    Attributes:
        address: The address text that failed to resolve.
    """

    def __init__(self, address: str, message: str) -> None:
        """Initialize the address error.

        Args:
            address: The offending address text.
            message: Human-readable description of the problem.
        """
        self.address = address
        super().__init__(f"{message} in resource address {address!r}")


class UnrecognizedInterfaceError(AddressError):
    """Raised when the interface tag matches no known transport family.

    Attributes:
        address: The address text that failed to resolve.
        tag: The first address segment as written.
    """

    def __init__(self, address: str, tag: str) -> None:
        self.tag = tag
        super().__init__(address, f"Unrecognized interface {tag!r}")


class MissingFieldError(AddressError):
    """Raised when a field required by the matched transport is absent.

    Attributes:
        address: The address text that failed to resolve.
        field: Name of the missing field (e.g. ``"product_id"``).
    """

    def __init__(self, address: str, field: str) -> None:
        self.field = field
        super().__init__(address, f"Missing required field {field!r}")


class MalformedFieldError(AddressError):
    """Raised when an address field fails to parse.

    Attributes:
        address: The address text that failed to resolve.
        field: Name of the field (e.g. ``"vendor_id"``).
        value: The segment text that failed to parse.
    """

    def __init__(self, address: str, field: str, value: str, reason: str = "") -> None:
        self.field = field
        self.value = value
        detail = f" ({reason})" if reason else ""
        super().__init__(address, f"Malformed field {field!r}: {value!r}{detail}")


class TransportConnectError(ConnectError):
    """Raised when a transport fails to establish a connection.

    Common causes include an absent device, a device already claimed by
    another process, or insufficient permissions. The caller may retry after
    corrective action; instrlink never retries on its own.
    """


class TransportIOError(InstrlinkError):
    """Raised when a command or query fails on an established connection.

    Covers timeouts, disconnects, and responses that cannot be decoded. The
    instrument handle stays usable and the call may be retried.
    """
