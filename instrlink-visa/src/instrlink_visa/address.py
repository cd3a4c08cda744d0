"""Resource address resolution.

Turns a VISA-style resource address into a :class:`ResourceAddress` using a
small per-transport grammar: the address is split on ``::``, the first
segment selects a transport family, and the remaining segments fill that
family's fields positionally.

USB addresses follow::

    USB[board]::<vendor id>::<product id>[::<serial>][::<interface>][::INSTR]

Vendor and product IDs are 16-bit hexadecimal values with an optional ``0x``
prefix, so ``USB::0x0699::0x0368`` and ``USB::0699::0368`` are the same
device. Segments the grammar cannot interpret, such as a non-numeric
interface number, are kept verbatim in :attr:`ResourceAddress.extra`.

Typical usage::

    from instrlink_visa.address import resolve

    address = resolve("USB0::0x0699::0x0368::SN123::INSTR")
    print(f"{address.vendor_id:#06x}:{address.product_id:#06x}")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from instrlink_core.errors import (
    MalformedFieldError,
    MissingFieldError,
    UnrecognizedInterfaceError,
)
from instrlink_core.types.address import (
    ADDRESS_DELIMITER,
    InterfaceType,
    ResourceAddress,
    ResourceClass,
)

_HEX_RE = re.compile(r"[0-9A-Fa-f]+")
_DECIMAL_RE = re.compile(r"[0-9]+")

_UINT16_MAX = 0xFFFF


class FieldKind(Enum):
    """How an address field is parsed."""

    HEX16 = "hex16"
    DECIMAL = "decimal"
    TEXT = "text"


@dataclass(frozen=True)
class FieldSpec:
    """One positional field of a transport grammar.

    Attributes:
        name: Key under which the parsed value is stored in
            :attr:`ResourceAddress.params`.
        kind: Parser applied to the segment text.
        required: Whether resolution fails when the field is absent.
    """

    name: str
    kind: FieldKind
    required: bool = True


@dataclass(frozen=True)
class InterfaceGrammar:
    """Address grammar for one transport family.

    Attributes:
        interface: The family this grammar resolves to.
        fields: Positional fields following the interface tag.
    """

    interface: InterfaceType
    fields: tuple[FieldSpec, ...]

    @property
    def keyword(self) -> str:
        """Tag keyword that selects this grammar."""
        return self.interface.keyword

    @property
    def required_count(self) -> int:
        """Number of leading fields that must be present."""
        return sum(1 for spec in self.fields if spec.required)

    def matches(self, tag: str, *, strict: bool = False) -> bool:
        """Return True if the address tag selects this grammar.

        Args:
            tag: First segment of the address.
            strict: Require the keyword optionally followed by a board
                number, instead of a substring match.
        """
        if strict:
            suffix = tag[len(self.keyword):]
            return tag.startswith(self.keyword) and (
                not suffix or _DECIMAL_RE.fullmatch(suffix) is not None
            )
        return self.keyword in tag

    def board_number(self, tag: str) -> int | None:
        """Return the board number trailing the keyword, or None."""
        if not tag.startswith(self.keyword):
            return None
        suffix = tag[len(self.keyword):]
        if suffix and _DECIMAL_RE.fullmatch(suffix):
            return int(suffix)
        return None


USB_GRAMMAR = InterfaceGrammar(
    interface=InterfaceType.USB,
    fields=(
        FieldSpec("vendor_id", FieldKind.HEX16),
        FieldSpec("product_id", FieldKind.HEX16),
        FieldSpec("serial_number", FieldKind.TEXT, required=False),
        FieldSpec("interface_number", FieldKind.DECIMAL, required=False),
    ),
)


def parse_hex16(text: str) -> int:
    """Parse a 16-bit hexadecimal field.

    A single leading ``0x`` (or ``0X``) is stripped; the remainder must be
    one or more hex digits with a value no greater than ``0xFFFF``.

    Args:
        text: Segment text.

    Returns:
        The parsed value.

    Raises:
        ValueError: If the text is not a valid 16-bit hex number.
    """
    digits = text[2:] if text[:2] in ("0x", "0X") else text
    if not _HEX_RE.fullmatch(digits):
        raise ValueError("not a hexadecimal number")
    value = int(digits, 16)
    if value > _UINT16_MAX:
        raise ValueError("exceeds 16 bits")
    return value


def parse_decimal(text: str) -> int:
    """Parse an unsigned decimal field.

    Raises:
        ValueError: If the text contains anything but ASCII digits.
    """
    if not _DECIMAL_RE.fullmatch(text):
        raise ValueError("not a decimal number")
    return int(text)


def _accepts(spec: FieldSpec, text: str) -> bool:
    if spec.kind is FieldKind.TEXT:
        return True
    pattern = _DECIMAL_RE if spec.kind is FieldKind.DECIMAL else _HEX_RE
    digits = text[2:] if spec.kind is FieldKind.HEX16 and text[:2] in ("0x", "0X") else text
    return pattern.fullmatch(digits) is not None


def _parse_field(address: str, spec: FieldSpec, text: str) -> Any:
    if spec.kind is FieldKind.TEXT:
        return text
    parser = parse_hex16 if spec.kind is FieldKind.HEX16 else parse_decimal
    try:
        return parser(text)
    except ValueError as exc:
        raise MalformedFieldError(address, spec.name, text, str(exc)) from None


class AddressResolver:
    """Resolves address strings against a set of transport grammars.

    Grammars are tried in registration order; the first whose keyword
    matches the address tag wins. New transport families are added with
    :meth:`register` and need no change to existing grammars.

    Args:
        grammars: Initial grammars. Defaults to the USB grammar only.
        strict: Require exact tag keywords (optionally followed by a board
            number) instead of substring matching.

    Example:
        >>> resolver = AddressResolver()
        >>> resolver.resolve("USB::0699::0368::SN1::INSTR").product_id
        872
    """

    def __init__(
        self,
        grammars: Iterable[InterfaceGrammar] | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._grammars: list[InterfaceGrammar] = list(
            (USB_GRAMMAR,) if grammars is None else grammars
        )
        self._strict = strict

    @property
    def strict(self) -> bool:
        """Whether tags must match exactly."""
        return self._strict

    @property
    def grammars(self) -> tuple[InterfaceGrammar, ...]:
        """Registered grammars in match order."""
        return tuple(self._grammars)

    def register(self, grammar: InterfaceGrammar) -> None:
        """Add a grammar for a new transport family.

        Args:
            grammar: The grammar to add.

        Raises:
            ValueError: If a grammar for the same interface exists.
        """
        if any(g.interface is grammar.interface for g in self._grammars):
            raise ValueError(f"Grammar already registered for {grammar.interface.name}")
        self._grammars.append(grammar)

    def match(self, tag: str) -> InterfaceGrammar | None:
        """Return the grammar selected by *tag*, or None."""
        for grammar in self._grammars:
            if grammar.matches(tag, strict=self._strict):
                return grammar
        return None

    def resolve(self, address: str) -> ResourceAddress:
        """Resolve an address string.

        Args:
            address: Resource address, e.g. ``"USB0::0x0699::0x0368::SN::INSTR"``.

        Returns:
            The resolved address.

        Raises:
            UnrecognizedInterfaceError: If no grammar matches the tag.
            MissingFieldError: If a required field is absent or empty.
            MalformedFieldError: If a required field fails to parse.
        """
        segments = address.split(ADDRESS_DELIMITER)
        tag, rest = segments[0], segments[1:]

        grammar = self.match(tag)
        if grammar is None:
            raise UnrecognizedInterfaceError(address, tag)

        positional = list(rest)
        resource_class = None
        if len(positional) > grammar.required_count:
            resource_class = ResourceClass.from_segment(positional[-1])
            if resource_class is not None:
                positional.pop()

        params: dict[str, Any] = {}
        consumed = len(grammar.fields)
        for index, spec in enumerate(grammar.fields):
            text = positional[index] if index < len(positional) else ""
            if not text:
                if spec.required:
                    raise MissingFieldError(address, spec.name)
                continue
            if not spec.required and not _accepts(spec, text):
                # Vendor-specific segments from here on go to the connector.
                consumed = index
                break
            params[spec.name] = _parse_field(address, spec, text)

        return ResourceAddress(
            raw=address,
            interface=grammar.interface,
            tag=tag,
            board=grammar.board_number(tag),
            fields=tuple(rest),
            params=params,
            resource_class=resource_class,
            extra=tuple(positional[consumed:]),
        )


def resolve(address: str, *, strict: bool = False) -> ResourceAddress:
    """Resolve an address with the built-in grammars.

    Args:
        address: Resource address string.
        strict: Require exact tag keywords.

    Returns:
        The resolved address.

    Raises:
        UnrecognizedInterfaceError: If no grammar matches the tag.
        MissingFieldError: If a required field is absent or empty.
        MalformedFieldError: If a required field fails to parse.
    """
    return AddressResolver(strict=strict).resolve(address)
