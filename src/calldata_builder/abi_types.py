"""
Type Descriptor vocabulary for contract call parameters.

A type tag is one of a closed catalogue of leaf tags (``address``,
``uintN``/``intN``, ``bool``, ``string``, ``bytes``, ``bytesN``), the
composite ``tuple``, or ``T[]`` for any tag ``T`` (including ``tuple[]``
and nested arrays). Tuples own named fields; arrays own a single unnamed
element template.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from calldata_builder.constants import ARRAY_SUFFIX, FIXED_BYTES_WIDTHS, INTEGER_BIT_WIDTHS
from calldata_builder.errors import InvalidTypeError


class TypeKind(str, Enum):
    """Categories of type tags."""

    ADDRESS = "address"
    UINT = "uint"
    INT = "int"
    BOOL = "bool"
    STRING = "string"
    BYTES = "bytes"
    FIXED_BYTES = "fixed_bytes"
    TUPLE = "tuple"
    ARRAY = "array"


_INT_RE = re.compile(r"(u?)int([1-9][0-9]*)", re.ASCII)
_FIXED_BYTES_RE = re.compile(r"bytes([1-9][0-9]*)", re.ASCII)

_SIMPLE_KINDS = {
    "address": TypeKind.ADDRESS,
    "bool": TypeKind.BOOL,
    "string": TypeKind.STRING,
    "bytes": TypeKind.BYTES,
    "tuple": TypeKind.TUPLE,
}


@dataclass(frozen=True)
class TypeInfo:
    """Parsed form of a type tag."""

    tag: str
    kind: TypeKind
    # Bit width for integers, byte width for fixed bytes.
    width: int | None = None
    element: TypeInfo | None = None

    @property
    def is_array(self) -> bool:
        return self.kind is TypeKind.ARRAY

    @property
    def is_tuple(self) -> bool:
        return self.kind is TypeKind.TUPLE

    @property
    def is_composite(self) -> bool:
        return self.kind in (TypeKind.ARRAY, TypeKind.TUPLE)

    @property
    def is_leaf(self) -> bool:
        return not self.is_composite

    @property
    def is_integer(self) -> bool:
        return self.kind in (TypeKind.UINT, TypeKind.INT)

    @property
    def is_byte_string(self) -> bool:
        return self.kind in (TypeKind.BYTES, TypeKind.FIXED_BYTES)

    @property
    def min_value(self) -> int | None:
        if self.kind is TypeKind.UINT:
            return 0
        if self.kind is TypeKind.INT:
            return -(2 ** (self.width - 1))
        return None

    @property
    def max_value(self) -> int | None:
        if self.kind is TypeKind.UINT:
            return 2**self.width - 1
        if self.kind is TypeKind.INT:
            return 2 ** (self.width - 1) - 1
        return None


def parse_type(tag: str) -> TypeInfo:
    """
    Parse a type tag into a :class:`TypeInfo`.

    Raises:
        InvalidTypeError: If the tag is not part of the catalogue.
    """
    if not isinstance(tag, str):
        raise InvalidTypeError(repr(tag), "type tag must be a string")
    return _parse_type(tag)


@lru_cache(maxsize=512)
def _parse_type(tag: str) -> TypeInfo:
    t = tag.strip()
    if not t:
        raise InvalidTypeError(tag, "type tag is empty")

    if t.endswith(ARRAY_SUFFIX):
        element = parse_type(t[: -len(ARRAY_SUFFIX)])
        return TypeInfo(tag=element.tag + ARRAY_SUFFIX, kind=TypeKind.ARRAY, element=element)
    if "[" in t or "]" in t:
        raise InvalidTypeError(tag, "only dynamic arrays (T[]) are supported")

    if t in _SIMPLE_KINDS:
        return TypeInfo(tag=t, kind=_SIMPLE_KINDS[t])

    m = _INT_RE.fullmatch(t)
    if m:
        width = int(m.group(2))
        if width not in INTEGER_BIT_WIDTHS:
            raise InvalidTypeError(tag, "integer width must be a multiple of 8 between 8 and 256")
        return TypeInfo(tag=t, kind=TypeKind.INT if m.group(1) == "" else TypeKind.UINT, width=width)

    m = _FIXED_BYTES_RE.fullmatch(t)
    if m:
        width = int(m.group(1))
        if width not in FIXED_BYTES_WIDTHS:
            raise InvalidTypeError(tag, "fixed bytes width must be between 1 and 32")
        return TypeInfo(tag=t, kind=TypeKind.FIXED_BYTES, width=width)

    raise InvalidTypeError(tag)


def is_valid_type(tag: str) -> bool:
    try:
        parse_type(tag)
    except InvalidTypeError:
        return False
    return True


def array_of(tag: str) -> str:
    return parse_type(tag).tag + ARRAY_SUFFIX


def leaf_default(info: TypeInfo) -> str | bool:
    """Canonical default for a leaf type (raw, pre-conversion form)."""
    if info.is_composite:
        raise InvalidTypeError(info.tag, "composite types have no leaf default")
    if info.kind is TypeKind.BOOL:
        return False
    if info.is_integer:
        return "0"
    return ""


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogueEntry:
    tag: str
    category: str


def _build_catalogue() -> tuple[CatalogueEntry, ...]:
    entries = [CatalogueEntry("address", "Address")]
    entries += [CatalogueEntry(f"uint{w}", "Unsigned Integers") for w in reversed(INTEGER_BIT_WIDTHS)]
    entries += [CatalogueEntry(f"int{w}", "Signed Integers") for w in reversed(INTEGER_BIT_WIDTHS)]
    entries.append(CatalogueEntry("bool", "Boolean"))
    entries.append(CatalogueEntry("string", "String"))
    entries.append(CatalogueEntry("bytes", "Bytes"))
    entries += [CatalogueEntry(f"bytes{w}", "Bytes") for w in reversed(FIXED_BYTES_WIDTHS)]
    entries.append(CatalogueEntry("tuple", "Structured"))
    return tuple(entries)


TYPE_CATALOGUE = _build_catalogue()


def matches_search_term(tag: str, query: str) -> bool:
    """True when every character of ``query`` appears in ``tag`` in order (case-insensitive)."""
    q = query.strip().lower()
    if not q:
        return True
    it = iter(tag.lower())
    return all(ch in it for ch in q)


def search_catalogue(query: str = "") -> dict[str, list[str]]:
    """Catalogue tags matching ``query``, grouped by category in catalogue order."""
    out: dict[str, list[str]] = {}
    for entry in TYPE_CATALOGUE:
        if matches_search_term(entry.tag, query):
            out.setdefault(entry.category, []).append(entry.tag)
    return out


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def placeholder_for_type(tag: str) -> str:
    info = parse_type(tag)
    if info.kind is TypeKind.ADDRESS or info.is_byte_string:
        return "0x..."
    if info.is_integer:
        return "123"
    if info.kind is TypeKind.BOOL:
        return "true or false"
    if info.kind is TypeKind.STRING:
        return "Hello World"
    if info.is_tuple:
        return "Add components below"
    return "Add elements below"


def type_hint(tag: str) -> str:
    info = parse_type(tag)
    if info.kind is TypeKind.ADDRESS:
        return "Enter a valid address (0x followed by 40 hex characters)"
    if info.kind is TypeKind.UINT:
        return f"Enter a non-negative integer below 2^{info.width}"
    if info.kind is TypeKind.INT:
        return f"Enter an integer between -2^{info.width - 1} and 2^{info.width - 1}-1"
    if info.kind is TypeKind.BOOL:
        return 'Enter "true" or "false"'
    if info.kind is TypeKind.STRING:
        return "Enter any text string"
    if info.kind is TypeKind.FIXED_BYTES:
        return f"Enter exactly {info.width} bytes of hex data (0x followed by {info.width * 2} hex characters)"
    if info.kind is TypeKind.BYTES:
        return "Enter hex data (0x followed by an even number of hex characters)"
    if info.is_tuple:
        return "Add components to define the tuple structure"
    return "Add elements to define the array structure"
