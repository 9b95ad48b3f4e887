"""
Value Store: current values for the Parameter Tree, kept apart from its shape.

Top-level parameters own one cell each, keyed by identifier. Inside a cell,
tuple values are mappings from field name to field value and array values
are ordered lists of :class:`ArrayItem`, each with its own identifier.
Leaf values are raw text (integers as decimal text) or booleans.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from calldata_builder.abi_types import TypeKind, leaf_default
from calldata_builder.errors import InvalidValueError
from calldata_builder.tree import ParameterNode

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass
class ArrayItem:
    identifier: str
    value: Any


class ValueSlot:
    """One location holding a node's value: a key in a mapping, or an array item."""

    __slots__ = ("container", "key")

    def __init__(self, container: dict[str, Any] | ArrayItem, key: str | None = None) -> None:
        self.container = container
        self.key = key

    def get(self) -> Any:
        if isinstance(self.container, ArrayItem):
            return self.container.value
        return self.container.get(self.key, MISSING)

    def set(self, value: Any) -> None:
        if isinstance(self.container, ArrayItem):
            self.container.value = value
        else:
            self.container[self.key] = value

    def __repr__(self) -> str:
        return f"ValueSlot({self.key or getattr(self.container, 'identifier', '?')!r})"


class ValueStore:
    """Mapping from top-level parameter identifier to its value cell."""

    def __init__(self) -> None:
        self._cells: dict[str, Any] = {}

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def slot(self, identifier: str) -> ValueSlot:
        return ValueSlot(self._cells, identifier)

    def get(self, identifier: str, default: Any = MISSING) -> Any:
        return self._cells.get(identifier, default)

    def put(self, identifier: str, value: Any) -> None:
        self._cells[identifier] = value

    def discard(self, identifier: str) -> None:
        self._cells.pop(identifier, None)

    def orphans(self, live: Iterable[str]) -> set[str]:
        return set(self._cells) - set(live)

    def collect_garbage(self, live: Iterable[str]) -> int:
        """Drop cells whose identifier is no longer in the tree. Returns the number dropped."""
        dead = self.orphans(live)
        for identifier in dead:
            del self._cells[identifier]
        if dead:
            logger.debug("Collected %d orphaned value cell(s)", len(dead))
        return len(dead)


def default_value(node: ParameterNode) -> Any:
    """Canonical default for ``node``'s type, following its current shape."""
    info = node.type_info
    if info.is_tuple:
        return {c.name: default_value(c) for c in node.components}
    if info.is_array:
        return []
    return leaf_default(info)


def normalize_bool(raw: Any) -> Any:
    """Booleans pass through; ``"true"``/``"false"`` in any case become booleans; anything else is kept raw."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        s = raw.strip().lower()
        if s == "true":
            return True
        if s == "false":
            return False
    return raw


def coerce_value(node: ParameterNode, raw: Any, new_id: Callable[[], str]) -> Any:
    """
    Convert an externally supplied value into the stored form for ``node``.

    ``None`` yields the type's default. Array entries always receive fresh
    item identifiers.

    Raises:
        InvalidValueError: If a composite node receives a value of the wrong shape,
            or a leaf receives something that is not text, a number or a boolean.
    """
    info = node.type_info
    if raw is None or raw is MISSING:
        return default_value(node)

    if info.is_tuple:
        if isinstance(raw, Mapping):
            return {c.name: coerce_value(c, raw.get(c.name), new_id) for c in node.components}
        if isinstance(raw, (list, tuple)):
            if len(raw) != len(node.components):
                raise InvalidValueError(
                    node.type, f"expected {len(node.components)} positional field value(s), got {len(raw)}"
                )
            return {c.name: coerce_value(c, v, new_id) for c, v in zip(node.components, raw)}
        raise InvalidValueError(node.type, f"expected a mapping of field values, got {type(raw).__name__}")

    if info.is_array:
        if not isinstance(raw, (list, tuple)):
            raise InvalidValueError(node.type, f"expected a list of elements, got {type(raw).__name__}")
        template = node.template
        items = []
        for entry in raw:
            if isinstance(entry, ArrayItem):
                entry = copy.deepcopy(entry.value)
            items.append(ArrayItem(identifier=new_id(), value=coerce_value(template, entry, new_id)))
        return items

    if info.kind is TypeKind.BOOL:
        return normalize_bool(raw)
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, (bytes, bytearray)) and info.is_byte_string:
        return "0x" + bytes(raw).hex()
    if not isinstance(raw, str):
        raise InvalidValueError(node.type, f"unsupported value type {type(raw).__name__}")
    if info.kind is TypeKind.STRING:
        return raw
    return raw.strip()


def plain_value(value: Any) -> Any:
    """Deep copy of a stored value with array items reduced to their values (for display and JSON)."""
    if isinstance(value, dict):
        return {k: plain_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [plain_value(item.value if isinstance(item, ArrayItem) else item) for item in value]
    if value is MISSING:
        return None
    return value
