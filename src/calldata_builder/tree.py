"""
Parameter Tree: the mutable shape of a function call.

A :class:`FunctionDescriptor` holds the function name and the ordered
top-level :class:`ParameterNode` list. Nodes are identified by opaque
identifiers handed out by an :class:`IdentifierSource`; values are kept
separately in :mod:`calldata_builder.store`.
"""

from __future__ import annotations

import itertools
import secrets
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from calldata_builder.abi_types import TypeInfo, parse_type
from calldata_builder.constants import ARRAY_SUFFIX, FIELD_NAME_PREFIX


class IdentifierSource:
    """Hands out identifiers that are unique for the lifetime of a builder."""

    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix or secrets.token_hex(3)
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


@dataclass
class ParameterNode:
    identifier: str
    type: str
    name: str | None = None
    components: list[ParameterNode] = field(default_factory=list)
    # Set while the name is still the positional placeholder given at creation.
    auto_named: bool = False

    @property
    def type_info(self) -> TypeInfo:
        return parse_type(self.type)

    @property
    def template(self) -> ParameterNode | None:
        """Element template of an array node."""
        if self.type_info.is_array and self.components:
            return self.components[0]
        return None

    def find_component(self, identifier: str) -> ParameterNode | None:
        for c in self.components:
            if c.identifier == identifier:
                return c
        return None

    def walk(self) -> Iterator[ParameterNode]:
        yield self
        for c in self.components:
            yield from c.walk()

    def canonical_type(self) -> str:
        """Type as it appears in a canonical signature, tuples expanded to ``(...)``."""
        info = self.type_info
        if info.is_tuple:
            return "(" + ",".join(c.canonical_type() for c in self.components) + ")"
        if info.is_array and self.template is not None:
            return self.template.canonical_type() + ARRAY_SUFFIX
        return info.tag

    def to_abi(self) -> dict[str, Any]:
        """JSON ABI input entry; arrays of tuples carry the innermost tuple's components."""
        out: dict[str, Any] = {"name": self.name or "", "type": self.type}
        inner = self
        while inner.type_info.is_array and inner.template is not None:
            inner = inner.template
        if inner.type_info.is_tuple:
            out["components"] = [c.to_abi() for c in inner.components]
        return out


@dataclass
class FunctionDescriptor:
    name: str = ""
    parameters: list[ParameterNode] = field(default_factory=list)

    def find_parameter(self, identifier: str) -> ParameterNode | None:
        for p in self.parameters:
            if p.identifier == identifier:
                return p
        return None

    def identifiers(self) -> set[str]:
        return {node.identifier for p in self.parameters for node in p.walk()}

    def signature(self) -> str:
        return f"{self.name}({','.join(p.canonical_type() for p in self.parameters)})"

    def display_signature(self) -> str:
        labelled = [" ".join(part for part in (p.canonical_type(), p.name) if part) for p in self.parameters]
        return f"{self.name}({', '.join(labelled)})"

    def to_abi(self, state_mutability: str = "nonpayable") -> dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "inputs": [p.to_abi() for p in self.parameters],
            "outputs": [],
            "stateMutability": state_mutability,
        }


def build_node(
    type_tag: str,
    name: str | None,
    new_id: Callable[[], str],
    components: Sequence[dict[str, Any]] = (),
    *,
    auto_named: bool = False,
) -> ParameterNode:
    """
    Create a node whose children agree with its type.

    ``components`` are ABI-style ``{"name", "type", "components"?}`` entries
    describing tuple fields; for ``tuple[]`` (and deeper arrays) they describe
    the innermost tuple. Identifiers embedded in the entries are ignored.
    """
    info = parse_type(type_tag)
    node = ParameterNode(identifier=new_id(), type=info.tag, name=name, auto_named=auto_named)
    node.components = shape_children(info, new_id, components)
    return node


def shape_children(
    info: TypeInfo,
    new_id: Callable[[], str],
    components: Sequence[dict[str, Any]] = (),
) -> list[ParameterNode]:
    if info.is_array:
        return [build_node(info.element.tag, None, new_id, components)]
    if info.is_tuple:
        taken = {c.get("name") for c in components if c.get("name")}
        fields = []
        for i, c in enumerate(components):
            name = c.get("name")
            if not name:
                name = unique_name(FIELD_NAME_PREFIX, taken, i)
                taken.add(name)
            fields.append(build_node(c["type"], name, new_id, c.get("components") or ()))
        return fields
    return []


def unique_name(prefix: str, taken: Iterable[str | None], start: int) -> str:
    """``<prefix><n>`` for the first ``n >= start`` not already in ``taken``."""
    used = set(taken)
    n = start
    while f"{prefix}{n}" in used:
        n += 1
    return f"{prefix}{n}"
