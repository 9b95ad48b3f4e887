"""
Path Resolver.

A path is an ordered sequence of identifiers starting at a top-level
parameter. Below a tuple, a segment names a field. Below an array, a
segment names either the element template (a *shape* path, fanning out
over every item's value) or a concrete array item (an *item* path,
addressing exactly one value). Array items exist only in the Value Store.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from calldata_builder.store import ArrayItem, ValueSlot, ValueStore
from calldata_builder.tree import FunctionDescriptor, ParameterNode

Path = Sequence[str]


class RefKind(str, Enum):
    PARAMETER = "parameter"
    FIELD = "field"
    TEMPLATE = "template"
    ITEM = "item"


@dataclass
class NodeRef:
    """A resolved path: the shape node plus every value location it covers."""

    node: ParameterNode
    kind: RefKind
    path: tuple[str, ...]
    slots: list[ValueSlot] = field(default_factory=list)
    parent: NodeRef | None = None
    item: ArrayItem | None = None

    @property
    def through_template(self) -> bool:
        """True when the path passes through an element template (no single value)."""
        if self.kind is RefKind.TEMPLATE:
            return True
        return self.parent is not None and self.parent.through_template

    @property
    def value_slot(self) -> ValueSlot | None:
        """The single value location of an item path, None for shape-only paths."""
        if self.through_template or len(self.slots) != 1:
            return None
        return self.slots[0]

    def shape_path(self) -> tuple[str, ...]:
        """Same node addressed through element templates instead of concrete items."""
        chain: list[str] = []
        ref: NodeRef | None = self
        while ref is not None:
            chain.append(ref.node.identifier)
            ref = ref.parent
        return tuple(reversed(chain))

    def ancestors(self) -> list[NodeRef]:
        out = []
        ref = self.parent
        while ref is not None:
            out.append(ref)
            ref = ref.parent
        return out


def _array_values(slots: list[ValueSlot]) -> list[list[ArrayItem]]:
    return [v for v in (s.get() for s in slots) if isinstance(v, list)]


def resolve(function: FunctionDescriptor, store: ValueStore, path: Path) -> NodeRef | None:
    """
    Walk ``path`` from a top-level parameter.

    Returns ``None`` on any broken link (unknown parameter, unknown field,
    unknown item, or a segment below a leaf). Callers treat ``None`` as a
    no-op trigger, never as an error.
    """
    if isinstance(path, str) or not path:
        return None
    segments = tuple(path)

    top = function.find_parameter(segments[0])
    if top is None:
        return None
    ref = NodeRef(node=top, kind=RefKind.PARAMETER, path=segments[:1], slots=[store.slot(top.identifier)])

    for depth, seg in enumerate(segments[1:], start=2):
        info = ref.node.type_info
        if info.is_tuple:
            child = ref.node.find_component(seg)
            if child is None:
                return None
            slots = [ValueSlot(v, child.name) for v in (s.get() for s in ref.slots) if isinstance(v, dict)]
            ref = NodeRef(node=child, kind=RefKind.FIELD, path=segments[:depth], slots=slots, parent=ref)
        elif info.is_array:
            template = ref.node.template
            values = _array_values(ref.slots)
            if seg == template.identifier:
                slots = [ValueSlot(item) for items in values for item in items]
                ref = NodeRef(node=template, kind=RefKind.TEMPLATE, path=segments[:depth], slots=slots, parent=ref)
                continue
            found = next((item for items in values for item in items if item.identifier == seg), None)
            if found is None:
                return None
            ref = NodeRef(
                node=template,
                kind=RefKind.ITEM,
                path=segments[:depth],
                slots=[ValueSlot(found)],
                parent=ref,
                item=found,
            )
        else:
            return None
    return ref
