"""
CallBuilder: the Mutation API over a Parameter Tree and its Value Store.

Every mutation addresses its target with a path of identifiers (see
:mod:`calldata_builder.paths`). A path that does not resolve, or a mutation
that would duplicate an existing node, is absorbed as a no-op: it is logged
at DEBUG and leaves both structures untouched.

Example::

    builder = CallBuilder("transfer")
    to = builder.add_parameter("to", "address")
    amount = builder.add_parameter("amount", "uint256")
    builder.set_value([to], "0x" + "11" * 20)
    builder.set_value([amount], "1000000")
    data = builder.encode()
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from eth_utils import is_address, to_checksum_address

from calldata_builder.abi_types import array_of, parse_type
from calldata_builder.constants import (
    DEFAULT_PARAMETER_TYPE,
    DEFAULT_STATE_MUTABILITY,
    DEFAULT_TRANSACTION_VALUE,
    FIELD_NAME_PREFIX,
    PARAMETER_NAME_PREFIX,
)
from calldata_builder.encoder import decode_arguments, encode_call, extract_arguments
from calldata_builder.errors import InvalidTransactionError, ValidationFailure
from calldata_builder.paths import NodeRef, Path, RefKind, resolve
from calldata_builder.schema import (
    AbiFunction,
    CallDescription,
    CallTemplate,
    PreparedTransaction,
    TransactionSender,
    validate_call_template,
)
from calldata_builder.store import MISSING, ArrayItem, ValueStore, coerce_value, default_value
from calldata_builder.tree import (
    FunctionDescriptor,
    IdentifierSource,
    ParameterNode,
    build_node,
    shape_children,
    unique_name,
)
from calldata_builder.validator import ValidationReport, ensure_complete, validate_call, validate_value

logger = logging.getLogger(__name__)

EventSink = Callable[..., None]


def _rename_key(mapping: dict[str, Any], old: str, new: str) -> None:
    """Rename ``old`` to ``new`` in place, keeping the key's position."""
    if old not in mapping:
        return
    entries = list(mapping.items())
    mapping.clear()
    mapping.update((new if k == old else k, v) for k, v in entries)


class CallBuilder:
    """Incrementally built function call: shape, values, and their encoding."""

    def __init__(
        self,
        name: str = "",
        *,
        event_log: EventSink | None = None,
        id_prefix: str | None = None,
    ) -> None:
        self.function = FunctionDescriptor(name=name)
        self.store = ValueStore()
        self._new_id = IdentifierSource(id_prefix)
        self._event_log = event_log

    def __repr__(self) -> str:
        return f"CallBuilder({self.function.display_signature()!r})"

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(self, event: str, /, **fields: Any) -> None:
        logger.debug("%s %s", event, fields)
        if self._event_log is not None:
            self._event_log(event, **fields)

    def _noop(self, operation: str, reason: str, path: Path | None = None) -> None:
        logger.debug("%s ignored (%s): path=%s", operation, reason, list(path) if path is not None else None)

    # ------------------------------------------------------------------
    # Function name and lookups
    # ------------------------------------------------------------------

    @property
    def function_name(self) -> str:
        return self.function.name

    @function_name.setter
    def function_name(self, name: str) -> None:
        self.set_function_name(name)

    def set_function_name(self, name: str) -> None:
        self.function.name = name
        self._emit("function_renamed", name=name)

    @property
    def parameters(self) -> list[ParameterNode]:
        return list(self.function.parameters)

    def resolve(self, path: Path) -> NodeRef | None:
        return resolve(self.function, self.store, path)

    def find_path(self, dotted: str) -> list[str] | None:
        """
        Translate a dotted name path (``params.amountIn``, ``recipients.0``)
        into an identifier path. Numeric segments index array items.
        """
        first, *rest = dotted.split(".")
        node = next((p for p in self.function.parameters if p.name == first), None)
        if node is None:
            return None
        path = [node.identifier]
        for part in rest:
            info = node.type_info
            if info.is_tuple:
                node = next((c for c in node.components if c.name == part), None)
                if node is None:
                    return None
                path.append(node.identifier)
            elif info.is_array and part.isascii() and part.isdigit():
                items = self.get_value(path)
                if not isinstance(items, list) or int(part) >= len(items):
                    return None
                path.append(items[int(part)].identifier)
                node = node.template
            else:
                return None
        return path

    def _shape_ref(self, ref: NodeRef) -> NodeRef | None:
        """Re-resolve ``ref`` through element templates when it was reached via an array item."""
        if all(r.kind is not RefKind.ITEM for r in (ref, *ref.ancestors())):
            return ref
        return self.resolve(ref.shape_path())

    def _is_pristine(self, node: ParameterNode, values: Iterable[Any]) -> bool:
        """Auto-added with the default name and type, and still holding only default values."""
        if not node.auto_named or node.type != DEFAULT_PARAMETER_TYPE:
            return False
        expected = default_value(node)
        return all(v == expected for v in values)

    # ------------------------------------------------------------------
    # Shape mutations
    # ------------------------------------------------------------------

    def add_parameter(self, name: str | None = None, type: str | None = None) -> str | None:
        """
        Append a top-level parameter and return its identifier.

        With both arguments omitted the parameter is named ``param<N>`` and
        typed ``address``; such a call directly following another untouched
        default-valued append is absorbed and returns None.

        Raises:
            InvalidTypeError: If ``type`` is not a supported type tag.
        """
        params = self.function.parameters
        if name is None and type is None and params:
            last = params[-1]
            if self._is_pristine(last, [self.store.get(last.identifier)]):
                self._noop("add_parameter", "duplicate default parameter")
                return None

        tag = parse_type(type or DEFAULT_PARAMETER_TYPE).tag
        auto_named = not name
        if auto_named:
            name = unique_name(PARAMETER_NAME_PREFIX, (p.name for p in params), len(params))

        node = build_node(tag, name, self._new_id, auto_named=auto_named)
        params.append(node)
        self.store.put(node.identifier, default_value(node))
        self._emit("parameter_added", identifier=node.identifier, name=node.name, type=node.type)
        return node.identifier

    def add_component(self, path: Path, name: str | None = None, type: str | None = None) -> str | None:
        """
        Append a field to the tuple at ``path`` and return its identifier.

        The field's default value is written into every value of the tuple
        (each array item when the tuple is an element template). Arrays and
        leaves do not accept components.

        Raises:
            InvalidTypeError: If ``type`` is not a supported type tag.
        """
        ref = self.resolve(path)
        if ref is not None:
            ref = self._shape_ref(ref)
        if ref is None:
            self._noop("add_component", "path does not resolve", path)
            return None
        parent = ref.node
        if not parent.type_info.is_tuple:
            self._noop("add_component", f"{parent.type} does not take components", path)
            return None

        if name is None and type is None and parent.components:
            last = parent.components[-1]
            values = [v.get(last.name, MISSING) for v in (s.get() for s in ref.slots) if isinstance(v, dict)]
            if self._is_pristine(last, values):
                self._noop("add_component", "duplicate default component", path)
                return None

        tag = parse_type(type or DEFAULT_PARAMETER_TYPE).tag
        auto_named = not name
        if auto_named:
            name = unique_name(FIELD_NAME_PREFIX, (c.name for c in parent.components), len(parent.components))
        if any(c.name == name for c in parent.components):
            self._noop("add_component", f"component {name!r} already exists", path)
            return None

        child = build_node(tag, name, self._new_id, auto_named=auto_named)
        parent.components.append(child)
        for slot in ref.slots:
            value = slot.get()
            if isinstance(value, dict):
                value[child.name] = default_value(child)
        self._emit(
            "component_added",
            path=list(ref.path),
            identifier=child.identifier,
            name=child.name,
            type=child.type,
        )
        return child.identifier

    def remove_component(self, path: Path) -> None:
        """Remove the parameter, tuple field or array item at ``path``."""
        ref = self.resolve(path)
        if ref is None:
            self._noop("remove_component", "path does not resolve", path)
            return

        if ref.kind is RefKind.PARAMETER:
            self.function.parameters.remove(ref.node)
            self.store.discard(ref.node.identifier)
        elif ref.kind is RefKind.ITEM:
            for slot in ref.parent.slots:
                items = slot.get()
                if isinstance(items, list) and any(i is ref.item for i in items):
                    items[:] = [i for i in items if i is not ref.item]
        elif ref.kind is RefKind.TEMPLATE:
            self._noop("remove_component", "element template cannot be removed", path)
            return
        else:
            shape = self._shape_ref(ref)
            if shape is None:
                self._noop("remove_component", "path does not resolve", path)
                return
            owner = shape.parent
            owner.node.components.remove(shape.node)
            for slot in owner.slots:
                value = slot.get()
                if isinstance(value, dict):
                    value.pop(shape.node.name, None)

        self._emit("component_removed", path=list(ref.path), kind=ref.kind.value)

    def update_component(self, path: Path, name: str | None = None, type: str | None = None) -> None:
        """
        Rename and/or retype the node at ``path`` in place.

        Renaming a tuple field moves its key in every parent value. Retyping
        resets every value of the node to the new type's default; retyping an
        element template also updates the enclosing array types.

        Raises:
            InvalidTypeError: If ``type`` is not a supported type tag.
        """
        info = parse_type(type) if type is not None else None
        ref = self.resolve(path)
        if ref is not None:
            ref = self._shape_ref(ref)
        if ref is None:
            self._noop("update_component", "path does not resolve", path)
            return
        node = ref.node
        changes: dict[str, Any] = {}

        if name is not None and name != node.name:
            if ref.kind is RefKind.TEMPLATE:
                self._noop("update_component", "element templates are unnamed", path)
            elif not name:
                self._noop("update_component", "empty name", path)
            else:
                siblings = ref.parent.node.components if ref.parent is not None else self.function.parameters
                if any(s is not node and s.name == name for s in siblings):
                    self._noop("update_component", f"name {name!r} already taken", path)
                else:
                    old = node.name
                    node.name = name
                    node.auto_named = False
                    if ref.kind is RefKind.FIELD:
                        for slot in ref.parent.slots:
                            value = slot.get()
                            if isinstance(value, dict):
                                _rename_key(value, old, name)
                        ref = self.resolve(ref.path)
                    changes["name"] = name

        if info is not None and info.tag != node.type:
            node.type = info.tag
            node.components = shape_children(info, self._new_id)
            for slot in ref.slots:
                slot.set(default_value(node))
            r = ref
            while r.kind is RefKind.TEMPLATE:
                r.parent.node.type = array_of(r.node.type)
                r = r.parent
            changes["type"] = info.tag

        if changes:
            self._emit("component_updated", path=list(ref.path), **changes)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def add_item(self, array_path: Path, value: Any = None) -> str | None:
        """
        Append an item to the array value at ``array_path`` and return its identifier.

        Raises:
            InvalidValueError: If ``value`` does not fit the element template.
        """
        ref = self.resolve(array_path)
        slot = ref.value_slot if ref is not None else None
        if ref is None or slot is None or not ref.node.type_info.is_array:
            self._noop("add_item", "path does not address one array value", array_path)
            return None
        items = slot.get()
        if not isinstance(items, list):
            self._noop("add_item", "array value missing", array_path)
            return None

        item = ArrayItem(identifier=self._new_id(), value=coerce_value(ref.node.template, value, self._new_id))
        items.append(item)
        self._emit("item_added", path=list(ref.path), identifier=item.identifier)
        return item.identifier

    def set_value(self, path: Path, value: Any) -> None:
        """
        Store ``value`` for the node at ``path``.

        Raises:
            InvalidValueError: If a composite node receives a value of the wrong shape.
        """
        ref = self.resolve(path)
        slot = ref.value_slot if ref is not None else None
        if slot is None:
            self._noop("set_value", "path does not address a single value", path)
            return
        slot.set(coerce_value(ref.node, value, self._new_id))
        self._emit("value_set", path=list(ref.path))

    def get_value(self, path: Path) -> Any:
        """Deep copy of the value at ``path``; None when the path does not address a single value."""
        ref = self.resolve(path)
        slot = ref.value_slot if ref is not None else None
        if slot is None:
            return None
        value = slot.get()
        return None if value is MISSING else copy.deepcopy(value)

    def collect_garbage(self) -> int:
        return self.store.collect_garbage(p.identifier for p in self.function.parameters)

    # ------------------------------------------------------------------
    # Bulk import
    # ------------------------------------------------------------------

    def load_template(self, template: CallTemplate, values: list[Any] | Mapping[str, Any] | None = None) -> list[str]:
        """
        Replace the call with an ABI-style template, stamping fresh identifiers.

        ``values`` overrides the template's own ``values``; either may be a
        positional list or a mapping by parameter name. Without them, each
        input's inline ``value`` is used. Nothing changes if the template or a
        value is rejected.

        Raises:
            InvalidTemplateError: If the template is malformed.
            InvalidValueError: If a value does not fit its parameter.
        """
        data = dict(template) if isinstance(template, Mapping) else template
        if values is not None and isinstance(data, dict):
            data["values"] = values if isinstance(values, list) else dict(values)
        validate_call_template(data)
        supplied = data.get("values")

        nodes: list[ParameterNode] = []
        cells: list[Any] = []
        for i, inp in enumerate(data["inputs"]):
            node = build_node(inp["type"], inp["name"], self._new_id, inp.get("components") or ())
            if isinstance(supplied, list):
                raw = supplied[i]
            elif isinstance(supplied, dict):
                raw = supplied.get(inp["name"], inp.get("value"))
            else:
                raw = inp.get("value")
            nodes.append(node)
            cells.append(coerce_value(node, raw, self._new_id))

        for old in self.function.parameters:
            self.store.discard(old.identifier)
        self.function.name = data["name"]
        self.function.parameters = nodes
        for node, cell in zip(nodes, cells):
            self.store.put(node.identifier, cell)

        self._emit("template_loaded", name=self.function.name, parameters=len(nodes))
        return [n.identifier for n in nodes]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> ValidationReport:
        return validate_call(self.function, self.store)

    def validate_node(self, path: Path) -> list[ValidationFailure]:
        """Per-node check of the value at ``path``; empty values are not flagged."""
        ref = self.resolve(path)
        slot = ref.value_slot if ref is not None else None
        if slot is None:
            return []
        return validate_value(ref.node, slot.get(), ref.path)

    # ------------------------------------------------------------------
    # Outbound projections
    # ------------------------------------------------------------------

    def describe(self) -> CallDescription:
        return {
            "name": self.function.name,
            "signature": self.function.signature(),
            "display": self.function.display_signature(),
        }

    def to_abi(self) -> AbiFunction:
        return self.function.to_abi(DEFAULT_STATE_MUTABILITY)

    def extract(self) -> list[Any]:
        """
        Raises:
            IncompleteCallError: If the call does not pass whole-tree validation.
        """
        ensure_complete(self.function, self.store)
        return extract_arguments(self.function, self.store)

    def encode(self) -> str:
        """
        ``0x``-prefixed call data. Never modifies the tree or the values.

        Raises:
            IncompleteCallError: If the call does not pass whole-tree validation.
            EncodingFailure: If extraction or the ABI codec fails.
        """
        data = encode_call(self.function, self.store)
        self._emit("encoded", signature=self.function.signature(), data=data)
        return data

    def decode(self, data: str) -> list[Any]:
        return decode_arguments(self.function, data)

    def prepare_transaction(self, to: str, value: int = DEFAULT_TRANSACTION_VALUE) -> PreparedTransaction:
        """
        Raises:
            InvalidTransactionError: If ``to`` is not an address or ``value`` is not a non-negative integer.
            IncompleteCallError: If the call is not ready to encode.
        """
        if not isinstance(to, str) or not is_address(to):
            raise InvalidTransactionError("to", f"not a valid address: {to!r}")
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidTransactionError("value", f"must be a non-negative integer, got {value!r}")
        tx: PreparedTransaction = {"to": to_checksum_address(to), "data": self.encode(), "value": value}
        self._emit("transaction_prepared", **tx)
        return tx

    def submit(self, sender: TransactionSender, to: str, value: int = DEFAULT_TRANSACTION_VALUE) -> str:
        """Prepare the transaction and hand it to ``sender``; transport errors propagate."""
        tx = self.prepare_transaction(to, value)
        tx_id = sender.send_transaction(tx)
        self._emit("submitted", to=tx["to"], value=tx["value"], tx_id=tx_id)
        return tx_id
