"""Schema types and validators.

TypedDict definitions for the shapes exchanged with callers (ABI-style
inputs, call templates, descriptions, prepared transactions) and a
validator for imported call templates so malformed input is rejected
before any identifier is stamped.
"""

from __future__ import annotations

from typing import Any, Protocol, TypedDict

from calldata_builder.abi_types import parse_type
from calldata_builder.errors import InvalidTemplateError, InvalidTypeError


class AbiInput(TypedDict, total=False):
    """One ABI-style parameter entry. ``components`` describe tuple fields."""

    name: str
    type: str
    components: list[AbiInput]
    value: Any  # Optional inline value used by call templates


class AbiFunction(TypedDict):
    """Minimal interface descriptor synthesized for encoding."""

    type: str
    name: str
    inputs: list[AbiInput]
    outputs: list[AbiInput]
    stateMutability: str


class CallTemplate(TypedDict, total=False):
    """Shape + values pair accepted by ``CallBuilder.load_template``."""

    name: str
    inputs: list[AbiInput]
    values: list[Any] | dict[str, Any]
    description: str
    target: str


class CallDescription(TypedDict):
    name: str
    signature: str
    display: str


class PreparedTransaction(TypedDict):
    to: str
    data: str
    value: int


class TransactionSender(Protocol):
    """Key-holding signer/transport that submits a prepared transaction."""

    def send_transaction(self, tx: PreparedTransaction) -> str: ...


# Validation Functions


def _validate_inputs(inputs: Any, location: str, *, require_names: bool) -> None:
    if not isinstance(inputs, list):
        raise InvalidTemplateError(location, "must be a list")

    seen: set[str] = set()
    for i, inp in enumerate(inputs):
        where = f"{location}[{i}]"
        if not isinstance(inp, dict):
            raise InvalidTemplateError(where, "must be a dict")

        if "type" not in inp:
            raise InvalidTemplateError(where, "missing required field 'type'")
        if not isinstance(inp["type"], str):
            raise InvalidTemplateError(f"{where}.type", "must be a string")
        try:
            info = parse_type(inp["type"])
        except InvalidTypeError as e:
            raise InvalidTemplateError(f"{where}.type", e.message) from e

        name = inp.get("name")
        if name is not None and not isinstance(name, str):
            raise InvalidTemplateError(f"{where}.name", "must be a string")
        if require_names and not name:
            raise InvalidTemplateError(where, "missing required field 'name'")
        if name:
            if name in seen:
                raise InvalidTemplateError(f"{where}.name", f"duplicate name {name!r}")
            seen.add(name)

        innermost = info
        while innermost.is_array:
            innermost = innermost.element
        components = inp.get("components")
        if innermost.is_tuple:
            if components is None:
                raise InvalidTemplateError(where, f"{info.tag} requires 'components'")
            _validate_inputs(components, f"{where}.components", require_names=False)
        elif components:
            raise InvalidTemplateError(f"{where}.components", f"not allowed for {info.tag}")


def validate_call_template(data: dict[str, Any]) -> None:
    """Validate a call template against the schema.

    Raises InvalidTemplateError (a ValueError) with the dotted location of the
    first problem found.
    """
    if not isinstance(data, dict):
        raise InvalidTemplateError("", "template must be a dict")

    if "name" not in data:
        raise InvalidTemplateError("", "missing required field: name")
    if not isinstance(data["name"], str):
        raise InvalidTemplateError("name", "must be a string")

    if "inputs" not in data:
        raise InvalidTemplateError("", "missing required field: inputs")
    _validate_inputs(data["inputs"], "inputs", require_names=True)

    values = data.get("values")
    if values is not None:
        if isinstance(values, list):
            if len(values) != len(data["inputs"]):
                raise InvalidTemplateError(
                    "values", f"expected {len(data['inputs'])} positional value(s), got {len(values)}"
                )
        elif isinstance(values, dict):
            names = {inp.get("name") for inp in data["inputs"]}
            unknown = sorted(set(values) - names)
            if unknown:
                raise InvalidTemplateError("values", f"unknown parameter name(s): {unknown}")
        else:
            raise InvalidTemplateError("values", "must be a list or a dict")

    for key in ("description", "target"):
        if key in data and data[key] is not None and not isinstance(data[key], str):
            raise InvalidTemplateError(key, "must be a string")
