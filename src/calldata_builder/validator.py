"""
Value and call validation.

Leaf rules are checked per node by :func:`check_leaf`; :func:`validate_call`
walks the whole tree and collects every failure into a
:class:`ValidationReport`, and :func:`ensure_complete` raises instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from calldata_builder.abi_types import TypeInfo, TypeKind
from calldata_builder.constants import ADDRESS_LENGTH
from calldata_builder.errors import IncompleteCallError, ValidationFailure
from calldata_builder.store import MISSING, ArrayItem, ValueStore
from calldata_builder.tree import FunctionDescriptor, ParameterNode

# Matched with fullmatch; ASCII digits only.
_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
_UINT_RE = re.compile(r"[0-9]+")
_INT_RE = re.compile(r"-?[0-9]+")
_HEX_RE = re.compile(r"0x(?:[0-9a-fA-F]{2})*")
_FUNCTION_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def is_empty(value: Any) -> bool:
    """True for a value that has not been entered yet. Booleans are never empty."""
    if value is None or value is MISSING:
        return True
    return isinstance(value, str) and not value.strip()


def check_leaf(info: TypeInfo, value: Any) -> str | None:
    """
    Check a non-empty leaf value against its type rule.

    Returns a human-readable reason, or None when the value is valid.
    """
    kind = info.kind
    if kind is TypeKind.BOOL:
        if isinstance(value, bool):
            return None
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return None
        return 'Must be "true" or "false"'

    if not isinstance(value, str):
        return f"Expected text, got {type(value).__name__}"

    if kind is TypeKind.STRING:
        return None

    s = value.strip()
    if kind is TypeKind.ADDRESS:
        if len(s) != ADDRESS_LENGTH or not _ADDRESS_RE.fullmatch(s):
            return "Invalid address format (expected 0x followed by 40 hex characters)"
        return None

    if kind is TypeKind.UINT:
        if not _UINT_RE.fullmatch(s):
            return "Must be a non-negative integer"
        if int(s) > info.max_value:
            return f"Value exceeds {info.tag} maximum ({info.max_value})"
        return None

    if kind is TypeKind.INT:
        if not _INT_RE.fullmatch(s):
            return "Must be an integer"
        n = int(s)
        if n < info.min_value or n > info.max_value:
            return f"Value out of {info.tag} range [{info.min_value}, {info.max_value}]"
        return None

    if info.is_byte_string:
        if not _HEX_RE.fullmatch(s):
            return "Must be hex format (0x followed by an even number of hex characters)"
        if kind is TypeKind.FIXED_BYTES and len(s) - 2 != info.width * 2:
            return f"{info.tag} needs exactly {info.width * 2} hex characters, got {len(s) - 2}"
        return None

    return f"Unsupported leaf type {info.tag}"


def validate_function_name(name: str) -> str | None:
    if not name or not name.strip():
        return "Function name is required"
    if not _FUNCTION_NAME_RE.fullmatch(name):
        return "Invalid function name format (letters, digits and underscore; must not start with a digit)"
    return None


def validate_value(
    node: ParameterNode,
    value: Any,
    path: tuple[str, ...],
    *,
    require_complete: bool = False,
) -> list[ValidationFailure]:
    """
    Validate ``value`` against ``node`` and everything below it.

    Empty leaves are skipped unless ``require_complete`` is set, in which case
    they (and zero-field tuples) are reported as missing. Each failure carries
    the path of the offending node; array items are addressed by item identifier.
    """
    info = node.type_info
    failures: list[ValidationFailure] = []

    if info.is_tuple:
        if not node.components:
            if require_complete:
                failures.append(ValidationFailure(path, "Tuple must have at least one field"))
            return failures
        if not isinstance(value, dict):
            if require_complete or not is_empty(value):
                failures.append(ValidationFailure(path, "Tuple value must be a mapping of field values"))
            return failures
        for c in node.components:
            child_path = path + (c.identifier,)
            if c.name not in value:
                failures.append(ValidationFailure(child_path, f"Missing component: {c.name}"))
                continue
            failures.extend(validate_value(c, value[c.name], child_path, require_complete=require_complete))
        return failures

    if info.is_array:
        if not isinstance(value, list):
            if require_complete or not is_empty(value):
                failures.append(ValidationFailure(path, "Array value must be a list of items"))
            return failures
        template = node.template
        for item in value:
            if not isinstance(item, ArrayItem):
                failures.append(ValidationFailure(path, "Array entries must be array items"))
                continue
            failures.extend(
                validate_value(template, item.value, path + (item.identifier,), require_complete=require_complete)
            )
        return failures

    if is_empty(value):
        # An empty string is a legal `string` argument.
        if require_complete and not (info.kind is TypeKind.STRING and isinstance(value, str)):
            failures.append(ValidationFailure(path, "Value is required"))
        return failures

    reason = check_leaf(info, value)
    if reason is not None:
        failures.append(ValidationFailure(path, reason))
    return failures


@dataclass
class ValidationReport:
    """Whole-tree validation result, one failure per offending node."""

    failures: list[ValidationFailure] = field(default_factory=list)
    parameter_count: int = 0
    extractable_count: int = 0

    @property
    def valid(self) -> bool:
        return len(self.failures) == 0

    def by_path(self) -> dict[tuple[str, ...], list[str]]:
        out: dict[tuple[str, ...], list[str]] = {}
        for f in self.failures:
            out.setdefault(f.path, []).append(f.reason)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "parameter_count": self.parameter_count,
            "extractable_count": self.extractable_count,
            "failures": [f.data for f in self.failures],
        }


def validate_call(function: FunctionDescriptor, store: ValueStore) -> ValidationReport:
    """
    Whole-tree completeness check. Non-throwing; see :func:`ensure_complete`.

    Lookups are tree-driven: orphaned store cells are never consulted.
    """
    failures: list[ValidationFailure] = []
    reason = validate_function_name(function.name)
    if reason is not None:
        failures.append(ValidationFailure((), reason))

    extractable = 0
    for param in function.parameters:
        path = (param.identifier,)
        value = store.get(param.identifier)
        if value is MISSING:
            failures.append(ValidationFailure(path, f"No value recorded for parameter {param.name}"))
            continue
        param_failures = validate_value(param, value, path, require_complete=True)
        if not param_failures:
            extractable += 1
        failures.extend(param_failures)

    return ValidationReport(
        failures=failures,
        parameter_count=len(function.parameters),
        extractable_count=extractable,
    )


def ensure_complete(function: FunctionDescriptor, store: ValueStore) -> ValidationReport:
    """
    Raises:
        IncompleteCallError: Carrying every per-field failure when the tree is incomplete.
    """
    report = validate_call(function, store)
    if not report.valid or report.extractable_count != report.parameter_count:
        raise IncompleteCallError(report.failures)
    return report
