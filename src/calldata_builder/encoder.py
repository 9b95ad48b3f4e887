"""
Extraction and ABI encoding of a finished call.

``extract_arguments`` walks the tree in declaration order and produces plain,
strongly-typed positional values: integers as exact ``int``, addresses as
checksummed hex strings, byte strings as lowercase hex, booleans as ``bool``,
tuples as dicts keyed by field name in declaration order and arrays as lists.
``encode_arguments`` hands those values to eth-abi together with the
canonical signature and prefixes the 4-byte selector.
"""

from __future__ import annotations

import logging
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import ABITypeError, DecodingError, EncodingError, ParseError
from eth_utils import decode_hex, encode_hex, function_signature_to_4byte_selector, to_checksum_address

from calldata_builder.abi_types import TypeKind
from calldata_builder.errors import EncodingFailure
from calldata_builder.store import MISSING, ArrayItem, ValueStore
from calldata_builder.tree import FunctionDescriptor, ParameterNode
from calldata_builder.validator import ensure_complete, is_empty

logger = logging.getLogger(__name__)


def _label(node: ParameterNode, path: tuple[str, ...]) -> str:
    return node.name or (path[-1] if path else node.type)


def extract_value(node: ParameterNode, value: Any, path: tuple[str, ...] = ()) -> Any:
    """
    Convert one stored value into its plain form.

    Raises:
        EncodingFailure: If a required value is missing or cannot be converted.
    """
    info = node.type_info
    where = {"path": list(path), "type": node.type}

    if info.is_tuple:
        if not isinstance(value, dict):
            raise EncodingFailure(f"Tuple {_label(node, path)} has no value mapping", where)
        out = {}
        for c in node.components:
            if c.name not in value:
                raise EncodingFailure(f"Missing component {c.name} in tuple {_label(node, path)}", where)
            out[c.name] = extract_value(c, value[c.name], path + (c.identifier,))
        return out

    if info.is_array:
        if not isinstance(value, list):
            raise EncodingFailure(f"Array {_label(node, path)} has no item list", where)
        template = node.template
        return [
            extract_value(template, item.value, path + (item.identifier,))
            for item in value
            if isinstance(item, ArrayItem)
        ]

    if info.kind is TypeKind.BOOL:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise EncodingFailure(f"Invalid boolean for {_label(node, path)}: {value!r}", where)

    if info.kind is TypeKind.STRING:
        if value is MISSING or value is None:
            raise EncodingFailure(f"Missing value for {_label(node, path)}", where)
        return str(value)

    if is_empty(value):
        raise EncodingFailure(f"Missing value for {_label(node, path)}", where)
    s = str(value).strip()

    if info.is_integer:
        try:
            return int(s, 10)
        except ValueError as e:
            raise EncodingFailure(f"Invalid integer for {_label(node, path)}: {s!r}", where) from e

    if info.kind is TypeKind.ADDRESS:
        try:
            return to_checksum_address(s)
        except ValueError as e:
            raise EncodingFailure(f"Invalid address for {_label(node, path)}: {s!r}", where) from e

    if info.is_byte_string:
        return s.lower()

    raise EncodingFailure(f"Unsupported type {node.type}", where)


def extract_arguments(function: FunctionDescriptor, store: ValueStore) -> list[Any]:
    """Positional plain arguments, one per top-level parameter, in declaration order."""
    args = []
    for p in function.parameters:
        value = store.get(p.identifier)
        if value is MISSING:
            raise EncodingFailure(f"No value recorded for parameter {p.name}", {"path": [p.identifier]})
        args.append(extract_value(p, value, (p.identifier,)))
    return args


def to_codec_value(node: ParameterNode, plain: Any) -> Any:
    """Adapt a plain value to what eth-abi accepts (tuples as tuples, byte strings as bytes)."""
    info = node.type_info
    if info.is_tuple:
        return tuple(to_codec_value(c, plain[c.name]) for c in node.components)
    if info.is_array:
        return [to_codec_value(node.template, v) for v in plain]
    if info.is_byte_string:
        return decode_hex(plain)
    return plain


def from_codec_value(node: ParameterNode, decoded: Any) -> Any:
    """Inverse of :func:`to_codec_value` for addresses: decoded addresses come back checksummed."""
    info = node.type_info
    if info.is_tuple:
        return tuple(from_codec_value(c, v) for c, v in zip(node.components, decoded))
    if info.is_array:
        return [from_codec_value(node.template, v) for v in decoded]
    if info.kind is TypeKind.ADDRESS:
        return to_checksum_address(decoded)
    return decoded


def function_selector(function: FunctionDescriptor) -> str:
    return encode_hex(function_signature_to_4byte_selector(function.signature()))


def encode_arguments(function: FunctionDescriptor, args: list[Any]) -> str:
    """
    Encode ``args`` (as produced by :func:`extract_arguments`) into call data.

    Raises:
        EncodingFailure: If the argument list does not match the parameters or the codec rejects it.
    """
    if len(args) != len(function.parameters):
        raise EncodingFailure(
            f"Argument count mismatch: got {len(args)}, expected {len(function.parameters)}",
            {"expected": len(function.parameters), "got": len(args)},
        )
    signature = function.signature()
    types = [p.canonical_type() for p in function.parameters]
    try:
        codec_args = [to_codec_value(p, a) for p, a in zip(function.parameters, args)]
        payload = abi_encode(types, codec_args)
    except (EncodingError, ABITypeError, ParseError, KeyError, TypeError, ValueError, OverflowError) as e:
        logger.debug("Codec rejected %s: %s", signature, e)
        raise EncodingFailure(f"Failed to encode {signature}: {e}", {"signature": signature}) from e
    return encode_hex(function_signature_to_4byte_selector(signature) + payload)


def encode_call(function: FunctionDescriptor, store: ValueStore) -> str:
    """
    Validate, extract and encode. Pure: neither the tree nor the store is modified.

    Raises:
        IncompleteCallError: If whole-tree validation fails.
        EncodingFailure: If extraction or the codec fails.
    """
    ensure_complete(function, store)
    data = encode_arguments(function, extract_arguments(function, store))
    logger.debug("Encoded %s -> %d bytes", function.signature(), (len(data) - 2) // 2)
    return data


def decode_arguments(function: FunctionDescriptor, data: str) -> list[Any]:
    """
    Decode call data produced for ``function`` back into positional values.

    Raises:
        EncodingFailure: If the selector does not match or the payload is malformed.
    """
    raw = decode_hex(data)
    selector = function_signature_to_4byte_selector(function.signature())
    if raw[:4] != selector:
        raise EncodingFailure(
            "Selector mismatch",
            {"expected": encode_hex(selector), "got": encode_hex(raw[:4])},
        )
    types = [p.canonical_type() for p in function.parameters]
    try:
        values = abi_decode(types, raw[4:])
    except (DecodingError, ABITypeError, ParseError) as e:
        raise EncodingFailure(f"Failed to decode {function.signature()}: {e}") from e
    return [from_codec_value(p, v) for p, v in zip(function.parameters, values)]
