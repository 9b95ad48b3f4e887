"""Incremental builder for smart-contract function calls and their ABI call data."""

from calldata_builder.builder import CallBuilder
from calldata_builder.errors import (
    CallBuilderError,
    EncodingFailure,
    IncompleteCallError,
    InvalidTemplateError,
    InvalidTransactionError,
    InvalidTypeError,
    InvalidValueError,
    UnknownTemplateError,
    ValidationFailure,
)
from calldata_builder.templates import get_template, list_templates

__all__ = [
    "CallBuilder",
    "CallBuilderError",
    "EncodingFailure",
    "IncompleteCallError",
    "InvalidTemplateError",
    "InvalidTransactionError",
    "InvalidTypeError",
    "InvalidValueError",
    "UnknownTemplateError",
    "ValidationFailure",
    "get_template",
    "list_templates",
]

__version__ = "0.1.0"
