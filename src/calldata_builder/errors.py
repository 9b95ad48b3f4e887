"""Error type definitions for the call builder.

Every error carries a stable numeric code, a human-readable message and a
structured ``data`` payload so that a UI (or the CLI) can report failures
per field instead of as one opaque string.
"""

from __future__ import annotations

from typing import Any


class CallBuilderError(Exception):
    """Base class for call builder errors."""

    def __init__(self, code: int, message: str, data: dict[str, Any] | None = None):
        self.code = code
        self.message = message
        self.data = data or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a JSON-serializable dictionary."""
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


class InvalidTypeError(CallBuilderError, ValueError):
    """Type tag is not part of the supported catalogue."""

    def __init__(self, type_tag: str, reason: str = "unknown type"):
        super().__init__(
            code=1001,
            message=f"Invalid type '{type_tag}': {reason}",
            data={"type": type_tag, "reason": reason},
        )


class InvalidValueError(CallBuilderError, ValueError):
    """A value cannot be stored for the node it was addressed to."""

    def __init__(self, type_tag: str, reason: str):
        super().__init__(
            code=1002,
            message=f"Invalid value for {type_tag}: {reason}",
            data={"type": type_tag, "reason": reason},
        )


class InvalidTemplateError(CallBuilderError, ValueError):
    """An imported call template is malformed."""

    def __init__(self, location: str, reason: str):
        where = f"{location}: " if location else ""
        super().__init__(
            code=1003,
            message=f"{where}{reason}",
            data={"location": location, "reason": reason},
        )


class UnknownTemplateError(CallBuilderError, KeyError):
    """No built-in template is registered under the requested slug."""

    def __init__(self, slug: str, available: list[str]):
        super().__init__(
            code=1004,
            message=f"Unknown template '{slug}'",
            data={"slug": slug, "available": available},
        )

    def __str__(self) -> str:
        return self.message


class ValidationFailure(CallBuilderError):
    """A single node whose value (or shape) fails its type rule.

    Failures are collected into lists and reported per field; they are
    raised only when wrapped by :class:`IncompleteCallError`.
    """

    def __init__(self, path: tuple[str, ...], reason: str):
        self.path = tuple(path)
        self.reason = reason
        super().__init__(
            code=2001,
            message=reason,
            data={"path": list(self.path), "reason": reason},
        )

    def __repr__(self) -> str:
        return f"ValidationFailure(path={self.path!r}, reason={self.reason!r})"


class EncodingFailure(CallBuilderError):
    """The extractor or the ABI codec rejected the finished structure."""

    def __init__(self, message: str, data: dict[str, Any] | None = None, *, code: int = 3001):
        super().__init__(code=code, message=message, data=data)


class IncompleteCallError(EncodingFailure):
    """Encoding was attempted on a tree that does not pass whole-tree validation."""

    def __init__(self, failures: list[ValidationFailure]):
        self.failures = list(failures)
        first = self.failures[0].reason if self.failures else "call is incomplete"
        super().__init__(
            f"Call is not ready to encode ({len(self.failures)} problem(s)): {first}",
            data={"failures": [f.data for f in self.failures]},
            code=3002,
        )


class InvalidTransactionError(CallBuilderError, ValueError):
    """Transaction envelope fields (target, value) are invalid."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            code=4001,
            message=f"Invalid transaction {field}: {reason}",
            data={"field": field, "reason": reason},
        )
