"""
Errors raised while turning node responses into typed values.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


def json_type_name(value: Any) -> str:
    """Name of the JSON type a parsed value came from."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class DecodeError(ValueError):
    """
    A raw JSON value could not be interpreted as the expected typed value.

    Attributes:
        field: Dotted path of the offending field ("hex", "[3].amount"),
            or None when the response body itself is at fault.
        reason: Human readable description without the field prefix.
    """

    def __init__(self, reason: str, field: str | None = None):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}" if field else reason)


class MissingFieldError(DecodeError):
    """A mandatory key is absent from a response object."""

    def __init__(self, field: str):
        super().__init__("missing mandatory field", field)


class TypeMismatchError(DecodeError):
    """A value exists but has the wrong JSON type."""

    def __init__(self, expected: str, value: Any, field: str | None = None):
        self.expected = expected
        self.actual = json_type_name(value)
        super().__init__(f"expected {expected}, got {self.actual}", field)


class MalformedEncodingError(DecodeError):
    """A string has the right type but does not parse (hex, hash, address)."""


class OutOfRangeError(DecodeError):
    """A numeric value falls outside its allowed domain."""


class InvariantViolationError(DecodeError):
    """A consistency check across the response failed."""


class RPCError(ValueError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, code: int | str, message: str):
        self.method = method
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code} in {method}: {message}")
