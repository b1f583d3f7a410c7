"""Payload decoders for ``Token.verify``."""

from __future__ import annotations

from typing import Any, Callable, TypeVar
from uuid import UUID

T = TypeVar("T")


def expect(kind: type[T]) -> Callable[[Any], T]:
    """Decoder that accepts only values that already are ``kind``.

    JSON booleans are not accepted as integers.
    """

    def decode(value: Any) -> T:
        if isinstance(value, bool) and kind is not bool:
            raise TypeError(f"expected {kind.__name__}, got bool")
        if kind is float and isinstance(value, int):
            return float(value)  # type: ignore[return-value]
        if not isinstance(value, kind):
            raise TypeError(f"expected {kind.__name__}, got {type(value).__name__}")
        return value

    return decode


def as_uuid(value: Any) -> UUID:
    if not isinstance(value, str):
        raise TypeError(f"expected UUID string, got {type(value).__name__}")
    return UUID(value)
