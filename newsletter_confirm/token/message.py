"""Serializable token envelope and expiration semantics."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from ..utils.time import as_utc, from_unix_seconds
from .errors import DecodeError, SerializationError

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


def _json_default(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


@dataclass(frozen=True)
class TokenMessage:
    """The signed part of a token: ``{"exp": <i64|null>, "data": <payload>}``."""

    exp: Optional[int]
    data: Any

    def to_json(self) -> bytes:
        """Compact JSON bytes with ``exp`` first; these exact bytes get signed."""
        if self.exp is not None and not I64_MIN <= self.exp <= I64_MAX:
            raise SerializationError("expiration does not fit in a signed 64-bit integer")
        try:
            raw = json.dumps(
                {"exp": self.exp, "data": self.data},
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
                default=_json_default,
            )
        except (TypeError, ValueError, RecursionError) as exc:
            raise SerializationError(f"payload is not serializable: {exc}") from exc
        return raw.encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> "TokenMessage":
        try:
            body = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
        except (UnicodeDecodeError, ValueError, RecursionError) as exc:
            raise DecodeError("message is not valid UTF-8 JSON") from exc

        if not isinstance(body, dict) or "data" not in body:
            raise DecodeError("message is not a token envelope")

        exp = body.get("exp")
        if exp is not None:
            if isinstance(exp, bool) or not isinstance(exp, int):
                raise DecodeError("expiration is not an integer")
            if not I64_MIN <= exp <= I64_MAX:
                raise DecodeError("expiration does not fit in a signed 64-bit integer")
        return cls(exp=exp, data=body["data"])

    def is_expired(self, now: datetime) -> bool:
        """True once ``now`` is strictly after the expiration.

        An expiration that cannot be placed on the calendar counts as expired.
        """
        if self.exp is None:
            return False
        deadline = from_unix_seconds(self.exp)
        if deadline is None:
            return True
        return as_utc(now) > deadline
