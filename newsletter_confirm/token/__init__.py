"""Signed, expiring confirmation tokens."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

from ..utils.time import Clock, utc_now
from .builder import Encoder, TokenBuilder
from .codecs import as_uuid, expect
from .errors import (
    DecodeError,
    Expired,
    FormatError,
    SerializationError,
    SignatureMismatch,
    SigningKeyError,
    TokenError,
    status_for,
)
from .key import SigningKey
from .message import TokenMessage
from .token import Decoder, Token


def sign(
    payload: Any,
    key: SigningKey,
    *,
    expires_in: timedelta | float | None = None,
    expires_at: datetime | int | None = None,
    encoder: Optional[Encoder] = None,
    clock: Clock = utc_now,
) -> str:
    """Sign ``payload`` with ``key`` and return the token string."""
    if expires_in is not None and expires_at is not None:
        raise ValueError("pass at most one of expires_in and expires_at")
    builder = TokenBuilder(payload, encoder=encoder, clock=clock)
    if expires_in is not None:
        builder.expires_in(expires_in)
    elif expires_at is not None:
        builder.expires_at(expires_at)
    return str(builder.sign(key))


def verify(token: str, key: SigningKey, *, decoder: Optional[Decoder] = None, clock: Clock = utc_now) -> Any:
    """Parse and verify ``token`` and return its payload."""
    return Token.parse(token).verify(key, decoder=decoder, clock=clock)


__all__ = [
    "sign",
    "verify",
    "SigningKey",
    "Token",
    "TokenBuilder",
    "TokenMessage",
    "as_uuid",
    "expect",
    "TokenError",
    "FormatError",
    "DecodeError",
    "SignatureMismatch",
    "Expired",
    "SigningKeyError",
    "SerializationError",
    "status_for",
]
