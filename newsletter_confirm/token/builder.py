"""Builder that serializes a payload and signs it into a Token."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from numbers import Real
from typing import Any, Callable, Optional

from ..utils.encoding import b64url_encode
from ..utils.time import EPOCH, Clock, as_utc, to_unix_seconds, utc_now
from .errors import SerializationError
from .key import SigningKey
from .message import TokenMessage
from .token import Token

Encoder = Callable[[Any], Any]

_MICROSECOND = timedelta(microseconds=1)


class TokenBuilder:
    """Collect a payload and an optional expiration, then ``sign`` once.

    The expiration is kept as whole Unix seconds, so any signed 64-bit value
    can be requested; out-of-range values fail in ``sign``.
    """

    def __init__(self, payload: Any, *, encoder: Optional[Encoder] = None, clock: Clock = utc_now) -> None:
        self.payload = payload
        self.exp: Optional[int] = None
        self._encoder = encoder
        self._clock = clock
        self._consumed = False

    def expires_in(self, duration: timedelta | float) -> "TokenBuilder":
        now_us = (as_utc(self._clock()) - EPOCH) // _MICROSECOND
        if isinstance(duration, timedelta):
            duration_us = duration // _MICROSECOND
        else:
            try:
                duration_us = math.floor(duration * 1_000_000)
            except (OverflowError, ValueError) as exc:
                raise SerializationError(f"expiration is not finite: {duration!r}") from exc
        self.exp = (now_us + duration_us) // 1_000_000
        return self

    def expires_at(self, timestamp: datetime | int) -> "TokenBuilder":
        if isinstance(timestamp, datetime):
            self.exp = to_unix_seconds(timestamp)
        elif isinstance(timestamp, Real) and not isinstance(timestamp, bool):
            try:
                self.exp = math.floor(timestamp)
            except (OverflowError, ValueError) as exc:
                raise SerializationError(f"expiration is not finite: {timestamp!r}") from exc
        else:
            raise TypeError("expires_at expects a datetime or Unix seconds")
        return self

    def message(self) -> TokenMessage:
        payload = self.payload
        if self._encoder is not None:
            try:
                payload = self._encoder(payload)
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"payload encoder failed: {exc}") from exc
        return TokenMessage(exp=self.exp, data=payload)

    def sign(self, key: SigningKey) -> Token:
        if self._consumed:
            raise RuntimeError("TokenBuilder.sign() may only be called once")
        self._consumed = True

        raw_message = self.message().to_json()
        signature = key.sign(raw_message)
        return Token(f"{b64url_encode(raw_message)}.{b64url_encode(signature)}")
