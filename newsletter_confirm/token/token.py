"""Signed token string: structural parsing and verification."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..utils.encoding import b64url_decode
from ..utils.time import Clock, utc_now
from .errors import DecodeError, Expired, FormatError, SignatureMismatch
from .key import SigningKey
from .message import TokenMessage

if TYPE_CHECKING:
    from .builder import TokenBuilder

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+$")

Decoder = Callable[[Any], Any]


class Token:
    """Immutable ``<message>.<signature>`` string handed to clients."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Token is immutable")

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"Token({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    @staticmethod
    def builder(payload: Any, *, clock: Clock = utc_now) -> "TokenBuilder":
        from .builder import TokenBuilder

        return TokenBuilder(payload, clock=clock)

    @classmethod
    def parse(cls, raw: str) -> "Token":
        """Accept ``raw`` only if it has the two-segment base64url shape."""
        if not isinstance(raw, str) or not TOKEN_RE.fullmatch(raw):
            raise FormatError("token must be two base64url segments joined by '.'")
        return cls(raw)

    def split(self) -> tuple[str, str]:
        message, sep, signature = self._value.partition(".")
        if not sep or not message or not signature or "." in signature:
            raise FormatError("token must be two base64url segments joined by '.'")
        return message, signature

    def verify(self, key: SigningKey, *, decoder: Optional[Decoder] = None, clock: Clock = utc_now) -> Any:
        """Check the signature and expiration, then return the payload.

        The signature is checked over the raw message bytes before anything
        is JSON-decoded, so unauthenticated bytes never reach the parser.
        """
        encoded_message, encoded_signature = self.split()
        try:
            raw_message = b64url_decode(encoded_message)
            signature = b64url_decode(encoded_signature)
        except ValueError as exc:
            logger.debug("token rejected: %s", DecodeError.reason)
            raise DecodeError("token segments are not valid base64url") from exc

        if not key.verify(raw_message, signature):
            logger.debug("token rejected: %s", SignatureMismatch.reason)
            raise SignatureMismatch("token signature does not match")

        message = TokenMessage.from_json(raw_message)
        if message.is_expired(clock()):
            logger.debug("token rejected: %s", Expired.reason)
            raise Expired("token is expired")

        if decoder is None:
            return message.data
        try:
            return decoder(message.data)
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"payload has an unexpected shape: {exc}") from exc
