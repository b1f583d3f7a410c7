"""Token failure kinds."""

from __future__ import annotations


class TokenError(Exception):
    """Base class for every token signing or verification failure."""

    reason = "token_error"
    status_code = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)


class FormatError(TokenError):
    """Token string does not have the two-segment base64url shape."""

    reason = "invalid_format"
    status_code = 400


class DecodeError(TokenError):
    """Base64, UTF-8 or JSON decoding failed, or the payload had the wrong type."""

    reason = "decode_failed"
    status_code = 400


class SignatureMismatch(TokenError):
    reason = "invalid_signature"
    status_code = 401


class Expired(TokenError):
    reason = "token_expired"
    status_code = 401


class SigningKeyError(TokenError):
    """Secret could not initialise the HMAC primitive."""

    reason = "invalid_key"


class SerializationError(TokenError):
    reason = "serialization_failed"


def status_for(error: TokenError) -> int:
    """Return the HTTP status a caller should answer with for ``error``."""
    return error.status_code
