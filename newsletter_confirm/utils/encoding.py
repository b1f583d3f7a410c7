"""URL-safe base64 without padding."""

from __future__ import annotations

import base64
import binascii
import re

B64URL_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    """Decode an unpadded base64url string.

    Only canonical encodings are accepted: padding, characters outside the
    URL-safe alphabet and non-zero trailing bits all raise ``ValueError``, so
    one byte string has exactly one textual form.
    """
    if not B64URL_RE.fullmatch(value) or len(value) % 4 == 1:
        raise ValueError("invalid base64url segment")
    padded = value + "=" * (-len(value) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
    except binascii.Error as exc:
        raise ValueError("invalid base64url segment") from exc
    if b64url_encode(raw) != value:
        raise ValueError("non-canonical base64url segment")
    return raw
