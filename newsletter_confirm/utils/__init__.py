"""Utility helpers for encoding and time operations."""

from .encoding import b64url_decode, b64url_encode
from .time import Clock, fixed_clock, from_unix_seconds, to_unix_seconds, utc_now

__all__ = [
    "b64url_encode",
    "b64url_decode",
    "Clock",
    "fixed_clock",
    "from_unix_seconds",
    "to_unix_seconds",
    "utc_now",
]
