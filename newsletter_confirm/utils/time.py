"""UTC time helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_unix_seconds(value: datetime) -> int:
    """Whole seconds since the epoch, floored."""
    return (as_utc(value) - EPOCH) // timedelta(seconds=1)


def from_unix_seconds(seconds: int) -> datetime | None:
    """Map epoch seconds to a UTC datetime, or None when out of calendar range."""
    try:
        return EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        return None


def fixed_clock(instant: datetime) -> Clock:
    """Return a clock that always reports ``instant``."""
    frozen = as_utc(instant)
    return lambda: frozen
