"""Validated subscriber input."""

from __future__ import annotations

import re
from dataclasses import dataclass

MAX_LEN = 256
INVALID_NAME_CHARS = frozenset('/()"<>\\{}')
_EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)+$")


class ValidationError(ValueError):
    """User supplied value failed validation."""


@dataclass(frozen=True)
class PersonName:
    value: str

    @classmethod
    def parse(cls, value: str) -> "PersonName":
        if not value or not value.strip():
            raise ValidationError("Name cannot be empty")
        if len(value) > MAX_LEN:
            raise ValidationError("Name too long")
        if any(ch in INVALID_NAME_CHARS for ch in value):
            raise ValidationError("Name contains invalid characters")
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EmailAddress:
    value: str

    @classmethod
    def parse(cls, value: str) -> "EmailAddress":
        """Validate and lowercase an email address."""
        if not value or not value.strip():
            raise ValidationError("Email address cannot be empty")
        value = value.strip()
        if len(value) > MAX_LEN:
            raise ValidationError("Email address too long")
        if not _EMAIL_RE.fullmatch(value):
            raise ValidationError("Email address of incorrect format")
        return cls(value.lower())

    def __str__(self) -> str:
        return self.value
