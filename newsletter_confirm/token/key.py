"""HMAC-SHA256 signing key shared by signer and verifier."""

from __future__ import annotations

import hmac
from hashlib import sha256

from .errors import SigningKeyError


class SigningKey:
    """Symmetric secret pre-keyed into an HMAC-SHA256 state.

    The keyed state is built once and copied for every call, so a single
    instance can be shared by any number of threads without locking.
    """

    __slots__ = ("_mac",)

    def __init__(self, secret: str | bytes) -> None:
        if isinstance(secret, str):
            try:
                secret = secret.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise SigningKeyError("secret is not valid UTF-8") from exc
        if not isinstance(secret, (bytes, bytearray)):
            raise SigningKeyError(f"secret must be str or bytes, not {type(secret).__name__}")
        try:
            mac = hmac.new(bytes(secret), digestmod=sha256)
        except (TypeError, ValueError) as exc:
            raise SigningKeyError("secret cannot initialise HMAC-SHA256") from exc
        object.__setattr__(self, "_mac", mac)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("SigningKey is immutable")

    def __repr__(self) -> str:
        return "SigningKey(<redacted>)"

    def sign(self, message: bytes) -> bytes:
        """Return the 32-byte HMAC-SHA256 digest of ``message``."""
        mac = self._mac.copy()
        mac.update(message)
        return mac.digest()

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Constant-time check that ``signature`` is the digest of ``message``."""
        return hmac.compare_digest(self.sign(message), signature)
