"""Newsletter confirmation package.

Signs subscription ids into tamper-evident, expiring tokens for emailed
confirmation links and verifies them when the link is followed.
"""

from .token import SigningKey, Token, TokenBuilder, TokenError, sign, verify

__all__ = ["sign", "verify", "SigningKey", "Token", "TokenBuilder", "TokenError"]
