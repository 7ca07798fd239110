"""
Cryptographic helpers: password hashing and OTP hashing.

Uses argon2 for passwords (via argon2-cffi) and SHA-256 for OTP codes.
Services depend on the PasswordHasher protocol, so any vetted one-way
function can be plugged in.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional, Protocol

from argon2 import PasswordHasher as _Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError


class PasswordHasher(Protocol):
    def hash(self, plain_password: str) -> str: ...

    def verify(self, plain_password: str, password_hash: str) -> bool: ...


class Argon2PasswordHasher:
    """argon2id password hasher with library-default cost parameters."""

    def __init__(self, hasher: Optional[_Argon2Hasher] = None) -> None:
        self._hasher = hasher or _Argon2Hasher()

    def hash(self, plain_password: str) -> str:
        """Hash *plain_password* with argon2id.

        Returns:
            Argon2 hash string (includes algorithm parameters and salt).
        """
        return self._hasher.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        """Verify *plain_password* against an argon2 *password_hash*.

        Returns:
            ``True`` if the password matches, ``False`` for a wrong password
            or a malformed hash.
        """
        try:
            return self._hasher.verify(password_hash, plain_password)
        except (VerificationError, InvalidHashError):
            return False


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Used to hash OTP codes before storing them so the plaintext code is
    never persisted.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, token_hash: Optional[str]) -> bool:
    """Constant-time check of a plaintext *token* against a stored hash."""
    if not token_hash:
        return False
    return hmac.compare_digest(hash_token(token), token_hash)
