"""
Random code generators: pure, side-effect-free functions.

OTP codes come from the ``secrets`` module so they are suitable as
security tokens.
"""

from __future__ import annotations

import secrets
import uuid


def generate_otp_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric OTP.

    The code is drawn uniformly from ``[0, 10**length)`` and zero-padded,
    so every *length*-digit value (including ones with leading zeros) is
    possible and the result is always exactly *length* characters.
    """
    if length < 1:
        raise ValueError("OTP length must be positive")
    return str(secrets.randbelow(10**length)).zfill(length)


def generate_account_id() -> str:
    """Return a fresh opaque account identifier (UUID4 string)."""
    return str(uuid.uuid4())
