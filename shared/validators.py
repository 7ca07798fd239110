"""
Input validators: framework-agnostic, pure functions.
"""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_OTP_RE = re.compile(r"^\d+$")


def normalize_email(email: str) -> str:
    """Trim and lower-case *email* so lookups are case-insensitive."""
    return (email or "").strip().lower()


def validate_email(email: str) -> bool:
    """Return True if *email* looks like ``local@domain.tld``."""
    return bool(_EMAIL_RE.match(email or ""))


def validate_otp_format(otp: str, length: int = 6) -> bool:
    """Return True if *otp* is exactly *length* decimal digits."""
    return len(otp) == length and bool(_OTP_RE.match(otp))
