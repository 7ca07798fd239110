"""
Date/time helpers: framework-agnostic.

MongoDB hands back naive datetimes unless the client is created with
``tz_aware=True``; everything stored by this service is UTC, so naive
values are interpreted as UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return *value* as an aware UTC datetime; ``None`` passes through."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when *expires_at* is missing or strictly before *now*."""
    expires_at = ensure_utc(expires_at)
    if expires_at is None:
        return True
    return expires_at < (now or utcnow())
