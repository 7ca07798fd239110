"""
Account document model.

Maps to the `accounts` MongoDB collection.

Two independent OTP challenges live on the account: email verification and
password reset. Only the SHA-256 hash of a code is stored. Each hash is
paired with its expiry: both are set together or both are None. A per-channel
counter tracks wrong guesses against the pending code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import field_validator, model_validator

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc

CHANNEL_VERIFY = "verify"
CHANNEL_RESET = "reset"

# channel -> (otp hash field, expiry field)
OTP_FIELDS = {
    CHANNEL_VERIFY: ("verify_otp_hash", "verify_otp_expires_at"),
    CHANNEL_RESET: ("reset_otp_hash", "reset_otp_expires_at"),
}

# channel -> wrong-guess counter for the pending code
OTP_ATTEMPT_FIELDS = {
    CHANNEL_VERIFY: "verify_otp_attempts",
    CHANNEL_RESET: "reset_otp_attempts",
}


class AccountDoc(MongoBaseModel):
    """Document model for the `accounts` collection."""

    email: str
    name: str
    password_hash: str
    verified: bool = False
    verify_otp_hash: Optional[str] = None
    verify_otp_expires_at: Optional[datetime] = None
    reset_otp_hash: Optional[str] = None
    reset_otp_expires_at: Optional[datetime] = None
    verify_otp_attempts: int = 0
    reset_otp_attempts: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(
        "verify_otp_expires_at",
        "reset_otp_expires_at",
        "created_at",
        "updated_at",
    )
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _otp_pairs_set_together(self) -> "AccountDoc":
        for hash_field, expiry_field in OTP_FIELDS.values():
            if (getattr(self, hash_field) is None) != (
                getattr(self, expiry_field) is None
            ):
                raise ValueError(
                    f"{hash_field} and {expiry_field} must be set or cleared together"
                )
        return self

    def pending_otp(self, channel: str) -> tuple[Optional[str], Optional[datetime]]:
        """Return the (hash, expiry) pair for *channel*."""
        hash_field, expiry_field = OTP_FIELDS[channel]
        return getattr(self, hash_field), getattr(self, expiry_field)
