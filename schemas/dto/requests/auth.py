"""
Request DTOs for account endpoints.

RegisterRequest - POST /register
LoginRequest - POST /login
SendResetOtpRequest - POST /send-reset-otp
ResetPasswordRequest - POST /reset-password
VerifyOtpRequest - POST /verify-otp   (identity comes from the token)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.validators import normalize_email, validate_email


class _EmailBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., max_length=254)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        value = normalize_email(value)
        if not validate_email(value):
            raise ValueError("invalid email address")
        return value


class RegisterRequest(_EmailBody):
    """Request body for POST /register."""

    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class LoginRequest(_EmailBody):
    """Request body for POST /login."""

    password: str = Field(..., min_length=1, max_length=128)


class SendResetOtpRequest(_EmailBody):
    """Request body for POST /send-reset-otp."""


class ResetPasswordRequest(_EmailBody):
    """Request body for POST /reset-password.

    ``otp`` is the code mailed by /send-reset-otp. ``newPassword`` is
    accepted as an alias for clients that send camelCase.
    """

    otp: str = Field(..., min_length=1, max_length=16)
    new_password: str = Field(
        ..., min_length=1, max_length=128, alias="newPassword"
    )


class VerifyOtpRequest(BaseModel):
    """Request body for POST /verify-otp."""

    model_config = ConfigDict(populate_by_name=True)

    otp: str = Field(..., min_length=1, max_length=16)
