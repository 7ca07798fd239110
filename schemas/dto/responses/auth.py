"""
Response DTOs for account endpoints.

AccountSummary - public projection of an account (register, profile)
LoginResponse - POST /login  (200)
AuthStatusResponse - GET /is-authenticated  (200)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.models.account import AccountDoc


class AccountSummary(BaseModel):
    """Account without password hash or OTP fields."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    email: str
    verified: bool

    @classmethod
    def from_account(cls, account: AccountDoc) -> "AccountSummary":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            verified=account.verified,
        )


class LoginResponse(BaseModel):
    """Response body for POST /login (200)."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    token: str


class AuthStatusResponse(BaseModel):
    """Response body for GET /is-authenticated (200)."""

    model_config = ConfigDict(populate_by_name=True)

    authenticated: bool
