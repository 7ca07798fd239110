"""
Shared test configuration and in-memory collaborators.

- dotenv loading is disabled so pydantic-settings never reads a real .env;
  tests control config exclusively through monkeypatch.setenv() or kwargs.
- InMemoryAccountStore implements the AccountStore protocol with the same
  conditional-update semantics as the MongoDB repository.
- RecordingEmailProvider captures every message instead of sending it.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from argon2 import PasswordHasher as Argon2Hasher

from config import JWTSettings, OtpSettings
from errors import ConflictError
from schemas.models.account import (
    CHANNEL_RESET,
    CHANNEL_VERIFY,
    OTP_ATTEMPT_FIELDS,
    OTP_FIELDS,
    AccountDoc,
)
from services.account_service import AccountService
from services.token_service import TokenService
from shared.crypto import Argon2PasswordHasher

TEST_JWT_SECRET = "test-secret-key-with-enough-length-for-hs256"


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


class InMemoryAccountStore:
    def __init__(self) -> None:
        self.accounts: dict[str, AccountDoc] = {}

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        account = self.accounts.get(email)
        return account.model_copy() if account else None

    async def insert(self, account: AccountDoc) -> AccountDoc:
        if account.email in self.accounts:
            raise ConflictError("Email already exists", field="email")
        self.accounts[account.email] = account.model_copy()
        return account

    async def set_otp(self, email, channel, otp_hash, expires_at) -> bool:
        account = self.accounts.get(email)
        if account is None:
            return False
        hash_field, expiry_field = OTP_FIELDS[channel]
        self.accounts[email] = account.model_copy(
            update={hash_field: otp_hash, expiry_field: expires_at, OTP_ATTEMPT_FIELDS[channel]: 0}
        )
        return True

    async def record_failed_otp(self, email, channel, otp_hash, max_attempts) -> int:
        account = self.accounts.get(email)
        hash_field, expiry_field = OTP_FIELDS[channel]
        attempts_field = OTP_ATTEMPT_FIELDS[channel]
        if account is None or getattr(account, hash_field) != otp_hash:
            return 0
        attempts = getattr(account, attempts_field) + 1
        update = {attempts_field: attempts}
        if max_attempts > 0 and attempts >= max_attempts:
            update = {hash_field: None, expiry_field: None, attempts_field: 0}
        self.accounts[email] = account.model_copy(update=update)
        return attempts

    async def consume_reset_otp(self, email, otp_hash, new_password_hash) -> bool:
        account = self.accounts.get(email)
        if account is None or account.reset_otp_hash != otp_hash:
            return False
        self.accounts[email] = account.model_copy(
            update={
                "password_hash": new_password_hash,
                "reset_otp_hash": None,
                "reset_otp_expires_at": None,
                "reset_otp_attempts": 0,
            }
        )
        return True

    async def consume_verify_otp(self, email, otp_hash) -> bool:
        account = self.accounts.get(email)
        if account is None or account.verify_otp_hash != otp_hash:
            return False
        self.accounts[email] = account.model_copy(
            update={
                "verified": True,
                "verify_otp_hash": None,
                "verify_otp_expires_at": None,
                "verify_otp_attempts": 0,
            }
        )
        return True

    # Test helper: move a pending challenge's expiry
    def set_otp_expiry(self, email: str, channel: str, expires_at: datetime) -> None:
        _, expiry_field = OTP_FIELDS[channel]
        self.accounts[email] = self.accounts[email].model_copy(
            update={expiry_field: expires_at}
        )


class RecordingEmailProvider:
    def __init__(self, succeed: bool = True, error: Optional[Exception] = None) -> None:
        self.succeed = succeed
        self.error = error
        self.sent: list[dict] = []
        self.closed = False

    async def _record(self, kind: str, email: str, **extra) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append({"kind": kind, "email": email, **extra})
        return self.succeed

    async def send_password_reset_email(self, email, user_name, otp_code, expires_in_minutes):
        return await self._record(
            CHANNEL_RESET, email, otp_code=otp_code, expires_in_minutes=expires_in_minutes
        )

    async def send_verification_email(self, email, user_name, otp_code, expires_in_minutes):
        return await self._record(
            CHANNEL_VERIFY, email, otp_code=otp_code, expires_in_minutes=expires_in_minutes
        )

    async def send_welcome_email(self, email, user_name):
        return await self._record("welcome", email)

    async def aclose(self) -> None:
        self.closed = True

    def last_code(self, kind: str) -> str:
        return [m for m in self.sent if m["kind"] == kind][-1]["otp_code"]


class FakeClock:
    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def fast_hasher() -> Argon2PasswordHasher:
    """argon2 with minimal cost parameters so tests stay quick."""
    return Argon2PasswordHasher(Argon2Hasher(time_cost=1, memory_cost=1024, parallelism=1))


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def email_provider() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def account_service(store, email_provider, clock, hasher) -> AccountService:
    return AccountService(
        store=store,
        hasher=hasher,
        email_provider=email_provider,
        settings=OtpSettings(),
        clock=clock,
    )


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(jwt_secret=TEST_JWT_SECRET, cookie_secure=False)


@pytest.fixture
def token_service(jwt_settings) -> TokenService:
    return TokenService(jwt_settings)


@pytest.fixture
def hasher() -> Argon2PasswordHasher:
    return fast_hasher()
