"""
Account lifecycle and OTP credential flows.

Operations:
- register / authenticate / get_profile
- send_reset_otp → reset_password      (15 minute window by default)
- send_verification_otp → verify_account (24 hour window by default)

OTP state lives on the account record (hash + expiry pair per channel).
Issuing a code overwrites any pending one for the same channel; a code is
consumed by a conditional store update, so it can be redeemed only once.
Wrong guesses are counted per code; reaching the limit revokes the code.
When the notifier fails after a code was stored, the code is left in place
and NotificationError is raised; calling the send operation again issues a
fresh code.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from config import OtpSettings
from errors import (
    AuthenticationError,
    ConflictError,
    InvalidOtpError,
    NotFoundError,
    NotificationError,
    OtpExpiredError,
    RateLimitError,
)
from infrastructure.email.protocol import EmailProvider
from infrastructure.otp_throttle import OtpThrottle
from repositories.protocol import AccountStore
from schemas.dto.responses.auth import AccountSummary
from schemas.models.account import CHANNEL_RESET, CHANNEL_VERIFY, AccountDoc
from shared.crypto import PasswordHasher, hash_token, token_matches
from shared.datetime_utils import is_expired, utcnow
from shared.generators import generate_account_id, generate_otp_code
from shared.logging import get_logger
from shared.validators import normalize_email, validate_otp_format

log = get_logger(__name__)


class AccountService:
    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        email_provider: EmailProvider,
        settings: Optional[OtpSettings] = None,
        throttle: Optional[OtpThrottle] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._email = email_provider
        self._settings = settings or OtpSettings()
        self._throttle = throttle or OtpThrottle(None)
        self._clock = clock

    # ── Accounts ─────────────────────────────────────────────────────────

    async def register(self, name: str, email: str, password: str) -> AccountSummary:
        email = normalize_email(email)
        if await self._store.find_by_email(email) is not None:
            log.info("register_failed", reason="email_exists")
            raise ConflictError("Email already exists", field="email")

        now = self._clock()
        account = AccountDoc(
            id=generate_account_id(),
            email=email,
            name=name,
            password_hash=self._hasher.hash(password),
            verified=False,
            created_at=now,
            updated_at=now,
        )
        account = await self._store.insert(account)
        log.info("account_registered", account_id=account.id)
        return AccountSummary.from_account(account)

    async def authenticate(self, email: str, password: str) -> AccountSummary:
        """Check a password login; the error never says which part was wrong."""
        account = await self._store.find_by_email(normalize_email(email))
        if account is None or not self._hasher.verify(password, account.password_hash):
            log.warning(
                "login_failed", reason="invalid_credentials", email_exists=account is not None
            )
            raise AuthenticationError("invalid credentials")
        log.info("login_success", account_id=account.id)
        return AccountSummary.from_account(account)

    async def get_profile(self, email: str) -> AccountSummary:
        return AccountSummary.from_account(await self._get_account(email))

    # ── Password reset ───────────────────────────────────────────────────

    async def send_reset_otp(self, email: str) -> str:
        """Issue a reset code, mail it, and return it to the caller."""
        account = await self._get_account(email)
        ttl = self._settings.reset_otp_ttl_seconds
        otp_code = await self._issue_otp(account, CHANNEL_RESET, ttl)

        sent = await self._notify(
            self._email.send_password_reset_email(
                account.email, account.name, otp_code, ttl // 60
            )
        )
        if not sent:
            log.error("reset_otp_email_failed", account_id=account.id)
            raise NotificationError("Unable to send password reset email")
        log.info("reset_otp_sent", account_id=account.id)
        return otp_code

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        account = await self._get_account(email)
        otp_hash = await self._check_otp(account, CHANNEL_RESET, otp)

        if not await self._store.consume_reset_otp(
            account.email, otp_hash, self._hasher.hash(new_password)
        ):
            # Another request redeemed or replaced the code in the meantime
            log.warning("reset_password_failed", account_id=account.id, reason="consumed")
            raise InvalidOtpError("Invalid OTP")
        log.info("password_reset_success", account_id=account.id)

    # ── Verification ─────────────────────────────────────────────────────

    async def send_verification_otp(self, email: str) -> Optional[str]:
        """Issue and mail a verification code; None if the account is already verified."""
        account = await self._get_account(email)
        if account.verified:
            log.info("verification_otp_skipped", account_id=account.id, reason="already_verified")
            return None

        ttl = self._settings.verify_otp_ttl_seconds
        otp_code = await self._issue_otp(account, CHANNEL_VERIFY, ttl)

        sent = await self._notify(
            self._email.send_verification_email(
                account.email, account.name, otp_code, ttl // 60
            )
        )
        if not sent:
            log.error("verification_otp_email_failed", account_id=account.id)
            raise NotificationError("Unable to send verification email")
        log.info("verification_otp_sent", account_id=account.id)
        return otp_code

    async def verify_account(self, email: str, otp: str) -> None:
        account = await self._get_account(email)
        otp_hash = await self._check_otp(account, CHANNEL_VERIFY, otp)

        if not await self._store.consume_verify_otp(account.email, otp_hash):
            log.warning("verify_account_failed", account_id=account.id, reason="consumed")
            raise InvalidOtpError("Invalid OTP")
        log.info("account_verified", account_id=account.id)

        # Best effort: the account is verified whether or not this arrives
        if not await self._notify(self._email.send_welcome_email(account.email, account.name)):
            log.warning("welcome_email_failed", account_id=account.id)

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _get_account(self, email: str) -> AccountDoc:
        account = await self._store.find_by_email(normalize_email(email))
        if account is None:
            raise NotFoundError("User not found", field="email")
        return account

    async def _issue_otp(self, account: AccountDoc, channel: str, ttl_seconds: int) -> str:
        if not await self._throttle.allow(channel, account.email):
            log.warning("otp_send_rate_limited", account_id=account.id, channel=channel)
            raise RateLimitError("Too many codes requested. Please try again later.")

        otp_code = generate_otp_code(self._settings.otp_length)
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        if not await self._store.set_otp(account.email, channel, hash_token(otp_code), expires_at):
            raise NotFoundError("User not found", field="email")
        return otp_code

    async def _check_otp(self, account: AccountDoc, channel: str, otp: str) -> str:
        """Validate *otp* against the pending challenge and return its hash.

        A mismatch is reported before expiry, so an expired code is only
        disclosed to someone who already holds it. Every wrong guess counts
        against the pending code, which is revoked once the limit is hit.
        """
        pending_hash, expires_at = account.pending_otp(channel)
        if pending_hash is None:
            log.warning("otp_rejected", account_id=account.id, channel=channel, reason="none_pending")
            raise InvalidOtpError("Invalid OTP")

        otp = (otp or "").strip()
        if not validate_otp_format(otp, self._settings.otp_length) or not token_matches(
            otp, pending_hash
        ):
            limit = self._settings.max_otp_attempts
            attempts = await self._store.record_failed_otp(
                account.email, channel, pending_hash, limit
            )
            if limit > 0 and attempts >= limit:
                log.warning("otp_revoked", account_id=account.id, channel=channel, attempts=attempts)
                raise InvalidOtpError(
                    "Too many incorrect codes. Request a new code.",
                    details={"attempts_remaining": 0},
                )
            log.warning("otp_rejected", account_id=account.id, channel=channel, reason="mismatch")
            raise InvalidOtpError("Invalid OTP")

        if is_expired(expires_at, self._clock()):
            log.warning("otp_rejected", account_id=account.id, channel=channel, reason="expired")
            raise OtpExpiredError("OTP Expired")
        return pending_hash

    async def _notify(self, send) -> bool:
        """Await a notifier call, treating an exception like a failed send."""
        try:
            return bool(await send)
        except Exception as e:
            log.error("notifier_error", error=str(e), error_type=type(e).__name__)
            return False
