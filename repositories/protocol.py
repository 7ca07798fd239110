"""AccountStore protocol: services depend on this, not the MongoDB implementation."""

from datetime import datetime
from typing import Optional, Protocol

from schemas.models.account import AccountDoc


class AccountStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[AccountDoc]: ...

    async def insert(self, account: AccountDoc) -> AccountDoc: ...

    async def set_otp(
        self, email: str, channel: str, otp_hash: str, expires_at: datetime
    ) -> bool: ...

    async def consume_reset_otp(
        self, email: str, otp_hash: str, new_password_hash: str
    ) -> bool: ...

    async def consume_verify_otp(self, email: str, otp_hash: str) -> bool: ...

    async def record_failed_otp(
        self, email: str, channel: str, otp_hash: str, max_attempts: int
    ) -> int:
        """Count a wrong guess against the pending code *otp_hash*.

        Returns the attempt count; once it reaches *max_attempts* the code is
        cleared. Returns 0 if that code is no longer pending.
        """
        ...
