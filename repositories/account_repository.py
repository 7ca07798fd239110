"""
MongoDB implementation of AccountStore over the `accounts` collection.

Every mutation is a single update_one with $set, which MongoDB applies
atomically per document. OTP consumption filters on the expected OTP hash,
so a code can be redeemed at most once even when requests race. Wrong
guesses are counted with $inc under the same hash filter.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from errors import ConflictError
from schemas.models.account import (
    CHANNEL_RESET,
    CHANNEL_VERIFY,
    OTP_ATTEMPT_FIELDS,
    OTP_FIELDS,
    AccountDoc,
)
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)

ACCOUNTS_COLLECTION = "accounts"


def _cleared(channel: str) -> dict:
    hash_field, expiry_field = OTP_FIELDS[channel]
    return {hash_field: None, expiry_field: None, OTP_ATTEMPT_FIELDS[channel]: 0}


class AccountRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"email": email})
        return AccountDoc.from_mongo(doc)

    async def insert(self, account: AccountDoc) -> AccountDoc:
        """Insert a new account; raises ConflictError if the email is taken."""
        try:
            await self._col.insert_one(account.to_mongo())
        except DuplicateKeyError:
            log.warning("account_insert_duplicate", account_id=account.id)
            raise ConflictError("Email already exists", field="email")
        return account

    async def set_otp(
        self, email: str, channel: str, otp_hash: str, expires_at: datetime
    ) -> bool:
        """Store a pending (hash, expiry) pair for *channel*, replacing any previous one."""
        hash_field, expiry_field = OTP_FIELDS[channel]
        result = await self._col.update_one(
            {"email": email},
            {
                "$set": {
                    hash_field: otp_hash,
                    expiry_field: expires_at,
                    OTP_ATTEMPT_FIELDS[channel]: 0,
                    "updated_at": utcnow(),
                }
            },
        )
        return result.matched_count > 0

    async def record_failed_otp(
        self, email: str, channel: str, otp_hash: str, max_attempts: int
    ) -> int:
        hash_field, _ = OTP_FIELDS[channel]
        attempts_field = OTP_ATTEMPT_FIELDS[channel]
        doc = await self._col.find_one_and_update(
            {"email": email, hash_field: otp_hash},
            {"$inc": {attempts_field: 1}},
            projection={attempts_field: 1},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return 0
        attempts = doc.get(attempts_field, 0)
        if max_attempts > 0 and attempts >= max_attempts:
            await self._col.update_one(
                {"email": email, hash_field: otp_hash},
                {"$set": {**_cleared(channel), "updated_at": utcnow()}},
            )
        return attempts

    async def consume_reset_otp(
        self, email: str, otp_hash: str, new_password_hash: str
    ) -> bool:
        hash_field, _ = OTP_FIELDS[CHANNEL_RESET]
        result = await self._col.update_one(
            {"email": email, hash_field: otp_hash},
            {
                "$set": {
                    "password_hash": new_password_hash,
                    **_cleared(CHANNEL_RESET),
                    "updated_at": utcnow(),
                }
            },
        )
        return result.matched_count > 0

    async def consume_verify_otp(self, email: str, otp_hash: str) -> bool:
        hash_field, _ = OTP_FIELDS[CHANNEL_VERIFY]
        result = await self._col.update_one(
            {"email": email, hash_field: otp_hash},
            {
                "$set": {
                    "verified": True,
                    **_cleared(CHANNEL_VERIFY),
                    "updated_at": utcnow(),
                }
            },
        )
        return result.matched_count > 0
