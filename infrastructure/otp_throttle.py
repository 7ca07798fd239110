"""Per-account OTP counters backed by Redis.

Counts sends per (channel, email) in a fixed one-hour window. Redis is
optional: without a client every send is allowed, and Redis errors fail
open so a cache outage never blocks password recovery.

The counter and its TTL are read in one transaction; a key found without a
TTL gets its window (re)applied, so a failed EXPIRE can never leave an
account throttled forever.
"""

from typing import Optional

import redis.asyncio as aioredis

from shared.logging import get_logger

log = get_logger(__name__)

_WINDOW_SECONDS = 3600

# TTL reply for a key that exists but has no expiry
_NO_EXPIRY = -1


class OtpThrottle:
    def __init__(
        self, redis_client: Optional[aioredis.Redis], max_per_hour: int = 5
    ) -> None:
        self._redis = redis_client
        self.max_per_hour = max_per_hour

    @property
    def enabled(self) -> bool:
        return self._redis is not None and self.max_per_hour > 0

    def _key(self, channel: str, email: str) -> str:
        return f"otp_sends:{channel}:{email}"

    async def allow(self, channel: str, email: str) -> bool:
        """Record one send attempt and return False once the hourly limit is exceeded."""
        if not self.enabled:
            return True
        key = self._key(channel, email)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.ttl(key)
                count, ttl = await pipe.execute()
            if ttl == _NO_EXPIRY:
                await self._redis.expire(key, _WINDOW_SECONDS)
        except Exception as e:
            log.warning("otp_throttle_error", channel=channel, error=str(e))
            return True
        return count <= self.max_per_hour
