"""EmailProvider protocol: services depend on this, not the concrete implementation.

Every method returns ``True`` once the message is accepted for delivery and
``False`` on any failure (including timeouts); it never raises for
delivery problems.
"""

from typing import Optional, Protocol


class EmailProvider(Protocol):
    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], otp_code: str, expires_in_minutes: int
    ) -> bool: ...

    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str, expires_in_minutes: int
    ) -> bool: ...

    async def send_welcome_email(
        self, email: str, user_name: Optional[str]
    ) -> bool: ...

    async def aclose(self) -> None: ...
