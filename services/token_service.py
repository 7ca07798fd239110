"""
Signed bearer tokens (JWT) for authenticated sessions.

Tokens are stateless: nothing is stored per token, and verify() needs only
the signing key, so any process holding it can mint or check tokens.
RS256 is used when a key pair is configured, HS256 with JWT_SECRET
otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

import jwt

from config import JWTSettings
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """The caller established by a valid token."""

    email: str
    account_id: Optional[str] = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False)


class TokenService:
    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings
        if settings.use_rs256:
            # Support keys provided via env with literal \n sequences
            self._signing_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._verifying_key: Any = settings.jwt_public_key.replace("\\n", "\n")
            self._algorithm = "RS256"
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._signing_key = self._verifying_key = settings.jwt_secret
            self._algorithm = "HS256"

    @property
    def ttl_seconds(self) -> int:
        return self._settings.access_token_ttl_seconds

    def issue(
        self,
        email: str,
        account_id: Optional[str] = None,
        now: Optional[datetime] = None,
        ttl_seconds: Optional[int] = None,
    ) -> str:
        """Sign a token whose subject is *email*."""
        now = now or utcnow()
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        claims: dict[str, Any] = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": email,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl)).timestamp()),
        }
        if account_id is not None:
            claims["uid"] = account_id
        return jwt.encode(claims, self._signing_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Optional[Identity]:
        """Return the token's Identity, or None if it is malformed, forged or expired."""
        try:
            claims = jwt.decode(
                token,
                self._verifying_key,
                algorithms=[self._algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            log.info("auth_token_rejected", reason="expired")
            return None
        except jwt.InvalidTokenError as e:
            log.info("auth_token_rejected", reason="invalid", error_type=type(e).__name__)
            return None
        return Identity(email=claims["sub"], account_id=claims.get("uid"), claims=claims)
