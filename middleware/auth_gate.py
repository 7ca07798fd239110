"""
Authentication gate: runs on every HTTP request.

Before the request reaches a route, the ``Authorization: Bearer <token>``
header (or, failing that, the access-token cookie set at login) is checked
by the TokenService. A valid token puts an Identity on
``request.state.identity``; a missing, malformed, forged or expired token
leaves it as ``None`` and never raises.

Public paths always proceed. Any other path without an identity is answered
by the entry point callable, which owns the shape of the 401 response and
can be swapped without touching the gate.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from errors import AuthenticationError
from services.token_service import Identity, TokenService
from shared.logging import get_logger

log = get_logger(__name__)

PUBLIC_PATHS = frozenset(
    {
        "/register",
        "/login",
        "/send-reset-otp",
        "/reset-password",
        "/logout",
        "/health",
    }
)

EntryPoint = Callable[[Request, str], Response]


def unauthorized_entry_point(request: Request, reason: str) -> Response:
    """Default 401 response for protected paths reached without a valid token."""
    err = AuthenticationError("Unauthorized", details={"reason": reason})
    return JSONResponse(
        status_code=err.status_code,
        content=err.to_dict(),
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_token(request: Request, cookie_name: str = "access_token") -> Optional[str]:
    """Return the bearer token from the Authorization header or the cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get(cookie_name) or None


class AuthGateMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        token_service: TokenService,
        public_paths: Iterable[str] = PUBLIC_PATHS,
        entry_point: EntryPoint = unauthorized_entry_point,
        cookie_name: str = "access_token",
    ) -> None:
        super().__init__(app)
        self._tokens = token_service
        self._public_paths = frozenset(p.rstrip("/") or "/" for p in public_paths)
        self._entry_point = entry_point
        self._cookie_name = cookie_name

    def is_public(self, path: str) -> bool:
        return (path.rstrip("/") or "/") in self._public_paths

    def authenticate(self, request: Request) -> tuple[Optional[Identity], str]:
        """Return (identity, reason); reason explains a missing identity."""
        token = extract_token(request, self._cookie_name)
        if token is None:
            return None, "missing_token"
        identity = self._tokens.verify(token)
        if identity is None:
            return None, "invalid_or_expired_token"
        return identity, "ok"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        identity, reason = self.authenticate(request)
        request.state.identity = identity

        if identity is None and not self.is_public(request.url.path):
            log.info(
                "request_unauthenticated",
                path=request.url.path,
                method=request.method,
                reason=reason,
            )
            return self._entry_point(request, reason)
        return await call_next(request)
