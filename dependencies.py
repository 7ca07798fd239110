"""
FastAPI dependency providers.

Components are built once in the app lifespan and stored on app.state;
these providers hand them to route handlers. The caller's identity is
taken from what the authentication gate put on the request, never from
global state.
"""

from __future__ import annotations

from fastapi import Request

from config import AppSettings
from errors import AuthenticationError
from services.account_service import AccountService
from services.token_service import Identity, TokenService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


async def get_redis(request: Request):
    """Return the async Redis client from app.state (may be None if not configured)."""
    return request.app.state.redis


def get_current_identity(request: Request) -> Identity:
    """Identity established by the gate; protected routes depend on this."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise AuthenticationError("Unauthorized")
    return identity
