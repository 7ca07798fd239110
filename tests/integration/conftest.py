"""
App builder for HTTP-level tests.

The real middleware stack, error handlers and routers are attached with
configure_app(); only the lifespan is replaced so components come from the
in-memory fakes instead of MongoDB, Redis and ZeptoMail.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI

from app import configure_app
from config import AppSettings, DatabaseSettings


@pytest.fixture
def app_settings(jwt_settings) -> AppSettings:
    return AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=jwt_settings,
    )


@pytest.fixture
def build_app(app_settings, token_service, account_service):
    """Return a factory building the app around the shared fakes."""

    def _build(db=None, redis=None) -> FastAPI:
        if db is None:
            db = MagicMock()
            db.client.admin.command = AsyncMock(return_value={"ok": 1})

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            app.state.settings = app_settings
            app.state.db = db
            app.state.redis = redis
            app.state.token_service = token_service
            app.state.account_service = account_service
            yield

        app = FastAPI(lifespan=lifespan)
        return configure_app(app, app_settings, token_service)

    return _build
