"""
FastAPI application factory.

create_app() is the single entry point for building the app. Every
component receives its collaborators through its constructor here; nothing
reads configuration from module globals.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.zeptomail import ZeptoMailProvider
from infrastructure.otp_throttle import OtpThrottle
from middleware.auth_gate import (
    PUBLIC_PATHS,
    AuthGateMiddleware,
    EntryPoint,
    unauthorized_entry_point,
)
from repositories.account_repository import ACCOUNTS_COLLECTION, AccountRepository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from routes.profile_routes import router as profile_router
from services.account_service import AccountService
from services.token_service import TokenService
from shared.crypto import Argon2PasswordHasher
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def configure_app(
    app: FastAPI,
    settings: AppSettings,
    token_service: TokenService,
    entry_point: EntryPoint = unauthorized_entry_point,
) -> FastAPI:
    """Attach the auth gate, CORS, error handlers and routers to *app*."""
    public_paths = set(PUBLIC_PATHS)
    if app.docs_url:
        public_paths.update({app.docs_url, f"{app.docs_url}/oauth2-redirect"})
    if app.openapi_url:
        public_paths.add(app.openapi_url)

    # Added first so CORS (added last) is the outermost layer and can answer
    # preflight requests and decorate 401s from the gate.
    app.add_middleware(
        AuthGateMiddleware,
        token_service=token_service,
        public_paths=public_paths,
        entry_point=entry_point,
        cookie_name=settings.jwt.access_cookie_name,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    return app


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging.log_level, settings.logging.log_format, settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            environment=settings.env,
        )

    token_service = TokenService(settings.jwt)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        db = mongo_client[settings.db.db_name]
        repository = AccountRepository(db[ACCOUNTS_COLLECTION])
        await repository.ensure_indexes()

        # Redis is optional; without it the OTP send throttle is disabled
        redis_client = None
        if settings.redis.redis_uri:
            redis_client = aioredis.from_url(
                settings.redis.redis_uri,
                encoding="utf-8",
                decode_responses=True,
            )

        email_provider = ZeptoMailProvider(
            settings.email, app_name=settings.app_name, app_url=settings.app_url
        )

        app.state.settings = settings
        app.state.db = db
        app.state.redis = redis_client
        app.state.token_service = token_service
        app.state.account_service = AccountService(
            store=repository,
            hasher=Argon2PasswordHasher(),
            email_provider=email_provider,
            settings=settings.otp,
            throttle=OtpThrottle(redis_client, settings.otp.max_otp_sends_per_hour),
        )
        log.info("app_started", db_name=settings.db.db_name, redis=redis_client is not None)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await email_provider.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )
    return configure_app(app, settings, token_service)
