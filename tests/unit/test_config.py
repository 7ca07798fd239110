"""Unit tests for AppSettings and sub-configs."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from app import create_app
from config import (
    AppSettings,
    DatabaseSettings,
    JWTSettings,
    LoggingSettings,
    OtpSettings,
    RedisSettings,
)
from shared.logging import resolve_log_format


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def with_mongo(monkeypatch):
    """Set the required MONGODB_URI so AppSettings can be instantiated."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    return monkeypatch


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------


class TestDatabaseSettings:
    def test_loads_mongodb_uri(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://db:27017/")
        s = DatabaseSettings()
        assert s.mongodb_uri == "mongodb://db:27017/"
        assert s.db_name == "accounts"

    def test_missing_mongodb_uri_raises(self, monkeypatch):
        monkeypatch.delenv("MONGODB_URI", raising=False)
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()

    def test_frozen(self, with_mongo):
        s = DatabaseSettings()
        with pytest.raises(PydanticValidationError):
            s.db_name = "other"


def test_redis_uri_optional(monkeypatch):
    monkeypatch.delenv("REDIS_URI", raising=False)
    assert RedisSettings().redis_uri is None


class TestOtpSettings:
    def test_defaults(self, monkeypatch):
        for var in ("OTP_LENGTH", "RESET_OTP_TTL_SECONDS", "VERIFY_OTP_TTL_SECONDS"):
            monkeypatch.delenv(var, raising=False)
        s = OtpSettings()
        assert s.otp_length == 6
        assert s.reset_otp_ttl_seconds == 15 * 60
        assert s.verify_otp_ttl_seconds == 24 * 60 * 60

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("RESET_OTP_TTL_SECONDS", "300")
        assert OtpSettings().reset_otp_ttl_seconds == 300


@pytest.mark.parametrize(
    "private_key, public_key, expected",
    [("private", "public", True), (None, None, False)],
    ids=["keys_present", "keys_absent"],
)
def test_jwt_use_rs256(monkeypatch, private_key, public_key, expected):
    if private_key:
        monkeypatch.setenv("JWT_PRIVATE_KEY", private_key)
        monkeypatch.setenv("JWT_PUBLIC_KEY", public_key)
    else:
        monkeypatch.delenv("JWT_PRIVATE_KEY", raising=False)
        monkeypatch.delenv("JWT_PUBLIC_KEY", raising=False)
    assert JWTSettings().use_rs256 is expected


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(with_mongo, env, expected):
    with_mongo.setenv("ENV", env)
    assert AppSettings().is_production is expected


class TestAppSettings:
    def test_sub_configs_populated(self, with_mongo):
        s = AppSettings()
        for attr in ("db", "redis", "jwt", "otp", "email", "logging", "sentry"):
            assert getattr(s, attr) is not None, f"sub-config '{attr}' is None"

    def test_cors_defaults(self, with_mongo):
        with_mongo.delenv("CORS_ORIGIN", raising=False)
        s = AppSettings()
        assert s.cors_origin == "http://localhost:5173"
        assert "OPTIONS" in s.cors_allow_methods
        assert s.cors_allow_headers == ["Authorization", "Content-Type"]

    def test_cors_origin_from_env(self, with_mongo):
        with_mongo.setenv("CORS_ORIGIN", "https://app.example.com")
        assert AppSettings().cors_origin == "https://app.example.com"


# ---------------------------------------------------------------------------
# Log format
# ---------------------------------------------------------------------------


def test_log_format_unset_by_default(monkeypatch):
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    assert LoggingSettings().log_format is None


@pytest.mark.parametrize(
    "log_format, env, expected",
    [
        (None, "production", "json"),
        (None, "development", "console"),
        (None, None, "console"),
        ("console", "production", "console"),
        ("json", "development", "json"),
    ],
)
def test_resolve_log_format(log_format, env, expected):
    assert resolve_log_format(log_format, env) == expected


@pytest.mark.parametrize(
    "env, expected",
    [("production", "json"), ("development", "console")],
    ids=["production", "development"],
)
def test_create_app_picks_renderer_from_env(monkeypatch, mocker, env, expected):
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    mocker.patch("shared.logging.configure_stdlib_logging")
    configure_structlog = mocker.patch("shared.logging.configure_structlog")

    settings = AppSettings(
        env=env,
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=JWTSettings(jwt_secret="test-secret-key-with-enough-length-for-hs256"),
    )
    create_app(settings)

    configure_structlog.assert_called_once_with(expected)
