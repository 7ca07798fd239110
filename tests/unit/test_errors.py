"""Unit tests for AppError hierarchy."""

import pytest

from errors import (
    AuthenticationError,
    ConflictError,
    InvalidOtpError,
    NotFoundError,
    NotificationError,
    OtpExpiredError,
    RateLimitError,
    ValidationError,
)


@pytest.mark.parametrize(
    "cls, status_code, error_code",
    [
        (ValidationError, 400, "validation_error"),
        (InvalidOtpError, 400, "invalid_otp"),
        (OtpExpiredError, 400, "otp_expired"),
        (AuthenticationError, 401, "authentication_error"),
        (NotFoundError, 404, "not_found"),
        (ConflictError, 409, "conflict"),
        (RateLimitError, 429, "rate_limit_exceeded"),
        (NotificationError, 502, "notification_failed"),
    ],
)
def test_status_and_code(cls, status_code, error_code):
    e = cls("message")
    assert e.status_code == status_code
    assert e.error_code == error_code
    assert e.message == "message"
    assert str(e) == "message"


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("User not found")
        assert e.to_dict() == {"error": "User not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "email"}, "field", "email"),
            ({"details": {"reason": "expired"}}, "details", {"reason": "expired"}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ConflictError("exists", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = InvalidOtpError("Invalid OTP").to_dict()
        assert "field" not in d
        assert "details" not in d
