"""
Public account endpoints: no identity required.

POST /register - create an account (201)
POST /login - exchange email + password for a bearer token
POST /logout - clear the access-token cookie
POST /send-reset-otp - mail a password reset code
POST /reset-password - set a new password with a reset code
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from config import AppSettings
from dependencies import get_account_service, get_settings, get_token_service
from schemas.dto.requests.auth import (
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendResetOtpRequest,
)
from schemas.dto.responses.auth import AccountSummary, LoginResponse
from schemas.dto.responses.common import MessageResponse
from services.account_service import AccountService
from services.token_service import TokenService
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["auth"])


def set_access_cookie(response: Response, token: str, settings: AppSettings) -> None:
    response.set_cookie(
        settings.jwt.access_cookie_name,
        value=token,
        httponly=True,
        secure=settings.jwt.cookie_secure,
        samesite=settings.jwt.cookie_samesite,
        path="/",
        max_age=settings.jwt.access_token_ttl_seconds,
    )


def clear_access_cookie(response: Response, settings: AppSettings) -> None:
    response.delete_cookie(
        settings.jwt.access_cookie_name,
        httponly=True,
        secure=settings.jwt.cookie_secure,
        samesite=settings.jwt.cookie_samesite,
        path="/",
    )


@router.post(
    "/register",
    response_model=AccountSummary,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    service: AccountService = Depends(get_account_service),
) -> AccountSummary:
    return await service.register(body.name, body.email, body.password)


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
    tokens: TokenService = Depends(get_token_service),
    settings: AppSettings = Depends(get_settings),
) -> LoginResponse:
    account = await service.authenticate(body.email, body.password)
    token = tokens.issue(account.email, account_id=account.id)
    set_access_cookie(response, token, settings)
    return LoginResponse(email=account.email, token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    settings: AppSettings = Depends(get_settings),
) -> MessageResponse:
    clear_access_cookie(response, settings)
    return MessageResponse(success=True, message="logged out")


@router.post("/send-reset-otp", response_model=MessageResponse)
async def send_reset_otp(
    body: SendResetOtpRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    # The code itself is only ever delivered by email
    await service.send_reset_otp(body.email)
    return MessageResponse(success=True, message="reset code sent to your email")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    await service.reset_password(body.email, body.otp, body.new_password)
    return MessageResponse(success=True, message="password reset successfully")
