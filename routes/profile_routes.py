"""
Endpoints that act on the authenticated caller.

GET  /profile - account summary
GET  /is-authenticated - token check
POST /send-otp - mail an account verification code
POST /verify-otp - verify the account with that code
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_account_service, get_current_identity
from schemas.dto.requests.auth import VerifyOtpRequest
from schemas.dto.responses.auth import AccountSummary, AuthStatusResponse
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from services.account_service import AccountService
from services.token_service import Identity

router = APIRouter(
    tags=["profile"],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


@router.get("/profile", response_model=AccountSummary)
async def get_profile(
    identity: Identity = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
) -> AccountSummary:
    return await service.get_profile(identity.email)


@router.get("/is-authenticated", response_model=AuthStatusResponse)
async def is_authenticated(
    identity: Identity = Depends(get_current_identity),
) -> AuthStatusResponse:
    return AuthStatusResponse(authenticated=True)


@router.post("/send-otp", response_model=MessageResponse)
async def send_verification_otp(
    identity: Identity = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    sent = await service.send_verification_otp(identity.email)
    if sent is None:
        return MessageResponse(success=True, message="account already verified")
    return MessageResponse(success=True, message="verification code sent to your email")


@router.post("/verify-otp", response_model=MessageResponse)
async def verify_account(
    body: VerifyOtpRequest,
    identity: Identity = Depends(get_current_identity),
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    await service.verify_account(identity.email, body.otp)
    return MessageResponse(success=True, message="account verified")
