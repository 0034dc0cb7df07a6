"""
Email verification endpoints – one-time code issue and check.
"""

from fastapi import APIRouter, Request

from app.dependencies import Verification
from app.models import ErrorResponse, SendCodeRequest, SuccessResponse, VerifyCodeRequest
from app.rate_limit import STRICT, VERIFY, limiter

router = APIRouter(prefix="/api", tags=["verification"])


@router.post(
    "/send-code",
    response_model=SuccessResponse,
    operation_id="sendCode",
    summary="Email a one-time verification code",
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
@limiter.limit(STRICT)
async def send_code(request: Request, body: SendCodeRequest, service: Verification) -> SuccessResponse:
    """
    Generate a 6-digit code and email it.  The code itself is never part
    of the response.
    """
    email = await service.send_code(body.email)
    return SuccessResponse(message=f"Verification code sent to {email}")


@router.post(
    "/verify-code",
    response_model=SuccessResponse,
    operation_id="verifyCode",
    summary="Check a verification code",
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit(VERIFY)
async def verify_code(request: Request, body: VerifyCodeRequest, service: Verification) -> SuccessResponse:
    service.verify_code(body.email, body.code)
    return SuccessResponse(message="Email verified successfully")
