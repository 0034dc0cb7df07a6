"""Pydantic request/response models for the verification and payment API."""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field


# ── Verification codes ─────────────────────────────────────────────────────


class SendCodeRequest(BaseModel):
    # Presence and format are checked by the service so that errors map to 400.
    email: Optional[str] = Field(None, description="Address to send the code to")


class VerifyCodeRequest(BaseModel):
    email: Optional[str] = Field(None, description="Address the code was sent to")
    code: Union[str, int, None] = Field(None, description="Six-digit verification code")


class SuccessResponse(BaseModel):
    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    error: str


# ── Health ─────────────────────────────────────────────────────────────────


class PingResponse(BaseModel):
    ok: bool = True


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
    email_provider: str


# ── Payments ───────────────────────────────────────────────────────────────


class CreateTransactionRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    currency: Optional[str] = None
    tx_ref: Optional[str] = None
    recipient: Optional[str] = None


class CreateTransactionResponse(BaseModel):
    link: str


class ConfirmTransactionRequest(BaseModel):
    tx_ref: Optional[str] = None
    status: Optional[str] = None


class ConfirmTransactionResponse(BaseModel):
    success: bool = True


class VerifyTransactionRequest(BaseModel):
    tx_ref: Optional[str] = None
