"""FastAPI dependencies resolving the service objects stored on ``app.state``."""

from typing import Annotated

from fastapi import Depends, Request

from app.services.payments import FlutterwaveClient, TransactionLedger
from app.services.verification import VerificationService


def get_verification_service(request: Request) -> VerificationService:
    return request.app.state.verification


def get_payment_client(request: Request) -> FlutterwaveClient:
    return request.app.state.flutterwave


def get_ledger(request: Request) -> TransactionLedger:
    return request.app.state.ledger


Verification = Annotated[VerificationService, Depends(get_verification_service)]
Payments = Annotated[FlutterwaveClient, Depends(get_payment_client)]
Ledger = Annotated[TransactionLedger, Depends(get_ledger)]
