"""
Payment endpoints – Flutterwave checkout links and verification passthrough.
"""

import logging
from typing import Any

from fastapi import APIRouter

from app.dependencies import Ledger, Payments
from app.errors import ValidationError
from app.models import (
    ConfirmTransactionRequest,
    ConfirmTransactionResponse,
    CreateTransactionRequest,
    CreateTransactionResponse,
    VerifyTransactionRequest,
)
from app.services.payments import Transaction

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post(
    "/create-transaction",
    response_model=CreateTransactionResponse,
    operation_id="createTransaction",
    summary="Create a hosted payment link",
)
async def create_transaction(
    body: CreateTransactionRequest,
    flutterwave: Payments,
    ledger: Ledger,
) -> CreateTransactionResponse:
    if not body.email or not body.amount or not body.currency or not body.tx_ref:
        raise ValidationError("Missing required fields")

    tx = Transaction(
        tx_ref=body.tx_ref,
        email=body.email,
        name=body.name,
        amount=body.amount,
        currency=body.currency,
        recipient=body.recipient,
    )
    link = await flutterwave.create_payment_link(tx)
    ledger.record(tx)
    logger.info("Payment link created for %s (%s %s)", tx.tx_ref, tx.amount, tx.currency)
    return CreateTransactionResponse(link=link)


@router.post(
    "/confirm-transaction",
    response_model=ConfirmTransactionResponse,
    operation_id="confirmTransaction",
    summary="Record the client-reported outcome of a payment",
)
async def confirm_transaction(body: ConfirmTransactionRequest, ledger: Ledger) -> ConfirmTransactionResponse:
    if not body.tx_ref or not body.status:
        raise ValidationError("Missing required fields")
    if not ledger.set_status(body.tx_ref, body.status):
        logger.info("Confirmation for unknown transaction %s ignored", body.tx_ref)
    return ConfirmTransactionResponse(success=True)


@router.post(
    "/verify-transaction",
    operation_id="verifyTransaction",
    summary="Verify a transaction with Flutterwave by reference",
)
async def verify_transaction(body: VerifyTransactionRequest, flutterwave: Payments) -> dict[str, Any]:
    if not body.tx_ref:
        raise ValidationError("Missing tx_ref")
    return await flutterwave.verify_by_reference(body.tx_ref)
