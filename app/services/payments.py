"""
Flutterwave passthrough for hosted payment links and verification by reference.

Transactions are tracked in memory only, keyed by ``tx_ref``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.errors import PaymentMisconfigured, PaymentProviderError

logger = logging.getLogger(__name__)


@dataclass
class Transaction:
    tx_ref: str
    email: str
    amount: float
    currency: str
    name: str | None = None
    recipient: str | None = None
    status: str = "pending"


class TransactionLedger:
    """In-memory transaction status bookkeeping."""

    def __init__(self) -> None:
        self._transactions: dict[str, Transaction] = {}

    def record(self, tx: Transaction) -> None:
        self._transactions[tx.tx_ref] = tx

    def get(self, tx_ref: str) -> Transaction | None:
        return self._transactions.get(tx_ref)

    def set_status(self, tx_ref: str, status: str) -> bool:
        """Update a known transaction; returns False for unknown refs."""
        tx = self._transactions.get(tx_ref)
        if tx is None:
            return False
        tx.status = status
        return True

    def __len__(self) -> int:
        return len(self._transactions)


class FlutterwaveClient:
    def __init__(
        self,
        secret_key: str,
        *,
        base_url: str = "https://api.flutterwave.com/v3",
        redirect_url: str = "",
        logo_url: str = "",
        brand: str = "LegalTenderPay",
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._redirect_url = redirect_url
        self._logo_url = logo_url
        self._brand = brand
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        if not self._secret_key:
            raise PaymentMisconfigured("flutterwave: FLW_SECRET_KEY is not set")
        return {
            "Authorization": f"Bearer {self._secret_key}",
            "Content-Type": "application/json",
        }

    async def create_payment_link(self, tx: Transaction) -> str:
        """Create a hosted checkout for *tx* and return its link."""
        payload = {
            "tx_ref": tx.tx_ref,
            "amount": tx.amount,
            "currency": tx.currency,
            "redirect_url": self._redirect_url,
            "customer": {"email": tx.email, "name": tx.name},
            "customizations": {
                "title": f"{self._brand} Transaction",
                "description": f"Payment to {tx.recipient}",
                "logo": self._logo_url,
            },
        }
        headers = self._headers()
        try:
            resp = await self._client.post(f"{self._base_url}/payments", json=payload, headers=headers)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PaymentProviderError("Failed to create payment link") from exc

        if not isinstance(data, dict) or data.get("status") != "success":
            logger.error("Flutterwave payment creation failed (%s): %s", resp.status_code, data)
            raise PaymentProviderError("Failed to create payment link")

        link = (data.get("data") or {}).get("link")
        if not link:
            logger.error("Flutterwave response missing payment link: %s", data)
            raise PaymentProviderError("Failed to create payment link")
        return link

    async def verify_by_reference(self, tx_ref: str) -> dict[str, Any]:
        """Return Flutterwave's verification payload for *tx_ref* unchanged."""
        headers = self._headers()
        try:
            resp = await self._client.get(
                f"{self._base_url}/transactions/verify_by_reference",
                params={"tx_ref": tx_ref},
                headers=headers,
            )
            return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Flutterwave verification failed for %s: %r", tx_ref, exc)
            raise PaymentProviderError("Failed to verify transaction") from exc
