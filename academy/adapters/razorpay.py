"""
Razorpay gateway adapter.

Talks to the Razorpay REST API with HTTP basic auth (key id / key secret)
and verifies checkout signatures locally.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any

import httpx

from academy.core.ports.payment import GatewayOrder, GatewayRefund, PaymentGatewayError

logger = logging.getLogger(__name__)

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Hex HMAC-SHA256 of ``order_id|payment_id``."""
    body = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_checkout_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    if not (secret and order_id and payment_id and signature):
        return False
    expected = compute_signature(secret, order_id, payment_id)
    return hmac.compare_digest(expected, signature)


class RazorpayGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = RAZORPAY_API_BASE,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not key_id or not key_secret:
            raise ValueError("Razorpay key id and secret are required")
        self.key_id = key_id
        self._key_secret = key_secret
        self._client = httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            timeout=httpx.Timeout(timeout, connect=5.0),
            transport=transport,
        )

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            resp = self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("Razorpay %s %s failed: %s", method, path, e)
            raise PaymentGatewayError(f"Payment gateway unreachable: {e}") from e

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("error", {}).get("description") or resp.text
            except ValueError:
                detail = resp.text
            logger.error("Razorpay %s %s -> %s: %s", method, path, resp.status_code, detail)
            raise PaymentGatewayError(f"Payment gateway error: {detail}")

        data: dict[str, Any] = resp.json()
        return data

    def create_order(
        self,
        amount_paise: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        if amount_paise <= 0:
            raise PaymentGatewayError("Order amount must be positive")
        payload: dict[str, Any] = {
            "amount": amount_paise,
            "currency": currency,
            "receipt": receipt,
        }
        if notes:
            payload["notes"] = notes
        data = self._request("POST", "/orders", json=payload)
        logger.info("Razorpay order %s created for %s paise", data.get("id"), amount_paise)
        return GatewayOrder(
            id=str(data["id"]),
            amount=int(data.get("amount", amount_paise)),
            currency=str(data.get("currency", currency)),
            receipt=str(data.get("receipt", receipt)),
            key_id=self.key_id,
            notes=dict(data.get("notes") or {}),
        )

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return verify_checkout_signature(self._key_secret, order_id, payment_id, signature)

    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        return self._request("GET", f"/payments/{payment_id}")

    def refund(self, payment_id: str, amount_paise: int | None = None) -> GatewayRefund:
        payload: dict[str, Any] = {}
        if amount_paise is not None:
            payload["amount"] = amount_paise
        data = self._request("POST", f"/payments/{payment_id}/refund", json=payload)
        return GatewayRefund(
            id=str(data["id"]),
            payment_id=payment_id,
            amount=int(data.get("amount", amount_paise or 0)),
            status=str(data.get("status", "pending")),
        )

    def close(self) -> None:
        self._client.close()
