"""
Payment stub gateway (dev/tests).

Creates fake gateway orders in memory and signs them with a local secret,
so the full checkout round trip can run without network access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from academy.adapters.razorpay import compute_signature, verify_checkout_signature
from academy.core.ports.payment import GatewayOrder, GatewayRefund, PaymentGatewayError

logger = logging.getLogger(__name__)


@dataclass
class PaymentStubGateway:
    key_id: str = "rzp_test_stub"
    key_secret: str = "stub-secret"
    orders: dict[str, GatewayOrder] = field(default_factory=dict)
    refunds: list[GatewayRefund] = field(default_factory=list)

    def create_order(
        self,
        amount_paise: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        if amount_paise <= 0:
            raise PaymentGatewayError("Order amount must be positive")
        order = GatewayOrder(
            id=f"order_{uuid4().hex[:14]}",
            amount=amount_paise,
            currency=currency,
            receipt=receipt,
            key_id=self.key_id,
            notes=dict(notes or {}),
        )
        self.orders[order.id] = order
        logger.info("Stub gateway order %s (%s paise)", order.id, amount_paise)
        return order

    def sign(self, order_id: str, payment_id: str) -> str:
        """What the browser checkout would hand back after a successful payment."""
        return compute_signature(self.key_secret, order_id, payment_id)

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return verify_checkout_signature(self.key_secret, order_id, payment_id, signature)

    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        return {"id": payment_id, "status": "captured"}

    def refund(self, payment_id: str, amount_paise: int | None = None) -> GatewayRefund:
        refund = GatewayRefund(
            id=f"rfnd_{uuid4().hex[:14]}",
            payment_id=payment_id,
            amount=amount_paise or 0,
            status="processed",
        )
        self.refunds.append(refund)
        return refund
