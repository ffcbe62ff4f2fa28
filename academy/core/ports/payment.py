"""
Payment gateway port.

Checkout and subscriptions create a gateway order for the payable amount,
the browser completes payment with the gateway, and the server verifies
the signature the gateway returns before recording anything.

Implementations:
- RazorpayGateway: Razorpay Orders API over HTTPS
- PaymentStubGateway: in-process fake for dev/tests
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class GatewayOrder:
    """
    Order created at the payment gateway.

    Attributes:
        id: Gateway order id (``order_...``)
        amount: Amount in the smallest currency unit (paise)
        currency: ISO currency code
        receipt: Our receipt reference (``PAY-...``/``SUB-...``)
        key_id: Public key the browser checkout needs
    """

    id: str
    amount: int
    currency: str
    receipt: str
    key_id: str = ""
    notes: dict[str, str] = field(default_factory=dict)

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
            "receipt": self.receipt,
            "key": self.key_id,
        }


@dataclass(frozen=True)
class GatewayRefund:
    id: str
    payment_id: str
    amount: int
    status: str


class PaymentGatewayError(Exception):
    """Gateway call failed (network, auth or rejected request)."""


class PaymentGatewayPort(Protocol):
    def create_order(
        self,
        amount_paise: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> GatewayOrder:
        """Create an order; raises PaymentGatewayError on failure."""
        ...

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout signature for ``order_id|payment_id``."""
        ...

    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        ...

    def refund(self, payment_id: str, amount_paise: int | None = None) -> GatewayRefund:
        ...


def to_paise(amount: float) -> int:
    """Rupees to paise, rounding half up."""
    return int(amount * 100 + 0.5) if amount >= 0 else -int(-amount * 100 + 0.5)
