"""
Subscriptions component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from academy.components.errors import ComponentError
from academy.core.ports.payment import GatewayOrder
from academy.domain.entities import Subscription, SubscriptionPlan

SubscriptionError = ComponentError

# Calendar months per plan; LIFETIME never ends.
PLAN_MONTHS: dict[str, int | None] = {
    "ONE_MONTH": 1,
    "QUARTER": 3,
    "SIX_MONTHS": 6,
    "ONE_YEAR": 12,
    "LIFETIME": None,
}

SUBSCRIPTION_STATUSES = ("PENDING", "ACTIVE", "CANCELLED", "EXPIRED")


@dataclass(frozen=True)
class PlanInput:
    name: str
    plan_type: str
    price: float
    sale_price: float | None = None
    features: list[str] = field(default_factory=list)
    is_active: bool = True


@dataclass(frozen=True)
class SubscriptionCheckout:
    """A new subscription and, when payment is due, the gateway order to pay."""

    subscription: Subscription
    plan: SubscriptionPlan
    gateway_order: GatewayOrder | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "subscription": self.subscription.model_dump(mode="json"),
            "is_free": self.gateway_order is None,
        }
        if self.gateway_order is not None:
            data["gateway_order"] = self.gateway_order.to_public()
        return data
