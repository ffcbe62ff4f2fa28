"""
Checkout component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from academy.components.errors import ComponentError
from academy.core.ports.payment import GatewayOrder
from academy.domain.entities import CatalogItem, Enrollment

CheckoutError = ComponentError

LineStatus = Literal["PAYABLE", "FREE", "OWNED"]


@dataclass(frozen=True)
class QuoteLine:
    item_type: str
    item_id: str
    title: str
    original_price: float
    price: float
    discount_percent: int
    status: LineStatus

    def as_dict(self) -> dict[str, Any]:
        return {
            "item_type": self.item_type,
            "item_id": self.item_id,
            "title": self.title,
            "original_price": self.original_price,
            "price": self.price,
            "discount_percent": self.discount_percent,
            "status": self.status,
        }


@dataclass(frozen=True)
class Quote:
    """
    Priced purchase.

    ``lines`` covers every item found; owned and free items are priced at 0.
    ``skipped`` lists requested ids that are unknown or unpublished.
    """

    lines: list[QuoteLine]
    total_amount: float
    discount_amount: float
    final_amount: float
    coupon_code: str | None = None
    skipped: list[str] = field(default_factory=list)

    @property
    def purchasable(self) -> list[QuoteLine]:
        return [line for line in self.lines if line.status != "OWNED"]

    @property
    def item_types(self) -> set[str]:
        return {line.item_type for line in self.purchasable}

    def as_dict(self) -> dict[str, Any]:
        return {
            "items": [line.as_dict() for line in self.lines],
            "total_amount": self.total_amount,
            "discount_amount": self.discount_amount,
            "final_amount": self.final_amount,
            "coupon_code": self.coupon_code,
            "skipped": list(self.skipped),
        }


@dataclass(frozen=True)
class PaymentInit:
    quote: Quote
    gateway_order: GatewayOrder | None = None

    @property
    def is_free(self) -> bool:
        return self.gateway_order is None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"is_free": self.is_free, "quote": self.quote.as_dict()}
        if self.gateway_order is not None:
            data["gateway_order"] = self.gateway_order.to_public()
        return data


@dataclass(frozen=True)
class EnrolledItem:
    enrollment: Enrollment
    item: CatalogItem | None
