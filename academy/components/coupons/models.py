"""
Coupons component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from academy.components.errors import ComponentError
from academy.components.pricing import CouponDiscount
from academy.domain.entities import ITEM_TYPES, Coupon

CouponError = ComponentError

APPLICABLE_TO = ("ALL", *ITEM_TYPES, "SUBSCRIPTION")
DISCOUNT_TYPES = ("PERCENTAGE", "FIXED")
TARGET_USER_TYPES = ("ALL", "NEW_USER", "SPECIFIC_USER")


@dataclass(frozen=True)
class CouponInput:
    code: str
    discount_type: str
    discount_value: float
    valid_from: datetime
    valid_until: datetime
    title: str | None = None
    description: str | None = None
    min_amount: float | None = None
    max_discount: float | None = None
    usage_limit: int | None = None
    applicable_to: str = "ALL"
    is_active: bool = True
    target_user_type: str = "ALL"
    target_user_ids: list[str] = field(default_factory=list)
    ready_to_show: bool = False


@dataclass(frozen=True)
class AppliedCoupon:
    """A coupon that passed validation, with the discount it gives."""

    coupon: Coupon
    discount: CouponDiscount

    def as_dict(self) -> dict[str, object]:
        return {
            "code": self.coupon.code,
            "discount_type": self.coupon.discount_type,
            "discount_value": self.coupon.discount_value,
            "total_amount": self.discount.total_amount,
            "discount_amount": self.discount.discount_amount,
            "final_amount": self.discount.final_amount,
        }
