"""
Pricing - effective price of catalog items and coupon discounts.

Pure functions only; callers look up the flash sale and coupon.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from academy.domain.entities import Coupon, FlashSale


@dataclass(frozen=True)
class EffectivePrice:
    original_price: float
    effective_price: float
    discount_percent: int
    list_price: float = 0.0
    is_free: bool = False
    has_flash_sale: bool = False
    flash_sale_title: str | None = None
    flash_sale_end_date: datetime | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "original_price": self.original_price,
            "list_price": self.list_price,
            "effective_price": self.effective_price,
            "discount_percent": self.discount_percent,
            "is_free": self.is_free,
            "has_flash_sale": self.has_flash_sale,
            "flash_sale_title": self.flash_sale_title,
            "flash_sale_end_date": self.flash_sale_end_date,
        }


@dataclass(frozen=True)
class CouponDiscount:
    total_amount: float
    discount_amount: float
    final_amount: float


def round_half_up(value: float) -> int:
    """Round to the nearest whole number, halves away from zero."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def money(value: float) -> float:
    return round(value + 0.0, 2)


def calculate_effective_price(
    price: float,
    sale_price: float | None = None,
    flash_sale: FlashSale | None = None,
    is_free: bool = False,
) -> EffectivePrice:
    """
    Price a single item.

    The sale price (when positive) is the base; a running flash sale takes
    its percentage off that base, rounds to whole rupees and shows the base
    as the struck-through price. Without a flash sale, a sale price below
    the list price is shown as a discount.
    """
    if is_free:
        return EffectivePrice(
            original_price=price, effective_price=0.0, discount_percent=0, list_price=price, is_free=True
        )

    base = sale_price if sale_price and sale_price > 0 else price

    if flash_sale is not None and flash_sale.discount_percent > 0:
        pct = flash_sale.discount_percent
        return EffectivePrice(
            original_price=base,
            list_price=price,
            effective_price=float(round_half_up(base * (1 - pct / 100))),
            discount_percent=pct,
            has_flash_sale=True,
            flash_sale_title=flash_sale.title,
            flash_sale_end_date=flash_sale.end_date,
        )

    if sale_price and 0 < sale_price < price:
        return EffectivePrice(
            original_price=price,
            list_price=price,
            effective_price=sale_price,
            discount_percent=round_half_up((price - sale_price) / price * 100),
        )

    return EffectivePrice(original_price=price, effective_price=price, discount_percent=0, list_price=price)


def calculate_coupon_discount(coupon: Coupon, amount: float) -> CouponDiscount:
    """Percentage coupons honour max_discount; the discount never exceeds the amount."""
    if coupon.discount_type == "PERCENTAGE":
        discount = amount * coupon.discount_value / 100
        if coupon.max_discount is not None and coupon.max_discount > 0:
            discount = min(discount, coupon.max_discount)
    else:
        discount = coupon.discount_value
    discount = money(min(max(discount, 0.0), amount))
    return CouponDiscount(
        total_amount=money(amount),
        discount_amount=discount,
        final_amount=money(max(0.0, amount - discount)),
    )
