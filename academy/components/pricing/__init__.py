"""
Pricing component - Effective prices and coupon arithmetic.
"""

from .component import (
    CouponDiscount,
    EffectivePrice,
    calculate_coupon_discount,
    calculate_effective_price,
    money,
    round_half_up,
)

__all__ = [
    "CouponDiscount",
    "EffectivePrice",
    "calculate_coupon_discount",
    "calculate_effective_price",
    "money",
    "round_half_up",
]
