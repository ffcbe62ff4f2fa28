"""
Coupons component - Discount codes, validation and storefront display.
"""

from .component import (
    CouponService,
    check_coupon,
    normalise_code,
    validate_coupon_fields,
    visible_to,
)
from .models import (
    APPLICABLE_TO,
    DISCOUNT_TYPES,
    TARGET_USER_TYPES,
    AppliedCoupon,
    CouponError,
    CouponInput,
)
from .ports import CouponRepoPort, OrderHistoryPort

__all__ = [
    "CouponService",
    "check_coupon",
    "normalise_code",
    "validate_coupon_fields",
    "visible_to",
    "APPLICABLE_TO",
    "DISCOUNT_TYPES",
    "TARGET_USER_TYPES",
    "AppliedCoupon",
    "CouponError",
    "CouponInput",
    "CouponRepoPort",
    "OrderHistoryPort",
]
