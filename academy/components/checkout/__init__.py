"""
Checkout component - Quotes, payments, orders and enrollments.
"""

from .component import CheckoutService, lines_by_type, same_items
from .models import CheckoutError, EnrolledItem, PaymentInit, Quote, QuoteLine
from .ports import (
    CartCleanerPort,
    CouponApplierPort,
    EnrollmentRepoPort,
    ItemCatalogPort,
    OrderRepoPort,
    PaymentIntentRepoPort,
    RunningSalesPort,
)

__all__ = [
    "CheckoutService",
    "lines_by_type",
    "same_items",
    "CheckoutError",
    "EnrolledItem",
    "PaymentInit",
    "Quote",
    "QuoteLine",
    "CartCleanerPort",
    "CouponApplierPort",
    "EnrollmentRepoPort",
    "ItemCatalogPort",
    "OrderRepoPort",
    "PaymentIntentRepoPort",
    "RunningSalesPort",
]
