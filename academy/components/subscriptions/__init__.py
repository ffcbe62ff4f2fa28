"""
Subscriptions component - Indicator plans and subscriber lifecycle.
"""

from .component import SubscriptionService, add_months, end_date, plan_price, validate_plan
from .models import (
    PLAN_MONTHS,
    SUBSCRIPTION_STATUSES,
    PlanInput,
    SubscriptionCheckout,
    SubscriptionError,
)
from .ports import OrderWriterPort, PlanRepoPort, SubscriptionRepoPort

__all__ = [
    "SubscriptionService",
    "add_months",
    "end_date",
    "plan_price",
    "validate_plan",
    "PLAN_MONTHS",
    "SUBSCRIPTION_STATUSES",
    "PlanInput",
    "SubscriptionCheckout",
    "SubscriptionError",
    "OrderWriterPort",
    "PlanRepoPort",
    "SubscriptionRepoPort",
]
