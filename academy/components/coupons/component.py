"""
Coupons - discount codes for checkout and subscriptions.

Codes are case-insensitive (stored upper-case). A coupon applies when it
is active, inside its validity window, applicable to what is being
bought, under its usage limit and the amount meets its minimum.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import datetime
from typing import Any
from uuid import UUID

from academy.components.errors import reject_nulls
from academy.components.pricing import calculate_coupon_discount
from academy.core.ports.time import ClockPort
from academy.domain.entities import Coupon, User, as_utc
from academy.rules.models import CouponRules

from .models import (
    APPLICABLE_TO,
    DISCOUNT_TYPES,
    TARGET_USER_TYPES,
    AppliedCoupon,
    CouponError,
    CouponInput,
)
from .ports import CouponRepoPort, OrderHistoryPort

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^[A-Z0-9_-]{3,30}$")
_NOT_NULL = (
    "code",
    "discount_type",
    "discount_value",
    "valid_from",
    "valid_until",
    "applicable_to",
    "is_active",
    "target_user_type",
    "target_user_ids",
    "ready_to_show",
)


# --- Pure Functions ---


def normalise_code(code: str | None) -> str:
    return (code or "").strip().upper()


def check_coupon(
    coupon: Coupon | None,
    amount: float,
    now: datetime,
    applicable_to: Iterable[str] | None = None,
) -> list[CouponError]:
    """Every rule a coupon must pass before it can be applied to ``amount``."""
    if coupon is None or not coupon.is_active:
        return [CouponError("invalid_coupon", "Invalid or expired coupon", "coupon_code")]
    if not (as_utc(coupon.valid_from) <= now <= as_utc(coupon.valid_until)):
        return [CouponError("invalid_coupon", "Invalid or expired coupon", "coupon_code")]
    if applicable_to is not None and coupon.applicable_to != "ALL":
        if coupon.applicable_to not in set(applicable_to):
            return [
                CouponError(
                    "coupon_not_applicable",
                    "Coupon is not applicable to this purchase",
                    "coupon_code",
                )
            ]
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return [
            CouponError("usage_limit_exceeded", "Coupon usage limit exceeded", "coupon_code")
        ]
    if coupon.min_amount is not None and amount < coupon.min_amount:
        return [
            CouponError(
                "min_amount_not_met",
                f"Minimum order amount of {coupon.min_amount:g} required",
                "coupon_code",
            )
        ]
    return []


def validate_coupon_fields(data: CouponInput) -> list[CouponError]:
    errors: list[CouponError] = []
    code = normalise_code(data.code)
    if not code:
        errors.append(CouponError("code_required", "Coupon code is required", "code"))
    elif not CODE_PATTERN.match(code):
        errors.append(
            CouponError(
                "code_invalid",
                "Code must be 3-30 letters, digits, '-' or '_'",
                "code",
            )
        )
    if data.discount_type not in DISCOUNT_TYPES:
        errors.append(
            CouponError(
                "invalid_discount_type",
                "Discount type must be PERCENTAGE or FIXED",
                "discount_type",
            )
        )
    if data.discount_value is None or data.discount_value <= 0:
        errors.append(
            CouponError(
                "invalid_discount_value",
                "Discount value must be greater than 0",
                "discount_value",
            )
        )
    elif data.discount_type == "PERCENTAGE" and data.discount_value > 100:
        errors.append(
            CouponError(
                "invalid_discount_value",
                "Percentage discount cannot exceed 100",
                "discount_value",
            )
        )
    if as_utc(data.valid_from) >= as_utc(data.valid_until):
        errors.append(
            CouponError("invalid_dates", "valid_from must be before valid_until", "valid_until")
        )
    if data.applicable_to not in APPLICABLE_TO:
        errors.append(
            CouponError("invalid_applicable_to", "Unknown applicable_to value", "applicable_to")
        )
    if data.target_user_type not in TARGET_USER_TYPES:
        errors.append(
            CouponError(
                "invalid_target_user_type", "Unknown target user type", "target_user_type"
            )
        )
    elif data.target_user_type == "SPECIFIC_USER" and not data.target_user_ids:
        errors.append(
            CouponError(
                "target_users_required",
                "Select at least one user for a SPECIFIC_USER coupon",
                "target_user_ids",
            )
        )
    for name in ("min_amount", "max_discount"):
        value = getattr(data, name)
        if value is not None and value < 0:
            errors.append(CouponError(f"invalid_{name}", f"{name} cannot be negative", name))
    if data.usage_limit is not None and data.usage_limit < 1:
        errors.append(
            CouponError("invalid_usage_limit", "Usage limit must be at least 1", "usage_limit")
        )
    return errors


def visible_to(coupon: Coupon, user: User | None, is_new_user: bool) -> bool:
    if coupon.target_user_type == "ALL":
        return True
    if user is None:
        return False
    if coupon.target_user_type == "NEW_USER":
        return is_new_user
    return str(user.id) in coupon.target_user_ids


# --- Service ---


class CouponService:
    def __init__(
        self,
        repo: CouponRepoPort,
        orders: OrderHistoryPort,
        clock: ClockPort,
        rules: CouponRules,
    ) -> None:
        self._repo = repo
        self._orders = orders
        self._clock = clock
        self._rules = rules

    def apply(
        self,
        code: str | None,
        amount: float,
        applicable_to: Iterable[str] | None = None,
    ) -> tuple[AppliedCoupon | None, list[CouponError]]:
        """Validate ``code`` against ``amount``; nothing is persisted."""
        normalised = normalise_code(code)
        if not normalised:
            return None, [CouponError("coupon_required", "Coupon code is required", "coupon_code")]
        coupon = self._repo.get_by_code(normalised)
        errors = check_coupon(coupon, amount, self._clock.now_utc(), applicable_to)
        if errors or coupon is None:
            return None, errors
        return AppliedCoupon(coupon=coupon, discount=calculate_coupon_discount(coupon, amount)), []

    def record_usage(self, code: str) -> None:
        self._repo.increment_usage(normalise_code(code))
        logger.info("Coupon %s used", normalise_code(code))

    def ready_to_show(self, user: User | None) -> list[Coupon]:
        coupons = self._repo.list_showable(self._clock.now_utc())
        is_new = user is not None and self._orders.count_completed_for_user(user.id) == 0
        shown = [
            c
            for c in coupons
            if visible_to(c, user, is_new)
            and (c.usage_limit is None or c.used_count < c.usage_limit)
        ]
        return shown[: self._rules.ready_to_show_limit]

    # --- Admin ---

    def create(self, data: CouponInput) -> tuple[Coupon | None, list[CouponError]]:
        errors = validate_coupon_fields(data)
        if errors:
            return None, errors
        code = normalise_code(data.code)
        if self._repo.get_by_code(code):
            return None, [CouponError("code_taken", "Coupon code already exists", "code")]
        now = self._clock.now_utc()
        coupon = Coupon(
            code=code,
            title=data.title,
            description=data.description,
            discount_type=data.discount_type,  # type: ignore[arg-type]
            discount_value=data.discount_value,
            min_amount=data.min_amount,
            max_discount=data.max_discount,
            valid_from=as_utc(data.valid_from),
            valid_until=as_utc(data.valid_until),
            usage_limit=data.usage_limit,
            applicable_to=data.applicable_to,
            is_active=data.is_active,
            target_user_type=data.target_user_type,  # type: ignore[arg-type]
            target_user_ids=list(data.target_user_ids),
            ready_to_show=data.ready_to_show,
            created_at=now,
            updated_at=now,
        )
        return self._repo.save(coupon), []

    def update(self, coupon_id: UUID, updates: dict[str, Any]) -> tuple[Coupon | None, list[CouponError]]:
        coupon = self._repo.get_by_id(coupon_id)
        if not coupon:
            return None, [CouponError("coupon_not_found", "Coupon not found")]
        errors = reject_nulls(updates, _NOT_NULL)
        if errors:
            return None, errors
        merged = CouponInput(
            code=updates.get("code", coupon.code),
            discount_type=updates.get("discount_type", coupon.discount_type),
            discount_value=updates.get("discount_value", coupon.discount_value),
            valid_from=updates.get("valid_from", coupon.valid_from),
            valid_until=updates.get("valid_until", coupon.valid_until),
            title=updates.get("title", coupon.title),
            description=updates.get("description", coupon.description),
            min_amount=updates.get("min_amount", coupon.min_amount),
            max_discount=updates.get("max_discount", coupon.max_discount),
            usage_limit=updates.get("usage_limit", coupon.usage_limit),
            applicable_to=updates.get("applicable_to", coupon.applicable_to),
            is_active=updates.get("is_active", coupon.is_active),
            target_user_type=updates.get("target_user_type", coupon.target_user_type),
            target_user_ids=updates.get("target_user_ids", coupon.target_user_ids),
            ready_to_show=updates.get("ready_to_show", coupon.ready_to_show),
        )
        errors = validate_coupon_fields(merged)
        if errors:
            return None, errors
        code = normalise_code(merged.code)
        if code != coupon.code and self._repo.get_by_code(code):
            return None, [CouponError("code_taken", "Coupon code already exists", "code")]

        updated = coupon.model_copy(
            update={
                "code": code,
                "discount_type": merged.discount_type,
                "discount_value": merged.discount_value,
                "valid_from": as_utc(merged.valid_from),
                "valid_until": as_utc(merged.valid_until),
                "title": merged.title,
                "description": merged.description,
                "min_amount": merged.min_amount,
                "max_discount": merged.max_discount,
                "usage_limit": merged.usage_limit,
                "applicable_to": merged.applicable_to,
                "is_active": merged.is_active,
                "target_user_type": merged.target_user_type,
                "target_user_ids": list(merged.target_user_ids),
                "ready_to_show": merged.ready_to_show,
                "updated_at": self._clock.now_utc(),
            }
        )
        return self._repo.save(updated), []

    def delete(self, coupon_id: UUID) -> list[CouponError]:
        if not self._repo.get_by_id(coupon_id):
            return [CouponError("coupon_not_found", "Coupon not found")]
        self._repo.delete(coupon_id)
        return []

    def get(self, coupon_id: UUID) -> Coupon | None:
        return self._repo.get_by_id(coupon_id)

    def list_coupons(
        self, search: str | None, is_active: bool | None, offset: int, limit: int
    ) -> tuple[list[Coupon], int]:
        return self._repo.list_coupons(search=search, is_active=is_active, offset=offset, limit=limit)
