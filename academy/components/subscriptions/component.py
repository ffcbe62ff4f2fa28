"""
Subscriptions - indicator access sold as time-boxed plans.

A subscriber names the TradingView account that should get access. Free
(fully discounted) subscriptions activate at once; paid ones stay PENDING
until the gateway payment is verified.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from academy.components.checkout.ports import CouponApplierPort
from academy.components.errors import reject_nulls
from academy.components.pricing import money
from academy.core.ports.payment import PaymentGatewayError, PaymentGatewayPort, to_paise
from academy.core.ports.time import ClockPort
from academy.core.services import mail_templates
from academy.core.services.notifier import Notifier
from academy.domain.entities import Order, OrderItem, Subscription, SubscriptionPlan, User
from academy.domain.identifiers import generate_reference

from .models import (
    PLAN_MONTHS,
    SUBSCRIPTION_STATUSES,
    PlanInput,
    SubscriptionCheckout,
    SubscriptionError,
)
from .ports import OrderWriterPort, PlanRepoPort, SubscriptionRepoPort

logger = logging.getLogger(__name__)


# --- Pure Functions ---


def add_months(start: datetime, months: int) -> datetime:
    """Same day ``months`` later; days past the target month's end clamp to it."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def end_date(plan_type: str, start: datetime) -> datetime | None:
    months = PLAN_MONTHS[plan_type]
    return add_months(start, months) if months else None


def plan_price(plan: SubscriptionPlan) -> float:
    return plan.sale_price if plan.sale_price and plan.sale_price > 0 else plan.price


def validate_plan(data: PlanInput) -> list[SubscriptionError]:
    errors: list[SubscriptionError] = []
    if not (data.name or "").strip():
        errors.append(SubscriptionError("name_required", "Plan name is required", "name"))
    if data.plan_type not in PLAN_MONTHS:
        errors.append(
            SubscriptionError("invalid_plan_type", "Unknown plan type", "plan_type")
        )
    if data.price is None or data.price < 0:
        errors.append(SubscriptionError("invalid_price", "Price cannot be negative", "price"))
    if data.sale_price is not None and data.sale_price < 0:
        errors.append(
            SubscriptionError(
                "invalid_sale_price", "Sale price cannot be negative", "sale_price"
            )
        )
    return errors


# --- Service ---


class SubscriptionService:
    def __init__(
        self,
        plans: PlanRepoPort,
        subscriptions: SubscriptionRepoPort,
        orders: OrderWriterPort,
        coupons: CouponApplierPort,
        gateway: PaymentGatewayPort,
        notifier: Notifier,
        clock: ClockPort,
        currency: str = "INR",
    ) -> None:
        self._plans = plans
        self._subs = subscriptions
        self._orders = orders
        self._coupons = coupons
        self._gateway = gateway
        self._notifier = notifier
        self._clock = clock
        self.currency = currency

    # --- Plans ---

    def list_plans(self, active_only: bool = True) -> list[SubscriptionPlan]:
        return self._plans.list_plans(active_only=active_only)

    def get_plan(self, plan_id: UUID) -> SubscriptionPlan | None:
        return self._plans.get_by_id(plan_id)

    def create_plan(self, data: PlanInput) -> tuple[SubscriptionPlan | None, list[SubscriptionError]]:
        errors = validate_plan(data)
        if errors:
            return None, errors
        now = self._clock.now_utc()
        plan = SubscriptionPlan(
            name=data.name.strip(),
            plan_type=data.plan_type,  # type: ignore[arg-type]
            price=data.price,
            sale_price=data.sale_price,
            features=list(data.features),
            is_active=data.is_active,
            created_at=now,
            updated_at=now,
        )
        return self._plans.save(plan), []

    def update_plan(
        self, plan_id: UUID, updates: dict[str, Any]
    ) -> tuple[SubscriptionPlan | None, list[SubscriptionError]]:
        plan = self._plans.get_by_id(plan_id)
        if not plan:
            return None, [SubscriptionError("plan_not_found", "Plan not found")]
        errors = reject_nulls(updates, ("name", "plan_type", "price", "features", "is_active"))
        if errors:
            return None, errors
        merged = PlanInput(
            name=updates.get("name", plan.name),
            plan_type=updates.get("plan_type", plan.plan_type),
            price=updates.get("price", plan.price),
            sale_price=updates.get("sale_price", plan.sale_price),
            features=updates.get("features", plan.features),
            is_active=updates.get("is_active", plan.is_active),
        )
        errors = validate_plan(merged)
        if errors:
            return None, errors
        updated = plan.model_copy(
            update={
                "name": merged.name.strip(),
                "plan_type": merged.plan_type,
                "price": merged.price,
                "sale_price": merged.sale_price,
                "features": list(merged.features),
                "is_active": merged.is_active,
                "updated_at": self._clock.now_utc(),
            }
        )
        return self._plans.save(updated), []

    def delete_plan(self, plan_id: UUID) -> list[SubscriptionError]:
        if not self._plans.get_by_id(plan_id):
            return [SubscriptionError("plan_not_found", "Plan not found")]
        self._plans.delete(plan_id)
        return []

    # --- Subscribing ---

    def create(
        self,
        user: User,
        plan_id: UUID,
        trading_view_username: str | None,
        coupon_code: str | None = None,
    ) -> tuple[SubscriptionCheckout | None, list[SubscriptionError]]:
        plan = self._plans.get_by_id(plan_id)
        if not plan or not plan.is_active:
            return None, [SubscriptionError("plan_not_found", "Plan not found or inactive")]
        username = (trading_view_username or "").strip()
        if not username:
            return None, [
                SubscriptionError(
                    "trading_view_username_required",
                    "TradingView username is required",
                    "trading_view_username",
                )
            ]
        now = self._clock.now_utc()
        if self._subs.find_current(user.id, now):
            return None, [
                SubscriptionError(
                    "active_subscription_exists", "You already have an active subscription"
                )
            ]

        total = money(plan_price(plan))
        discount, final, code = 0.0, total, None
        if coupon_code and coupon_code.strip():
            applied, errors = self._coupons.apply(coupon_code, total, ["SUBSCRIPTION"])
            if errors or applied is None:
                return None, errors
            discount = applied.discount.discount_amount
            final = applied.discount.final_amount
            code = applied.coupon.code

        sub = Subscription(
            user_id=user.id,
            plan_id=plan.id,
            plan_type=plan.plan_type,
            trading_view_username=username,
            start_date=now,
            total_amount=total,
            discount_amount=discount,
            final_amount=final,
            coupon_code=code,
            created_at=now,
            updated_at=now,
        )
        if final <= 0:
            self._activate(user, sub, plan, payment_status="FREE")
            return SubscriptionCheckout(subscription=sub, plan=plan), []

        try:
            gateway_order = self._gateway.create_order(
                to_paise(final),
                self.currency,
                generate_reference("SUB", now),
                notes={"user_id": str(user.id), "plan_id": str(plan.id)},
            )
        except PaymentGatewayError as exc:
            logger.error("Gateway order for subscription failed: %s", exc)
            return None, [
                SubscriptionError("payment_gateway_error", "Could not start payment, please retry")
            ]
        sub.gateway_order_id = gateway_order.id
        self._subs.save(sub)
        return SubscriptionCheckout(subscription=sub, plan=plan, gateway_order=gateway_order), []

    def verify_payment(
        self,
        user: User,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
    ) -> tuple[Subscription | None, list[SubscriptionError]]:
        sub = self._subs.get_by_gateway_order(user.id, gateway_order_id or "")
        if not sub:
            return None, [SubscriptionError("subscription_not_found", "Subscription not found")]
        if not self._gateway.verify_signature(gateway_order_id, payment_id or "", signature or ""):
            logger.warning("Bad subscription payment signature for %s", gateway_order_id)
            return None, [
                SubscriptionError("invalid_signature", "Payment verification failed", "signature")
            ]
        if sub.status == "ACTIVE" and sub.payment_id == payment_id:
            return sub, []
        if sub.status != "PENDING":
            return None, [
                SubscriptionError("subscription_not_pending", "Subscription is not awaiting payment")
            ]
        plan = self._plans.get_by_id(sub.plan_id)
        if not plan:
            return None, [SubscriptionError("plan_not_found", "Plan not found")]
        sub.payment_id = payment_id
        sub.signature = signature
        self._activate(user, sub, plan, payment_status="PAID")
        return sub, []

    def _activate(
        self, user: User, sub: Subscription, plan: SubscriptionPlan, payment_status: str
    ) -> None:
        now = self._clock.now_utc()
        sub.status = "ACTIVE"
        sub.start_date = now
        sub.end_date = end_date(plan.plan_type, now)
        sub.updated_at = now
        self._subs.save(sub)
        self._orders.save(
            Order(
                order_number=generate_reference("SUB", now),
                user_id=user.id,
                order_type="SUBSCRIPTION",
                items=[
                    OrderItem(
                        item_type="SUBSCRIPTION",
                        item_id=str(plan.id),
                        title=plan.name,
                        price=sub.total_amount,
                    )
                ],
                total_amount=sub.total_amount,
                discount_amount=sub.discount_amount,
                final_amount=sub.final_amount,
                status="COMPLETED",
                payment_status=payment_status,  # type: ignore[arg-type]
                gateway_order_id=sub.gateway_order_id,
                payment_id=sub.payment_id,
                signature=sub.signature,
                coupon_code=sub.coupon_code,
                created_at=now,
                updated_at=now,
            )
        )
        if sub.coupon_code:
            self._coupons.record_usage(sub.coupon_code)
        logger.info("Subscription %s active for user %s", sub.id, user.id)
        self._notifier.send(
            mail_templates.subscription_email(user.email, user.name, plan.name, sub.end_date)
        )

    # --- Subscriber ---

    def active(self, user: User) -> Subscription | None:
        return self._subs.find_current(user.id, self._clock.now_utc())

    def mine(self, user: User) -> list[Subscription]:
        return self._subs.list_for_user(user.id)

    def _owned(self, user: User, sub_id: UUID) -> Subscription | None:
        sub = self._subs.get_by_id(sub_id)
        if not sub or sub.user_id != user.id:
            return None
        return sub

    def cancel(self, user: User, sub_id: UUID) -> tuple[Subscription | None, list[SubscriptionError]]:
        sub = self._owned(user, sub_id)
        if not sub:
            return None, [SubscriptionError("subscription_not_found", "Subscription not found")]
        if sub.status != "ACTIVE":
            return None, [
                SubscriptionError("subscription_not_active", "Only active subscriptions can be cancelled")
            ]
        sub.status = "CANCELLED"
        sub.updated_at = self._clock.now_utc()
        return self._subs.save(sub), []

    def update_trading_view_username(
        self, user: User, sub_id: UUID, username: str | None
    ) -> tuple[Subscription | None, list[SubscriptionError]]:
        sub = self._owned(user, sub_id)
        if not sub:
            return None, [SubscriptionError("subscription_not_found", "Subscription not found")]
        if not (username or "").strip():
            return None, [
                SubscriptionError(
                    "trading_view_username_required",
                    "TradingView username is required",
                    "trading_view_username",
                )
            ]
        sub.trading_view_username = (username or "").strip()
        sub.updated_at = self._clock.now_utc()
        return self._subs.save(sub), []

    # --- Admin ---

    def list_subscriptions(
        self, status: str | None, search: str | None, offset: int, limit: int
    ) -> tuple[list[Subscription], int]:
        return self._subs.list_subscriptions(status=status, search=search, offset=offset, limit=limit)

    def set_status(
        self, sub_id: UUID, status: str
    ) -> tuple[Subscription | None, list[SubscriptionError]]:
        if status not in SUBSCRIPTION_STATUSES:
            return None, [SubscriptionError("invalid_status", "Unknown subscription status", "status")]
        sub = self._subs.get_by_id(sub_id)
        if not sub:
            return None, [SubscriptionError("subscription_not_found", "Subscription not found")]
        sub.status = status  # type: ignore[assignment]
        sub.updated_at = self._clock.now_utc()
        return self._subs.save(sub), []

    def expire_due(self) -> int:
        """Mark ACTIVE subscriptions past their end date as EXPIRED."""
        now = self._clock.now_utc()
        due = self._subs.list_expired_active(now)
        for sub in due:
            sub.status = "EXPIRED"
            sub.updated_at = now
            self._subs.save(sub)
        if due:
            logger.info("Expired %d subscription(s)", len(due))
        return len(due)
