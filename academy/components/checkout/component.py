"""
Checkout - quotes, Razorpay payment round trip, orders and enrollments.

The browser sends the cart it wants to buy as ``{TYPE: [ids...]}``. The
server re-prices everything itself; client-side totals are never trusted.
A paid purchase completes only after the gateway signature checks out.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from academy.components.cart import CartMap, normalise_cart
from academy.components.catalog import price_item
from academy.components.coupons import normalise_code
from academy.components.pricing import money
from academy.core.ports.payment import PaymentGatewayError, PaymentGatewayPort, to_paise
from academy.core.ports.time import ClockPort
from academy.core.services import mail_templates
from academy.core.services.notifier import Notifier
from academy.domain.entities import Enrollment, Order, OrderItem, PaymentIntent, User
from academy.domain.identifiers import generate_reference

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

logger = logging.getLogger(__name__)


# --- Pure Functions ---


def lines_by_type(lines: list[QuoteLine]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for line in lines:
        grouped.setdefault(line.item_type, []).append(line.item_id)
    return grouped


def same_items(a: CartMap, b: CartMap) -> bool:
    """Both carts name the same ids per type, ignoring order and empty types."""

    def ids(cart: CartMap) -> dict[str, set[str]]:
        return {t: set(found) for t, found in cart.items() if found}

    return ids(a) == ids(b)


# --- Service ---


class CheckoutService:
    def __init__(
        self,
        items: ItemCatalogPort,
        sales: RunningSalesPort,
        orders: OrderRepoPort,
        enrollments: EnrollmentRepoPort,
        coupons: CouponApplierPort,
        cart: CartCleanerPort,
        gateway: PaymentGatewayPort,
        intents: PaymentIntentRepoPort,
        notifier: Notifier,
        clock: ClockPort,
        item_types: list[str],
        currency: str = "INR",
    ) -> None:
        self._items = items
        self._sales = sales
        self._orders = orders
        self._enrollments = enrollments
        self._coupons = coupons
        self._cart = cart
        self._gateway = gateway
        self._intents = intents
        self._notifier = notifier
        self._clock = clock
        self.item_types = list(item_types)
        self.currency = currency

    # --- Quote ---

    def quote(
        self,
        user: User,
        items: Mapping[str, Any] | None,
        coupon_code: str | None = None,
    ) -> tuple[Quote | None, list[CheckoutError]]:
        """Price the requested items for ``user``, applying ``coupon_code`` if given."""
        requested = normalise_cart(items, self.item_types)
        if not any(requested.values()):
            return None, [CheckoutError("items_required", "Select at least one item", "items")]

        owned = {(e.item_type, e.item_id) for e in self._enrollments.list_for_user(user.id)}
        sales = self._sales.running()
        lines: list[QuoteLine] = []
        skipped: list[str] = []
        for item_type, ids in requested.items():
            if not ids:
                continue
            found = {str(i.id): i for i in self._items.get_many(item_type, ids)}
            for item_id in ids:
                item = found.get(item_id)
                if item is None or not item.is_published:
                    skipped.append(item_id)
                    continue
                pricing = price_item(item, sales).pricing
                if (item_type, item_id) in owned:
                    status, price = "OWNED", 0.0
                elif pricing.is_free or pricing.effective_price <= 0:
                    status, price = "FREE", 0.0
                else:
                    status, price = "PAYABLE", pricing.effective_price
                lines.append(
                    QuoteLine(
                        item_type=item_type,
                        item_id=item_id,
                        title=item.title,
                        original_price=pricing.original_price,
                        price=money(price),
                        discount_percent=pricing.discount_percent,
                        status=status,  # type: ignore[arg-type]
                    )
                )
        if not lines:
            return None, [
                CheckoutError("no_valid_items", "None of the selected items are available", "items")
            ]

        total = money(sum(line.price for line in lines))
        discount, final, code = 0.0, total, None
        if coupon_code and coupon_code.strip():
            types = {line.item_type for line in lines if line.status != "OWNED"}
            applied, errors = self._coupons.apply(coupon_code, total, types)
            if errors or applied is None:
                return None, errors
            discount = applied.discount.discount_amount
            final = applied.discount.final_amount
            code = applied.coupon.code
        return (
            Quote(
                lines=lines,
                total_amount=total,
                discount_amount=discount,
                final_amount=final,
                coupon_code=code,
                skipped=skipped,
            ),
            [],
        )

    # --- Payment ---

    def init_payment(
        self,
        user: User,
        items: Mapping[str, Any] | None,
        coupon_code: str | None = None,
    ) -> tuple[PaymentInit | None, list[CheckoutError]]:
        quote, errors = self.quote(user, items, coupon_code)
        if errors or quote is None:
            return None, errors
        if quote.final_amount <= 0:
            return PaymentInit(quote=quote), []
        receipt = generate_reference("PAY", self._clock.now_utc())
        try:
            gateway_order = self._gateway.create_order(
                to_paise(quote.final_amount),
                self.currency,
                receipt,
                notes={"user_id": str(user.id)},
            )
        except PaymentGatewayError as exc:
            logger.error("Gateway order for user %s failed: %s", user.id, exc)
            return None, [
                CheckoutError("payment_gateway_error", "Could not start payment, please retry")
            ]
        self._intents.save(
            PaymentIntent(
                gateway_order_id=gateway_order.id,
                user_id=user.id,
                amount_paise=gateway_order.amount,
                currency=gateway_order.currency,
                items={t: ids for t, ids in normalise_cart(items, self.item_types).items() if ids},
                coupon_code=quote.coupon_code,
                created_at=self._clock.now_utc(),
            )
        )
        return PaymentInit(quote=quote, gateway_order=gateway_order), []

    def complete_payment(
        self,
        user: User,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
        items: Mapping[str, Any] | None,
        coupon_code: str | None = None,
    ) -> tuple[Order | None, list[CheckoutError]]:
        """
        Record a paid order once the gateway signature checks out.

        The purchase is re-quoted from what was stored at ``init_payment``;
        ``items`` may be omitted but, when sent, must name the same items.
        A re-quote that no longer matches the amount the gateway charged is
        refused rather than recorded at a different price.
        """
        if not (gateway_order_id and payment_id and signature):
            return None, [
                CheckoutError("payment_details_required", "Payment details are required")
            ]
        if not self._gateway.verify_signature(gateway_order_id, payment_id, signature):
            logger.warning("Bad payment signature for gateway order %s", gateway_order_id)
            return None, [
                CheckoutError("invalid_signature", "Payment verification failed", "signature")
            ]
        existing = self._orders.find_completed_by_payment(gateway_order_id, payment_id)
        if existing:
            if existing.user_id != user.id:
                return None, [CheckoutError("order_not_found", "Order not found")]
            return existing, []

        intent = self._intents.get(gateway_order_id)
        if intent is None or intent.user_id != user.id:
            return None, [
                CheckoutError("payment_not_found", "No payment was started for this order")
            ]
        if items and not same_items(normalise_cart(items, self.item_types), intent.items):
            return None, [
                CheckoutError("items_mismatch", "Items differ from the started payment", "items")
            ]
        if coupon_code and normalise_code(coupon_code) != (intent.coupon_code or ""):
            return None, [
                CheckoutError("coupon_mismatch", "Coupon differs from the started payment", "coupon_code")
            ]

        quote, errors = self.quote(user, intent.items, intent.coupon_code)
        if errors or quote is None:
            return None, errors
        if not quote.purchasable:
            return None, [
                CheckoutError("already_owned", "You already own the selected items", "items")
            ]
        if to_paise(quote.final_amount) != intent.amount_paise:
            logger.warning(
                "Gateway order %s charged %s paise but now prices at %.2f",
                gateway_order_id,
                intent.amount_paise,
                quote.final_amount,
            )
            return None, [
                CheckoutError("amount_mismatch", "The price changed after payment was started")
            ]
        order = self._record_order(
            user,
            quote,
            payment_status="PAID",
            gateway_order_id=gateway_order_id,
            payment_id=payment_id,
            signature=signature,
        )
        return order, []

    def complete_free(
        self,
        user: User,
        items: Mapping[str, Any] | None,
        coupon_code: str | None = None,
    ) -> tuple[Order | None, list[CheckoutError]]:
        quote, errors = self.quote(user, items, coupon_code)
        if errors or quote is None:
            return None, errors
        if quote.final_amount > 0:
            return None, [
                CheckoutError("payment_required", "This purchase requires payment")
            ]
        if not quote.purchasable:
            return None, [
                CheckoutError("already_owned", "You already own the selected items", "items")
            ]
        return self._record_order(user, quote, payment_status="FREE"), []

    def _record_order(
        self,
        user: User,
        quote: Quote,
        payment_status: str,
        gateway_order_id: str | None = None,
        payment_id: str | None = None,
        signature: str | None = None,
    ) -> Order:
        now = self._clock.now_utc()
        bought = quote.purchasable
        order = Order(
            order_number=generate_reference("ORD", now),
            user_id=user.id,
            order_type="PURCHASE",
            items=[
                OrderItem(
                    item_type=line.item_type,
                    item_id=line.item_id,
                    title=line.title,
                    price=line.price,
                )
                for line in bought
            ],
            total_amount=quote.total_amount,
            discount_amount=quote.discount_amount,
            final_amount=quote.final_amount,
            status="COMPLETED",
            payment_status=payment_status,  # type: ignore[arg-type]
            gateway_order_id=gateway_order_id,
            payment_id=payment_id,
            signature=signature,
            coupon_code=quote.coupon_code,
            created_at=now,
            updated_at=now,
        )
        self._orders.save(order)
        for line in bought:
            self._enrollments.save(
                Enrollment(
                    user_id=user.id,
                    item_type=line.item_type,
                    item_id=line.item_id,
                    order_id=order.id,
                    created_at=now,
                )
            )
        if quote.coupon_code:
            self._coupons.record_usage(quote.coupon_code)
        self._cart.remove_many(user, lines_by_type(quote.lines))
        logger.info(
            "Order %s completed for user %s (%s, %.2f)",
            order.order_number,
            user.id,
            payment_status,
            order.final_amount,
        )
        self._notifier.send(
            mail_templates.order_confirmation_email(
                user.email,
                user.name,
                order.order_number,
                [line.title for line in bought],
                order.final_amount,
            )
        )
        return order

    # --- Orders & enrollments ---

    def my_orders(self, user: User) -> list[Order]:
        return self._orders.list_for_user(user.id)

    def get_order(self, user: User, order_id: UUID) -> Order | None:
        order = self._orders.get_by_id(order_id)
        if not order or (order.user_id != user.id and not user.is_admin):
            return None
        return order

    def list_orders(
        self, status: str | None, search: str | None, offset: int, limit: int
    ) -> tuple[list[Order], int]:
        return self._orders.list_orders(status=status, search=search, offset=offset, limit=limit)

    def my_enrollments(self, user: User, item_type: str | None = None) -> list[EnrolledItem]:
        enrollments = self._enrollments.list_for_user(user.id, item_type)
        by_type: dict[str, list[str]] = {}
        for e in enrollments:
            by_type.setdefault(e.item_type, []).append(e.item_id)
        catalog = {
            (i.item_type, str(i.id)): i
            for t, ids in by_type.items()
            for i in self._items.get_many(t, ids)
        }
        return [EnrolledItem(e, catalog.get((e.item_type, e.item_id))) for e in enrollments]

    def check_enrollment(self, user: User, item_type: str, item_id: str) -> bool:
        return self._enrollments.get(user.id, item_type, item_id) is not None

