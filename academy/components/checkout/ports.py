"""
Checkout component - Port interfaces.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from academy.components.coupons.models import AppliedCoupon
from academy.components.errors import ComponentError
from academy.domain.entities import CatalogItem, Enrollment, FlashSale, Order, PaymentIntent, User


class ItemCatalogPort(Protocol):
    def get_many(self, item_type: str, item_ids: list[str]) -> list[CatalogItem]: ...


class RunningSalesPort(Protocol):
    def running(self) -> list[FlashSale]: ...


class OrderRepoPort(Protocol):
    def save(self, order: Order) -> Order: ...

    def get_by_id(self, order_id: UUID) -> Order | None: ...

    def find_completed_by_payment(self, gateway_order_id: str, payment_id: str) -> Order | None: ...

    def list_for_user(self, user_id: UUID) -> list[Order]: ...

    def list_orders(
        self,
        status: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Order], int]: ...


class EnrollmentRepoPort(Protocol):
    def save(self, enrollment: Enrollment) -> Enrollment: ...

    def get(self, user_id: UUID, item_type: str, item_id: str) -> Enrollment | None: ...

    def list_for_user(self, user_id: UUID, item_type: str | None = None) -> list[Enrollment]: ...


class CouponApplierPort(Protocol):
    def apply(
        self, code: str | None, amount: float, applicable_to: Iterable[str] | None = None
    ) -> tuple[AppliedCoupon | None, list[ComponentError]]: ...

    def record_usage(self, code: str) -> None: ...


class CartCleanerPort(Protocol):
    def remove_many(self, user: User, items: dict[str, list[str]]) -> None: ...


class PaymentIntentRepoPort(Protocol):
    def save(self, intent: PaymentIntent) -> PaymentIntent: ...

    def get(self, gateway_order_id: str) -> PaymentIntent | None: ...
