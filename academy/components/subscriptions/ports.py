"""
Subscriptions component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from academy.domain.entities import Order, Subscription, SubscriptionPlan


class PlanRepoPort(Protocol):
    def save(self, plan: SubscriptionPlan) -> SubscriptionPlan: ...

    def get_by_id(self, plan_id: UUID) -> SubscriptionPlan | None: ...

    def list_plans(self, active_only: bool = False) -> list[SubscriptionPlan]: ...

    def delete(self, plan_id: UUID) -> None: ...


class SubscriptionRepoPort(Protocol):
    def save(self, sub: Subscription) -> Subscription: ...

    def get_by_id(self, sub_id: UUID) -> Subscription | None: ...

    def get_by_gateway_order(self, user_id: UUID, gateway_order_id: str) -> Subscription | None: ...

    def find_current(self, user_id: UUID, now: datetime) -> Subscription | None:
        """Newest ACTIVE subscription that has not ended."""
        ...

    def list_for_user(self, user_id: UUID) -> list[Subscription]: ...

    def list_subscriptions(
        self,
        status: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Subscription], int]: ...

    def list_expired_active(self, now: datetime) -> list[Subscription]: ...


class OrderWriterPort(Protocol):
    def save(self, order: Order) -> Order: ...
