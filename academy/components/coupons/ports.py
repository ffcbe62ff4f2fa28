"""
Coupons component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from academy.domain.entities import Coupon


class CouponRepoPort(Protocol):
    def save(self, coupon: Coupon) -> Coupon: ...

    def get_by_id(self, coupon_id: UUID) -> Coupon | None: ...

    def get_by_code(self, code: str) -> Coupon | None: ...

    def list_coupons(
        self,
        search: str | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Coupon], int]: ...

    def list_showable(self, now: datetime) -> list[Coupon]:
        """Active, in-window coupons flagged ready_to_show, newest first."""
        ...

    def increment_usage(self, code: str) -> None: ...

    def delete(self, coupon_id: UUID) -> None: ...


class OrderHistoryPort(Protocol):
    def count_completed_for_user(self, user_id: UUID) -> int: ...
