"""
Flash sales component - Port interfaces.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from academy.domain.entities import CatalogItem, FlashSale


class FlashSaleRepoPort(Protocol):
    def save(self, sale: FlashSale) -> FlashSale: ...

    def get_by_id(self, sale_id: UUID) -> FlashSale | None: ...

    def list_sales(
        self,
        item_type: str | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[FlashSale], int]: ...

    def list_running(self, now: datetime) -> list[FlashSale]:
        """Active sales whose window contains ``now``, newest first."""
        ...

    def deactivate_all(self, except_id: UUID | None = None) -> int: ...

    def delete(self, sale_id: UUID) -> None: ...


class CatalogLookupPort(Protocol):
    def get_many(self, item_type: str, item_ids: list[str]) -> list[CatalogItem]: ...
