"""
Catalog component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from academy.domain.entities import CatalogItem, FlashSale, Job


class CatalogRepoPort(Protocol):
    def save(self, item: CatalogItem) -> CatalogItem: ...

    def get_by_id(self, item_id: UUID) -> CatalogItem | None: ...

    def get_by_slug(self, item_type: str, slug: str) -> CatalogItem | None: ...

    def get_many(self, item_type: str, item_ids: list[str]) -> list[CatalogItem]: ...

    def slug_exists(self, item_type: str, slug: str, exclude_id: UUID | None = None) -> bool: ...

    def list_items(
        self,
        item_type: str,
        published: bool | None = None,
        search: str | None = None,
        category: str | None = None,
        badge: str | None = None,
        is_free: bool | None = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[CatalogItem], int]: ...

    def search_published(self, query: str, item_type: str, limit: int) -> list[CatalogItem]: ...

    def delete(self, item_id: UUID) -> None: ...


class RunningSalesPort(Protocol):
    def running(self) -> list[FlashSale]:
        """Flash sales live right now, newest first."""
        ...


class JobSearchPort(Protocol):
    def list_jobs(
        self,
        public_only: bool = True,
        status: str | None = None,
        search: str | None = None,
        job_type: str | None = None,
        location: str | None = None,
        experience: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Job], int]: ...
