"""
Catalog - courses, e-books, webinars, guidance, mentorships, indicators,
bundles and offline batches behind one generic item model.

Every item leaving this component carries its effective price, so
storefront listings and checkout agree on what a shopper pays.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from academy.components.errors import reject_nulls
from academy.components.flash_sales import match_flash_sale
from academy.components.pricing import calculate_effective_price
from academy.core.ports.time import ClockPort
from academy.domain.entities import ITEM_TYPES, CatalogItem, FlashSale, as_utc
from academy.domain.identifiers import generate_slug

from .models import (
    SORT_OPTIONS,
    CatalogError,
    CatalogItemInput,
    CatalogQuery,
    PricedItem,
    SearchResults,
)
from .ports import CatalogRepoPort, JobSearchPort, RunningSalesPort

logger = logging.getLogger(__name__)

_PLURALS = {
    "COURSES": "COURSE",
    "EBOOKS": "EBOOK",
    "WEBINARS": "WEBINAR",
    "MENTORSHIPS": "MENTORSHIP",
    "INDICATORS": "INDICATOR",
    "BUNDLES": "BUNDLE",
    "OFFLINE_BATCHES": "OFFLINE_BATCH",
}

_UPDATABLE = (
    "title",
    "short_description",
    "description",
    "price",
    "sale_price",
    "is_free",
    "is_published",
    "instructor_name",
    "image_path",
    "category",
    "badges",
    "starts_at",
    "duration_minutes",
    "attributes",
)

_NOT_NULL = (
    "title",
    "short_description",
    "description",
    "price",
    "is_free",
    "is_published",
    "badges",
    "attributes",
)


# --- Pure Functions ---


def parse_item_type(raw: str | None) -> str | None:
    """Accept ``course``, ``COURSES``, ``offline-batches``... Returns None if unknown."""
    if not raw:
        return None
    key = raw.strip().upper().replace("-", "_")
    key = _PLURALS.get(key, key)
    return key if key in ITEM_TYPES else None


def validate_item_fields(
    title: str | None = None,
    slug: str | None = None,
    price: float | None = None,
    sale_price: float | None = None,
    duration_minutes: int | None = None,
) -> list[CatalogError]:
    errors: list[CatalogError] = []
    if title is not None:
        if not title.strip():
            errors.append(CatalogError("title_required", "Title is required", "title"))
        elif len(title) > 200:
            errors.append(
                CatalogError("title_too_long", "Title must be 200 characters or less", "title")
            )
    if slug is not None and not slug:
        errors.append(
            CatalogError("slug_invalid", "Slug must contain letters or digits", "slug")
        )
    if price is not None and price < 0:
        errors.append(CatalogError("invalid_price", "Price cannot be negative", "price"))
    if sale_price is not None and sale_price < 0:
        errors.append(
            CatalogError("invalid_sale_price", "Sale price cannot be negative", "sale_price")
        )
    if duration_minutes is not None and duration_minutes < 0:
        errors.append(
            CatalogError(
                "invalid_duration", "Duration cannot be negative", "duration_minutes"
            )
        )
    return errors


def price_item(item: CatalogItem, sales: list[FlashSale]) -> PricedItem:
    sale = match_flash_sale(sales, item.item_type, str(item.id))
    return PricedItem(
        item=item,
        pricing=calculate_effective_price(item.price, item.sale_price, sale, is_free=item.is_free),
    )


# --- Service ---


class CatalogService:
    def __init__(
        self,
        repo: CatalogRepoPort,
        sales: RunningSalesPort,
        jobs: JobSearchPort,
        clock: ClockPort,
    ) -> None:
        self._repo = repo
        self._sales = sales
        self._jobs = jobs
        self._clock = clock

    def priced(self, items: list[CatalogItem]) -> list[PricedItem]:
        sales = self._sales.running()
        return [price_item(i, sales) for i in items]

    def create(self, data: CatalogItemInput) -> tuple[PricedItem | None, list[CatalogError]]:
        item_type = parse_item_type(data.item_type)
        if not item_type:
            return None, [CatalogError("invalid_item_type", "Unknown item type", "item_type")]
        slug = generate_slug(data.slug or data.title)
        errors = validate_item_fields(
            title=data.title or "",
            slug=slug if data.title else None,
            price=data.price,
            sale_price=data.sale_price,
            duration_minutes=data.duration_minutes,
        )
        if errors:
            return None, errors
        if self._repo.slug_exists(item_type, slug):
            return None, [
                CatalogError("slug_taken", f"An item with slug '{slug}' already exists", "slug")
            ]

        now = self._clock.now_utc()
        item = CatalogItem(
            item_type=item_type,
            slug=slug,
            title=data.title.strip(),
            short_description=data.short_description,
            description=data.description,
            price=data.price,
            sale_price=data.sale_price,
            is_free=data.is_free,
            is_published=data.is_published,
            instructor_name=data.instructor_name,
            image_path=data.image_path,
            category=data.category,
            badges=list(data.badges),
            starts_at=as_utc(data.starts_at) if data.starts_at else None,
            duration_minutes=data.duration_minutes,
            attributes=dict(data.attributes),
            created_at=now,
            updated_at=now,
        )
        self._repo.save(item)
        logger.info("Catalog %s created: %s", item_type, item.slug)
        return self.priced([item])[0], []

    def update(
        self, item_id: UUID, updates: dict[str, Any]
    ) -> tuple[PricedItem | None, list[CatalogError]]:
        item = self._repo.get_by_id(item_id)
        if not item:
            return None, [CatalogError("item_not_found", "Item not found")]

        errors = reject_nulls(updates, _NOT_NULL)
        if errors:
            return None, errors
        new_slug = generate_slug(updates["slug"]) if updates.get("slug") else None
        errors = validate_item_fields(
            title=updates.get("title"),
            slug=new_slug if "slug" in updates and updates["slug"] else None,
            price=updates.get("price"),
            sale_price=updates.get("sale_price"),
            duration_minutes=updates.get("duration_minutes"),
        )
        if errors:
            return None, errors
        if new_slug and new_slug != item.slug:
            if self._repo.slug_exists(item.item_type, new_slug, exclude_id=item.id):
                return None, [
                    CatalogError(
                        "slug_taken", f"An item with slug '{new_slug}' already exists", "slug"
                    )
                ]
            item.slug = new_slug

        changes = {k: updates[k] for k in _UPDATABLE if k in updates}
        if "title" in changes:
            changes["title"] = changes["title"].strip()
        if changes.get("starts_at") is not None:
            changes["starts_at"] = as_utc(changes["starts_at"])
        changes["updated_at"] = self._clock.now_utc()
        updated = item.model_copy(update=changes)
        self._repo.save(updated)
        return self.priced([updated])[0], []

    def toggle_publish(self, item_id: UUID) -> tuple[PricedItem | None, list[CatalogError]]:
        item = self._repo.get_by_id(item_id)
        if not item:
            return None, [CatalogError("item_not_found", "Item not found")]
        item.is_published = not item.is_published
        item.updated_at = self._clock.now_utc()
        self._repo.save(item)
        return self.priced([item])[0], []

    def delete(self, item_id: UUID) -> list[CatalogError]:
        if not self._repo.get_by_id(item_id):
            return [CatalogError("item_not_found", "Item not found")]
        self._repo.delete(item_id)
        return []

    def list_items(
        self,
        item_type: str,
        query: CatalogQuery,
        offset: int,
        limit: int,
        public: bool = True,
    ) -> tuple[list[PricedItem], int]:
        items, total = self._repo.list_items(
            item_type,
            published=True if public else query.is_published,
            search=query.search,
            category=query.category,
            badge=query.badge,
            is_free=query.is_free,
            sort=query.sort if query.sort in SORT_OPTIONS else "newest",
            offset=offset,
            limit=limit,
        )
        return self.priced(items), total

    def get_by_slug(self, item_type: str, slug: str, public: bool = True) -> PricedItem | None:
        item = self._repo.get_by_slug(item_type, slug)
        if not item or (public and not item.is_published):
            return None
        return self.priced([item])[0]

    def get_by_id(self, item_id: UUID, public: bool = True) -> PricedItem | None:
        item = self._repo.get_by_id(item_id)
        if not item or (public and not item.is_published):
            return None
        return self.priced([item])[0]

    def search(self, query: str, limit_per_type: int) -> SearchResults:
        """Published items of every type plus published jobs matching ``query``."""
        results = SearchResults(query=query.strip())
        if not results.query:
            return results
        sales = self._sales.running()
        for item_type in ITEM_TYPES:
            found = self._repo.search_published(results.query, item_type, limit_per_type)
            if found:
                results.items[item_type] = [price_item(i, sales) for i in found]
        results.jobs, _ = self._jobs.list_jobs(
            public_only=True, search=results.query, offset=0, limit=limit_per_type
        )
        return results
