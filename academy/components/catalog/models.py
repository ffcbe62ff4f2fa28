"""
Catalog component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from academy.components.errors import ComponentError
from academy.components.pricing import EffectivePrice
from academy.domain.entities import CatalogItem, Job

CatalogError = ComponentError

SORT_OPTIONS = ("newest", "oldest", "price_asc", "price_desc", "title")


@dataclass(frozen=True)
class CatalogItemInput:
    item_type: str
    title: str
    slug: str | None = None
    short_description: str = ""
    description: str = ""
    price: float = 0.0
    sale_price: float | None = None
    is_free: bool = False
    is_published: bool = False
    instructor_name: str | None = None
    image_path: str | None = None
    category: str | None = None
    badges: list[str] = field(default_factory=list)
    starts_at: datetime | None = None
    duration_minutes: int | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CatalogQuery:
    search: str | None = None
    category: str | None = None
    badge: str | None = None
    is_free: bool | None = None
    is_published: bool | None = None
    sort: str = "newest"


@dataclass(frozen=True)
class PricedItem:
    item: CatalogItem
    pricing: EffectivePrice


@dataclass
class SearchResults:
    query: str
    items: dict[str, list[PricedItem]] = field(default_factory=dict)
    jobs: list[Job] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(v) for v in self.items.values()) + len(self.jobs)
