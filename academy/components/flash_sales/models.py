"""
Flash sales component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from academy.components.errors import ComponentError
from academy.domain.entities import CatalogItem, FlashSale

FlashSaleError = ComponentError

FLASH_SALE_ITEM_TYPES = ("COURSE", "EBOOK", "WEBINAR", "GUIDANCE", "BUNDLE")


@dataclass(frozen=True)
class FlashSaleInput:
    item_type: str
    reference_ids: list[str]
    title: str
    discount_percent: int
    start_date: datetime
    end_date: datetime
    subtitle: str | None = None
    theme: str = "default"
    bg_color: str = "#dc2626"
    text_color: str = "#ffffff"
    is_active: bool = True


@dataclass
class ActiveFlashSale:
    sale: FlashSale
    items: list[CatalogItem] = field(default_factory=list)
