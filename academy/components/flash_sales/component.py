"""
Flash sales - time-boxed percentage discounts on a set of catalog items.

At most one sale is active at a time: saving or toggling a sale into the
active state switches every other sale off.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from uuid import UUID

from academy.components.errors import reject_nulls
from academy.core.ports.time import ClockPort
from academy.domain.entities import FlashSale, as_utc

from .models import FLASH_SALE_ITEM_TYPES, ActiveFlashSale, FlashSaleError, FlashSaleInput
from .ports import CatalogLookupPort, FlashSaleRepoPort

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
_NOT_NULL = (
    "item_type",
    "reference_ids",
    "title",
    "discount_percent",
    "theme",
    "bg_color",
    "text_color",
    "start_date",
    "end_date",
    "is_active",
)


# --- Pure Functions ---


def validate_flash_sale(data: FlashSaleInput) -> list[FlashSaleError]:
    errors: list[FlashSaleError] = []
    if data.item_type not in FLASH_SALE_ITEM_TYPES:
        errors.append(
            FlashSaleError(
                "invalid_item_type",
                f"Item type must be one of {', '.join(FLASH_SALE_ITEM_TYPES)}",
                "item_type",
            )
        )
    if not data.title or not data.title.strip():
        errors.append(FlashSaleError("title_required", "Title is required", "title"))
    if not data.reference_ids:
        errors.append(
            FlashSaleError("items_required", "Select at least one item", "reference_ids")
        )
    if not 1 <= data.discount_percent <= 100:
        errors.append(
            FlashSaleError(
                "invalid_discount",
                "Discount percent must be between 1 and 100",
                "discount_percent",
            )
        )
    if as_utc(data.start_date) >= as_utc(data.end_date):
        errors.append(
            FlashSaleError("invalid_dates", "Start date must be before end date", "end_date")
        )
    for field_name in ("bg_color", "text_color"):
        if not HEX_COLOR.match(getattr(data, field_name) or ""):
            errors.append(
                FlashSaleError("invalid_color", "Colour must be a hex value", field_name)
            )
    return errors


def match_flash_sale(sales: list[FlashSale], item_type: str, item_id: str) -> FlashSale | None:
    """First running sale covering this item (``sales`` newest first)."""
    for sale in sales:
        if sale.item_type == item_type and item_id in sale.reference_ids:
            return sale
    return None


# --- Service ---


class FlashSaleService:
    def __init__(
        self, repo: FlashSaleRepoPort, catalog: CatalogLookupPort, clock: ClockPort
    ) -> None:
        self._repo = repo
        self._catalog = catalog
        self._clock = clock

    def _missing_items(self, item_type: str, ids: list[str]) -> list[FlashSaleError]:
        found = {str(i.id) for i in self._catalog.get_many(item_type, ids)}
        missing = [i for i in ids if i not in found]
        if missing:
            return [
                FlashSaleError(
                    "items_not_found",
                    f"Some {item_type.lower()} items were not found: {', '.join(missing)}",
                    "reference_ids",
                )
            ]
        return []

    def _persist(self, sale: FlashSale) -> FlashSale:
        saved = self._repo.save(sale)
        if saved.is_active:
            switched = self._repo.deactivate_all(except_id=saved.id)
            if switched:
                logger.info("Flash sale %s activated; %d other(s) deactivated", saved.id, switched)
        return saved

    def create(self, data: FlashSaleInput) -> tuple[FlashSale | None, list[FlashSaleError]]:
        ids = list(dict.fromkeys(str(i) for i in data.reference_ids))
        errors = validate_flash_sale(data)
        if errors:
            return None, errors
        errors = self._missing_items(data.item_type, ids)
        if errors:
            return None, errors

        now = self._clock.now_utc()
        sale = FlashSale(
            item_type=data.item_type,
            reference_ids=ids,
            title=data.title.strip(),
            subtitle=data.subtitle,
            discount_percent=data.discount_percent,
            theme=data.theme,
            bg_color=data.bg_color,
            text_color=data.text_color,
            start_date=as_utc(data.start_date),
            end_date=as_utc(data.end_date),
            is_active=data.is_active,
            created_at=now,
            updated_at=now,
        )
        return self._persist(sale), []

    def update(
        self, sale_id: UUID, updates: dict[str, Any]
    ) -> tuple[FlashSale | None, list[FlashSaleError]]:
        sale = self._repo.get_by_id(sale_id)
        if not sale:
            return None, [FlashSaleError("flash_sale_not_found", "Flash sale not found")]

        errors = reject_nulls(updates, _NOT_NULL)
        if errors:
            return None, errors
        merged = FlashSaleInput(
            item_type=updates.get("item_type", sale.item_type),
            reference_ids=[str(i) for i in updates.get("reference_ids", sale.reference_ids)],
            title=updates.get("title", sale.title),
            discount_percent=updates.get("discount_percent", sale.discount_percent),
            start_date=updates.get("start_date", sale.start_date),
            end_date=updates.get("end_date", sale.end_date),
            subtitle=updates.get("subtitle", sale.subtitle),
            theme=updates.get("theme", sale.theme),
            bg_color=updates.get("bg_color", sale.bg_color),
            text_color=updates.get("text_color", sale.text_color),
            is_active=updates.get("is_active", sale.is_active),
        )
        errors = validate_flash_sale(merged)
        if errors:
            return None, errors
        ids = list(dict.fromkeys(merged.reference_ids))
        if "reference_ids" in updates or "item_type" in updates:
            errors = self._missing_items(merged.item_type, ids)
            if errors:
                return None, errors

        updated = sale.model_copy(
            update={
                "item_type": merged.item_type,
                "reference_ids": ids,
                "title": merged.title.strip(),
                "subtitle": merged.subtitle,
                "discount_percent": merged.discount_percent,
                "theme": merged.theme,
                "bg_color": merged.bg_color,
                "text_color": merged.text_color,
                "start_date": as_utc(merged.start_date),
                "end_date": as_utc(merged.end_date),
                "is_active": merged.is_active,
                "updated_at": self._clock.now_utc(),
            }
        )
        return self._persist(updated), []

    def toggle(self, sale_id: UUID) -> tuple[FlashSale | None, list[FlashSaleError]]:
        sale = self._repo.get_by_id(sale_id)
        if not sale:
            return None, [FlashSaleError("flash_sale_not_found", "Flash sale not found")]
        sale.is_active = not sale.is_active
        sale.updated_at = self._clock.now_utc()
        return self._persist(sale), []

    def delete(self, sale_id: UUID) -> list[FlashSaleError]:
        if not self._repo.get_by_id(sale_id):
            return [FlashSaleError("flash_sale_not_found", "Flash sale not found")]
        self._repo.delete(sale_id)
        return []

    def get(self, sale_id: UUID) -> FlashSale | None:
        return self._repo.get_by_id(sale_id)

    def list_sales(
        self, item_type: str | None, is_active: bool | None, offset: int, limit: int
    ) -> tuple[list[FlashSale], int]:
        return self._repo.list_sales(item_type=item_type, is_active=is_active, offset=offset, limit=limit)

    def running(self) -> list[FlashSale]:
        return self._repo.list_running(self._clock.now_utc())

    def active(self) -> ActiveFlashSale | None:
        """The sale currently shown in the storefront banner, with its items."""
        sales = self.running()
        if not sales:
            return None
        sale = sales[0]
        return ActiveFlashSale(sale=sale, items=self._catalog.get_many(sale.item_type, sale.reference_ids))

    def for_item(self, item_type: str, item_id: str) -> FlashSale | None:
        return match_flash_sale(self.running(), item_type, item_id)
