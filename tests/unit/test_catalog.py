from datetime import timedelta

import pytest

from academy.components.catalog import CatalogItemInput, CatalogQuery, parse_item_type
from academy.components.flash_sales import FlashSaleInput
from academy.components.jobs import JobInput


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("course", "COURSE"),
        ("COURSES", "COURSE"),
        ("offline-batches", "OFFLINE_BATCH"),
        ("Offline_Batch", "OFFLINE_BATCH"),
        ("ebooks", "EBOOK"),
        ("podcast", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_item_type(raw, expected):
    assert parse_item_type(raw) == expected


def test_create_generates_slug_and_prices(services):
    priced, errors = services.catalog.create(
        CatalogItemInput(item_type="courses", title="Swing Trading 101", price=2000, sale_price=1500)
    )
    assert errors == []
    assert priced.item.item_type == "COURSE"
    assert priced.item.slug == "swing-trading-101"
    assert priced.pricing.effective_price == 1500
    assert priced.pricing.discount_percent == 25


def test_create_validates_fields(services):
    _, errors = services.catalog.create(CatalogItemInput(item_type="COURSE", title="  ", price=-1))
    assert {e.code for e in errors} == {"title_required", "invalid_price"}

    _, errors = services.catalog.create(CatalogItemInput(item_type="PODCAST", title="X"))
    assert [e.code for e in errors] == ["invalid_item_type"]


def test_slug_unique_per_type(services, new_item):
    new_item("COURSE", "Options Basics")
    _, errors = services.catalog.create(CatalogItemInput(item_type="COURSE", title="Options basics"))
    assert [e.code for e in errors] == ["slug_taken"]

    # same slug is fine for another item type
    new_item("EBOOK", "Options Basics")


def test_unpublished_items_are_hidden_from_public(services, new_item):
    draft = new_item(title="Draft Course", is_published=False)

    assert services.catalog.get_by_slug("COURSE", "draft-course") is None
    assert services.catalog.get_by_id(draft.id) is None
    assert services.catalog.get_by_id(draft.id, public=False).item.id == draft.id

    items, total = services.catalog.list_items("COURSE", CatalogQuery(), 0, 10)
    assert total == 0 and items == []
    items, total = services.catalog.list_items("COURSE", CatalogQuery(), 0, 10, public=False)
    assert total == 1


def test_list_filters_and_sorts(services, new_item):
    new_item(title="Cheap", price=100, category="stocks")
    new_item(title="Pricey", price=900, category="stocks")
    new_item(title="Free One", price=0, is_free=True, category="crypto")

    items, total = services.catalog.list_items(
        "COURSE", CatalogQuery(category="stocks", sort="price_desc"), 0, 10
    )
    assert total == 2
    assert [p.item.title for p in items] == ["Pricey", "Cheap"]

    items, _ = services.catalog.list_items("COURSE", CatalogQuery(is_free=True), 0, 10)
    assert [p.item.title for p in items] == ["Free One"]

    items, _ = services.catalog.list_items("COURSE", CatalogQuery(search="pric"), 0, 10)
    assert [p.item.title for p in items] == ["Pricey"]


def test_update_slug_conflict_and_toggle(services, new_item):
    first = new_item(title="First")
    new_item(title="Second")

    _, errors = services.catalog.update(first.id, {"slug": "Second"})
    assert [e.code for e in errors] == ["slug_taken"]

    priced, errors = services.catalog.update(first.id, {"title": " Renamed ", "price": 50})
    assert errors == []
    assert priced.item.title == "Renamed"
    assert priced.item.slug == "first"

    priced, _ = services.catalog.toggle_publish(first.id)
    assert not priced.item.is_published


def test_flash_sale_reprices_covered_items(services, new_item):
    covered = new_item(title="Covered", price=1000)
    other = new_item(title="Other", price=1000)
    now = services.clock.now_utc()
    services.flash_sales.create(
        FlashSaleInput(
            item_type="COURSE",
            reference_ids=[str(covered.id)],
            title="Diwali",
            discount_percent=30,
            start_date=now - timedelta(hours=1),
            end_date=now + timedelta(days=2),
        )
    )

    assert services.catalog.get_by_id(covered.id).pricing.effective_price == 700
    assert services.catalog.get_by_id(other.id).pricing.effective_price == 1000


def test_search_spans_types_and_jobs(services, admin, new_item):
    new_item("COURSE", "Candlestick Patterns")
    new_item("EBOOK", "Candlestick Handbook")
    new_item("WEBINAR", "Candlestick Live", is_published=False)

    services.jobs.create(admin, JobInput(title="Candlestick Analyst", description="Analyse charts"))

    results = services.catalog.search("candlestick", 5)
    assert set(results.items) == {"COURSE", "EBOOK"}
    assert [j.title for j in results.jobs] == ["Candlestick Analyst"]
    assert results.total == 3

    assert services.catalog.search("   ", 5).total == 0
