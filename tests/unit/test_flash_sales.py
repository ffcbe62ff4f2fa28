from datetime import UTC, datetime, timedelta

from academy.components.flash_sales import FlashSaleInput, validate_flash_sale

NOW = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)


def _input(reference_ids: list[str], **fields) -> FlashSaleInput:
    base = {
        "item_type": "COURSE",
        "reference_ids": reference_ids,
        "title": "Weekend Sale",
        "discount_percent": 20,
        "start_date": NOW - timedelta(hours=1),
        "end_date": NOW + timedelta(days=1),
    }
    base.update(fields)
    return FlashSaleInput(**base)


def _codes(errors) -> set[str]:
    return {e.code for e in errors}


def test_validation_rules():
    assert validate_flash_sale(_input(["x"])) == []
    assert _codes(validate_flash_sale(_input(["x"], item_type="MENTORSHIP"))) == {"invalid_item_type"}
    assert _codes(validate_flash_sale(_input([], title=" "))) == {"items_required", "title_required"}
    assert _codes(validate_flash_sale(_input(["x"], discount_percent=0))) == {"invalid_discount"}
    assert _codes(validate_flash_sale(_input(["x"], discount_percent=101))) == {"invalid_discount"}
    assert _codes(validate_flash_sale(_input(["x"], end_date=NOW - timedelta(days=1)))) == {
        "invalid_dates"
    }
    assert _codes(validate_flash_sale(_input(["x"], bg_color="red"))) == {"invalid_color"}


def test_create_checks_items_exist(services, new_item):
    course = new_item()
    _, errors = services.flash_sales.create(_input([str(course.id), "missing-id"]))
    assert _codes(errors) == {"items_not_found"}

    sale, errors = services.flash_sales.create(_input([str(course.id), str(course.id)]))
    assert errors == []
    assert sale.reference_ids == [str(course.id)]


def test_only_one_sale_is_active(services, new_item):
    course = new_item()
    first, _ = services.flash_sales.create(_input([str(course.id)], title="First"))
    second, _ = services.flash_sales.create(_input([str(course.id)], title="Second"))

    assert not services.flash_sales.get(first.id).is_active
    assert services.flash_sales.get(second.id).is_active

    toggled, _ = services.flash_sales.toggle(first.id)
    assert toggled.is_active
    assert not services.flash_sales.get(second.id).is_active


def test_active_sale_carries_its_items(services, new_item):
    course = new_item()
    assert services.flash_sales.active() is None

    services.flash_sales.create(_input([str(course.id)]))
    active = services.flash_sales.active()
    assert active.sale.title == "Weekend Sale"
    assert [i.id for i in active.items] == [course.id]
    assert services.flash_sales.for_item("COURSE", str(course.id)) is not None


def test_sale_stops_applying_after_end_date(services, new_item):
    course = new_item()
    services.flash_sales.create(_input([str(course.id)]))

    services.clock.advance(days=2)
    assert services.flash_sales.active() is None
    assert services.flash_sales.for_item("COURSE", str(course.id)) is None


def test_update_and_delete(services, new_item):
    course = new_item()
    sale, _ = services.flash_sales.create(_input([str(course.id)]))

    updated, errors = services.flash_sales.update(sale.id, {"discount_percent": 40})
    assert errors == []
    assert updated.discount_percent == 40

    _, errors = services.flash_sales.update(sale.id, {"reference_ids": ["ghost"]})
    assert _codes(errors) == {"items_not_found"}

    assert services.flash_sales.delete(sale.id) == []
    assert _codes(services.flash_sales.delete(sale.id)) == {"flash_sale_not_found"}
