import logging
from datetime import timedelta

from academy.components.checkout import same_items
from academy.components.coupons import CouponInput


def _cart(*items) -> dict[str, list[str]]:
    cart: dict[str, list[str]] = {}
    for item in items:
        cart.setdefault(item.item_type, []).append(str(item.id))
    return cart


def _coupon(services, code="SAVE10", **fields):
    now = services.clock.now_utc()
    coupon, errors = services.coupons.create(
        CouponInput(
            code=code,
            discount_type=fields.pop("discount_type", "PERCENTAGE"),
            discount_value=fields.pop("discount_value", 10),
            valid_from=now - timedelta(days=1),
            valid_until=now + timedelta(days=1),
            **fields,
        )
    )
    assert errors == []
    return coupon


def _pay(services, user, items, coupon_code=None):
    init, errors = services.checkout.init_payment(user, items, coupon_code)
    assert errors == [] and not init.is_free
    order_id = init.gateway_order.id
    payment_id = "pay_test_001"
    signature = services.gateway.sign(order_id, payment_id)
    return services.checkout.complete_payment(
        user, order_id, payment_id, signature, items, coupon_code
    )


def test_quote_prices_server_side(services, student, new_item):
    course = new_item(price=1000)
    ebook = new_item("EBOOK", "Chart Patterns", price=500, sale_price=400)
    freebie = new_item("WEBINAR", "Intro Call", price=0, is_free=True)

    quote, errors = services.checkout.quote(student, _cart(course, ebook, freebie))
    assert errors == []
    assert quote.total_amount == 1400.0
    assert quote.final_amount == 1400.0
    statuses = {line.item_id: line.status for line in quote.lines}
    assert statuses[str(freebie.id)] == "FREE"
    assert statuses[str(course.id)] == "PAYABLE"


def test_quote_skips_unknown_and_unpublished(services, student, new_item):
    course = new_item()
    draft = new_item(title="Draft", is_published=False)

    quote, _ = services.checkout.quote(
        student, {"COURSE": [str(course.id), str(draft.id), "missing"]}
    )
    assert [line.item_id for line in quote.lines] == [str(course.id)]
    assert set(quote.skipped) == {str(draft.id), "missing"}

    _, errors = services.checkout.quote(student, {"COURSE": ["missing"]})
    assert [e.code for e in errors] == ["no_valid_items"]
    _, errors = services.checkout.quote(student, {})
    assert [e.code for e in errors] == ["items_required"]


def test_coupon_must_match_purchased_types(services, student, new_item):
    course = new_item(price=1000)
    _coupon(services, "EBOOKS20", discount_value=20, applicable_to="EBOOK")
    _coupon(services, "COURSE10", applicable_to="COURSE")

    _, errors = services.checkout.quote(student, _cart(course), "ebooks20")
    assert [e.code for e in errors] == ["coupon_not_applicable"]

    quote, errors = services.checkout.quote(student, _cart(course), "course10")
    assert errors == []
    assert quote.discount_amount == 100.0
    assert quote.final_amount == 900.0
    assert quote.coupon_code == "COURSE10"


def test_paid_checkout_round_trip(services, student, new_item):
    course = new_item(price=1499.5)
    services.cart.add(student, "COURSE", str(course.id))

    init, _ = services.checkout.init_payment(student, _cart(course))
    assert init.gateway_order.amount == 149950
    assert init.gateway_order.currency == "INR"

    order, errors = services.checkout.complete_payment(
        student,
        init.gateway_order.id,
        "pay_1",
        services.gateway.sign(init.gateway_order.id, "pay_1"),
        _cart(course),
    )
    assert errors == []
    assert order.status == "COMPLETED"
    assert order.payment_status == "PAID"
    assert order.order_number.startswith("ORD-")
    assert services.checkout.check_enrollment(student, "COURSE", str(course.id))
    assert services.cart.get(student)["COURSE"] == []
    assert services.email.get_emails_to(student.email)


def test_bad_signature_records_nothing(services, student, new_item):
    course = new_item()
    init, _ = services.checkout.init_payment(student, _cart(course))

    order, errors = services.checkout.complete_payment(
        student, init.gateway_order.id, "pay_1", "forged", _cart(course)
    )
    assert order is None
    assert [e.code for e in errors] == ["invalid_signature"]
    assert services.checkout.my_orders(student) == []


def test_verification_is_idempotent(services, student, new_item):
    course = new_item()
    coupon = _coupon(services, "ONCE", usage_limit=5)
    items = _cart(course)
    init, _ = services.checkout.init_payment(student, items, "ONCE")
    signature = services.gateway.sign(init.gateway_order.id, "pay_1")

    first, _ = services.checkout.complete_payment(
        student, init.gateway_order.id, "pay_1", signature, items, "ONCE"
    )
    again, errors = services.checkout.complete_payment(
        student, init.gateway_order.id, "pay_1", signature, items, "ONCE"
    )

    assert errors == []
    assert again.id == first.id
    assert len(services.checkout.my_orders(student)) == 1
    assert services.coupons.get(coupon.id).used_count == 1


def test_owned_items_are_free_in_later_quotes(services, student, new_item):
    course = new_item(price=1000)
    ebook = new_item("EBOOK", "Risk Book", price=300)
    _pay(services, student, _cart(course))

    quote, _ = services.checkout.quote(student, _cart(course, ebook))
    owned = next(line for line in quote.lines if line.item_id == str(course.id))
    assert owned.status == "OWNED" and owned.price == 0.0
    assert quote.final_amount == 300.0

    _, errors = services.checkout.complete_free(student, _cart(course))
    assert [e.code for e in errors] == ["already_owned"]


def test_complete_free_for_free_items_or_full_discount(services, student, new_item):
    freebie = new_item("WEBINAR", "Open House", price=0, is_free=True)
    course = new_item(price=500)
    _coupon(services, "FULL", discount_type="FIXED", discount_value=500)

    _, errors = services.checkout.complete_free(student, _cart(course))
    assert [e.code for e in errors] == ["payment_required"]

    init, _ = services.checkout.init_payment(student, _cart(freebie))
    assert init.is_free

    order, errors = services.checkout.complete_free(student, _cart(freebie))
    assert errors == [] and order.payment_status == "FREE"

    order, errors = services.checkout.complete_free(student, _cart(course), "FULL")
    assert errors == []
    assert order.final_amount == 0.0 and order.discount_amount == 500.0


def test_orders_are_private(services, student, new_user, new_item):
    other = new_user("other@example.com")
    admin = new_user("boss@example.com", admin=True)
    order, _ = _pay(services, student, _cart(new_item()))

    assert services.checkout.get_order(student, order.id).id == order.id
    assert services.checkout.get_order(other, order.id) is None
    assert services.checkout.get_order(admin, order.id) is not None


def test_enrollments_include_catalog_item(services, student, new_item):
    course = new_item()
    _pay(services, student, _cart(course))

    enrolled = services.checkout.my_enrollments(student)
    assert len(enrolled) == 1
    assert enrolled[0].item.title == course.title
    assert services.checkout.my_enrollments(student, "EBOOK") == []



def test_same_items_ignores_order_and_empty_types():
    assert same_items({"COURSE": ["a", "b"], "EBOOK": []}, {"COURSE": ["b", "a"]})
    assert not same_items({"COURSE": ["a"]}, {"COURSE": ["a"], "EBOOK": ["x"]})


def test_completion_needs_a_started_payment(services, student, new_user, new_item):
    course = new_item()
    signature = services.gateway.sign("order_never_started", "pay_1")

    _, errors = services.checkout.complete_payment(
        student, "order_never_started", "pay_1", signature, _cart(course)
    )
    assert [e.code for e in errors] == ["payment_not_found"]

    init, _ = services.checkout.init_payment(student, _cart(course))
    other = new_user("other@example.com")
    gateway_id = init.gateway_order.id
    _, errors = services.checkout.complete_payment(
        other, gateway_id, "pay_1", services.gateway.sign(gateway_id, "pay_1"), _cart(course)
    )
    assert [e.code for e in errors] == ["payment_not_found"]
    assert services.checkout.my_orders(other) == []


def test_completion_must_match_what_was_started(services, student, new_item):
    course = new_item(price=1000)
    ebook = new_item("EBOOK", "Options Primer", price=200)
    _coupon(services, "SAVE10")
    init, _ = services.checkout.init_payment(student, _cart(course))
    gateway_id = init.gateway_order.id
    signature = services.gateway.sign(gateway_id, "pay_1")

    _, errors = services.checkout.complete_payment(
        student, gateway_id, "pay_1", signature, _cart(course, ebook)
    )
    assert [e.code for e in errors] == ["items_mismatch"]

    _, errors = services.checkout.complete_payment(
        student, gateway_id, "pay_1", signature, _cart(course), "SAVE10"
    )
    assert [e.code for e in errors] == ["coupon_mismatch"]

    order, errors = services.checkout.complete_payment(student, gateway_id, "pay_1", signature, None)
    assert errors == []
    assert [item.item_id for item in order.items] == [str(course.id)]
    assert order.final_amount == 1000.0


def test_completion_refuses_a_repriced_purchase(services, student, new_item, caplog):
    course = new_item(price=1000)
    init, _ = services.checkout.init_payment(student, _cart(course))
    assert init.gateway_order.amount == 100000
    _, errors = services.catalog.update(course.id, {"price": 1500})
    assert errors == []

    gateway_id = init.gateway_order.id
    with caplog.at_level(logging.WARNING, logger="academy.components.checkout.component"):
        order, errors = services.checkout.complete_payment(
            student, gateway_id, "pay_1", services.gateway.sign(gateway_id, "pay_1"), _cart(course)
        )
    assert order is None
    assert [e.code for e in errors] == ["amount_mismatch"]
    assert "charged 100000 paise" in caplog.text
    assert services.checkout.my_orders(student) == []
    assert not services.checkout.check_enrollment(student, "COURSE", str(course.id))
