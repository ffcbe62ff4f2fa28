from datetime import UTC, datetime, timedelta

import pytest

from academy.components.coupons import CouponInput, check_coupon, validate_coupon_fields, visible_to
from academy.domain.entities import Coupon, User

NOW = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)


def _coupon(**fields) -> Coupon:
    base = {
        "code": "WELCOME10",
        "discount_type": "PERCENTAGE",
        "discount_value": 10,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=30),
    }
    base.update(fields)
    return Coupon(**base)


def _input(**fields) -> CouponInput:
    base = {
        "code": "welcome10",
        "discount_type": "PERCENTAGE",
        "discount_value": 10,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=30),
    }
    base.update(fields)
    return CouponInput(**base)


def _codes(errors) -> list[str]:
    return [e.code for e in errors]


# --- Pure rules ---


def test_valid_coupon_passes():
    assert check_coupon(_coupon(), 1000.0, NOW) == []


@pytest.mark.parametrize(
    "coupon",
    [
        None,
        _coupon(is_active=False),
        _coupon(valid_from=NOW + timedelta(days=1)),
        _coupon(valid_until=NOW - timedelta(seconds=1)),
    ],
)
def test_missing_inactive_or_out_of_window_is_invalid(coupon):
    assert _codes(check_coupon(coupon, 1000.0, NOW)) == ["invalid_coupon"]


def test_coupon_for_other_item_type_is_not_applicable():
    coupon = _coupon(applicable_to="EBOOK")
    assert _codes(check_coupon(coupon, 1000.0, NOW, ["COURSE"])) == ["coupon_not_applicable"]
    assert check_coupon(coupon, 1000.0, NOW, ["COURSE", "EBOOK"]) == []


def test_usage_limit_and_minimum_amount():
    assert _codes(check_coupon(_coupon(usage_limit=2, used_count=2), 1000.0, NOW)) == [
        "usage_limit_exceeded"
    ]
    errors = check_coupon(_coupon(min_amount=1500), 1000.0, NOW)
    assert _codes(errors) == ["min_amount_not_met"]
    assert "1500" in errors[0].message


def test_field_validation():
    assert validate_coupon_fields(_input()) == []
    assert "code_invalid" in _codes(validate_coupon_fields(_input(code="a b")))
    assert "invalid_discount_value" in _codes(validate_coupon_fields(_input(discount_value=120)))
    assert "invalid_discount_value" in _codes(validate_coupon_fields(_input(discount_value=0)))
    assert "invalid_dates" in _codes(
        validate_coupon_fields(_input(valid_until=NOW - timedelta(days=2)))
    )
    assert "target_users_required" in _codes(
        validate_coupon_fields(_input(target_user_type="SPECIFIC_USER"))
    )


def test_visibility_by_target_audience():
    user = User(name="A", email="a@example.com", password_hash="x")
    assert visible_to(_coupon(), None, False)
    assert not visible_to(_coupon(target_user_type="NEW_USER"), None, True)
    assert visible_to(_coupon(target_user_type="NEW_USER"), user, True)
    assert not visible_to(_coupon(target_user_type="NEW_USER"), user, False)
    specific = _coupon(target_user_type="SPECIFIC_USER", target_user_ids=[str(user.id)])
    assert visible_to(specific, user, False)


# --- Service ---


def test_create_normalises_code_and_rejects_duplicates(services):
    coupon, errors = services.coupons.create(_input())
    assert errors == []
    assert coupon.code == "WELCOME10"

    _, errors = services.coupons.create(_input(code="Welcome10"))
    assert _codes(errors) == ["code_taken"]


def test_apply_is_case_insensitive_and_does_not_consume(services):
    services.coupons.create(_input(usage_limit=1))

    applied, errors = services.coupons.apply("  welcome10 ", 2000.0, ["COURSE"])
    assert errors == []
    assert applied.discount.discount_amount == 200.0
    assert applied.as_dict()["final_amount"] == 1800.0

    # validation alone never counts as a use
    _, errors = services.coupons.apply("WELCOME10", 2000.0)
    assert errors == []


def test_record_usage_enforces_limit(services):
    services.coupons.create(_input(usage_limit=1))
    services.coupons.record_usage("welcome10")

    _, errors = services.coupons.apply("WELCOME10", 2000.0)
    assert _codes(errors) == ["usage_limit_exceeded"]


def test_apply_requires_a_code(services):
    _, errors = services.coupons.apply("", 100.0)
    assert _codes(errors) == ["coupon_required"]


def test_ready_to_show_filters_audience(services, student):
    services.coupons.create(_input(code="SHOWN", ready_to_show=True))
    services.coupons.create(_input(code="HIDDEN"))
    services.coupons.create(_input(code="NEWBIE", ready_to_show=True, target_user_type="NEW_USER"))

    anonymous = [c.code for c in services.coupons.ready_to_show(None)]
    assert anonymous == ["SHOWN"]

    for_student = {c.code for c in services.coupons.ready_to_show(student)}
    assert for_student == {"SHOWN", "NEWBIE"}


def test_update_revalidates_and_keeps_unique_code(services):
    first, _ = services.coupons.create(_input(code="FIRST"))
    services.coupons.create(_input(code="SECOND"))

    _, errors = services.coupons.update(first.id, {"code": "second"})
    assert _codes(errors) == ["code_taken"]

    _, errors = services.coupons.update(first.id, {"discount_value": 150})
    assert _codes(errors) == ["invalid_discount_value"]

    updated, errors = services.coupons.update(first.id, {"title": "Spring"})
    assert errors == []
    assert updated.title == "Spring"


def test_delete_unknown_coupon(services):
    first, _ = services.coupons.create(_input())
    assert services.coupons.delete(first.id) == []
    assert _codes(services.coupons.delete(first.id)) == ["coupon_not_found"]
