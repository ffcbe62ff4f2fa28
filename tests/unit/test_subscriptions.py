from datetime import UTC, datetime, timedelta

import pytest

from academy.components.coupons import CouponInput
from academy.components.subscriptions import PlanInput, add_months, end_date, plan_price
from academy.domain.entities import SubscriptionPlan


@pytest.mark.parametrize(
    "start,months,expected",
    [
        (datetime(2025, 1, 15, tzinfo=UTC), 1, datetime(2025, 2, 15, tzinfo=UTC)),
        (datetime(2025, 1, 31, tzinfo=UTC), 1, datetime(2025, 2, 28, tzinfo=UTC)),
        (datetime(2024, 1, 31, tzinfo=UTC), 1, datetime(2024, 2, 29, tzinfo=UTC)),
        (datetime(2025, 11, 30, tzinfo=UTC), 3, datetime(2026, 2, 28, tzinfo=UTC)),
        (datetime(2025, 8, 31, tzinfo=UTC), 6, datetime(2026, 2, 28, tzinfo=UTC)),
        (datetime(2025, 3, 10, tzinfo=UTC), 12, datetime(2026, 3, 10, tzinfo=UTC)),
    ],
)
def test_add_months_clamps_to_month_end(start, months, expected):
    assert add_months(start, months) == expected


def test_lifetime_plans_never_end():
    start = datetime(2025, 1, 15, tzinfo=UTC)
    assert end_date("LIFETIME", start) is None
    assert end_date("QUARTER", start) == datetime(2025, 4, 15, tzinfo=UTC)


def test_plan_price_prefers_positive_sale_price():
    plan = SubscriptionPlan(name="Pro", plan_type="ONE_MONTH", price=999, sale_price=799)
    assert plan_price(plan) == 799
    assert plan_price(plan.model_copy(update={"sale_price": 0})) == 999


@pytest.fixture
def plan(services):
    plan, errors = services.subscriptions.create_plan(
        PlanInput(name="Quarterly Pro", plan_type="QUARTER", price=2999, sale_price=2499)
    )
    assert errors == []
    return plan


def _pay(services, user, checkout):
    order_id = checkout.gateway_order.id
    return services.subscriptions.verify_payment(
        user, order_id, "pay_sub_1", services.gateway.sign(order_id, "pay_sub_1")
    )


def test_plan_validation_and_listing(services, plan):
    _, errors = services.subscriptions.create_plan(PlanInput(name="", plan_type="WEEKLY", price=-1))
    assert {e.code for e in errors} == {"name_required", "invalid_plan_type", "invalid_price"}

    cheap, _ = services.subscriptions.create_plan(PlanInput(name="Monthly", plan_type="ONE_MONTH", price=999))
    services.subscriptions.update_plan(cheap.id, {"is_active": False})

    assert [p.name for p in services.subscriptions.list_plans()] == ["Quarterly Pro"]
    assert len(services.subscriptions.list_plans(active_only=False)) == 2


def test_paid_subscription_activates_after_verification(services, student, plan):
    checkout, errors = services.subscriptions.create(student, plan.id, " tv_trader ")
    assert errors == []
    assert checkout.subscription.status == "PENDING"
    assert checkout.subscription.trading_view_username == "tv_trader"
    assert checkout.gateway_order.amount == 249900
    assert services.subscriptions.active(student) is None

    sub, errors = _pay(services, student, checkout)
    assert errors == []
    assert sub.status == "ACTIVE"
    assert sub.end_date == datetime(2025, 4, 15, 10, 0, tzinfo=UTC)
    assert services.subscriptions.active(student).id == sub.id

    orders = services.checkout.my_orders(student)
    assert [(o.order_type, o.payment_status) for o in orders] == [("SUBSCRIPTION", "PAID")]


def test_verification_is_idempotent_and_signature_checked(services, student, plan):
    checkout, _ = services.subscriptions.create(student, plan.id, "tv")
    order_id = checkout.gateway_order.id

    _, errors = services.subscriptions.verify_payment(student, order_id, "pay_1", "bad")
    assert [e.code for e in errors] == ["invalid_signature"]

    first, _ = _pay(services, student, checkout)
    again, errors = _pay(services, student, checkout)
    assert errors == [] and again.id == first.id
    assert len(services.checkout.my_orders(student)) == 1


def test_full_discount_activates_immediately(services, student, plan):
    now = services.clock.now_utc()
    services.coupons.create(
        CouponInput(
            code="TVFREE",
            discount_type="PERCENTAGE",
            discount_value=100,
            valid_from=now - timedelta(days=1),
            valid_until=now + timedelta(days=1),
            applicable_to="SUBSCRIPTION",
        )
    )

    checkout, errors = services.subscriptions.create(student, plan.id, "tv", "tvfree")
    assert errors == []
    assert checkout.gateway_order is None
    assert checkout.subscription.status == "ACTIVE"
    assert checkout.subscription.final_amount == 0.0
    assert services.checkout.my_orders(student)[0].payment_status == "FREE"


def test_course_coupon_does_not_apply_to_subscriptions(services, student, plan):
    now = services.clock.now_utc()
    services.coupons.create(
        CouponInput(
            code="COURSEONLY",
            discount_type="FIXED",
            discount_value=100,
            valid_from=now - timedelta(days=1),
            valid_until=now + timedelta(days=1),
            applicable_to="COURSE",
        )
    )
    _, errors = services.subscriptions.create(student, plan.id, "tv", "COURSEONLY")
    assert [e.code for e in errors] == ["coupon_not_applicable"]


def test_one_current_subscription_per_user(services, student, plan):
    checkout, _ = services.subscriptions.create(student, plan.id, "tv")
    _pay(services, student, checkout)

    _, errors = services.subscriptions.create(student, plan.id, "tv")
    assert [e.code for e in errors] == ["active_subscription_exists"]
    _, errors = services.subscriptions.create(student, plan.id, "  ")
    assert [e.code for e in errors] == ["trading_view_username_required"]


def test_inactive_plan_cannot_be_bought(services, student, plan):
    services.subscriptions.update_plan(plan.id, {"is_active": False})
    _, errors = services.subscriptions.create(student, plan.id, "tv")
    assert [e.code for e in errors] == ["plan_not_found"]


def test_cancel_and_rename(services, student, new_user, plan):
    checkout, _ = services.subscriptions.create(student, plan.id, "tv")
    sub, _ = _pay(services, student, checkout)
    other = new_user("other@example.com")

    _, errors = services.subscriptions.cancel(other, sub.id)
    assert [e.code for e in errors] == ["subscription_not_found"]

    renamed, errors = services.subscriptions.update_trading_view_username(student, sub.id, "new_tv")
    assert errors == [] and renamed.trading_view_username == "new_tv"

    cancelled, errors = services.subscriptions.cancel(student, sub.id)
    assert errors == [] and cancelled.status == "CANCELLED"
    _, errors = services.subscriptions.cancel(student, sub.id)
    assert [e.code for e in errors] == ["subscription_not_active"]
    assert services.subscriptions.active(student) is None


def test_expire_due(services, student, plan):
    checkout, _ = services.subscriptions.create(student, plan.id, "tv")
    _pay(services, student, checkout)

    assert services.subscriptions.expire_due() == 0
    services.clock.advance(days=120)
    assert services.subscriptions.expire_due() == 1
    assert services.subscriptions.mine(student)[0].status == "EXPIRED"


def test_admin_status_override(services, student, plan):
    checkout, _ = services.subscriptions.create(student, plan.id, "tv")
    sub_id = checkout.subscription.id

    _, errors = services.subscriptions.set_status(sub_id, "PAUSED")
    assert [e.code for e in errors] == ["invalid_status"]
    updated, errors = services.subscriptions.set_status(sub_id, "CANCELLED")
    assert errors == [] and updated.status == "CANCELLED"

    _, errors = _pay(services, student, checkout)
    assert [e.code for e in errors] == ["subscription_not_pending"]
