from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from academy.api.deps import (
    get_admin_user,
    get_current_user,
    get_page,
    get_subscription_service,
)
from academy.api.envelope import ok, paged, raise_for_errors
from academy.api.schemas import (
    StatusRequest,
    SubscriptionCreateRequest,
    SubscriptionVerifyRequest,
    TradingViewUpdateRequest,
)
from academy.components.subscriptions import SubscriptionService
from academy.domain.entities import Subscription, User
from academy.domain.pagination import Page

router = APIRouter()


def subscription_out(sub: Subscription) -> dict:
    return sub.model_dump(mode="json", exclude={"signature"})


@router.post("")
def create_subscription(
    req: SubscriptionCreateRequest,
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    """Start a subscription; free ones (after coupon) activate immediately."""
    checkout, errors = service.create(
        current_user, req.plan_id, req.trading_view_username, req.coupon_code
    )
    raise_for_errors(errors)
    assert checkout is not None
    data = checkout.as_dict()
    data["subscription"] = subscription_out(checkout.subscription)
    if checkout.gateway_order is None:
        return ok(data, "Subscription activated", status.HTTP_201_CREATED)
    return ok(data, "Payment initiated", status.HTTP_201_CREATED)


@router.post("/verify-payment")
def verify_payment(
    req: SubscriptionVerifyRequest,
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    sub, errors = service.verify_payment(
        current_user, req.razorpay_order_id, req.razorpay_payment_id, req.razorpay_signature
    )
    raise_for_errors(errors)
    assert sub is not None
    return ok(subscription_out(sub), "Subscription activated")


@router.get("/active")
def active_subscription(
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    sub = service.active(current_user)
    if not sub:
        return ok(None, "No active subscription")
    return ok(subscription_out(sub))


@router.get("/mine")
def my_subscriptions(
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    return ok([subscription_out(s) for s in service.mine(current_user)])


@router.patch("/{sub_id}/cancel")
def cancel_subscription(
    sub_id: UUID,
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    sub, errors = service.cancel(current_user, sub_id)
    raise_for_errors(errors)
    assert sub is not None
    return ok(subscription_out(sub), "Subscription cancelled")


@router.patch("/{sub_id}/trading-view")
def update_trading_view_username(
    sub_id: UUID,
    req: TradingViewUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    sub, errors = service.update_trading_view_username(
        current_user, sub_id, req.trading_view_username
    )
    raise_for_errors(errors)
    assert sub is not None
    return ok(subscription_out(sub), "TradingView username updated")


# --- Admin ---


@router.get("/admin/all")
def admin_list_subscriptions(
    status_filter: str | None = Query(None, alias="status"),
    search: str | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    subs, total = service.list_subscriptions(
        status_filter.upper() if status_filter else None, search, page.offset, page.limit
    )
    return paged([subscription_out(s) for s in subs], total, page)


@router.patch("/admin/{sub_id}/status")
def admin_set_status(
    sub_id: UUID,
    req: StatusRequest,
    _admin: User = Depends(get_admin_user),
    service: SubscriptionService = Depends(get_subscription_service),
) -> JSONResponse:
    sub, errors = service.set_status(sub_id, req.status.strip().upper())
    raise_for_errors(errors)
    assert sub is not None
    return ok(subscription_out(sub), "Subscription status updated")
