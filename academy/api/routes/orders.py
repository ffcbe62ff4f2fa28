from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_checkout_service, get_current_user, get_page
from academy.api.envelope import not_found, ok, paged, raise_for_errors
from academy.api.schemas import CheckoutRequest, PaymentVerifyRequest
from academy.components.catalog import parse_item_type
from academy.components.checkout import CheckoutService, EnrolledItem
from academy.domain.entities import Order, User
from academy.domain.pagination import Page

router = APIRouter()


def order_out(order: Order) -> dict:
    return order.model_dump(mode="json", exclude={"signature"})


def enrolled_out(entry: EnrolledItem) -> dict:
    data = entry.enrollment.model_dump(mode="json")
    data["item"] = entry.item.model_dump(mode="json") if entry.item else None
    return data


@router.post("/quote")
def quote(
    req: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    """Price the selected items, with flash sales and an optional coupon."""
    result, errors = service.quote(current_user, req.items, req.coupon_code)
    raise_for_errors(errors)
    assert result is not None
    return ok(result.as_dict())


@router.post("/init-payment")
def init_payment(
    req: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    init, errors = service.init_payment(current_user, req.items, req.coupon_code)
    raise_for_errors(errors)
    assert init is not None
    message = "No payment required" if init.is_free else "Payment initiated"
    return ok(init.as_dict(), message)


@router.post("/verify-payment")
def verify_payment(
    req: PaymentVerifyRequest,
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    """Check the gateway signature, then record the order and enrollments."""
    order, errors = service.complete_payment(
        current_user,
        req.razorpay_order_id,
        req.razorpay_payment_id,
        req.razorpay_signature,
        req.items,
        req.coupon_code,
    )
    raise_for_errors(errors)
    assert order is not None
    return ok(order_out(order), "Payment verified", status.HTTP_201_CREATED)


@router.post("/complete-free")
def complete_free(
    req: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    order, errors = service.complete_free(current_user, req.items, req.coupon_code)
    raise_for_errors(errors)
    assert order is not None
    return ok(order_out(order), "Enrollment successful", status.HTTP_201_CREATED)


@router.get("/my-orders")
def my_orders(
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    return ok([order_out(o) for o in service.my_orders(current_user)])


@router.get("/my-enrollments")
def my_enrollments(
    item_type: str | None = None,
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    resolved = parse_item_type(item_type) if item_type else None
    return ok([enrolled_out(e) for e in service.my_enrollments(current_user, resolved)])


@router.get("/check-enrollment/{item_type}/{item_id}")
def check_enrollment(
    item_type: str,
    item_id: str,
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    resolved = parse_item_type(item_type) or item_type.upper()
    return ok({"is_enrolled": service.check_enrollment(current_user, resolved, item_id)})


# --- Admin ---


@router.get("/admin/all")
def admin_list_orders(
    status_filter: str | None = Query(None, alias="status"),
    search: str | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    orders, total = service.list_orders(
        status_filter.upper() if status_filter else None, search, page.offset, page.limit
    )
    return paged([order_out(o) for o in orders], total, page)


@router.get("/{order_id}")
def get_order(
    order_id: UUID,
    current_user: User = Depends(get_current_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> JSONResponse:
    order = service.get_order(current_user, order_id)
    if not order:
        raise not_found("Order not found")
    return ok(order_out(order))
