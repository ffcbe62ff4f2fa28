from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_coupon_service, get_optional_user, get_page
from academy.api.envelope import not_found, ok, paged, raise_for_errors
from academy.api.schemas import (
    CouponCreateRequest,
    CouponUpdateRequest,
    CouponValidateRequest,
    set_fields,
)
from academy.components.coupons import CouponInput, CouponService
from academy.domain.entities import Coupon, User
from academy.domain.pagination import Page

router = APIRouter()


def coupon_out(coupon: Coupon) -> dict:
    return coupon.model_dump(mode="json")


def public_coupon_out(coupon: Coupon) -> dict:
    return coupon.model_dump(
        mode="json",
        include={
            "code",
            "title",
            "description",
            "discount_type",
            "discount_value",
            "min_amount",
            "max_discount",
            "valid_until",
            "applicable_to",
        },
    )


@router.post("/validate")
def validate_coupon(
    req: CouponValidateRequest,
    service: CouponService = Depends(get_coupon_service),
) -> JSONResponse:
    applicable = [req.applicable_to.upper()] if req.applicable_to else None
    applied, errors = service.apply(req.code, req.total_amount, applicable)
    raise_for_errors(errors)
    assert applied is not None
    return ok(applied.as_dict(), "Coupon applied")


@router.get("/ready-to-show")
def ready_to_show(
    viewer: User | None = Depends(get_optional_user),
    service: CouponService = Depends(get_coupon_service),
) -> JSONResponse:
    """Coupons the storefront may advertise to this visitor."""
    return ok([public_coupon_out(c) for c in service.ready_to_show(viewer)])


# --- Admin ---


@router.get("")
def list_coupons(
    search: str | None = None,
    is_active: bool | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: CouponService = Depends(get_coupon_service),
) -> JSONResponse:
    coupons, total = service.list_coupons(search, is_active, page.offset, page.limit)
    return paged([coupon_out(c) for c in coupons], total, page)


@router.get("/{coupon_id}")
def get_coupon(
    coupon_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CouponService = Depends(get_coupon_service),
) -> JSONResponse:
    coupon = service.get(coupon_id)
    if not coupon:
        raise not_found("Coupon not found")
    return ok(coupon_out(coupon))


@router.post("")
def create_coupon(
    req: CouponCreateRequest,
    _admin: User = Depends(get_admin_user),
    service: CouponService = Depends(get_coupon_service),
) -> JSONResponse:
    coupon, errors = service.create(CouponInput(**req.model_dump()))
    raise_for_errors(errors)
    assert coupon is not None
    return ok(coupon_out(coupon), "Coupon created", status.HTTP_201_CREATED)


@router.put("/{coupon_id}")
def update_coupon(
    coupon_id: UUID,
    req: CouponUpdateRequest,
    _admin: User = Depends(get_admin_user),
    service: CouponService = Depends(get_coupon_service),
) -> JSONResponse:
    coupon, errors = service.update(coupon_id, set_fields(req))
    raise_for_errors(errors)
    assert coupon is not None
    return ok(coupon_out(coupon), "Coupon updated")


@router.delete("/{coupon_id}")
def delete_coupon(
    coupon_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CouponService = Depends(get_coupon_service),
) -> JSONResponse:
    raise_for_errors(service.delete(coupon_id))
    return ok(None, "Coupon deleted")
