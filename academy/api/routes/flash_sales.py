from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_flash_sale_service, get_page
from academy.api.envelope import not_found, ok, paged, raise_for_errors
from academy.api.schemas import FlashSaleCreateRequest, FlashSaleUpdateRequest, set_fields
from academy.components.flash_sales import FlashSaleInput, FlashSaleService
from academy.domain.entities import FlashSale, User
from academy.domain.pagination import Page

router = APIRouter()


def sale_out(sale: FlashSale) -> dict:
    return sale.model_dump(mode="json")


@router.get("/active")
def active_flash_sale(service: FlashSaleService = Depends(get_flash_sale_service)) -> JSONResponse:
    """The running sale for the storefront banner, or null."""
    active = service.active()
    if not active:
        return ok(None, "No active flash sale")
    data = sale_out(active.sale)
    data["items"] = [i.model_dump(mode="json") for i in active.items]
    return ok(data)


# --- Admin ---


@router.get("")
def list_flash_sales(
    item_type: str | None = None,
    is_active: bool | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: FlashSaleService = Depends(get_flash_sale_service),
) -> JSONResponse:
    sales, total = service.list_sales(
        item_type.upper() if item_type else None, is_active, page.offset, page.limit
    )
    return paged([sale_out(s) for s in sales], total, page)


@router.get("/{sale_id}")
def get_flash_sale(
    sale_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: FlashSaleService = Depends(get_flash_sale_service),
) -> JSONResponse:
    sale = service.get(sale_id)
    if not sale:
        raise not_found("Flash sale not found")
    return ok(sale_out(sale))


@router.post("")
def create_flash_sale(
    req: FlashSaleCreateRequest,
    _admin: User = Depends(get_admin_user),
    service: FlashSaleService = Depends(get_flash_sale_service),
) -> JSONResponse:
    sale, errors = service.create(FlashSaleInput(**req.model_dump()))
    raise_for_errors(errors)
    assert sale is not None
    return ok(sale_out(sale), "Flash sale created", status.HTTP_201_CREATED)


@router.put("/{sale_id}")
def update_flash_sale(
    sale_id: UUID,
    req: FlashSaleUpdateRequest,
    _admin: User = Depends(get_admin_user),
    service: FlashSaleService = Depends(get_flash_sale_service),
) -> JSONResponse:
    sale, errors = service.update(sale_id, set_fields(req))
    raise_for_errors(errors)
    assert sale is not None
    return ok(sale_out(sale), "Flash sale updated")


@router.patch("/{sale_id}/toggle")
def toggle_flash_sale(
    sale_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: FlashSaleService = Depends(get_flash_sale_service),
) -> JSONResponse:
    sale, errors = service.toggle(sale_id)
    raise_for_errors(errors)
    assert sale is not None
    return ok(sale_out(sale), "Flash sale activated" if sale.is_active else "Flash sale deactivated")


@router.delete("/{sale_id}")
def delete_flash_sale(
    sale_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: FlashSaleService = Depends(get_flash_sale_service),
) -> JSONResponse:
    raise_for_errors(service.delete(sale_id))
    return ok(None, "Flash sale deleted")
