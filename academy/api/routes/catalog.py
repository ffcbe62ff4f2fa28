from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_catalog_service, get_page
from academy.api.envelope import not_found, ok, paged, raise_for_errors
from academy.api.schemas import (
    CatalogItemCreateRequest,
    CatalogItemUpdateRequest,
    priced_out,
    set_fields,
)
from academy.components.catalog import (
    CatalogItemInput,
    CatalogQuery,
    CatalogService,
    PricedItem,
    parse_item_type,
)
from academy.domain.entities import User
from academy.domain.pagination import Page

router = APIRouter()


def _item_type(raw: str) -> str:
    item_type = parse_item_type(raw)
    if not item_type:
        raise not_found(f"Unknown catalog type '{raw}'")
    return item_type


def _admin_item(service: CatalogService, item_type: str, item_id: UUID) -> PricedItem:
    priced = service.get_by_id(item_id, public=False)
    if not priced or priced.item.item_type != item_type:
        raise not_found("Item not found")
    return priced


@router.get("/{item_type}")
def list_items(
    item_type: str,
    search: str | None = None,
    category: str | None = None,
    badge: str | None = None,
    is_free: bool | None = None,
    sort: str = "newest",
    page: Page = Depends(get_page),
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    """Published items of one type."""
    query = CatalogQuery(search=search, category=category, badge=badge, is_free=is_free, sort=sort)
    items, total = service.list_items(_item_type(item_type), query, page.offset, page.limit)
    return paged([priced_out(i) for i in items], total, page)


@router.get("/{item_type}/slug/{slug}")
def get_by_slug(
    item_type: str,
    slug: str,
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    priced = service.get_by_slug(_item_type(item_type), slug)
    if not priced:
        raise not_found("Item not found")
    return ok(priced_out(priced))


# --- Admin ---


@router.get("/{item_type}/admin/all")
def admin_list_items(
    item_type: str,
    search: str | None = None,
    category: str | None = None,
    is_published: bool | None = None,
    sort: str = "newest",
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    query = CatalogQuery(search=search, category=category, is_published=is_published, sort=sort)
    items, total = service.list_items(
        _item_type(item_type), query, page.offset, page.limit, public=False
    )
    return paged([priced_out(i) for i in items], total, page)


@router.get("/{item_type}/id/{item_id}")
def admin_get_item(
    item_type: str,
    item_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    return ok(priced_out(_admin_item(service, _item_type(item_type), item_id)))


@router.post("/{item_type}")
def create_item(
    item_type: str,
    req: CatalogItemCreateRequest,
    _admin: User = Depends(get_admin_user),
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    priced, errors = service.create(
        CatalogItemInput(item_type=_item_type(item_type), **req.model_dump())
    )
    raise_for_errors(errors)
    assert priced is not None
    return ok(priced_out(priced), "Item created", status.HTTP_201_CREATED)


@router.put("/{item_type}/id/{item_id}")
def update_item(
    item_type: str,
    item_id: UUID,
    req: CatalogItemUpdateRequest,
    _admin: User = Depends(get_admin_user),
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    _admin_item(service, _item_type(item_type), item_id)
    priced, errors = service.update(item_id, set_fields(req))
    raise_for_errors(errors)
    assert priced is not None
    return ok(priced_out(priced), "Item updated")


@router.patch("/{item_type}/id/{item_id}/publish")
def toggle_publish(
    item_type: str,
    item_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    _admin_item(service, _item_type(item_type), item_id)
    priced, errors = service.toggle_publish(item_id)
    raise_for_errors(errors)
    assert priced is not None
    return ok(
        priced_out(priced),
        "Item published" if priced.item.is_published else "Item unpublished",
    )


@router.delete("/{item_type}/id/{item_id}")
def delete_item(
    item_type: str,
    item_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CatalogService = Depends(get_catalog_service),
) -> JSONResponse:
    _admin_item(service, _item_type(item_type), item_id)
    raise_for_errors(service.delete(item_id))
    return ok(None, "Item deleted")
