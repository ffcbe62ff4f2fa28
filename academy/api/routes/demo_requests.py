from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_demo_request_service, get_optional_user, get_page
from academy.api.envelope import ok, paged, raise_for_errors
from academy.api.schemas import DemoRequestRequest, StatusRequest
from academy.components.enquiries import DemoRequestInput, DemoRequestService
from academy.domain.entities import User
from academy.domain.pagination import Page

router = APIRouter()


@router.post("")
def submit_demo_request(
    req: DemoRequestRequest,
    viewer: User | None = Depends(get_optional_user),
    service: DemoRequestService = Depends(get_demo_request_service),
) -> JSONResponse:
    demo, errors = service.submit(DemoRequestInput(**req.model_dump()), viewer)
    raise_for_errors(errors)
    assert demo is not None
    return ok(
        demo.model_dump(mode="json"),
        "Demo request submitted. Our team will contact you shortly.",
        status.HTTP_201_CREATED,
    )


# --- Admin ---


@router.get("")
def list_demo_requests(
    status_filter: str | None = Query(None, alias="status"),
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: DemoRequestService = Depends(get_demo_request_service),
) -> JSONResponse:
    requests, total = service.list_requests(
        status_filter.upper() if status_filter else None, page.offset, page.limit
    )
    return paged([r.model_dump(mode="json") for r in requests], total, page)


@router.patch("/{request_id}/status")
def update_demo_status(
    request_id: UUID,
    req: StatusRequest,
    _admin: User = Depends(get_admin_user),
    service: DemoRequestService = Depends(get_demo_request_service),
) -> JSONResponse:
    demo, errors = service.update_status(request_id, req.status)
    raise_for_errors(errors)
    assert demo is not None
    return ok(demo.model_dump(mode="json"), "Status updated")
