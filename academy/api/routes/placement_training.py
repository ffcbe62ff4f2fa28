from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_page, get_placement_service
from academy.api.envelope import ok, paged, raise_for_errors
from academy.api.schemas import PlacementRegisterRequest, PlacementVerifyRequest
from academy.components.enquiries import PlacementInput, PlacementService
from academy.domain.entities import PlacementRegistration, User
from academy.domain.pagination import Page

router = APIRouter()


def registration_out(reg: PlacementRegistration) -> dict:
    return reg.model_dump(mode="json", exclude={"otp_hash"})


@router.post("/register")
def register(
    req: PlacementRegisterRequest,
    service: PlacementService = Depends(get_placement_service),
) -> JSONResponse:
    """Register interest and email a verification code."""
    reg, errors = service.register(PlacementInput(**req.model_dump()))
    raise_for_errors(errors)
    assert reg is not None
    return ok(
        {"registration_id": str(reg.id), "email": reg.email},
        "OTP sent to your email",
        status.HTTP_201_CREATED,
    )


@router.post("/verify")
def verify(
    req: PlacementVerifyRequest,
    service: PlacementService = Depends(get_placement_service),
) -> JSONResponse:
    reg, errors = service.verify(req.registration_id, req.otp)
    raise_for_errors(errors)
    assert reg is not None
    return ok(registration_out(reg), "Registration verified")


# --- Admin ---


@router.get("")
def list_registrations(
    search: str | None = None,
    is_verified: bool | None = None,
    course: str | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: PlacementService = Depends(get_placement_service),
) -> JSONResponse:
    regs, total = service.list_registrations(search, is_verified, course, page.offset, page.limit)
    return paged([registration_out(r) for r in regs], total, page)
