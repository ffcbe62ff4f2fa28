from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_auth_service, get_page
from academy.api.envelope import ok, paged, raise_for_errors
from academy.api.schemas import UserStatusRequest, user_out
from academy.components.auth import AuthService
from academy.domain.entities import User
from academy.domain.pagination import Page

router = APIRouter()


@router.get("")
def list_users(
    search: str | None = None,
    role: str | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """List users (admin only)."""
    users, total = service.list_users(search, role.upper() if role else None, page.offset, page.limit)
    return paged([user_out(u) for u in users], total, page)


@router.patch("/{user_id}/status")
def set_user_status(
    user_id: UUID,
    req: UserStatusRequest,
    _admin: User = Depends(get_admin_user),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Activate or deactivate a user (admin only)."""
    user, errors = service.set_active(user_id, req.is_active)
    raise_for_errors(errors)
    assert user is not None
    return ok(user_out(user), "User activated" if user.is_active else "User deactivated")
