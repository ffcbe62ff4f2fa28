from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import get_admin_user, get_contact_service, get_page
from academy.api.envelope import ok, paged, raise_for_errors
from academy.api.schemas import ContactRequest
from academy.components.enquiries import ContactInput, ContactService
from academy.domain.entities import User
from academy.domain.pagination import Page

router = APIRouter()


@router.post("")
def submit_contact(
    req: ContactRequest,
    service: ContactService = Depends(get_contact_service),
) -> JSONResponse:
    contact, errors = service.submit(ContactInput(**req.model_dump()))
    raise_for_errors(errors)
    assert contact is not None
    return ok(
        contact.model_dump(mode="json"),
        "Thank you for contacting us. We will get back to you soon.",
        status.HTTP_201_CREATED,
    )


# --- Admin ---


@router.get("")
def list_contacts(
    search: str | None = None,
    is_read: bool | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: ContactService = Depends(get_contact_service),
) -> JSONResponse:
    contacts, total = service.list_contacts(search, is_read, page.offset, page.limit)
    return paged([c.model_dump(mode="json") for c in contacts], total, page)


@router.patch("/{contact_id}/read")
def mark_read(
    contact_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: ContactService = Depends(get_contact_service),
) -> JSONResponse:
    contact, errors = service.mark_read(contact_id)
    raise_for_errors(errors)
    assert contact is not None
    return ok(contact.model_dump(mode="json"), "Marked as read")


@router.delete("/{contact_id}")
def delete_contact(
    contact_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: ContactService = Depends(get_contact_service),
) -> JSONResponse:
    raise_for_errors(service.delete(contact_id))
    return ok(None, "Contact deleted")
