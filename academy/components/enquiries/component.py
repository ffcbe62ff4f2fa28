"""
Enquiries - contact messages, demo requests and placement-training sign-ups.

Each submission is stored, the admin inbox is notified and the visitor
gets an acknowledgement. Placement sign-ups confirm their email with a
one-time code before they count.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import timedelta
from uuid import UUID

from academy.components.auth import generate_otp, is_well_formed_otp, normalise_email, validate_email
from academy.components.errors import require
from academy.core.ports.time import ClockPort
from academy.core.services import mail_templates
from academy.core.services.notifier import Notifier
from academy.domain.entities import Contact, DemoRequest, PlacementRegistration, User, as_utc

from .models import (
    DEMO_STATUSES,
    OTP_EXPIRED_MESSAGE,
    OTP_INVALID_MESSAGE,
    ContactInput,
    DemoRequestInput,
    EnquiryError,
    PlacementInput,
)
from .ports import ContactRepoPort, DemoRequestRepoPort, PlacementRepoPort

logger = logging.getLogger(__name__)


def hash_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def _required(data: object, fields: tuple[str, ...]) -> list[EnquiryError]:
    errors: list[EnquiryError] = []
    for name in fields:
        errors += require(getattr(data, name), name)
    return errors


class ContactService:
    def __init__(self, repo: ContactRepoPort, notifier: Notifier, clock: ClockPort) -> None:
        self._repo = repo
        self._notifier = notifier
        self._clock = clock

    def submit(self, data: ContactInput) -> tuple[Contact | None, list[EnquiryError]]:
        errors = _required(data, ("name", "email", "phone", "subject", "message"))
        if not errors:
            errors = validate_email(normalise_email(data.email))
        if errors:
            return None, errors
        contact = Contact(
            name=data.name.strip(),
            email=normalise_email(data.email),
            phone=data.phone.strip(),
            subject=data.subject.strip(),
            message=data.message.strip(),
            created_at=self._clock.now_utc(),
        )
        self._repo.save(contact)
        if self._notifier.admin_email:
            self._notifier.send(
                mail_templates.contact_admin_email(
                    self._notifier.admin_email,
                    contact.name,
                    contact.email,
                    contact.phone,
                    contact.subject,
                    contact.message,
                )
            )
        self._notifier.send(
            mail_templates.contact_ack_email(contact.email, contact.name, contact.subject)
        )
        return contact, []

    def list_contacts(
        self, search: str | None, is_read: bool | None, offset: int, limit: int
    ) -> tuple[list[Contact], int]:
        return self._repo.list_contacts(search=search, is_read=is_read, offset=offset, limit=limit)

    def mark_read(self, contact_id: UUID) -> tuple[Contact | None, list[EnquiryError]]:
        contact = self._repo.get_by_id(contact_id)
        if not contact:
            return None, [EnquiryError("contact_not_found", "Contact not found")]
        contact.is_read = True
        return self._repo.save(contact), []

    def delete(self, contact_id: UUID) -> list[EnquiryError]:
        if not self._repo.get_by_id(contact_id):
            return [EnquiryError("contact_not_found", "Contact not found")]
        self._repo.delete(contact_id)
        return []


class DemoRequestService:
    def __init__(self, repo: DemoRequestRepoPort, notifier: Notifier, clock: ClockPort) -> None:
        self._repo = repo
        self._notifier = notifier
        self._clock = clock

    def submit(
        self, data: DemoRequestInput, user: User | None = None
    ) -> tuple[DemoRequest | None, list[EnquiryError]]:
        errors = _required(data, ("name", "email", "phone"))
        if not errors:
            errors = validate_email(normalise_email(data.email))
        if errors:
            return None, errors
        now = self._clock.now_utc()
        req = DemoRequest(
            name=data.name.strip(),
            email=normalise_email(data.email),
            phone=data.phone.strip(),
            course_id=data.course_id,
            message=data.message,
            user_id=user.id if user else None,
            created_at=now,
            updated_at=now,
        )
        self._repo.save(req)
        if self._notifier.admin_email:
            self._notifier.send(
                mail_templates.demo_admin_email(
                    self._notifier.admin_email, req.name, req.email, req.phone, req.message
                )
            )
        self._notifier.send(mail_templates.demo_ack_email(req.email, req.name))
        return req, []

    def list_requests(
        self, status: str | None, offset: int, limit: int
    ) -> tuple[list[DemoRequest], int]:
        return self._repo.list_requests(status=status, offset=offset, limit=limit)

    def update_status(
        self, req_id: UUID, status: str | None
    ) -> tuple[DemoRequest | None, list[EnquiryError]]:
        status = (status or "").strip().upper()
        if status not in DEMO_STATUSES:
            return None, [
                EnquiryError(
                    "invalid_status",
                    f"Status must be one of {', '.join(DEMO_STATUSES)}",
                    "status",
                )
            ]
        req = self._repo.get_by_id(req_id)
        if not req:
            return None, [EnquiryError("demo_request_not_found", "Demo request not found")]
        req.status = status  # type: ignore[assignment]
        req.updated_at = self._clock.now_utc()
        return self._repo.save(req), []


class PlacementService:
    def __init__(
        self,
        repo: PlacementRepoPort,
        notifier: Notifier,
        clock: ClockPort,
        otp_length: int = 6,
        otp_ttl_minutes: int = 10,
    ) -> None:
        self._repo = repo
        self._notifier = notifier
        self._clock = clock
        self._otp_length = otp_length
        self._otp_ttl = otp_ttl_minutes

    def register(
        self, data: PlacementInput
    ) -> tuple[PlacementRegistration | None, list[EnquiryError]]:
        errors = _required(data, ("name", "email", "whatsapp_number", "course"))
        if not errors:
            errors = validate_email(normalise_email(data.email))
        if errors:
            return None, errors
        now = self._clock.now_utc()
        code = generate_otp(self._otp_length)
        reg = PlacementRegistration(
            name=data.name.strip(),
            email=normalise_email(data.email),
            country_code=(data.country_code or "+91").strip(),
            whatsapp_number=data.whatsapp_number.strip(),
            course=data.course.strip(),
            notes=data.notes,
            otp_hash=hash_code(code),
            otp_expires_at=now + timedelta(minutes=self._otp_ttl),
            created_at=now,
            updated_at=now,
        )
        self._repo.save(reg)
        self._notifier.send(
            mail_templates.placement_otp_email(reg.email, reg.name, code, self._otp_ttl)
        )
        if self._notifier.admin_email:
            self._notifier.send(
                mail_templates.placement_admin_email(
                    self._notifier.admin_email,
                    reg.name,
                    reg.email,
                    f"{reg.country_code} {reg.whatsapp_number}",
                    reg.course,
                )
            )
        return reg, []

    def verify(
        self, reg_id: UUID, otp: str | None
    ) -> tuple[PlacementRegistration | None, list[EnquiryError]]:
        reg = self._repo.get_by_id(reg_id)
        if not reg:
            return None, [EnquiryError("registration_not_found", "Registration not found")]
        if reg.is_verified:
            return reg, []
        now = self._clock.now_utc()
        if reg.otp_expires_at is None or as_utc(reg.otp_expires_at) < now:
            return None, [EnquiryError("otp_expired", OTP_EXPIRED_MESSAGE, "otp")]
        if not is_well_formed_otp(otp, self._otp_length) or not hmac.compare_digest(
            hash_code(otp or ""), reg.otp_hash or ""
        ):
            return None, [EnquiryError("invalid_otp", OTP_INVALID_MESSAGE, "otp")]
        reg.is_verified = True
        reg.otp_hash = None
        reg.otp_expires_at = None
        reg.updated_at = now
        logger.info("Placement registration %s verified", reg.id)
        return self._repo.save(reg), []

    def list_registrations(
        self,
        search: str | None,
        is_verified: bool | None,
        course: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[PlacementRegistration], int]:
        return self._repo.list_registrations(
            search=search, is_verified=is_verified, course=course, offset=offset, limit=limit
        )
