"""
Certificates - issue, render, verify and administer completion certificates.

One certificate per (user, item type, item). Rendering uses the template
stored for the item type, falling back to the configured defaults. The
PDF is kept in the file store; it is re-rendered on demand if missing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from academy.components.errors import reject_nulls
from academy.components.flash_sales.component import HEX_COLOR
from academy.core.ports.renderer import CertificateLayout, CertificateRendererPort
from academy.core.ports.storage import FileStorePort
from academy.core.ports.time import ClockPort
from academy.core.services import mail_templates
from academy.core.services.notifier import Notifier
from academy.domain.entities import (
    CERTIFICATE_TYPES,
    Certificate,
    CertificateTemplate,
    User,
    as_utc,
)
from academy.domain.identifiers import generate_certificate_no
from academy.rules.models import CertificateRules

from .models import TYPE_LABELS, CertificateError, CertificateFile, CertificateVerification
from .ports import (
    CertificateRepoPort,
    EnrolleesPort,
    ItemLookupPort,
    TemplateRepoPort,
    UserLookupPort,
)

logger = logging.getLogger(__name__)

_TEMPLATE_FIELDS = (
    "name",
    "description",
    "issuer_name",
    "issuer_title",
    "footer_text",
    "primary_color",
    "secondary_color",
    "is_active",
)


# --- Pure Functions ---


def default_template(item_type: str, rules: CertificateRules) -> CertificateTemplate:
    label = TYPE_LABELS.get(item_type, item_type.lower())
    return CertificateTemplate(
        item_type=item_type,  # type: ignore[arg-type]
        name=f"{label.title()} Certificate",
        issuer_name=rules.issuer_name,
        issuer_title=rules.issuer_title,
        primary_color=rules.primary_color,
        secondary_color=rules.secondary_color,
    )


def validate_template_updates(updates: dict[str, Any]) -> list[CertificateError]:
    errors: list[CertificateError] = reject_nulls(updates, ("is_active",))
    for field_name in ("name", "issuer_name", "issuer_title"):
        if field_name in updates and not (updates[field_name] or "").strip():
            errors.append(
                CertificateError(
                    f"{field_name}_required",
                    f"{field_name.replace('_', ' ').capitalize()} is required",
                    field_name,
                )
            )
    for field_name in ("primary_color", "secondary_color"):
        if field_name in updates and not HEX_COLOR.match(updates[field_name] or ""):
            errors.append(
                CertificateError("invalid_color", "Colour must be a hex value", field_name)
            )
    return errors


def build_layout(
    cert: Certificate,
    template: CertificateTemplate,
    brand_name: str,
    verify_base_url: str | None,
) -> CertificateLayout:
    verify_url = f"{verify_base_url.rstrip('/')}/{cert.certificate_no}" if verify_base_url else None
    return CertificateLayout(
        brand_name=brand_name,
        recipient_name=cert.recipient_name,
        type_label=TYPE_LABELS.get(cert.item_type, cert.item_type.lower()),
        title=cert.title,
        certificate_no=cert.certificate_no,
        issued_at=cert.issued_at,
        issuer_name=template.issuer_name,
        issuer_title=template.issuer_title,
        primary_color=template.primary_color,
        secondary_color=template.secondary_color,
        footer_text=template.footer_text,
        verify_url=verify_url,
    )


# --- Service ---


class CertificateService:
    def __init__(
        self,
        repo: CertificateRepoPort,
        templates: TemplateRepoPort,
        users: UserLookupPort,
        items: ItemLookupPort,
        enrollees: EnrolleesPort,
        renderer: CertificateRendererPort,
        store: FileStorePort,
        notifier: Notifier,
        clock: ClockPort,
        rules: CertificateRules,
        brand_name: str,
        verify_base_url: str | None = None,
    ) -> None:
        self._repo = repo
        self._templates = templates
        self._users = users
        self._items = items
        self._enrollees = enrollees
        self._renderer = renderer
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._rules = rules
        self._brand = brand_name
        self._verify_base_url = verify_base_url

    # --- Templates ---

    def get_template(self, item_type: str) -> CertificateTemplate:
        return self._templates.get(item_type) or default_template(item_type, self._rules)

    def list_templates(self) -> list[CertificateTemplate]:
        stored = {t.item_type: t for t in self._templates.list_templates()}
        return [stored.get(t) or default_template(t, self._rules) for t in CERTIFICATE_TYPES]

    def upsert_template(
        self, item_type: str, updates: dict[str, Any]
    ) -> tuple[CertificateTemplate | None, list[CertificateError]]:
        if item_type not in CERTIFICATE_TYPES:
            return None, [
                CertificateError("invalid_item_type", "Invalid certificate type", "item_type")
            ]
        errors = validate_template_updates(updates)
        if errors:
            return None, errors
        current = self.get_template(item_type)
        changes = {k: updates[k] for k in _TEMPLATE_FIELDS if k in updates}
        changes["updated_at"] = self._clock.now_utc()
        return self._templates.save(current.model_copy(update=changes)), []

    def delete_template(self, item_type: str) -> list[CertificateError]:
        if not self._templates.get(item_type):
            return [CertificateError("template_not_found", "Template not found")]
        self._templates.delete(item_type)
        return []

    # --- Rendering ---

    def _render_and_store(self, cert: Certificate) -> Certificate:
        template = self.get_template(cert.item_type)
        pdf = self._renderer.render_pdf(
            build_layout(cert, template, self._brand, self._verify_base_url)
        )
        path = f"{self._rules.storage_prefix}/{cert.user_id}/{cert.certificate_no}.pdf"
        cert.file_path = self._store.save(path, pdf)
        return cert

    def _new_number(self) -> str:
        for _ in range(5):
            number = generate_certificate_no(self._clock.now_utc())
            if not self._repo.get_by_number(number):
                return number
        raise RuntimeError("Could not allocate a unique certificate number")

    # --- Issuing ---

    def issue(
        self, user_id: UUID, item_type: str, reference_id: str
    ) -> tuple[Certificate | None, list[CertificateError]]:
        """Issue (or return the existing) certificate for a user and item."""
        if item_type not in CERTIFICATE_TYPES:
            return None, [
                CertificateError("invalid_item_type", "Invalid certificate type", "item_type")
            ]
        existing = self._repo.get_for(user_id, item_type, reference_id)
        if existing:
            return existing, []

        user = self._users.get_by_id(user_id)
        if not user:
            return None, [CertificateError("user_not_found", "User not found")]
        try:
            item = self._items.get_by_id(UUID(reference_id))
        except ValueError:
            item = None
        if not item or item.item_type != item_type:
            return None, [CertificateError("item_not_found", "Item not found")]

        now = self._clock.now_utc()
        cert = Certificate(
            certificate_no=self._new_number(),
            user_id=user.id,
            item_type=item_type,  # type: ignore[arg-type]
            reference_id=reference_id,
            recipient_name=user.name,
            title=item.title,
            issued_at=now,
            updated_at=now,
        )
        self._render_and_store(cert)
        self._repo.save(cert)
        logger.info("Certificate %s issued to user %s", cert.certificate_no, user.id)
        self._notify(user, cert)
        return cert, []

    def _notify(self, user: User, cert: Certificate) -> None:
        pdf = self._store.get(cert.file_path) if cert.file_path else None
        verify_url = (
            f"{self._verify_base_url.rstrip('/')}/{cert.certificate_no}"
            if self._verify_base_url
            else cert.certificate_no
        )
        self._notifier.send(
            mail_templates.certificate_email(
                user.email, user.name, cert.title, cert.certificate_no, verify_url, pdf
            )
        )

    def process_webinar_completions(self, now: datetime | None = None) -> int:
        """Certify everyone enrolled in a published webinar that finished by ``now`` (default: the clock)."""
        now = as_utc(now) if now is not None else self._clock.now_utc()
        issued = 0
        offset, page = 0, 100
        while True:
            webinars, total = self._items.list_items(
                "WEBINAR", published=True, offset=offset, limit=page
            )
            for webinar in webinars:
                if webinar.starts_at is None:
                    continue
                ends_at = webinar.starts_at + timedelta(minutes=webinar.duration_minutes or 0)
                if ends_at > now:
                    continue
                for enrollment in self._enrollees.list_for_item("WEBINAR", str(webinar.id)):
                    if self._repo.get_for(enrollment.user_id, "WEBINAR", str(webinar.id)):
                        continue
                    cert, errors = self.issue(enrollment.user_id, "WEBINAR", str(webinar.id))
                    if cert and not errors:
                        issued += 1
            offset += page
            if offset >= total:
                break
        return issued

    # --- Reading ---

    def verify(self, certificate_no: str) -> CertificateVerification | None:
        cert = self._repo.get_by_number(certificate_no)
        if not cert:
            return None
        if cert.status == "REVOKED":
            return CertificateVerification(
                valid=False,
                certificate_no=cert.certificate_no,
                status=cert.status,
                message="This certificate has been revoked",
            )
        return CertificateVerification(
            valid=True,
            certificate_no=cert.certificate_no,
            status=cert.status,
            recipient_name=cert.recipient_name,
            item_type=cert.item_type,
            title=cert.title,
            issued_at=cert.issued_at,
            message="Certificate is valid",
        )

    def mine(self, user: User) -> list[Certificate]:
        return self._repo.list_for_user(user.id, status="GENERATED")

    def download(
        self, cert_id: UUID, requester: User
    ) -> tuple[CertificateFile | None, list[CertificateError]]:
        cert = self._repo.get_by_id(cert_id)
        if not cert or (cert.user_id != requester.id and not requester.is_admin):
            return None, [CertificateError("certificate_not_found", "Certificate not found")]
        if cert.status == "REVOKED" and not requester.is_admin:
            return None, [
                CertificateError("certificate_revoked", "This certificate has been revoked")
            ]
        if not cert.file_path or not self._store.exists(cert.file_path):
            logger.info("Re-rendering missing PDF for certificate %s", cert.certificate_no)
            cert = self._repo.save(self._render_and_store(cert))
        assert cert.file_path is not None
        data = self._store.get(cert.file_path)
        return CertificateFile(certificate=cert, filename=f"{cert.certificate_no}.pdf", data=data), []

    def get(self, cert_id: UUID) -> Certificate | None:
        return self._repo.get_by_id(cert_id)

    def list_certificates(
        self,
        item_type: str | None,
        status: str | None,
        search: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Certificate], int]:
        return self._repo.list_certificates(
            item_type=item_type, status=status, search=search, offset=offset, limit=limit
        )

    def stats(self) -> dict[str, int]:
        counts = self._repo.count_by()
        return {
            "total": counts.get("total", 0),
            "revoked": counts.get("revoked", 0),
            **{t.lower(): counts.get(t, 0) for t in CERTIFICATE_TYPES},
        }

    # --- Admin mutations ---

    def _set_status(
        self, cert_id: UUID, status: str, required_current: str | None = None
    ) -> tuple[Certificate | None, list[CertificateError]]:
        cert = self._repo.get_by_id(cert_id)
        if not cert:
            return None, [CertificateError("certificate_not_found", "Certificate not found")]
        if required_current and cert.status != required_current:
            return None, [
                CertificateError(
                    "certificate_not_revoked", "Only revoked certificates can be restored"
                )
            ]
        cert.status = status  # type: ignore[assignment]
        cert.updated_at = self._clock.now_utc()
        return self._repo.save(cert), []

    def revoke(self, cert_id: UUID) -> tuple[Certificate | None, list[CertificateError]]:
        return self._set_status(cert_id, "REVOKED")

    def restore(self, cert_id: UUID) -> tuple[Certificate | None, list[CertificateError]]:
        return self._set_status(cert_id, "GENERATED", required_current="REVOKED")

    def regenerate(self, cert_id: UUID) -> tuple[Certificate | None, list[CertificateError]]:
        """Re-render with the current template and recipient name; number unchanged."""
        cert = self._repo.get_by_id(cert_id)
        if not cert:
            return None, [CertificateError("certificate_not_found", "Certificate not found")]
        user = self._users.get_by_id(cert.user_id)
        if user:
            cert.recipient_name = user.name
        cert.updated_at = self._clock.now_utc()
        self._render_and_store(cert)
        return self._repo.save(cert), []

    def delete(self, cert_id: UUID) -> list[CertificateError]:
        cert = self._repo.get_by_id(cert_id)
        if not cert:
            return [CertificateError("certificate_not_found", "Certificate not found")]
        if cert.file_path:
            self._store.delete(cert.file_path)
        self._repo.delete(cert_id)
        return []
