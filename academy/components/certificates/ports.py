"""
Certificates component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from academy.domain.entities import (
    CatalogItem,
    Certificate,
    CertificateTemplate,
    Enrollment,
    User,
)


class CertificateRepoPort(Protocol):
    def save(self, cert: Certificate) -> Certificate: ...

    def get_by_id(self, cert_id: UUID) -> Certificate | None: ...

    def get_by_number(self, certificate_no: str) -> Certificate | None: ...

    def get_for(self, user_id: UUID, item_type: str, reference_id: str) -> Certificate | None: ...

    def list_for_user(self, user_id: UUID, status: str | None = None) -> list[Certificate]: ...

    def list_certificates(
        self,
        item_type: str | None = None,
        status: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Certificate], int]: ...

    def count_by(self) -> dict[str, int]: ...

    def delete(self, cert_id: UUID) -> None: ...


class TemplateRepoPort(Protocol):
    def save(self, template: CertificateTemplate) -> CertificateTemplate: ...

    def get(self, item_type: str) -> CertificateTemplate | None: ...

    def list_templates(self) -> list[CertificateTemplate]: ...

    def delete(self, item_type: str) -> None: ...


class UserLookupPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None: ...


class ItemLookupPort(Protocol):
    def get_by_id(self, item_id: UUID) -> CatalogItem | None: ...

    def list_items(
        self,
        item_type: str,
        published: bool | None = None,
        search: str | None = None,
        category: str | None = None,
        badge: str | None = None,
        is_free: bool | None = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[CatalogItem], int]: ...


class EnrolleesPort(Protocol):
    def list_for_item(self, item_type: str, item_id: str) -> list[Enrollment]: ...
