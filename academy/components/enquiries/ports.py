"""
Enquiries component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from academy.domain.entities import Contact, DemoRequest, PlacementRegistration


class ContactRepoPort(Protocol):
    def save(self, contact: Contact) -> Contact: ...

    def get_by_id(self, contact_id: UUID) -> Contact | None: ...

    def list_contacts(
        self,
        search: str | None = None,
        is_read: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Contact], int]: ...

    def delete(self, contact_id: UUID) -> None: ...


class DemoRequestRepoPort(Protocol):
    def save(self, req: DemoRequest) -> DemoRequest: ...

    def get_by_id(self, req_id: UUID) -> DemoRequest | None: ...

    def list_requests(
        self, status: str | None = None, offset: int = 0, limit: int = 20
    ) -> tuple[list[DemoRequest], int]: ...


class PlacementRepoPort(Protocol):
    def save(self, reg: PlacementRegistration) -> PlacementRegistration: ...

    def get_by_id(self, reg_id: UUID) -> PlacementRegistration | None: ...

    def list_registrations(
        self,
        search: str | None = None,
        is_verified: bool | None = None,
        course: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[PlacementRegistration], int]: ...
