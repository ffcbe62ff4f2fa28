"""
Courses component - Port interfaces.
"""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from academy.domain.entities import (
    CatalogItem,
    Certificate,
    ChapterProgress,
    CourseChapter,
    CourseSession,
    Enrollment,
    User,
)


class CourseCatalogPort(Protocol):
    def get_by_id(self, item_id: UUID) -> CatalogItem | None: ...

    def get_by_slug(self, item_type: str, slug: str) -> CatalogItem | None: ...

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


class SessionRepoPort(Protocol):
    def save(self, session: CourseSession) -> CourseSession: ...

    def get_by_id(self, session_id: UUID) -> CourseSession | None: ...

    def list_for_course(self, course_id: str, published_only: bool = False) -> list[CourseSession]: ...

    def next_position(self, course_id: str) -> int: ...

    def delete(self, session_id: UUID) -> None: ...


class ChapterRepoPort(Protocol):
    def save(self, chapter: CourseChapter) -> CourseChapter: ...

    def get_by_id(self, chapter_id: UUID) -> CourseChapter | None: ...

    def find_in_course(self, course_id: str, slug: str) -> CourseChapter | None: ...

    def list_for_sessions(
        self, session_ids: list[UUID], published_only: bool = False
    ) -> list[CourseChapter]: ...

    def next_position(self, session_id: UUID) -> int: ...

    def delete(self, chapter_id: UUID) -> None: ...


class ChapterProgressRepoPort(Protocol):
    def save(self, entry: ChapterProgress) -> ChapterProgress: ...

    def get(self, user_id: UUID, chapter_id: UUID) -> ChapterProgress | None: ...

    def list_for_user(self, user_id: UUID, chapter_ids: list[UUID]) -> list[ChapterProgress]: ...


class CourseEnrollmentRepoPort(Protocol):
    def save(self, enrollment: Enrollment) -> Enrollment: ...

    def get(self, user_id: UUID, item_type: str, item_id: str) -> Enrollment | None: ...

    def get_by_id(self, enrollment_id: UUID) -> Enrollment | None: ...

    def list_for_item(self, item_type: str, item_id: str) -> list[Enrollment]: ...

    def list_course_enrollments(
        self,
        course_id: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Enrollment], int]: ...


class StudentLookupPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...


class CertificateIssuerPort(Protocol):
    def issue(
        self, user_id: UUID, item_type: str, reference_id: str
    ) -> tuple[Certificate | None, list[Any]]: ...
