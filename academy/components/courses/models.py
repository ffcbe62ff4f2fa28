"""
Courses component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from academy.components.errors import ComponentError
from academy.domain.entities import (
    CatalogItem,
    ChapterProgress,
    CourseChapter,
    CourseSession,
    Enrollment,
    User,
)

CourseError = ComponentError


@dataclass(frozen=True)
class SessionInput:
    title: str
    description: str | None = None
    position: int | None = None
    is_published: bool = False


@dataclass(frozen=True)
class ChapterInput:
    title: str
    video_url: str
    slug: str | None = None
    video_duration: int = 0
    is_free_preview: bool = False
    is_published: bool = False
    position: int | None = None


@dataclass(frozen=True)
class ChapterView:
    """A chapter as one viewer sees it; the video stays hidden without access."""

    chapter: CourseChapter
    has_access: bool
    progress: ChapterProgress | None = None

    def as_dict(self) -> dict[str, Any]:
        data = self.chapter.model_dump(mode="json")
        if not self.has_access:
            data["video_url"] = None
        data["has_access"] = self.has_access
        data["progress"] = self.progress.progress if self.progress else 0
        data["completed"] = bool(self.progress and self.progress.completed)
        return data


@dataclass(frozen=True)
class SessionOutline:
    session: CourseSession
    chapters: list[ChapterView] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        data = self.session.model_dump(mode="json")
        data["chapters"] = [c.as_dict() for c in self.chapters]
        return data


@dataclass(frozen=True)
class Curriculum:
    course: CatalogItem
    sessions: list[SessionOutline]
    is_enrolled: bool = False

    @property
    def total_chapters(self) -> int:
        return sum(len(s.chapters) for s in self.sessions)

    def as_dict(self) -> dict[str, Any]:
        return {
            "course_id": str(self.course.id),
            "title": self.course.title,
            "is_enrolled": self.is_enrolled,
            "total_sessions": len(self.sessions),
            "total_chapters": self.total_chapters,
            "sessions": [s.as_dict() for s in self.sessions],
        }


@dataclass(frozen=True)
class ChapterPage:
    """One chapter opened by slug, with the course and session around it."""

    course: CatalogItem
    session: CourseSession
    view: ChapterView

    def as_dict(self) -> dict[str, Any]:
        return {
            "course": {"id": str(self.course.id), "slug": self.course.slug, "title": self.course.title},
            "session": {"id": str(self.session.id), "title": self.session.title},
            "chapter": self.view.as_dict(),
        }


@dataclass(frozen=True)
class CourseProgress:
    course_id: str
    total_sessions: int
    total_chapters: int
    completed_chapters: int
    percentage: int
    completed_at: datetime | None = None
    last_watched_at: datetime | None = None
    chapters: list[ChapterProgress] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "total_sessions": self.total_sessions,
            "total_chapters": self.total_chapters,
            "completed_chapters": self.completed_chapters,
            "percentage": self.percentage,
            "is_completed": self.is_completed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "last_watched_at": self.last_watched_at.isoformat() if self.last_watched_at else None,
            "chapters": [c.model_dump(mode="json") for c in self.chapters],
        }


@dataclass(frozen=True)
class ProgressUpdate:
    chapter: ChapterProgress
    course: CourseProgress
    course_completed: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "chapter": self.chapter.model_dump(mode="json"),
            "course": self.course.as_dict(),
            "course_completed": self.course_completed,
        }


@dataclass(frozen=True)
class EnrollmentSummary:
    """Admin view of one student's enrollment in a course."""

    enrollment: Enrollment
    user: User | None
    course: CatalogItem | None
    progress: CourseProgress

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.enrollment.id),
            "user": (
                {
                    "id": str(self.user.id),
                    "name": self.user.name,
                    "email": self.user.email,
                    "phone": self.user.phone,
                }
                if self.user
                else None
            ),
            "course": (
                {"id": str(self.course.id), "title": self.course.title, "slug": self.course.slug}
                if self.course
                else None
            ),
            "order_id": str(self.enrollment.order_id) if self.enrollment.order_id else None,
            "enrolled_at": self.enrollment.created_at.isoformat(),
            "progress": self.progress.as_dict(),
        }


@dataclass(frozen=True)
class CourseStats:
    course_id: str
    title: str
    total_chapters: int
    total_enrollments: int
    completed_enrollments: int
    in_progress_enrollments: int
    average_progress: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "title": self.title,
            "total_chapters": self.total_chapters,
            "total_enrollments": self.total_enrollments,
            "completed_enrollments": self.completed_enrollments,
            "in_progress_enrollments": self.in_progress_enrollments,
            "average_progress": self.average_progress,
        }
