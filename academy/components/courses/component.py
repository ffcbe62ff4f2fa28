"""
Courses - curriculum, chapter progress and admin enrollment tools.

A course is a catalog item of type COURSE split into sessions, each holding
video chapters. Only published sessions and chapters count. A student's
enrollment ``progress`` is the share of those chapters completed; reaching
100 completes the course once and issues its certificate.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from academy.components.errors import reject_nulls, require
from academy.core.ports.time import ClockPort
from academy.domain.entities import (
    CatalogItem,
    ChapterProgress,
    CourseChapter,
    CourseSession,
    Enrollment,
    User,
)
from academy.domain.identifiers import generate_slug
from academy.rules.models import CourseRules

from .models import (
    ChapterInput,
    ChapterPage,
    ChapterView,
    CourseError,
    CourseProgress,
    CourseStats,
    Curriculum,
    EnrollmentSummary,
    ProgressUpdate,
    SessionInput,
    SessionOutline,
)
from .ports import (
    CertificateIssuerPort,
    ChapterProgressRepoPort,
    ChapterRepoPort,
    CourseCatalogPort,
    CourseEnrollmentRepoPort,
    SessionRepoPort,
    StudentLookupPort,
)

logger = logging.getLogger(__name__)

COURSE = "COURSE"

_SESSION_FIELDS = ("title", "description", "position", "is_published")
_CHAPTER_FIELDS = (
    "title",
    "video_url",
    "video_duration",
    "is_free_preview",
    "is_published",
    "position",
)
_SESSION_NOT_NULL = ("title", "position", "is_published")
_CHAPTER_NOT_NULL = ("slug", *_CHAPTER_FIELDS)


# --- Pure Functions ---


def clamp_progress(value: int) -> int:
    return max(0, min(100, value))


def completion_percent(completed: int, total: int) -> int:
    """Whole percent, rounding half up; a course without chapters is at 0."""
    if total <= 0:
        return 0
    return int(completed * 100 / total + 0.5)


def is_chapter_complete(progress: int, flagged: bool, threshold: int) -> bool:
    return flagged or progress >= threshold


def validate_counts(values: dict[str, Any]) -> list[CourseError]:
    errors = []
    for name in ("position", "video_duration"):
        value = values.get(name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            label = name.replace("_", " ").capitalize()
            errors.append(CourseError(f"invalid_{name}", f"{label} must be 0 or more", name))
    return errors


def can_watch(viewer: User | None, chapter: CourseChapter, enrolled: bool) -> bool:
    """Admins and enrolled students see every video; free previews need only a login."""
    if viewer is None:
        return False
    return viewer.is_admin or enrolled or chapter.is_free_preview


# --- Service ---


class CourseService:
    def __init__(
        self,
        items: CourseCatalogPort,
        sessions: SessionRepoPort,
        chapters: ChapterRepoPort,
        progress: ChapterProgressRepoPort,
        enrollments: CourseEnrollmentRepoPort,
        users: StudentLookupPort,
        certificates: CertificateIssuerPort,
        clock: ClockPort,
        rules: CourseRules,
    ) -> None:
        self._items = items
        self._sessions = sessions
        self._chapters = chapters
        self._progress = progress
        self._enrollments = enrollments
        self._users = users
        self._certificates = certificates
        self._clock = clock
        self.rules = rules

    def _course(self, course_id: str) -> CatalogItem | None:
        try:
            item = self._items.get_by_id(UUID(str(course_id)))
        except ValueError:
            return None
        if not item or item.item_type != COURSE:
            return None
        return item

    def _published(self, course_id: str) -> tuple[list[CourseSession], list[CourseChapter]]:
        sessions = self._sessions.list_for_course(course_id, published_only=True)
        chapters = self._chapters.list_for_sessions([s.id for s in sessions], published_only=True)
        return sessions, chapters

    def _slug_clash(self, course_id: str, slug: str, exclude_id: UUID | None = None) -> bool:
        found = self._chapters.find_in_course(course_id, slug)
        return found is not None and found.id != exclude_id

    # --- Sessions (admin) ---

    def create_session(
        self, course_id: str, data: SessionInput
    ) -> tuple[CourseSession | None, list[CourseError]]:
        course = self._course(course_id)
        if not course:
            return None, [CourseError("course_not_found", "Course not found")]
        errors = require(data.title, "title") + validate_counts({"position": data.position})
        if errors:
            return None, errors
        position = data.position
        if position is None:
            position = self._sessions.next_position(str(course.id))
        now = self._clock.now_utc()
        session = CourseSession(
            course_id=str(course.id),
            title=data.title.strip(),
            description=data.description,
            position=position,
            is_published=data.is_published,
            created_at=now,
            updated_at=now,
        )
        self._sessions.save(session)
        logger.info("Session '%s' added to course %s", session.title, course.slug)
        return session, []

    def update_session(
        self, session_id: UUID, updates: dict[str, Any]
    ) -> tuple[CourseSession | None, list[CourseError]]:
        session = self._sessions.get_by_id(session_id)
        if not session:
            return None, [CourseError("session_not_found", "Session not found")]
        errors = reject_nulls(updates, _SESSION_NOT_NULL) + validate_counts(updates)
        if "title" in updates and updates["title"] is not None:
            errors += require(updates["title"], "title")
        if errors:
            return None, errors
        changes = {k: updates[k] for k in _SESSION_FIELDS if k in updates}
        if "title" in changes:
            changes["title"] = changes["title"].strip()
        changes["updated_at"] = self._clock.now_utc()
        return self._sessions.save(session.model_copy(update=changes)), []

    def delete_session(self, session_id: UUID) -> list[CourseError]:
        """Removes the session with its chapters and their progress."""
        if not self._sessions.get_by_id(session_id):
            return [CourseError("session_not_found", "Session not found")]
        self._sessions.delete(session_id)
        return []

    # --- Chapters (admin) ---

    def create_chapter(
        self, session_id: UUID, data: ChapterInput
    ) -> tuple[CourseChapter | None, list[CourseError]]:
        session = self._sessions.get_by_id(session_id)
        if not session:
            return None, [CourseError("session_not_found", "Session not found")]
        errors = (
            require(data.title, "title")
            + require(data.video_url, "video_url", "Video URL")
            + validate_counts({"position": data.position, "video_duration": data.video_duration})
        )
        if errors:
            return None, errors
        slug = generate_slug(data.slug or data.title)
        if not slug:
            return None, [CourseError("slug_invalid", "Slug must contain letters or digits", "slug")]
        if self._slug_clash(session.course_id, slug):
            return None, [
                CourseError("slug_taken", f"A chapter with slug '{slug}' already exists", "slug")
            ]
        position = data.position
        if position is None:
            position = self._chapters.next_position(session.id)
        now = self._clock.now_utc()
        chapter = CourseChapter(
            session_id=session.id,
            title=data.title.strip(),
            slug=slug,
            video_url=data.video_url.strip(),
            video_duration=data.video_duration,
            is_free_preview=data.is_free_preview,
            is_published=data.is_published,
            position=position,
            created_at=now,
            updated_at=now,
        )
        self._chapters.save(chapter)
        return chapter, []

    def update_chapter(
        self, chapter_id: UUID, updates: dict[str, Any]
    ) -> tuple[CourseChapter | None, list[CourseError]]:
        chapter = self._chapters.get_by_id(chapter_id)
        if not chapter:
            return None, [CourseError("chapter_not_found", "Chapter not found")]
        errors = reject_nulls(updates, _CHAPTER_NOT_NULL) + validate_counts(updates)
        for name, label in (("title", None), ("video_url", "Video URL")):
            if updates.get(name) is not None:
                errors += require(updates[name], name, label)
        if errors:
            return None, errors
        changes = {k: updates[k] for k in _CHAPTER_FIELDS if k in updates}
        for name in ("title", "video_url"):
            if name in changes:
                changes[name] = changes[name].strip()
        if "slug" in updates:
            slug = generate_slug(updates["slug"])
            if not slug:
                return None, [CourseError("slug_invalid", "Slug must contain letters or digits", "slug")]
            session = self._sessions.get_by_id(chapter.session_id)
            clash = session is not None and self._slug_clash(session.course_id, slug, chapter.id)
            if slug != chapter.slug and clash:
                return None, [
                    CourseError("slug_taken", f"A chapter with slug '{slug}' already exists", "slug")
                ]
            changes["slug"] = slug
        changes["updated_at"] = self._clock.now_utc()
        return self._chapters.save(chapter.model_copy(update=changes)), []

    def delete_chapter(self, chapter_id: UUID) -> list[CourseError]:
        if not self._chapters.get_by_id(chapter_id):
            return [CourseError("chapter_not_found", "Chapter not found")]
        self._chapters.delete(chapter_id)
        return []

    # --- Viewing ---

    def curriculum(
        self, course_id: str, viewer: User | None = None
    ) -> tuple[Curriculum | None, list[CourseError]]:
        """
        Sessions and chapters in order.

        Admins get drafts too; everyone else sees only published content of a
        published course.
        """
        course = self._course(course_id)
        is_admin = bool(viewer and viewer.is_admin)
        if not course or not (course.is_published or is_admin):
            return None, [CourseError("course_not_found", "Course not found")]

        course_key = str(course.id)
        sessions = self._sessions.list_for_course(course_key, published_only=not is_admin)
        chapters = self._chapters.list_for_sessions(
            [s.id for s in sessions], published_only=not is_admin
        )
        enrolled = bool(viewer and self._enrollments.get(viewer.id, COURSE, course_key))
        watched: dict[UUID, ChapterProgress] = {}
        if viewer:
            entries = self._progress.list_for_user(viewer.id, [c.id for c in chapters])
            watched = {p.chapter_id: p for p in entries}
        outlines = [
            SessionOutline(
                session=s,
                chapters=[
                    ChapterView(c, can_watch(viewer, c, enrolled), watched.get(c.id))
                    for c in chapters
                    if c.session_id == s.id
                ],
            )
            for s in sessions
        ]
        return Curriculum(course=course, sessions=outlines, is_enrolled=enrolled), []

    def chapter_page(
        self, course_slug: str, chapter_slug: str, viewer: User | None = None
    ) -> tuple[ChapterPage | None, list[CourseError]]:
        course = self._items.get_by_slug(COURSE, course_slug)
        is_admin = bool(viewer and viewer.is_admin)
        if not course or not (course.is_published or is_admin):
            return None, [CourseError("course_not_found", "Course not found")]
        chapter = self._chapters.find_in_course(str(course.id), chapter_slug)
        session = self._sessions.get_by_id(chapter.session_id) if chapter else None
        visible = bool(chapter and session and chapter.is_published and session.is_published)
        if not chapter or not session or not (is_admin or visible):
            return None, [CourseError("chapter_not_found", "Chapter not found")]

        enrolled = bool(viewer and self._enrollments.get(viewer.id, COURSE, str(course.id)))
        watched = self._progress.get(viewer.id, chapter.id) if viewer else None
        view = ChapterView(chapter, can_watch(viewer, chapter, enrolled), watched)
        return ChapterPage(course=course, session=session, view=view), []

    # --- Progress ---

    def _progress_for(self, user_id: UUID, enrollment: Enrollment) -> CourseProgress:
        sessions, chapters = self._published(enrollment.item_id)
        entries = self._progress.list_for_user(user_id, [c.id for c in chapters])
        completed = sum(1 for e in entries if e.completed)
        return CourseProgress(
            course_id=enrollment.item_id,
            total_sessions=len(sessions),
            total_chapters=len(chapters),
            completed_chapters=completed,
            percentage=completion_percent(completed, len(chapters)),
            completed_at=enrollment.completed_at,
            last_watched_at=max((e.last_watched_at for e in entries), default=None),
            chapters=entries,
        )

    def course_progress(
        self, user: User, course_id: str
    ) -> tuple[CourseProgress | None, list[CourseError]]:
        enrollment = self._enrollments.get(user.id, COURSE, course_id)
        if not enrollment:
            return None, [
                CourseError("enrollment_not_found", "You are not enrolled in this course")
            ]
        return self._progress_for(user.id, enrollment), []

    def record_progress(
        self, user: User, chapter_id: UUID, progress: int, completed: bool = False
    ) -> tuple[ProgressUpdate | None, list[CourseError]]:
        """
        Store how far ``user`` watched a chapter and re-derive course progress.

        A chapter counts as completed once flagged or watched past the
        configured threshold and stays completed afterwards.
        """
        chapter = self._chapters.get_by_id(chapter_id)
        session = self._sessions.get_by_id(chapter.session_id) if chapter else None
        if not chapter or not session or not (chapter.is_published and session.is_published):
            return None, [CourseError("chapter_not_found", "Chapter not found")]
        enrollment = self._enrollments.get(user.id, COURSE, session.course_id)
        if not enrollment:
            return None, [CourseError("not_enrolled", "You are not enrolled in this course")]

        now = self._clock.now_utc()
        value = clamp_progress(progress)
        entry = self._progress.get(user.id, chapter.id) or ChapterProgress(
            user_id=user.id, chapter_id=chapter.id
        )
        entry.progress = value
        entry.completed = entry.completed or is_chapter_complete(
            value, completed, self.rules.chapter_complete_percent
        )
        entry.last_watched_at = now
        self._progress.save(entry)

        summary = self._progress_for(user.id, enrollment)
        enrollment.progress = summary.percentage
        newly_completed = summary.percentage >= 100 and enrollment.completed_at is None
        if newly_completed:
            enrollment.completed_at = now
        self._enrollments.save(enrollment)

        if newly_completed:
            logger.info("Course %s completed by user %s", session.course_id, user.id)
            _, cert_errors = self._certificates.issue(user.id, COURSE, session.course_id)
            if cert_errors:
                logger.warning(
                    "Course %s completed by %s but no certificate: %s",
                    session.course_id,
                    user.id,
                    cert_errors,
                )
        return (
            ProgressUpdate(
                chapter=entry,
                course=self._progress_for(user.id, enrollment),
                course_completed=newly_completed,
            ),
            [],
        )

    # --- Enrollments (admin) ---

    def manual_enroll(
        self, email: str, course_id: str
    ) -> tuple[Enrollment | None, list[CourseError]]:
        """Enroll an existing account without an order (offline payment, scholarship)."""
        errors = require(email, "email") + require(course_id, "course_id", "Course")
        if errors:
            return None, errors
        user = self._users.get_by_email(email)
        if not user:
            return None, [CourseError("user_not_found", "No account with that email", "email")]
        course = self._course(course_id)
        if not course:
            return None, [CourseError("course_not_found", "Course not found", "course_id")]
        if self._enrollments.get(user.id, COURSE, str(course.id)):
            return None, [
                CourseError("enrollment_taken", "User is already enrolled in this course")
            ]
        enrollment = Enrollment(
            user_id=user.id,
            item_type=COURSE,
            item_id=str(course.id),
            created_at=self._clock.now_utc(),
        )
        self._enrollments.save(enrollment)
        logger.info("User %s manually enrolled in course %s", user.id, course.slug)
        return enrollment, []

    def _summarise(
        self, enrollment: Enrollment, courses: dict[str, CatalogItem | None]
    ) -> EnrollmentSummary:
        if enrollment.item_id not in courses:
            courses[enrollment.item_id] = self._course(enrollment.item_id)
        return EnrollmentSummary(
            enrollment=enrollment,
            user=self._users.get_by_id(enrollment.user_id),
            course=courses[enrollment.item_id],
            progress=self._progress_for(enrollment.user_id, enrollment),
        )

    def list_enrollments(
        self,
        course_id: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[EnrollmentSummary], int]:
        rows, total = self._enrollments.list_course_enrollments(course_id, search, offset, limit)
        courses: dict[str, CatalogItem | None] = {}
        return [self._summarise(e, courses) for e in rows], total

    def enrollment_details(
        self, enrollment_id: UUID
    ) -> tuple[EnrollmentSummary | None, list[CourseError]]:
        enrollment = self._enrollments.get_by_id(enrollment_id)
        if not enrollment or enrollment.item_type != COURSE:
            return None, [CourseError("enrollment_not_found", "Enrollment not found")]
        return self._summarise(enrollment, {}), []

    def course_stats(self, offset: int = 0, limit: int = 20) -> tuple[list[CourseStats], int]:
        courses, total = self._items.list_items(COURSE, offset=offset, limit=limit)
        stats = []
        for course in courses:
            _, chapters = self._published(str(course.id))
            enrollments = self._enrollments.list_for_item(COURSE, str(course.id))
            done = sum(1 for e in enrollments if e.completed_at is not None)
            started = sum(1 for e in enrollments if e.completed_at is None and e.progress > 0)
            average = completion_percent(sum(e.progress for e in enrollments), 100 * len(enrollments))
            stats.append(
                CourseStats(
                    course_id=str(course.id),
                    title=course.title,
                    total_chapters=len(chapters),
                    total_enrollments=len(enrollments),
                    completed_enrollments=done,
                    in_progress_enrollments=started,
                    average_progress=average,
                )
            )
        return stats, total
