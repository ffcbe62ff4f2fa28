"""
Courses component - Curriculum, chapter progress and course enrollments.
"""

from .component import (
    CourseService,
    can_watch,
    clamp_progress,
    completion_percent,
    is_chapter_complete,
    validate_counts,
)
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

__all__ = [
    "CourseService",
    "can_watch",
    "clamp_progress",
    "completion_percent",
    "is_chapter_complete",
    "validate_counts",
    "ChapterInput",
    "ChapterPage",
    "ChapterView",
    "CourseError",
    "CourseProgress",
    "CourseStats",
    "Curriculum",
    "EnrollmentSummary",
    "ProgressUpdate",
    "SessionInput",
    "SessionOutline",
    "CertificateIssuerPort",
    "ChapterProgressRepoPort",
    "ChapterRepoPort",
    "CourseCatalogPort",
    "CourseEnrollmentRepoPort",
    "SessionRepoPort",
    "StudentLookupPort",
]
