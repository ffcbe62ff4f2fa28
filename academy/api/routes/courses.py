from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from academy.api.deps import (
    get_admin_user,
    get_course_service,
    get_current_user,
    get_optional_user,
    get_page,
)
from academy.api.envelope import ok, paged, raise_for_errors
from academy.api.schemas import (
    ChapterCreateRequest,
    ChapterProgressRequest,
    ChapterUpdateRequest,
    ManualEnrollRequest,
    SessionCreateRequest,
    SessionUpdateRequest,
    set_fields,
)
from academy.components.courses import ChapterInput, CourseService, SessionInput
from academy.domain.entities import User
from academy.domain.pagination import Page

router = APIRouter()


# --- Admin: enrollments ---


@router.get("/admin/enrollments")
def admin_list_enrollments(
    course_id: str | None = None,
    search: str | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    rows, total = service.list_enrollments(course_id, search, page.offset, page.limit)
    return paged([r.as_dict() for r in rows], total, page)


@router.get("/admin/enrollments/{enrollment_id}")
def admin_get_enrollment(
    enrollment_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    summary, errors = service.enrollment_details(enrollment_id)
    raise_for_errors(errors)
    assert summary is not None
    return ok(summary.as_dict())


@router.get("/admin/course-stats")
def admin_course_stats(
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    stats, total = service.course_stats(page.offset, page.limit)
    return paged([s.as_dict() for s in stats], total, page)


@router.post("/admin/manual-enroll")
def admin_manual_enroll(
    req: ManualEnrollRequest,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    enrollment, errors = service.manual_enroll(req.email, req.course_id)
    raise_for_errors(errors)
    assert enrollment is not None
    return ok(enrollment.model_dump(mode="json"), "User enrolled", status.HTTP_201_CREATED)


# --- Admin: curriculum ---


@router.post("/{course_id}/sessions")
def create_session(
    course_id: str,
    req: SessionCreateRequest,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    session, errors = service.create_session(course_id, SessionInput(**req.model_dump()))
    raise_for_errors(errors)
    assert session is not None
    return ok(session.model_dump(mode="json"), "Session created", status.HTTP_201_CREATED)


@router.patch("/sessions/{session_id}")
def update_session(
    session_id: UUID,
    req: SessionUpdateRequest,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    session, errors = service.update_session(session_id, set_fields(req))
    raise_for_errors(errors)
    assert session is not None
    return ok(session.model_dump(mode="json"), "Session updated")


@router.delete("/sessions/{session_id}")
def delete_session(
    session_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    raise_for_errors(service.delete_session(session_id))
    return ok(None, "Session deleted")


@router.post("/sessions/{session_id}/chapters")
def create_chapter(
    session_id: UUID,
    req: ChapterCreateRequest,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    chapter, errors = service.create_chapter(session_id, ChapterInput(**req.model_dump()))
    raise_for_errors(errors)
    assert chapter is not None
    return ok(chapter.model_dump(mode="json"), "Chapter created", status.HTTP_201_CREATED)


@router.patch("/chapters/{chapter_id}")
def update_chapter(
    chapter_id: UUID,
    req: ChapterUpdateRequest,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    chapter, errors = service.update_chapter(chapter_id, set_fields(req))
    raise_for_errors(errors)
    assert chapter is not None
    return ok(chapter.model_dump(mode="json"), "Chapter updated")


@router.delete("/chapters/{chapter_id}")
def delete_chapter(
    chapter_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    raise_for_errors(service.delete_chapter(chapter_id))
    return ok(None, "Chapter deleted")


# --- Students ---


@router.post("/chapters/{chapter_id}/progress")
def record_progress(
    chapter_id: UUID,
    req: ChapterProgressRequest,
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    """Store watch progress for one chapter; the course percentage follows from it."""
    update, errors = service.record_progress(current_user, chapter_id, req.progress, req.completed)
    raise_for_errors(errors)
    assert update is not None
    message = "Course completed" if update.course_completed else "Progress updated"
    return ok(update.as_dict(), message)


@router.get("/{course_id}/sessions")
def get_curriculum(
    course_id: str,
    viewer: User | None = Depends(get_optional_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    curriculum, errors = service.curriculum(course_id, viewer)
    raise_for_errors(errors)
    assert curriculum is not None
    return ok(curriculum.as_dict())


@router.get("/{course_id}/progress")
def get_progress(
    course_id: str,
    current_user: User = Depends(get_current_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    progress, errors = service.course_progress(current_user, course_id)
    raise_for_errors(errors)
    assert progress is not None
    return ok(progress.as_dict())


@router.get("/{course_slug}/chapters/{chapter_slug}")
def get_chapter(
    course_slug: str,
    chapter_slug: str,
    viewer: User | None = Depends(get_optional_user),
    service: CourseService = Depends(get_course_service),
) -> JSONResponse:
    page, errors = service.chapter_page(course_slug, chapter_slug, viewer)
    raise_for_errors(errors)
    assert page is not None
    return ok(page.as_dict())
