from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from academy.api.deps import (
    get_admin_user,
    get_current_user,
    get_job_service,
    get_optional_user,
    get_page,
)
from academy.api.envelope import not_found, ok, paged, raise_for_errors
from academy.api.schemas import (
    JobCreateRequest,
    JobUpdateRequest,
    JobVerifyRequest,
    set_fields,
)
from academy.components.jobs import JobInput, JobService
from academy.domain.entities import Job, User
from academy.domain.pagination import Page

router = APIRouter()


def job_out(job: Job) -> dict:
    return job.model_dump(mode="json")


@router.get("")
def list_jobs(
    search: str | None = None,
    job_type: str | None = None,
    location: str | None = None,
    experience: str | None = None,
    page: Page = Depends(get_page),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    """Published, verified jobs."""
    jobs, total = service.list_public(search, job_type, location, experience, page.offset, page.limit)
    return paged([job_out(j) for j in jobs], total, page)


@router.get("/slug/{slug}")
def get_job(
    slug: str,
    viewer: User | None = Depends(get_optional_user),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    job, errors = service.get_by_slug(slug, viewer)
    raise_for_errors(errors)
    assert job is not None
    return ok(job_out(job))


@router.post("")
def create_job(
    req: JobCreateRequest,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    job, errors = service.create(current_user, JobInput(**req.model_dump()))
    raise_for_errors(errors)
    assert job is not None
    message = "Job posted" if job.status == "PUBLISHED" else "Job submitted for review"
    return ok(job_out(job), message, status.HTTP_201_CREATED)


@router.put("/{job_id}")
def update_job(
    job_id: UUID,
    req: JobUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    job, errors = service.update(current_user, job_id, set_fields(req))
    raise_for_errors(errors)
    assert job is not None
    return ok(job_out(job), "Job updated")


@router.delete("/{job_id}")
def delete_job(
    job_id: UUID,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    raise_for_errors(service.delete(current_user, job_id))
    return ok(None, "Job deleted")


# --- Admin ---


@router.get("/admin/all")
def admin_list_jobs(
    status_filter: str | None = Query(None, alias="status"),
    search: str | None = None,
    page: Page = Depends(get_page),
    _admin: User = Depends(get_admin_user),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    jobs, total = service.list_admin(
        status_filter.upper() if status_filter else None, search, page.offset, page.limit
    )
    return paged([job_out(j) for j in jobs], total, page)


@router.get("/admin/{job_id}")
def admin_get_job(
    job_id: UUID,
    _admin: User = Depends(get_admin_user),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    job = service.get(job_id)
    if not job:
        raise not_found("Job not found")
    return ok(job_out(job))


@router.patch("/{job_id}/verify")
def verify_job(
    job_id: UUID,
    req: JobVerifyRequest,
    _admin: User = Depends(get_admin_user),
    service: JobService = Depends(get_job_service),
) -> JSONResponse:
    job, errors = service.verify(job_id, req.verify)
    raise_for_errors(errors)
    assert job is not None
    return ok(job_out(job), "Job verified" if req.verify else "Job rejected")
