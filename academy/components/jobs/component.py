"""
Jobs - community job board with admin moderation.

Admins publish directly. Anyone else's posting waits as PENDING until an
admin verifies it; until then only the author and admins can see it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from academy.components.errors import ComponentError, reject_nulls, require
from academy.core.ports.time import ClockPort
from academy.domain.entities import Job, User
from academy.domain.identifiers import generate_slug

logger = logging.getLogger(__name__)

JobError = ComponentError

JOB_STATUSES = ("PENDING", "PUBLISHED", "REJECTED")
HIDDEN_MESSAGE = "Job not found or under review"

_EDITABLE = (
    "title",
    "company_name",
    "company_logo",
    "description",
    "requirements",
    "location",
    "salary",
    "job_types",
    "experience",
    "skills",
    "apply_link",
    "allows_quick_apply",
)


@dataclass(frozen=True)
class JobInput:
    title: str
    description: str
    slug: str | None = None
    company_name: str = ""
    company_logo: str | None = None
    requirements: str | None = None
    location: str | None = None
    salary: str | None = None
    job_types: list[str] = field(default_factory=list)
    experience: str | None = None
    skills: list[str] = field(default_factory=list)
    apply_link: str | None = None
    allows_quick_apply: bool = False


class JobRepoPort(Protocol):
    def save(self, job: Job) -> Job: ...

    def get_by_id(self, job_id: UUID) -> Job | None: ...

    def get_by_slug(self, slug: str) -> Job | None: ...

    def slug_exists(self, slug: str, exclude_id: UUID | None = None) -> bool: ...

    def list_jobs(
        self,
        public_only: bool = True,
        status: str | None = None,
        search: str | None = None,
        job_type: str | None = None,
        location: str | None = None,
        experience: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Job], int]: ...

    def delete(self, job_id: UUID) -> None: ...


# --- Pure Functions ---


def is_public(job: Job) -> bool:
    return job.status == "PUBLISHED" and job.is_verified


def can_manage(job: Job, actor: User | None) -> bool:
    if actor is None:
        return False
    return actor.is_admin or (job.author_id is not None and job.author_id == actor.id)


def publish(job: Job, now: datetime) -> None:
    job.status = "PUBLISHED"
    job.is_verified = True
    if job.posted_at is None:
        job.posted_at = now


# --- Service ---


class JobService:
    def __init__(self, repo: JobRepoPort, clock: ClockPort) -> None:
        self._repo = repo
        self._clock = clock

    def _unique_slug(self, base: str, exclude_id: UUID | None = None) -> str:
        slug, n = base, 2
        while self._repo.slug_exists(slug, exclude_id=exclude_id):
            slug = f"{base}-{n}"
            n += 1
        return slug

    def create(self, actor: User, data: JobInput) -> tuple[Job | None, list[JobError]]:
        errors = require(data.title, "title") + require(data.description, "description")
        if errors:
            return None, errors
        base = generate_slug(data.slug or data.title)
        if not base:
            return None, [JobError("slug_invalid", "Slug must contain letters or digits", "slug")]
        if data.slug and self._repo.slug_exists(base):
            return None, [JobError("slug_taken", f"A job with slug '{base}' already exists", "slug")]

        now = self._clock.now_utc()
        job = Job(
            title=data.title.strip(),
            slug=self._unique_slug(base),
            company_name=data.company_name,
            company_logo=data.company_logo,
            description=data.description,
            requirements=data.requirements,
            location=data.location,
            salary=data.salary,
            job_types=list(data.job_types),
            experience=data.experience,
            skills=list(data.skills),
            apply_link=data.apply_link,
            allows_quick_apply=data.allows_quick_apply,
            author_id=actor.id,
            created_at=now,
            updated_at=now,
        )
        if actor.is_admin:
            publish(job, now)
        self._repo.save(job)
        logger.info("Job %s posted by %s (%s)", job.slug, actor.id, job.status)
        return job, []

    def list_public(
        self,
        search: str | None,
        job_type: str | None,
        location: str | None,
        experience: str | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Job], int]:
        return self._repo.list_jobs(
            public_only=True,
            search=search,
            job_type=job_type,
            location=location,
            experience=experience,
            offset=offset,
            limit=limit,
        )

    def list_admin(
        self, status: str | None, search: str | None, offset: int, limit: int
    ) -> tuple[list[Job], int]:
        return self._repo.list_jobs(
            public_only=False, status=status, search=search, offset=offset, limit=limit
        )

    def get_by_slug(self, slug: str, viewer: User | None = None) -> tuple[Job | None, list[JobError]]:
        job = self._repo.get_by_slug(slug)
        if not job or not (is_public(job) or can_manage(job, viewer)):
            return None, [JobError("job_not_found", HIDDEN_MESSAGE)]
        return job, []

    def get(self, job_id: UUID) -> Job | None:
        return self._repo.get_by_id(job_id)

    def update(
        self, actor: User, job_id: UUID, updates: dict[str, Any]
    ) -> tuple[Job | None, list[JobError]]:
        job = self._repo.get_by_id(job_id)
        if not job:
            return None, [JobError("job_not_found", "Job not found")]
        if not can_manage(job, actor):
            return None, [JobError("forbidden", "You cannot edit this job")]
        errors = reject_nulls(updates, ("company_name", "job_types", "skills", "allows_quick_apply"))
        if errors:
            return None, errors
        for name in ("title", "description"):
            if name in updates:
                errors = require(updates[name], name)
                if errors:
                    return None, errors
        if updates.get("slug"):
            new_slug = generate_slug(updates["slug"])
            if not new_slug:
                return None, [JobError("slug_invalid", "Slug must contain letters or digits", "slug")]
            if new_slug != job.slug and self._repo.slug_exists(new_slug, exclude_id=job.id):
                return None, [
                    JobError("slug_taken", f"A job with slug '{new_slug}' already exists", "slug")
                ]
            job.slug = new_slug
        changes = {k: updates[k] for k in _EDITABLE if k in updates}
        changes["updated_at"] = self._clock.now_utc()
        updated = job.model_copy(update=changes)
        return self._repo.save(updated), []

    def delete(self, actor: User, job_id: UUID) -> list[JobError]:
        job = self._repo.get_by_id(job_id)
        if not job:
            return [JobError("job_not_found", "Job not found")]
        if not can_manage(job, actor):
            return [JobError("forbidden", "You cannot delete this job")]
        self._repo.delete(job_id)
        return []

    def verify(self, job_id: UUID, approve: bool) -> tuple[Job | None, list[JobError]]:
        """Admin moderation: approve publishes, reject hides."""
        job = self._repo.get_by_id(job_id)
        if not job:
            return None, [JobError("job_not_found", "Job not found")]
        now = self._clock.now_utc()
        if approve:
            publish(job, now)
        else:
            job.status = "REJECTED"
            job.is_verified = False
        job.updated_at = now
        logger.info("Job %s moderated: %s", job.slug, job.status)
        return self._repo.save(job), []
