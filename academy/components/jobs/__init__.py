"""
Jobs component - Job board postings and moderation.
"""

from .component import (
    HIDDEN_MESSAGE,
    JOB_STATUSES,
    JobError,
    JobInput,
    JobRepoPort,
    JobService,
    can_manage,
    is_public,
    publish,
)

__all__ = [
    "HIDDEN_MESSAGE",
    "JOB_STATUSES",
    "JobError",
    "JobInput",
    "JobRepoPort",
    "JobService",
    "can_manage",
    "is_public",
    "publish",
]
