"""Indexing job models."""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field

from profile_rag.models.common import new_id, utcnow


class JobStatus(str, Enum):
    """Status values for an indexing job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


def compute_progress(processed_steps: int, total_steps: int) -> int:
    """Percentage of processed steps, rounded half up; 0 when there are no steps."""
    if total_steps <= 0:
        return 0
    return min(100, int(processed_steps * 100 / total_steps + 0.5))


class IndexingJob(BaseModel):
    """Tracks one run of indexing a profile's resources."""

    id: str = Field(default_factory=new_id)
    profile_id: str
    status: JobStatus = JobStatus.PENDING
    total_steps: int = Field(default=0, ge=0)
    processed_steps: int = Field(default=0, ge=0)
    progress: int = Field(default=0, ge=0, le=100)
    succeeded_steps: int = Field(default=0, ge=0)
    failed_steps: int = Field(default=0, ge=0)
    resource_errors: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class IndexingJobUpdate(BaseModel):
    """Partial update applied to a job by the store."""

    status: Optional[JobStatus] = None
    total_steps: Optional[int] = Field(default=None, ge=0)
    processed_steps: Optional[int] = Field(default=None, ge=0)
    succeeded_steps: Optional[int] = Field(default=None, ge=0)
    failed_steps: Optional[int] = Field(default=None, ge=0)
    resource_errors: Optional[Dict[str, str]] = None
    error: Optional[str] = None


def apply_job_update(job: IndexingJob, update: IndexingJobUpdate) -> IndexingJob:
    """
    Merge an update into a job.

    processed_steps never decreases and progress is always recomputed from
    the merged step counts.
    """
    changes = update.model_dump(exclude_unset=True)
    merged = job.model_copy(update=changes)
    if merged.processed_steps < job.processed_steps:
        merged.processed_steps = job.processed_steps
    merged.progress = compute_progress(merged.processed_steps, merged.total_steps)
    merged.updated_at = utcnow()
    return merged
