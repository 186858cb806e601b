"""Indexing job repository."""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from profile_rag.database.models import IndexingJobRecord
from profile_rag.models.indexing_job import IndexingJob, JobStatus
from profile_rag.repositories.base import BaseRepository


class JobRepository(BaseRepository[IndexingJobRecord]):
    """Repository for indexing jobs."""

    def __init__(self, session: AsyncSession):
        super().__init__(IndexingJobRecord, session)

    @staticmethod
    def to_model(record: IndexingJobRecord) -> IndexingJob:
        return IndexingJob(
            id=record.id,
            profile_id=record.profile_id,
            status=JobStatus(record.status),
            total_steps=record.total_steps,
            processed_steps=record.processed_steps,
            progress=record.progress,
            succeeded_steps=record.succeeded_steps,
            failed_steps=record.failed_steps,
            resource_errors=dict(record.resource_errors or {}),
            error=record.error,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    def from_model(job: IndexingJob) -> IndexingJobRecord:
        data = job.model_dump()
        data["status"] = job.status.value
        return IndexingJobRecord(**data)

    async def get_by_profile_id(self, profile_id: str) -> List[IndexingJobRecord]:
        return await self.list_by(
            order_by=IndexingJobRecord.created_at.desc(), profile_id=profile_id
        )
