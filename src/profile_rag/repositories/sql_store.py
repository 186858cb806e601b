"""Relational store built on the SQLAlchemy async ORM."""

from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from profile_rag.database.session import get_session_context
from profile_rag.models.chunk import ResourceChunk
from profile_rag.models.embedding import ResourceEmbedding
from profile_rag.models.indexing_job import IndexingJob, IndexingJobUpdate, apply_job_update
from profile_rag.models.profile import Profile
from profile_rag.models.resource import Resource
from profile_rag.repositories.chunk_repository import ChunkRepository, EmbeddingRepository
from profile_rag.repositories.job_repository import JobRepository
from profile_rag.repositories.profile_repository import ProfileRepository
from profile_rag.repositories.resource_repository import ResourceRepository
from profile_rag.repositories.store import Store


class SQLStore(Store):
    """Store backed by a relational database; one transaction per call."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    def _session(self):
        return get_session_context(self._session_factory)

    # Profiles

    async def create_profile(self, profile: Profile) -> Profile:
        async with self._session() as session:
            record = await ProfileRepository(session).add(ProfileRepository.from_model(profile))
            return ProfileRepository.to_model(record)

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        async with self._session() as session:
            record = await ProfileRepository(session).get_by_id(profile_id)
            return ProfileRepository.to_model(record) if record else None

    async def list_profiles(self) -> List[Profile]:
        async with self._session() as session:
            records = await ProfileRepository(session).list_all()
            return [ProfileRepository.to_model(r) for r in records]

    async def update_profile(self, profile_id: str, **fields: Any) -> Optional[Profile]:
        async with self._session() as session:
            record = await ProfileRepository(session).update(
                profile_id, **ProfileRepository.to_columns(fields)
            )
            return ProfileRepository.to_model(record) if record else None

    async def delete_profile(self, profile_id: str) -> bool:
        async with self._session() as session:
            return await ProfileRepository(session).delete(profile_id)

    # Resources

    async def create_resource(self, resource: Resource) -> Resource:
        async with self._session() as session:
            record = await ResourceRepository(session).add(ResourceRepository.from_model(resource))
            return ResourceRepository.to_model(record)

    async def get_resource(self, resource_id: str) -> Optional[Resource]:
        async with self._session() as session:
            record = await ResourceRepository(session).get_by_id(resource_id)
            return ResourceRepository.to_model(record) if record else None

    async def list_resources(self, profile_id: str) -> List[Resource]:
        async with self._session() as session:
            records = await ResourceRepository(session).get_by_profile_id(profile_id)
            return [ResourceRepository.to_model(r) for r in records]

    async def update_resource(self, resource_id: str, **fields: Any) -> Optional[Resource]:
        async with self._session() as session:
            record = await ResourceRepository(session).update(
                resource_id, **ResourceRepository.to_columns(fields)
            )
            return ResourceRepository.to_model(record) if record else None

    async def delete_resource(self, resource_id: str) -> bool:
        async with self._session() as session:
            return await ResourceRepository(session).delete(resource_id)

    # Chunks

    async def create_chunks(self, chunks: List[ResourceChunk]) -> List[ResourceChunk]:
        if not chunks:
            return []
        async with self._session() as session:
            records = await ChunkRepository(session).add_all(
                [ChunkRepository.from_model(c) for c in chunks]
            )
            return [ChunkRepository.to_model(r) for r in records]

    async def list_chunks(self, resource_id: str) -> List[ResourceChunk]:
        async with self._session() as session:
            records = await ChunkRepository(session).get_by_resource_id(resource_id)
            return [ChunkRepository.to_model(r) for r in records]

    async def delete_chunk(self, chunk_id: str) -> bool:
        async with self._session() as session:
            return await ChunkRepository(session).delete(chunk_id)

    # Embeddings

    async def create_embeddings(
        self, embeddings: List[ResourceEmbedding]
    ) -> List[ResourceEmbedding]:
        if not embeddings:
            return []
        async with self._session() as session:
            records = await EmbeddingRepository(session).add_all(
                [EmbeddingRepository.from_model(e) for e in embeddings]
            )
            return [EmbeddingRepository.to_model(r) for r in records]

    async def list_embeddings(self, chunk_id: str) -> List[ResourceEmbedding]:
        async with self._session() as session:
            records = await EmbeddingRepository(session).get_by_chunk_id(chunk_id)
            return [EmbeddingRepository.to_model(r) for r in records]

    async def delete_embedding(self, embedding_id: str) -> bool:
        async with self._session() as session:
            return await EmbeddingRepository(session).delete(embedding_id)

    # Indexing jobs

    async def create_job(self, job: IndexingJob) -> IndexingJob:
        async with self._session() as session:
            record = await JobRepository(session).add(JobRepository.from_model(job))
            return JobRepository.to_model(record)

    async def get_job(self, job_id: str) -> Optional[IndexingJob]:
        async with self._session() as session:
            record = await JobRepository(session).get_by_id(job_id)
            return JobRepository.to_model(record) if record else None

    async def list_jobs(self, profile_id: str) -> List[IndexingJob]:
        async with self._session() as session:
            records = await JobRepository(session).get_by_profile_id(profile_id)
            return [JobRepository.to_model(r) for r in records]

    async def update_job(self, job_id: str, update: IndexingJobUpdate) -> Optional[IndexingJob]:
        async with self._session() as session:
            repo = JobRepository(session)
            record = await repo.get_by_id(job_id)
            if record is None:
                return None
            merged = apply_job_update(JobRepository.to_model(record), update)
            record = await repo.update(
                job_id,
                status=merged.status.value,
                total_steps=merged.total_steps,
                processed_steps=merged.processed_steps,
                progress=merged.progress,
                succeeded_steps=merged.succeeded_steps,
                failed_steps=merged.failed_steps,
                resource_errors=dict(merged.resource_errors),
                error=merged.error,
                updated_at=merged.updated_at,
            )
            return JobRepository.to_model(record)
