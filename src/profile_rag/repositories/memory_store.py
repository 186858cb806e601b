"""Dict-backed store for development and tests."""

import asyncio
from typing import Any, Dict, List, Optional, TypeVar

from pydantic import BaseModel

from profile_rag.models.chunk import ResourceChunk
from profile_rag.models.embedding import ResourceEmbedding
from profile_rag.models.indexing_job import IndexingJob, IndexingJobUpdate, apply_job_update
from profile_rag.models.profile import Profile
from profile_rag.models.resource import Resource
from profile_rag.repositories.store import Store
from profile_rag.utils.logging import get_logger

logger = get_logger("memory_store")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _copy(model: ModelT) -> ModelT:
    return model.model_copy(deep=True)


class InMemoryStore(Store):
    """
    Keeps every record in process memory.

    Records are copied on the way in and out so callers never share mutable
    state with the store.
    """

    def __init__(self) -> None:
        self._profiles: Dict[str, Profile] = {}
        self._resources: Dict[str, Resource] = {}
        self._chunks: Dict[str, ResourceChunk] = {}
        self._embeddings: Dict[str, ResourceEmbedding] = {}
        self._jobs: Dict[str, IndexingJob] = {}
        self._job_lock = asyncio.Lock()

    @staticmethod
    def _patch(model: ModelT, fields: Dict[str, Any]) -> ModelT:
        # Validate the merged record so bad values never land in the store
        data = model.model_dump()
        data.update(fields)
        return type(model).model_validate(data)

    # Profiles

    async def create_profile(self, profile: Profile) -> Profile:
        self._profiles[profile.id] = _copy(profile)
        return _copy(profile)

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        profile = self._profiles.get(profile_id)
        return _copy(profile) if profile else None

    async def list_profiles(self) -> List[Profile]:
        return [_copy(p) for p in sorted(self._profiles.values(), key=lambda p: p.created_at)]

    async def update_profile(self, profile_id: str, **fields: Any) -> Optional[Profile]:
        profile = self._profiles.get(profile_id)
        if profile is None:
            return None
        updated = self._patch(profile, fields)
        self._profiles[profile_id] = updated
        return _copy(updated)

    async def delete_profile(self, profile_id: str) -> bool:
        return self._profiles.pop(profile_id, None) is not None

    # Resources

    async def create_resource(self, resource: Resource) -> Resource:
        self._resources[resource.id] = _copy(resource)
        return _copy(resource)

    async def get_resource(self, resource_id: str) -> Optional[Resource]:
        resource = self._resources.get(resource_id)
        return _copy(resource) if resource else None

    async def list_resources(self, profile_id: str) -> List[Resource]:
        resources = [r for r in self._resources.values() if r.profile_id == profile_id]
        return [_copy(r) for r in sorted(resources, key=lambda r: r.created_at)]

    async def update_resource(self, resource_id: str, **fields: Any) -> Optional[Resource]:
        resource = self._resources.get(resource_id)
        if resource is None:
            return None
        updated = self._patch(resource, fields)
        self._resources[resource_id] = updated
        return _copy(updated)

    async def delete_resource(self, resource_id: str) -> bool:
        return self._resources.pop(resource_id, None) is not None

    # Chunks

    async def create_chunks(self, chunks: List[ResourceChunk]) -> List[ResourceChunk]:
        for chunk in chunks:
            self._chunks[chunk.id] = _copy(chunk)
        return [_copy(c) for c in chunks]

    async def list_chunks(self, resource_id: str) -> List[ResourceChunk]:
        chunks = [c for c in self._chunks.values() if c.resource_id == resource_id]
        return [_copy(c) for c in sorted(chunks, key=lambda c: c.chunk_index)]

    async def delete_chunk(self, chunk_id: str) -> bool:
        return self._chunks.pop(chunk_id, None) is not None

    # Embeddings

    async def create_embeddings(
        self, embeddings: List[ResourceEmbedding]
    ) -> List[ResourceEmbedding]:
        for embedding in embeddings:
            self._embeddings[embedding.id] = _copy(embedding)
        return [_copy(e) for e in embeddings]

    async def list_embeddings(self, chunk_id: str) -> List[ResourceEmbedding]:
        return [_copy(e) for e in self._embeddings.values() if e.chunk_id == chunk_id]

    async def delete_embedding(self, embedding_id: str) -> bool:
        return self._embeddings.pop(embedding_id, None) is not None

    # Indexing jobs

    async def create_job(self, job: IndexingJob) -> IndexingJob:
        self._jobs[job.id] = _copy(job)
        return _copy(job)

    async def get_job(self, job_id: str) -> Optional[IndexingJob]:
        job = self._jobs.get(job_id)
        return _copy(job) if job else None

    async def list_jobs(self, profile_id: str) -> List[IndexingJob]:
        jobs = [j for j in self._jobs.values() if j.profile_id == profile_id]
        return [_copy(j) for j in sorted(jobs, key=lambda j: j.created_at, reverse=True)]

    async def update_job(self, job_id: str, update: IndexingJobUpdate) -> Optional[IndexingJob]:
        async with self._job_lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            updated = apply_job_update(job, update)
            self._jobs[job_id] = updated
        logger.debug(
            f"Job {job_id} updated: status={updated.status.value}, progress={updated.progress}"
        )
        return _copy(updated)
