"""Persistence contract used by the indexing and retrieval services."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from profile_rag.models.chunk import ResourceChunk
from profile_rag.models.embedding import ResourceEmbedding
from profile_rag.models.indexing_job import IndexingJob, IndexingJobUpdate
from profile_rag.models.profile import Profile
from profile_rag.models.resource import Resource


class Store(ABC):
    """
    Async CRUD for profiles, resources, chunks, embeddings and indexing jobs.

    Getters return None for unknown ids; updates return None when the record
    does not exist; deletes return whether a record was removed.
    """

    # Profiles

    @abstractmethod
    async def create_profile(self, profile: Profile) -> Profile: ...

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Optional[Profile]: ...

    @abstractmethod
    async def list_profiles(self) -> List[Profile]: ...

    @abstractmethod
    async def update_profile(self, profile_id: str, **fields: Any) -> Optional[Profile]: ...

    @abstractmethod
    async def delete_profile(self, profile_id: str) -> bool: ...

    # Resources

    @abstractmethod
    async def create_resource(self, resource: Resource) -> Resource: ...

    @abstractmethod
    async def get_resource(self, resource_id: str) -> Optional[Resource]: ...

    @abstractmethod
    async def list_resources(self, profile_id: str) -> List[Resource]:
        """Resources of a profile, oldest first."""

    @abstractmethod
    async def update_resource(self, resource_id: str, **fields: Any) -> Optional[Resource]: ...

    @abstractmethod
    async def delete_resource(self, resource_id: str) -> bool: ...

    # Chunks

    @abstractmethod
    async def create_chunks(self, chunks: List[ResourceChunk]) -> List[ResourceChunk]: ...

    @abstractmethod
    async def list_chunks(self, resource_id: str) -> List[ResourceChunk]:
        """Chunks of a resource ordered by chunk_index."""

    @abstractmethod
    async def delete_chunk(self, chunk_id: str) -> bool: ...

    # Embeddings

    @abstractmethod
    async def create_embeddings(
        self, embeddings: List[ResourceEmbedding]
    ) -> List[ResourceEmbedding]: ...

    @abstractmethod
    async def list_embeddings(self, chunk_id: str) -> List[ResourceEmbedding]: ...

    @abstractmethod
    async def delete_embedding(self, embedding_id: str) -> bool: ...

    # Indexing jobs

    @abstractmethod
    async def create_job(self, job: IndexingJob) -> IndexingJob: ...

    @abstractmethod
    async def get_job(self, job_id: str) -> Optional[IndexingJob]: ...

    @abstractmethod
    async def list_jobs(self, profile_id: str) -> List[IndexingJob]:
        """Jobs of a profile, newest first."""

    @abstractmethod
    async def update_job(self, job_id: str, update: IndexingJobUpdate) -> Optional[IndexingJob]:
        """Apply a partial update; progress is recomputed from the step counts."""

    async def close(self) -> None:
        """Release backend resources."""
        return None
