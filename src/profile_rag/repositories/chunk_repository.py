"""Chunk and embedding repositories."""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from profile_rag.database.models import ResourceChunkRecord, ResourceEmbeddingRecord
from profile_rag.models.chunk import ResourceChunk
from profile_rag.models.embedding import ResourceEmbedding
from profile_rag.repositories.base import BaseRepository


class ChunkRepository(BaseRepository[ResourceChunkRecord]):
    """Repository for persisted resource chunks."""

    def __init__(self, session: AsyncSession):
        super().__init__(ResourceChunkRecord, session)

    @staticmethod
    def to_model(record: ResourceChunkRecord) -> ResourceChunk:
        return ResourceChunk(
            id=record.id,
            resource_id=record.resource_id,
            profile_id=record.profile_id,
            chunk_index=record.chunk_index,
            content=record.content,
            metadata=record.metadata_ or {},
            created_at=record.created_at,
        )

    @staticmethod
    def from_model(chunk: ResourceChunk) -> ResourceChunkRecord:
        return ResourceChunkRecord(
            id=chunk.id,
            resource_id=chunk.resource_id,
            profile_id=chunk.profile_id,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            metadata_=dict(chunk.metadata),
            created_at=chunk.created_at,
        )

    async def get_by_resource_id(self, resource_id: str) -> List[ResourceChunkRecord]:
        return await self.list_by(
            order_by=ResourceChunkRecord.chunk_index, resource_id=resource_id
        )


class EmbeddingRepository(BaseRepository[ResourceEmbeddingRecord]):
    """Repository for chunk-to-vector links."""

    def __init__(self, session: AsyncSession):
        super().__init__(ResourceEmbeddingRecord, session)

    @staticmethod
    def to_model(record: ResourceEmbeddingRecord) -> ResourceEmbedding:
        return ResourceEmbedding(
            id=record.id,
            chunk_id=record.chunk_id,
            profile_id=record.profile_id,
            embedding_model_id=record.embedding_model_id,
            vector_id=record.vector_id,
            created_at=record.created_at,
        )

    @staticmethod
    def from_model(embedding: ResourceEmbedding) -> ResourceEmbeddingRecord:
        return ResourceEmbeddingRecord(**embedding.model_dump())

    async def get_by_chunk_id(self, chunk_id: str) -> List[ResourceEmbeddingRecord]:
        return await self.list_by(
            order_by=ResourceEmbeddingRecord.created_at, chunk_id=chunk_id
        )
