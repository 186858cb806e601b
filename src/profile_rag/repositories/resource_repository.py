"""Resource repository for data access operations."""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from profile_rag.database.models import ResourceRecord
from profile_rag.models.resource import Resource, ResourceType
from profile_rag.repositories.base import BaseRepository


class ResourceRepository(BaseRepository[ResourceRecord]):
    """Repository for knowledge-base resources."""

    def __init__(self, session: AsyncSession):
        super().__init__(ResourceRecord, session)

    @staticmethod
    def to_model(record: ResourceRecord) -> Resource:
        return Resource(
            id=record.id,
            profile_id=record.profile_id,
            type=ResourceType(record.type),
            original_name=record.original_name,
            content_path=record.content_path,
            mime_type=record.mime_type,
            size_bytes=record.size_bytes,
            indexed=record.indexed,
            metadata=record.metadata_ or {},
            created_at=record.created_at,
        )

    @staticmethod
    def to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
        columns = dict(fields)
        if "metadata" in columns:
            columns["metadata_"] = columns.pop("metadata")
        if "type" in columns:
            columns["type"] = ResourceType(columns["type"]).value
        return columns

    @classmethod
    def from_model(cls, resource: Resource) -> ResourceRecord:
        return ResourceRecord(**cls.to_columns(resource.model_dump()))

    async def get_by_profile_id(self, profile_id: str) -> List[ResourceRecord]:
        return await self.list_by(order_by=ResourceRecord.created_at, profile_id=profile_id)
