"""Profile repository for data access operations."""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from profile_rag.database.models import ProfileRecord
from profile_rag.models.profile import IndexStatus, Profile, RagSettings
from profile_rag.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[ProfileRecord]):
    """Repository for profile data access operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(ProfileRecord, session)

    @staticmethod
    def to_model(record: ProfileRecord) -> Profile:
        return Profile(
            id=record.id,
            name=record.name,
            description=record.description,
            system_context=record.system_context,
            rag_enabled=record.rag_enabled,
            embedding_model_id=record.embedding_model_id,
            rag_settings=RagSettings.model_validate(record.rag_settings or {}),
            index_status=IndexStatus(record.index_status),
            created_at=record.created_at,
        )

    @staticmethod
    def to_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
        """Convert domain field values to column values."""
        columns = dict(fields)
        if "index_status" in columns:
            columns["index_status"] = IndexStatus(columns["index_status"]).value
        if "rag_settings" in columns:
            columns["rag_settings"] = RagSettings.model_validate(columns["rag_settings"]).model_dump()
        return columns

    @classmethod
    def from_model(cls, profile: Profile) -> ProfileRecord:
        return ProfileRecord(**cls.to_columns(profile.model_dump()))

    async def list_all(self) -> List[ProfileRecord]:
        return await self.list_by(order_by=ProfileRecord.created_at)
