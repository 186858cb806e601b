"""Knowledge-base resource management."""

import time
from typing import List, Optional

from profile_rag.config import Settings, get_settings
from profile_rag.models.common import new_id
from profile_rag.models.profile import IndexStatus, Profile
from profile_rag.models.resource import Resource, ResourceType
from profile_rag.repositories.store import Store
from profile_rag.services.indexing_service import IndexingOrchestrator
from profile_rag.services.storage_service import FileStorageService
from profile_rag.utils.errors import NotFoundError, RagException, ValidationError
from profile_rag.utils.logging import get_logger

logger = get_logger("resource_service")


class ResourceService:
    """
    Add and remove the resources attached to a profile.

    Any change to the resources of a profile whose index is ready marks the
    index stale; re-indexing is left to the caller.
    """

    def __init__(
        self,
        store: Store,
        storage: FileStorageService,
        indexing: IndexingOrchestrator,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.storage = storage
        self.indexing = indexing
        self.max_file_size = settings.storage.max_file_size_bytes

    async def _get_profile(self, profile_id: str) -> Profile:
        profile = await self.store.get_profile(profile_id)
        if profile is None:
            raise NotFoundError("Profile", profile_id)
        return profile

    async def _mark_stale(self, profile: Profile) -> None:
        if profile.rag_enabled and profile.index_status == IndexStatus.READY:
            await self.store.update_profile(profile.id, index_status=IndexStatus.STALE)
            logger.info(f"Profile index marked stale: profile_id={profile.id}")

    async def add_file_resource(
        self,
        profile_id: str,
        filename: str,
        data: bytes,
        mime_type: Optional[str] = None,
    ) -> Resource:
        """
        Store an uploaded file and register it as a resource.

        Raises:
            NotFoundError: Unknown profile
            ValidationError: Empty or oversized file
        """
        profile = await self._get_profile(profile_id)

        if not data:
            raise ValidationError("Uploaded file is empty", details={"filename": filename})
        if len(data) > self.max_file_size:
            raise ValidationError(
                "Uploaded file is too large",
                details={
                    "filename": filename,
                    "size_bytes": len(data),
                    "max_size_bytes": self.max_file_size,
                },
            )

        resource_id = new_id()
        content_path = await self.storage.store_file(profile_id, filename, data, prefix=resource_id)
        resource = await self.store.create_resource(
            Resource(
                id=resource_id,
                profile_id=profile_id,
                type=ResourceType.FILE,
                original_name=filename,
                content_path=content_path,
                mime_type=mime_type or "application/octet-stream",
                size_bytes=len(data),
            )
        )
        logger.info(
            f"File resource added: profile_id={profile_id}, resource_id={resource.id}, "
            f"name={filename}, size={len(data)}"
        )

        await self._mark_stale(profile)
        return resource

    async def add_text_resource(
        self, profile_id: str, content: str, name: Optional[str] = None
    ) -> Resource:
        """
        Store pasted text as a resource.

        Raises:
            NotFoundError: Unknown profile
            ValidationError: Blank content
        """
        profile = await self._get_profile(profile_id)

        if not content or not content.strip():
            raise ValidationError("Text content is required", errors={"content": "empty"})

        filename = name or f"text_{int(time.time() * 1000)}.txt"
        data = content.encode("utf-8")
        resource_id = new_id()
        content_path = await self.storage.store_file(profile_id, filename, data, prefix=resource_id)
        resource = await self.store.create_resource(
            Resource(
                id=resource_id,
                profile_id=profile_id,
                type=ResourceType.TEXT,
                original_name=filename,
                content_path=content_path,
                mime_type="text/plain",
                size_bytes=len(data),
            )
        )
        logger.info(
            f"Text resource added: profile_id={profile_id}, resource_id={resource.id}, "
            f"name={filename}, length={len(content)}"
        )

        await self._mark_stale(profile)
        return resource

    async def list_resources(self, profile_id: str) -> List[Resource]:
        await self._get_profile(profile_id)
        return await self.store.list_resources(profile_id)

    async def delete_resource(self, profile_id: str, resource_id: str) -> None:
        """
        Delete a resource with its index data and raw file.

        Raises:
            NotFoundError: Unknown profile or resource
            ValidationError: The resource belongs to another profile
        """
        profile = await self._get_profile(profile_id)
        resource = await self.store.get_resource(resource_id)
        if resource is None:
            raise NotFoundError("Resource", resource_id)
        if resource.profile_id != profile_id:
            raise ValidationError(
                "Resource does not belong to this profile",
                details={"profile_id": profile_id, "resource_id": resource_id},
            )

        await self.indexing.delete_resource_index(resource_id)

        try:
            await self.storage.delete_file(resource.content_path)
        except RagException as e:
            logger.error(f"Failed to delete resource file: {resource.content_path} - {e.message}")

        await self.store.delete_resource(resource_id)
        logger.info(f"Resource deleted: profile_id={profile_id}, resource_id={resource_id}")

        await self._mark_stale(profile)
