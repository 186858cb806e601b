"""Indexing orchestration: resources → chunks → embeddings → vectors."""

import asyncio
import time
from typing import Dict, List, Optional

from profile_rag.models.chunk import ResourceChunk
from profile_rag.models.embedding import ResourceEmbedding
from profile_rag.models.indexing_job import IndexingJob, IndexingJobUpdate, JobStatus
from profile_rag.models.profile import IndexStatus, Profile
from profile_rag.models.resource import Resource, ResourceType
from profile_rag.models.vector import VectorPayload, VectorPoint
from profile_rag.repositories.store import Store
from profile_rag.services.chunking_service import ChunkingService
from profile_rag.services.embedding_service import EmbeddingService
from profile_rag.services.storage_service import FileStorageService
from profile_rag.services.vector_store import VectorStore, get_collection_name
from profile_rag.utils.errors import (
    ConflictError,
    EmbeddingModelMissingError,
    NoResourcesError,
    NotFoundError,
    RagDisabledError,
    RagException,
)
from profile_rag.utils.logging import get_logger
from profile_rag.workers.indexing_tasks import IndexingTaskManager

logger = get_logger("indexing_service")


def make_vector_id(chunk_id: str, model_id: str) -> str:
    """Opaque vector id shared by the store and the vector backend."""
    return f"{chunk_id}_{model_id}"


def _error_message(exc: Exception) -> str:
    return exc.message if isinstance(exc, RagException) else str(exc) or type(exc).__name__


class IndexingOrchestrator:
    """
    Index a profile's resources into its vector collection.

    State machine per job:
    pending → processing → completed | failed | cancelled

    Pipeline per resource (sequential within a job):
    1. Read content (stored text, or extracted + cleaned file text)
    2. Chunk and persist chunks
    3. Embed chunk contents
    4. Upsert vectors and persist chunk → vector links
    5. Mark the resource indexed

    A failing resource is recorded on the job and skipped; only errors
    outside the resource loop fail the whole job.
    """

    def __init__(
        self,
        store: Store,
        storage: FileStorageService,
        chunking_service: ChunkingService,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        task_manager: IndexingTaskManager,
    ) -> None:
        self.store = store
        self.storage = storage
        self.chunking_service = chunking_service
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.task_manager = task_manager

    async def start_indexing(self, profile_id: str) -> IndexingJob:
        """
        Validate the profile, create a job and start it in the background.

        Returns the pending job immediately.

        Raises:
            NotFoundError: Unknown profile
            RagDisabledError: RAG is disabled on the profile
            EmbeddingModelMissingError: The profile has no embedding model
            NoResourcesError: The profile has no resources
            ConflictError: Another job of the profile is still pending or running
        """
        profile = await self.store.get_profile(profile_id)
        if profile is None:
            logger.error(f"Cannot start indexing: profile not found: {profile_id}")
            raise NotFoundError("Profile", profile_id)

        if not profile.rag_enabled:
            logger.warning(f"Cannot start indexing: RAG not enabled for profile {profile_id}")
            raise RagDisabledError(profile_id)

        if not profile.embedding_model_id:
            logger.error(f"Cannot start indexing: no embedding model for profile {profile_id}")
            raise EmbeddingModelMissingError(profile_id)

        resources = await self.store.list_resources(profile_id)
        if not resources:
            logger.warning(f"Cannot start indexing: no resources for profile {profile_id}")
            raise NoResourcesError(profile_id)

        # Overlapping runs would delete each other's chunks mid-rebuild
        if not self.task_manager.claim_profile(profile_id):
            logger.warning(f"Cannot start indexing: a job is already active for profile {profile_id}")
            raise ConflictError(
                f"An indexing job is already active for profile {profile_id}",
                details={"profile_id": profile_id},
            )

        try:
            job = await self.store.create_job(
                IndexingJob(profile_id=profile_id, total_steps=len(resources))
            )
            await self.store.update_profile(profile_id, index_status=IndexStatus.PENDING)
        except Exception:
            self.task_manager.release_profile(profile_id)
            raise

        logger.info(
            f"Starting indexing job: job_id={job.id}, profile_id={profile_id}, "
            f"model={profile.embedding_model_id}, resources={len(resources)}"
        )

        self.task_manager.submit(
            job.id,
            lambda token: self._run_job(job.id, profile, resources, token),
            profile_id=profile_id,
        )
        return job

    async def _run_job(
        self,
        job_id: str,
        profile: Profile,
        resources: List[Resource],
        cancel_token: asyncio.Event,
    ) -> None:
        """Process a job to a terminal state; never raises except on task cancellation."""
        started = time.monotonic()
        total = len(resources)

        try:
            if cancel_token.is_set():
                await self._finish_cancelled(job_id, profile.id)
                return

            await self.store.update_job(
                job_id, IndexingJobUpdate(status=JobStatus.PROCESSING, total_steps=total)
            )
            await self.store.update_profile(profile.id, index_status=IndexStatus.PROCESSING)

            model_id = self.embedding_service.resolve_model_id(profile.embedding_model_id)
            vector_size = self.embedding_service.get_model_dimensions(model_id)
            collection = get_collection_name(profile.id, model_id)
            logger.info(
                f"Embedding configuration: job_id={job_id}, model={model_id}, "
                f"vector_size={vector_size}, collection={collection}"
            )

            await self.vector_store.ensure_collection(collection, vector_size)

            succeeded = 0
            failed = 0
            resource_errors: Dict[str, str] = {}

            for i, resource in enumerate(resources):
                if cancel_token.is_set():
                    await self._finish_cancelled(job_id, profile.id)
                    return

                try:
                    chunk_count = await self._index_resource(profile, resource, model_id, collection)
                    await self.store.update_resource(resource.id, indexed=True)
                    succeeded += 1
                    logger.info(
                        f"Resource indexed: job_id={job_id}, resource_id={resource.id}, "
                        f"chunks={chunk_count}, step={i + 1}/{total}"
                    )
                except Exception as e:
                    failed += 1
                    resource_errors[resource.id] = _error_message(e)
                    logger.error(
                        f"Error indexing resource: job_id={job_id}, resource_id={resource.id}, "
                        f"name={resource.original_name} - {_error_message(e)}",
                        exc_info=True,
                    )
                    await self._discard_partial_index(resource.id)

                await self.store.update_job(
                    job_id,
                    IndexingJobUpdate(
                        processed_steps=i + 1,
                        succeeded_steps=succeeded,
                        failed_steps=failed,
                        resource_errors=dict(resource_errors),
                    ),
                )

            await self.store.update_job(
                job_id,
                IndexingJobUpdate(status=JobStatus.COMPLETED, processed_steps=total),
            )
            await self.store.update_profile(profile.id, index_status=IndexStatus.READY)
            logger.info(
                f"Indexing job completed: job_id={job_id}, profile_id={profile.id}, "
                f"succeeded={succeeded}, failed={failed}, "
                f"duration={time.monotonic() - started:.2f}s"
            )

        except asyncio.CancelledError:
            await self._finish_cancelled(job_id, profile.id)
            raise
        except Exception as e:
            message = _error_message(e)
            logger.error(
                f"Indexing job failed: job_id={job_id}, profile_id={profile.id} - {message}",
                exc_info=True,
            )
            try:
                await self.store.update_job(
                    job_id, IndexingJobUpdate(status=JobStatus.FAILED, error=message)
                )
                await self.store.update_profile(profile.id, index_status=IndexStatus.ERROR)
            except Exception as update_error:
                logger.error(
                    f"Failed to record job failure: job_id={job_id} - {update_error}",
                    exc_info=True,
                )

    async def _finish_cancelled(self, job_id: str, profile_id: str) -> None:
        try:
            await self.store.update_job(job_id, IndexingJobUpdate(status=JobStatus.CANCELLED))
            await self.store.update_profile(profile_id, index_status=IndexStatus.STALE)
        except Exception as e:
            logger.error(f"Failed to record job cancellation: job_id={job_id} - {e}", exc_info=True)
            return
        logger.info(f"Indexing job cancelled: job_id={job_id}, profile_id={profile_id}")

    async def _read_resource_text(self, resource: Resource) -> str:
        if resource.type == ResourceType.TEXT:
            return await self.storage.read_file_as_text(resource.content_path)

        data = await self.storage.read_file(resource.content_path)
        extracted = self.chunking_service.extract_text(data, resource.mime_type or "text/plain")
        return self.chunking_service.clean_text(extracted)

    async def _index_resource(
        self,
        profile: Profile,
        resource: Resource,
        model_id: str,
        collection: str,
    ) -> int:
        """Index one resource; returns the number of chunks written."""
        # Re-indexing replaces whatever this resource had before
        await self.delete_resource_index(resource.id)

        content = await self._read_resource_text(resource)
        text_chunks = self.chunking_service.chunk_text(content)
        if not text_chunks:
            logger.warning(f"Resource has no text to index: resource_id={resource.id}")
            return 0

        chunks = await self.store.create_chunks(
            [
                ResourceChunk(
                    resource_id=resource.id,
                    profile_id=profile.id,
                    chunk_index=chunk.index,
                    content=chunk.content,
                    metadata=chunk.metadata.to_metadata(),
                )
                for chunk in text_chunks
            ]
        )

        embeddings = await self.embedding_service.generate_embeddings(
            [c.content for c in chunks], model_id
        )

        points: List[VectorPoint] = []
        for chunk, embedding in zip(chunks, embeddings):
            metadata = dict(resource.metadata)
            metadata.update(chunk.metadata)
            metadata["original_name"] = resource.original_name
            metadata["chunk_index"] = chunk.chunk_index
            points.append(
                VectorPoint(
                    id=make_vector_id(chunk.id, model_id),
                    vector=embedding.vector,
                    payload=VectorPayload(
                        chunk_id=chunk.id,
                        resource_id=resource.id,
                        profile_id=profile.id,
                        content=chunk.content,
                        embedding_model_id=model_id,
                        metadata=metadata,
                    ),
                )
            )

        await self.vector_store.upsert_vectors(collection, points)

        await self.store.create_embeddings(
            [
                ResourceEmbedding(
                    chunk_id=point.payload.chunk_id,
                    profile_id=profile.id,
                    embedding_model_id=model_id,
                    vector_id=point.id,
                )
                for point in points
            ]
        )
        return len(chunks)

    async def _discard_partial_index(self, resource_id: str) -> None:
        """Remove chunks left behind by a failed resource."""
        try:
            await self.delete_resource_index(resource_id)
            await self.store.update_resource(resource_id, indexed=False)
        except Exception as e:
            logger.warning(f"Could not clean up partial index: resource_id={resource_id} - {e}")

    async def delete_resource_index(self, resource_id: str) -> None:
        """
        Delete every chunk, embedding row and vector of a resource.

        Each chunk and each of its embeddings is handled on its own: a failure
        is logged and the cleanup continues with the rest.
        """
        chunks = await self.store.list_chunks(resource_id)
        if not chunks:
            return

        deleted_vectors = 0
        for chunk in chunks:
            try:
                embeddings = await self.store.list_embeddings(chunk.id)
            except Exception as e:
                logger.error(
                    f"Error listing embeddings: resource_id={resource_id}, "
                    f"chunk_id={chunk.id} - {e}"
                )
                embeddings = []

            for embedding in embeddings:
                try:
                    collection = get_collection_name(
                        embedding.profile_id, embedding.embedding_model_id
                    )
                    await self.vector_store.delete_vectors(collection, [embedding.vector_id])
                    await self.store.delete_embedding(embedding.id)
                    deleted_vectors += 1
                except Exception as e:
                    logger.error(
                        f"Error deleting vector/embedding: resource_id={resource_id}, "
                        f"chunk_id={chunk.id}, vector_id={embedding.vector_id} - {e}"
                    )

            try:
                await self.store.delete_chunk(chunk.id)
            except Exception as e:
                logger.error(
                    f"Error deleting chunk: resource_id={resource_id}, chunk_id={chunk.id} - {e}"
                )

        logger.info(
            f"Resource index deleted: resource_id={resource_id}, "
            f"chunks={len(chunks)}, vectors={deleted_vectors}"
        )

    async def delete_profile_index(self, profile_id: str) -> None:
        """Drop every resource index of a profile and its vector collection."""
        profile = await self.store.get_profile(profile_id)
        if profile is None:
            raise NotFoundError("Profile", profile_id)

        for resource in await self.store.list_resources(profile_id):
            await self.delete_resource_index(resource.id)
            await self.store.update_resource(resource.id, indexed=False)

        model_id = self.embedding_service.resolve_model_id(profile.embedding_model_id)
        await self.vector_store.delete_collection(get_collection_name(profile_id, model_id))
        await self.store.update_profile(profile_id, index_status=IndexStatus.NONE)
        logger.info(f"Profile index deleted: profile_id={profile_id}, model={model_id}")

    async def cancel_indexing(self, job_id: str) -> IndexingJob:
        """
        Request cancellation of a job.

        A running job stops before its next resource; a job with no live task
        is cancelled immediately.

        Raises:
            NotFoundError: Unknown job
            ConflictError: The job already reached a terminal state
        """
        job = await self.store.get_job(job_id)
        if job is None:
            raise NotFoundError("Indexing job", job_id)
        if job.status.is_terminal:
            raise ConflictError(
                f"Indexing job {job_id} is already {job.status.value}",
                details={"job_id": job_id, "status": job.status.value},
            )

        if not self.task_manager.request_cancel(job_id):
            await self._finish_cancelled(job_id, job.profile_id)

        return await self.store.get_job(job_id) or job

    async def get_indexing_job(self, job_id: str) -> IndexingJob:
        job = await self.store.get_job(job_id)
        if job is None:
            raise NotFoundError("Indexing job", job_id)
        return job

    async def list_indexing_jobs(self, profile_id: str) -> List[IndexingJob]:
        if await self.store.get_profile(profile_id) is None:
            raise NotFoundError("Profile", profile_id)
        return await self.store.list_jobs(profile_id)

    async def wait_for_job(self, job_id: str, timeout: Optional[float] = None) -> IndexingJob:
        """Wait for a job's background task, then return the job."""
        await self.task_manager.wait(job_id, timeout=timeout)
        return await self.get_indexing_job(job_id)
