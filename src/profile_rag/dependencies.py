"""Service wiring.

Every collaborator is built once at startup and passed explicitly to the
services that need it. FastAPI routes reach the container through
`request.app.state.container`.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from profile_rag.clients.ollama_client import OllamaClient
from profile_rag.config import Settings, StoreBackend, VectorStoreBackend, get_settings
from profile_rag.database.connection import create_engine, create_tables
from profile_rag.database.session import create_session_factory
from profile_rag.repositories.memory_store import InMemoryStore
from profile_rag.repositories.sql_store import SQLStore
from profile_rag.repositories.store import Store
from profile_rag.services.chunking_service import ChunkingService
from profile_rag.services.embedding_service import EmbeddingService
from profile_rag.services.indexing_service import IndexingOrchestrator
from profile_rag.services.memory_vector_store import InMemoryVectorStore
from profile_rag.services.qdrant_service import QdrantVectorStore
from profile_rag.services.resource_service import ResourceService
from profile_rag.services.retrieval_service import RetrievalService
from profile_rag.services.storage_service import FileStorageService
from profile_rag.services.vector_store import VectorStore
from profile_rag.utils.logging import get_logger
from profile_rag.workers.indexing_tasks import IndexingTaskManager

logger = get_logger("dependencies")


@dataclass
class ServiceContainer:
    """Holds the process-wide service instances."""

    settings: Settings
    store: Store
    storage: FileStorageService
    ollama_client: OllamaClient
    chunking_service: ChunkingService
    embedding_service: EmbeddingService
    vector_store: VectorStore
    task_manager: IndexingTaskManager
    indexing: IndexingOrchestrator
    retrieval: RetrievalService
    resources: ResourceService
    engine: Optional[AsyncEngine] = field(default=None)

    async def close(self) -> None:
        """Stop background jobs and release clients."""
        await self.task_manager.shutdown()
        await self.vector_store.close()
        await self.ollama_client.close()
        await self.store.close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("Service container closed")


async def create_vector_store(settings: Settings) -> VectorStore:
    """Pick the vector store backend from VECTOR_STORE_BACKEND."""
    backend = settings.vector_store.backend

    if backend == VectorStoreBackend.MEMORY:
        logger.info("Using in-memory vector store")
        return InMemoryVectorStore()

    if backend == VectorStoreBackend.QDRANT:
        logger.info(f"Using Qdrant vector store at {settings.qdrant.url}")
        return QdrantVectorStore(settings)

    # auto: Qdrant when configured and reachable
    if settings.qdrant.is_configured:
        qdrant = QdrantVectorStore(settings)
        if await qdrant.ping():
            logger.info(f"Using Qdrant vector store at {settings.qdrant.url}")
            return qdrant
        await qdrant.close()
        logger.warning(
            f"Qdrant at {settings.qdrant.url} is not reachable; "
            "falling back to the in-memory vector store"
        )
    else:
        logger.warning("QDRANT_URL is not set; using the in-memory vector store")
    return InMemoryVectorStore()


async def create_store(settings: Settings) -> Tuple[Store, Optional[AsyncEngine]]:
    """Pick the persistence backend from STORE_BACKEND."""
    if settings.database.store_backend == StoreBackend.DATABASE:
        engine = create_engine(settings)
        await create_tables(engine)
        logger.info("Using database store")
        return SQLStore(create_session_factory(engine)), engine

    logger.info("Using in-memory store")
    return InMemoryStore(), None


async def build_container(
    settings: Optional[Settings] = None,
    *,
    store: Optional[Store] = None,
    vector_store: Optional[VectorStore] = None,
    ollama_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ServiceContainer:
    """
    Construct every service once.

    Args:
        settings: Application settings (defaults to the global settings)
        store: Prebuilt store, replacing the STORE_BACKEND choice
        vector_store: Prebuilt vector store, replacing the VECTOR_STORE_BACKEND choice
        ollama_transport: httpx transport for the Ollama client
    """
    settings = settings or get_settings()

    engine: Optional[AsyncEngine] = None
    if store is None:
        store, engine = await create_store(settings)
    if vector_store is None:
        vector_store = await create_vector_store(settings)

    storage = FileStorageService(settings)
    ollama_client = OllamaClient(settings, transport=ollama_transport)
    chunking_service = ChunkingService(settings)
    embedding_service = EmbeddingService(ollama_client, settings)
    task_manager = IndexingTaskManager()

    indexing = IndexingOrchestrator(
        store=store,
        storage=storage,
        chunking_service=chunking_service,
        embedding_service=embedding_service,
        vector_store=vector_store,
        task_manager=task_manager,
    )
    retrieval = RetrievalService(store, embedding_service, vector_store, settings)
    resources = ResourceService(store, storage, indexing, settings)

    return ServiceContainer(
        settings=settings,
        store=store,
        storage=storage,
        ollama_client=ollama_client,
        chunking_service=chunking_service,
        embedding_service=embedding_service,
        vector_store=vector_store,
        task_manager=task_manager,
        indexing=indexing,
        retrieval=retrieval,
        resources=resources,
        engine=engine,
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the application's service container."""
    return request.app.state.container
