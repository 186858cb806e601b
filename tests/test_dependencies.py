"""Tests for service wiring."""

from unittest.mock import AsyncMock, patch

import pytest

from profile_rag.config import DatabaseSettings, QdrantSettings, VectorStoreSettings
from profile_rag.dependencies import build_container, create_store, create_vector_store
from profile_rag.repositories.memory_store import InMemoryStore
from profile_rag.repositories.sql_store import SQLStore
from profile_rag.services.memory_vector_store import InMemoryVectorStore
from profile_rag.services.qdrant_service import QdrantVectorStore


@pytest.mark.asyncio
async def test_auto_backend_without_qdrant_url_uses_memory(settings):
    settings.vector_store = VectorStoreSettings(backend="auto")
    settings.qdrant = QdrantSettings(url=None)
    assert isinstance(await create_vector_store(settings), InMemoryVectorStore)


@pytest.mark.asyncio
async def test_auto_backend_falls_back_when_qdrant_unreachable(settings):
    settings.vector_store = VectorStoreSettings(backend="auto")
    settings.qdrant = QdrantSettings(url="http://qdrant.test:6333")
    with patch.object(QdrantVectorStore, "ping", AsyncMock(return_value=False)):
        store = await create_vector_store(settings)
    assert isinstance(store, InMemoryVectorStore)


@pytest.mark.asyncio
async def test_auto_backend_uses_reachable_qdrant(settings):
    settings.vector_store = VectorStoreSettings(backend="auto")
    settings.qdrant = QdrantSettings(url="http://qdrant.test:6333")
    with patch.object(QdrantVectorStore, "ping", AsyncMock(return_value=True)):
        store = await create_vector_store(settings)
    assert isinstance(store, QdrantVectorStore)


@pytest.mark.asyncio
async def test_database_store_backend(settings, tmp_path):
    settings.database = DatabaseSettings(
        store_backend="database",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'rag.db'}",
    )
    store, engine = await create_store(settings)
    try:
        assert isinstance(store, SQLStore)
        assert await store.list_profiles() == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_build_container(settings, fake_ollama):
    container = await build_container(settings, ollama_transport=fake_ollama.transport())
    try:
        assert isinstance(container.store, InMemoryStore)
        assert isinstance(container.vector_store, InMemoryVectorStore)
        assert container.indexing.vector_store is container.vector_store
        assert container.retrieval.embedding_service is container.embedding_service
        assert container.engine is None
    finally:
        await container.close()
