"""Tests for configuration management."""

import pytest

from profile_rag.config import (
    ChunkingSettings,
    Environment,
    Settings,
    StoreBackend,
    VectorStoreBackend,
    VectorStoreSettings,
    get_settings,
    reset_settings,
)
from profile_rag.database.connection import get_database_url


@pytest.fixture(autouse=True)
def clean_settings():
    reset_settings()
    yield
    reset_settings()


def test_defaults(monkeypatch):
    for name in ("QDRANT_URL", "EMBEDDING_MODEL", "CHUNK_SIZE", "CHUNK_OVERLAP", "STORE_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)

    assert settings.ollama.url == "http://localhost:11434"
    assert settings.embedding.default_model == "nomic-embed-text"
    assert settings.chunking.chunk_size == 500
    assert settings.chunking.chunk_overlap == 50
    assert settings.retrieval.default_top_k == 5
    assert settings.retrieval.default_similarity_threshold == 0.7
    assert settings.storage.max_file_size_bytes == 10 * 1024 * 1024
    assert settings.database.store_backend == StoreBackend.MEMORY
    assert settings.qdrant.is_configured is False


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("OLLAMA_URL", "http://gpu-box:11434")
    monkeypatch.setenv("EMBEDDING_MODEL", "mxbai-embed-large")
    monkeypatch.setenv("QDRANT_URL", "http://qdrant:6333")
    monkeypatch.setenv("VECTOR_STORE_BACKEND", "qdrant")
    monkeypatch.setenv("CHUNK_SIZE", "800")
    monkeypatch.setenv("RAG_DEFAULT_TOP_K", "8")

    settings = get_settings()

    assert settings.ollama.url == "http://gpu-box:11434"
    assert settings.embedding.default_model == "mxbai-embed-large"
    assert settings.qdrant.is_configured is True
    assert settings.vector_store.backend == VectorStoreBackend.QDRANT
    assert settings.chunking.chunk_size == 800
    assert settings.retrieval.default_top_k == 8
    assert get_settings() is settings


def test_unknown_environment_falls_back_to_development():
    assert Settings(environment="qa").environment == Environment.DEVELOPMENT


def test_invalid_log_level():
    with pytest.raises(ValueError):
        Settings(log_level="LOUD")


def test_invalid_chunking():
    with pytest.raises(ValueError):
        ChunkingSettings(chunk_size=0)
    with pytest.raises(ValueError):
        ChunkingSettings(chunk_overlap=-1)


def test_production_rejects_memory_vector_store():
    settings = Settings(
        environment="production",
        vector_store=VectorStoreSettings(backend="memory"),
    )
    with pytest.raises(ValueError):
        settings.validate_production_settings()


def test_database_url_is_made_async(settings):
    settings.database.database_url = "postgresql://u:p@db:5432/rag"
    assert get_database_url(settings) == "postgresql+asyncpg://u:p@db:5432/rag"
    settings.database.database_url = "sqlite:///./rag.db"
    assert get_database_url(settings) == "sqlite+aiosqlite:///./rag.db"
