"""Pytest configuration and fixtures for profile RAG tests."""

import json
import re
import zlib
from typing import Callable, List, Optional, Set

import httpx
import pytest
import pytest_asyncio

from profile_rag.clients.ollama_client import OllamaClient
from profile_rag.config import (
    ChunkingSettings,
    EmbeddingSettings,
    OllamaSettings,
    QdrantSettings,
    Settings,
    StorageSettings,
    VectorStoreSettings,
)
from profile_rag.models.profile import Profile, RagSettings
from profile_rag.repositories.memory_store import InMemoryStore
from profile_rag.services.chunking_service import ChunkingService
from profile_rag.services.embedding_service import EmbeddingService
from profile_rag.services.indexing_service import IndexingOrchestrator
from profile_rag.services.memory_vector_store import InMemoryVectorStore
from profile_rag.services.resource_service import ResourceService
from profile_rag.services.retrieval_service import RetrievalService
from profile_rag.services.storage_service import FileStorageService
from profile_rag.workers.indexing_tasks import IndexingTaskManager

DIM = 768
_WORD_RE = re.compile(r"[a-z0-9]+")


def fake_vector(text: str, dim: int = DIM) -> List[float]:
    """Bag-of-words hash embedding: texts sharing words get similar vectors."""
    vector = [0.0] * dim
    for word in _WORD_RE.findall(text.lower()):
        vector[zlib.crc32(word.encode()) % dim] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


class FakeOllama:
    """Stand-in Ollama server for httpx.MockTransport."""

    def __init__(self, dim: int = DIM):
        self.dim = dim
        self.fail_on: Set[str] = set()
        self.available = True
        self.embedding_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            if not self.available:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"models": [{"name": "nomic-embed-text:latest"}]})

        if request.url.path == "/api/embeddings":
            self.embedding_calls += 1
            body = json.loads(request.content)
            prompt = body["prompt"]
            if any(marker in prompt for marker in self.fail_on):
                return httpx.Response(500, text="model crashed")
            return httpx.Response(200, json={"embedding": fake_vector(prompt, self.dim)})

        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Isolated settings: tmp storage, in-memory backends, no retries."""
    return Settings(
        ollama=OllamaSettings(url="http://ollama.test:11434"),
        embedding=EmbeddingSettings(embedding_model="nomic-embed-text", embedding_max_retries=1),
        qdrant=QdrantSettings(url=None),
        vector_store=VectorStoreSettings(backend="memory"),
        chunking=ChunkingSettings(chunk_size=200, chunk_overlap=20),
        storage=StorageSettings(base_dir=str(tmp_path / "profiles")),
    )


@pytest.fixture
def fake_ollama() -> FakeOllama:
    return FakeOllama()


@pytest_asyncio.fixture
async def ollama_client(settings, fake_ollama):
    client = OllamaClient(settings, transport=fake_ollama.transport())
    yield client
    await client.close()


@pytest.fixture
def embedding_service(ollama_client, settings) -> EmbeddingService:
    return EmbeddingService(ollama_client, settings)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def storage(settings) -> FileStorageService:
    return FileStorageService(settings)


@pytest_asyncio.fixture
async def task_manager():
    manager = IndexingTaskManager()
    yield manager
    await manager.shutdown()


@pytest.fixture
def indexing(store, storage, settings, embedding_service, vector_store, task_manager):
    return IndexingOrchestrator(
        store=store,
        storage=storage,
        chunking_service=ChunkingService(settings),
        embedding_service=embedding_service,
        vector_store=vector_store,
        task_manager=task_manager,
    )


@pytest.fixture
def retrieval(store, embedding_service, vector_store, settings) -> RetrievalService:
    return RetrievalService(store, embedding_service, vector_store, settings)


@pytest.fixture
def resources(store, storage, indexing, settings) -> ResourceService:
    return ResourceService(store, storage, indexing, settings)


@pytest.fixture
def make_profile(store) -> Callable:
    """Factory creating a profile in the store."""

    async def _make(
        rag_enabled: bool = True,
        embedding_model_id: Optional[str] = "nomic-embed-text",
        similarity_threshold: float = 0.1,
        top_k: int = 5,
        **fields,
    ) -> Profile:
        profile = Profile(
            name=fields.pop("name", "Support assistant"),
            rag_enabled=rag_enabled,
            embedding_model_id=embedding_model_id,
            rag_settings=RagSettings(top_k=top_k, similarity_threshold=similarity_threshold),
            **fields,
        )
        return await store.create_profile(profile)

    return _make
