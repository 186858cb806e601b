"""Unit tests for EmbeddingService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from profile_rag.config import EmbeddingSettings
from profile_rag.services.embedding_service import EmbeddingService
from profile_rag.utils.errors import EmbeddingError, ExternalServiceError


class TestModelResolution:
    def test_missing_and_legacy_ids_resolve_to_default(self, embedding_service):
        assert embedding_service.resolve_model_id(None) == "nomic-embed-text"
        assert embedding_service.resolve_model_id("") == "nomic-embed-text"
        assert embedding_service.resolve_model_id("stub-embedding-v1") == "nomic-embed-text"
        assert embedding_service.resolve_model_id("mxbai-embed-large") == "mxbai-embed-large"

    def test_known_and_unknown_dimensions(self, embedding_service):
        assert embedding_service.get_model_dimensions("nomic-embed-text") == 768
        assert embedding_service.get_model_dimensions("mxbai-embed-large") == 1024
        assert embedding_service.get_model_dimensions("all-minilm") == 384
        assert embedding_service.get_model_dimensions("some-new-model") == 768

    def test_dimension_override_applies_to_default_model_only(self, settings):
        settings.embedding = EmbeddingSettings(
            embedding_model="nomic-embed-text", embedding_dimension=512
        )
        svc = EmbeddingService(MagicMock(), settings)
        assert svc.get_model_dimensions(None) == 512
        assert svc.get_model_dimensions("nomic-embed-text") == 512
        assert svc.get_model_dimensions("all-minilm") == 384


class TestGenerateEmbedding:
    @pytest.mark.asyncio
    async def test_generate_embedding(self, embedding_service):
        result = await embedding_service.generate_embedding("hello world", "stub-embedding-v1")
        assert result.model_id == "nomic-embed-text"
        assert result.dimensions == 768
        assert len(result.vector) == 768

    @pytest.mark.asyncio
    async def test_backend_failure_raises_embedding_error(self, settings):
        client = MagicMock()
        client.embed = AsyncMock(
            side_effect=ExternalServiceError("ollama", message="Ollama API error: 500 boom")
        )
        svc = EmbeddingService(client, settings)

        with pytest.raises(EmbeddingError) as exc_info:
            await svc.generate_embedding("hello", "all-minilm")

        err = exc_info.value
        assert err.message == (
            "Ollama embedding failed for model 'all-minilm': Ollama API error: 500 boom"
        )
        assert err.details["model"] == "all-minilm"
        assert err.code == "EMBEDDING_ERROR"

    @pytest.mark.asyncio
    async def test_generate_embeddings_preserves_order(self, embedding_service, fake_ollama):
        texts = ["alpha", "beta", "gamma"]
        results = await embedding_service.generate_embeddings(texts)
        single = [await embedding_service.generate_embedding(t) for t in texts]

        assert [r.vector for r in results] == [s.vector for s in single]
        assert fake_ollama.embedding_calls == 6

    @pytest.mark.asyncio
    async def test_generate_embeddings_empty(self, embedding_service, fake_ollama):
        assert await embedding_service.generate_embeddings([]) == []
        assert fake_ollama.embedding_calls == 0

    @pytest.mark.asyncio
    async def test_failure_in_batch_propagates(self, embedding_service, fake_ollama):
        fake_ollama.fail_on.add("beta")
        with pytest.raises(EmbeddingError):
            await embedding_service.generate_embeddings(["alpha", "beta", "gamma"])
        assert fake_ollama.embedding_calls == 2

    @pytest.mark.asyncio
    async def test_is_available_probes_backend(self, embedding_service, fake_ollama):
        assert await embedding_service.is_available() is True
        fake_ollama.available = False
        assert await embedding_service.is_available() is False

    @pytest.mark.asyncio
    async def test_list_models(self, embedding_service, fake_ollama):
        assert await embedding_service.list_models() == ["nomic-embed-text:latest"]
        fake_ollama.available = False
        with pytest.raises(ExternalServiceError):
            await embedding_service.list_models()
