"""Unit tests for OllamaClient."""

import json

import httpx
import pytest

from profile_rag.clients.ollama_client import OllamaClient
from profile_rag.config import EmbeddingSettings
from profile_rag.utils.errors import ExternalServiceError


def _client(settings, handler) -> OllamaClient:
    return OllamaClient(settings, transport=httpx.MockTransport(handler))


class TestOllamaClient:
    """Test suite for OllamaClient."""

    def test_init(self, settings):
        client = OllamaClient(settings)
        assert client.base_url == "http://ollama.test:11434"
        assert client.max_retries == 1

    @pytest.mark.asyncio
    async def test_embed_posts_model_and_prompt(self, settings):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"embedding": [0.1, 2, -3]})

        client = _client(settings, handler)
        vector = await client.embed("hello", "nomic-embed-text")
        await client.close()

        assert vector == [0.1, 2.0, -3.0]
        assert seen["path"] == "/api/embeddings"
        assert seen["body"] == {"model": "nomic-embed-text", "prompt": "hello"}

    @pytest.mark.asyncio
    async def test_embed_http_error_is_mapped(self, settings):
        client = _client(settings, lambda request: httpx.Response(404, text="model not found"))
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.embed("hello", "missing-model")
        await client.close()

        assert exc_info.value.message == "Ollama API error: 404 Not Found"
        assert exc_info.value.details["status"] == 404

    @pytest.mark.asyncio
    async def test_embed_rejects_missing_embedding(self, settings):
        client = _client(settings, lambda request: httpx.Response(200, json={"embedding": []}))
        with pytest.raises(ExternalServiceError, match="no 'embedding' array"):
            await client.embed("hello", "nomic-embed-text")
        await client.close()

    @pytest.mark.asyncio
    async def test_embed_rejects_invalid_json(self, settings):
        client = _client(settings, lambda request: httpx.Response(200, content=b"not json"))
        with pytest.raises(ExternalServiceError, match="Invalid JSON"):
            await client.embed("hello", "nomic-embed-text")
        await client.close()

    @pytest.mark.asyncio
    async def test_embed_timeout_maps_to_504(self, settings):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = _client(settings, handler)
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.embed("hello", "nomic-embed-text")
        await client.close()

        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_embed_unreachable_server(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(settings, handler)
        with pytest.raises(ExternalServiceError, match="Cannot reach Ollama"):
            await client.embed("hello", "nomic-embed-text")
        await client.close()

    @pytest.mark.asyncio
    async def test_embed_retries_server_errors(self, settings):
        settings.embedding = EmbeddingSettings(embedding_max_retries=3)
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            if calls["n"] < 3:
                return httpx.Response(503, text="loading model")
            return httpx.Response(200, json={"embedding": [1.0, 0.0]})

        client = _client(settings, handler)
        vector = await client.embed("hello", "nomic-embed-text")
        await client.close()

        assert vector == [1.0, 0.0]
        assert calls["n"] == 3

    @pytest.mark.asyncio
    async def test_embed_does_not_retry_client_errors(self, settings):
        settings.embedding = EmbeddingSettings(embedding_max_retries=3)
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            return httpx.Response(400, text="bad request")

        client = _client(settings, handler)
        with pytest.raises(ExternalServiceError):
            await client.embed("hello", "nomic-embed-text")
        await client.close()

        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_list_models(self, ollama_client):
        assert await ollama_client.list_models() == ["nomic-embed-text:latest"]

    @pytest.mark.asyncio
    async def test_is_available(self, ollama_client, fake_ollama):
        assert await ollama_client.is_available() is True
        fake_ollama.available = False
        assert await ollama_client.is_available() is False
