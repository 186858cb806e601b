"""Ollama HTTP client for embedding generation."""

from typing import List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from profile_rag.config import Settings, get_settings
from profile_rag.utils.errors import ExternalServiceError
from profile_rag.utils.logging import get_logger

logger = get_logger("ollama_client")


def _is_transient(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are worth retrying."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


class OllamaClient:
    """
    HTTP client for the Ollama REST API.

    Handles:
    - Single-text embeddings (POST /api/embeddings)
    - Listing installed models (GET /api/tags)
    - Availability probing
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Ollama client.

        Args:
            settings: Application settings (defaults to the global settings)
            transport: Optional httpx transport, used to stub the server in tests
        """
        settings = settings or get_settings()
        self.base_url = settings.ollama.url.rstrip("/")
        self.timeout = settings.ollama.timeout
        self.availability_timeout = settings.ollama.availability_timeout
        self.max_retries = settings.embedding.max_retries
        self.retry_max_wait = settings.embedding.embedding_retry_max_wait
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _post_embedding(self, text: str, model: str) -> List[float]:
        response = await self._client.post(
            "/api/embeddings", json={"model": model, "prompt": text}
        )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError(
                "ollama", message=f"Invalid JSON in embedding response: {e}"
            ) from e

        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not isinstance(embedding, list) or not embedding:
            raise ExternalServiceError(
                "ollama", message="Embedding response has no 'embedding' array"
            )
        try:
            return [float(v) for v in embedding]
        except (TypeError, ValueError) as e:
            raise ExternalServiceError(
                "ollama", message=f"Embedding response contains non-numeric values: {e}"
            ) from e

    async def embed(self, text: str, model: str) -> List[float]:
        """
        Generate an embedding for one text.

        Transient failures are retried with exponential backoff.

        Raises:
            ExternalServiceError: If the request fails or the response is malformed
        """
        try:
            async for attempt in AsyncRetrying(
                reraise=True,
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=self.retry_max_wait),
                retry=retry_if_exception(_is_transient),
            ):
                with attempt:
                    return await self._post_embedding(text, model)
        except ExternalServiceError:
            raise
        except httpx.TimeoutException as e:
            logger.error(f"Timeout generating embedding with model {model}: {e}")
            raise ExternalServiceError(
                "ollama", message="Ollama request timeout", status_code=504
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Ollama returned {e.response.status_code} for model {model}: {e.response.text}"
            )
            raise ExternalServiceError(
                "ollama",
                message=f"Ollama API error: {e.response.status_code} {e.response.reason_phrase}",
                details={"status": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request error reaching Ollama at {self.base_url}: {e}")
            raise ExternalServiceError(
                "ollama", message=f"Cannot reach Ollama at {self.base_url}: {e}"
            ) from e
        # unreachable due to reraise=True, but keeps type checkers happy
        raise ExternalServiceError("ollama", message="Embedding retries exhausted")

    async def list_models(self) -> List[str]:
        """
        List installed model names.

        Raises:
            ExternalServiceError: If Ollama cannot be queried
        """
        try:
            response = await self._client.get("/api/tags")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceError("ollama", message=f"Failed to list models: {e}") from e
        return [m["name"] for m in data.get("models") or [] if "name" in m]

    async def is_available(self) -> bool:
        """Check whether Ollama answers on /api/tags. Never raises."""
        try:
            response = await self._client.get("/api/tags", timeout=self.availability_timeout)
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"Ollama not available at {self.base_url}: {e}")
            return False
