"""Embedding generation service backed by Ollama."""

from typing import Dict, List, Optional

from profile_rag.clients.ollama_client import OllamaClient
from profile_rag.config import Settings, get_settings
from profile_rag.models.embedding import EmbeddingResult
from profile_rag.utils.errors import EmbeddingError, RagException
from profile_rag.utils.logging import get_logger

logger = get_logger("embedding_service")

# Placeholder model id stored by profiles created before real embeddings existed
LEGACY_MODEL_IDS = frozenset({"stub-embedding-v1"})

DEFAULT_DIMENSIONS = 768

MODEL_DIMENSIONS: Dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
    "bge-large": 1024,
    "snowflake-arctic-embed": 1024,
}


class EmbeddingService:
    """
    Generate embeddings through a local Ollama server.

    There is no fallback: every backend failure is raised as EmbeddingError
    carrying the model id and the original message.
    """

    def __init__(self, client: OllamaClient, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._client = client
        self._default_model = settings.embedding.default_model
        self._dimension_override = settings.embedding.embedding_dimension

    @property
    def default_model(self) -> str:
        return self._default_model

    def resolve_model_id(self, model_id: Optional[str] = None) -> str:
        """Substitute the configured default for missing or legacy model ids."""
        if not model_id or model_id in LEGACY_MODEL_IDS:
            return self._default_model
        return model_id

    def get_model_dimensions(self, model_id: Optional[str] = None) -> int:
        """Known vector size of a model; unknown models are assumed to be 768-dimensional."""
        resolved = self.resolve_model_id(model_id)
        if resolved == self._default_model and self._dimension_override:
            return self._dimension_override
        return MODEL_DIMENSIONS.get(resolved, DEFAULT_DIMENSIONS)

    async def generate_embedding(
        self, text: str, model_id: Optional[str] = None
    ) -> EmbeddingResult:
        """
        Embed one text.

        Raises:
            EmbeddingError: If the backend fails or returns a malformed response
        """
        model = self.resolve_model_id(model_id)
        try:
            vector = await self._client.embed(text, model)
        except RagException as e:
            raise EmbeddingError(
                f"Ollama embedding failed for model '{model}': {e.message}",
                model=model,
                details={"cause": e.code},
            ) from e

        return EmbeddingResult(vector=vector, model_id=model, dimensions=len(vector))

    async def generate_embeddings(
        self, texts: List[str], model_id: Optional[str] = None
    ) -> List[EmbeddingResult]:
        """
        Embed texts sequentially, preserving input order.

        Args:
            texts: Texts to embed
            model_id: Requested model (resolved like generate_embedding)

        Returns:
            One EmbeddingResult per input text
        """
        if not texts:
            return []

        model = self.resolve_model_id(model_id)
        logger.info(f"Generating embeddings: model={model}, texts={len(texts)}")

        results: List[EmbeddingResult] = []
        for text in texts:
            results.append(await self.generate_embedding(text, model))

        logger.info(
            f"Embeddings generated successfully: count={len(results)}, "
            f"dimension={results[0].dimensions}"
        )
        return results

    async def is_available(self) -> bool:
        """Probe the backend on every call."""
        return await self._client.is_available()

    async def list_models(self) -> List[str]:
        return await self._client.list_models()
