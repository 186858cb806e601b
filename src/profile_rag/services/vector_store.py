"""Vector store contract shared by the Qdrant and in-memory adapters."""

from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np

from profile_rag.models.vector import SearchResult, VectorPoint
from profile_rag.utils.errors import VectorStoreError


def get_collection_name(profile_id: str, model_id: str) -> str:
    """Collections are scoped per profile and embedding model."""
    return f"profile_{profile_id}_{model_id}"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0 when either vector has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise VectorStoreError(
            "Vector length mismatch",
            details={"left": int(va.size), "right": int(vb.size)},
        )

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    score = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, score))


class VectorStore(ABC):
    """Async vector store interface."""

    @abstractmethod
    async def ensure_collection(self, name: str, vector_size: int) -> None:
        """Create the collection if it does not exist."""

    @abstractmethod
    async def upsert_vectors(self, collection: str, points: List[VectorPoint]) -> None:
        """Insert or replace points by id."""

    @abstractmethod
    async def search(
        self,
        collection: str,
        vector: List[float],
        limit: int,
        score_threshold: float = 0.0,
    ) -> List[SearchResult]:
        """Return up to `limit` hits scoring at least `score_threshold`, best first.

        A missing collection yields an empty list.
        """

    @abstractmethod
    async def delete_vectors(self, collection: str, ids: List[str]) -> None:
        """Delete points by opaque id."""

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        """Drop a collection; a missing collection is not an error."""

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Number of points in a collection (0 when absent)."""

    async def close(self) -> None:
        """Release client resources."""
        return None
