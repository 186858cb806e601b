"""In-memory vector store used when Qdrant is not configured or reachable.

Search is a brute-force scan over every stored vector, which only suits small
knowledge bases.
"""

import asyncio
from typing import Dict, List

from profile_rag.models.vector import SearchResult, VectorPoint
from profile_rag.services.vector_store import VectorStore, cosine_similarity
from profile_rag.utils.errors import VectorStoreError
from profile_rag.utils.logging import get_logger

logger = get_logger("memory_vector_store")


class InMemoryVectorStore(VectorStore):
    """Dict-backed vector store with one lock per collection."""

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, VectorPoint]] = {}
        self._sizes: Dict[str, int] = {}
        # Locks are created for existing or new collections only
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, collection: str) -> asyncio.Lock:
        """Lock of a collection, created on first use."""
        lock = self._locks.get(collection)
        if lock is None:
            lock = self._locks[collection] = asyncio.Lock()
        return lock

    def _check_size(self, collection: str, vector: List[float]) -> None:
        expected = self._sizes.get(collection)
        if expected is not None and len(vector) != expected:
            raise VectorStoreError(
                "Vector size does not match collection",
                details={"collection": collection, "expected": expected, "actual": len(vector)},
            )

    async def ensure_collection(self, name: str, vector_size: int) -> None:
        if vector_size <= 0:
            raise VectorStoreError("Vector size must be > 0", details={"vector_size": vector_size})
        async with self._lock_for(name):
            if name in self._collections:
                return
            self._collections[name] = {}
            self._sizes[name] = vector_size
        logger.info(f"In-memory collection created: {name} (vector_size={vector_size})")

    async def upsert_vectors(self, collection: str, points: List[VectorPoint]) -> None:
        if not points:
            return
        async with self._lock_for(collection):
            if collection not in self._collections:
                self._collections[collection] = {}
                self._sizes[collection] = len(points[0].vector)
            for point in points:
                self._check_size(collection, point.vector)
            stored = self._collections[collection]
            for point in points:
                stored[point.id] = point
        logger.debug(f"In-memory upsert: collection={collection}, points={len(points)}")

    async def search(
        self,
        collection: str,
        vector: List[float],
        limit: int,
        score_threshold: float = 0.0,
    ) -> List[SearchResult]:
        if collection not in self._collections:
            return []
        async with self._lock_for(collection):
            stored = self._collections.get(collection)
            if not stored:
                return []
            self._check_size(collection, vector)
            points = list(stored.values())

        results = []
        for point in points:
            score = cosine_similarity(vector, point.vector)
            if score >= score_threshold:
                results.append(SearchResult(id=point.id, score=score, payload=point.payload))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[: max(0, limit)]

    async def delete_vectors(self, collection: str, ids: List[str]) -> None:
        if collection not in self._collections:
            return
        async with self._lock_for(collection):
            stored = self._collections.get(collection)
            if stored is None:
                return
            for point_id in ids:
                stored.pop(point_id, None)

    async def delete_collection(self, name: str) -> None:
        if name not in self._collections:
            return
        async with self._lock_for(name):
            self._collections.pop(name, None)
            self._sizes.pop(name, None)
            self._locks.pop(name, None)
        logger.info(f"In-memory collection deleted: {name}")

    async def count(self, collection: str) -> int:
        if collection not in self._collections:
            return 0
        async with self._lock_for(collection):
            return len(self._collections.get(collection, {}))
