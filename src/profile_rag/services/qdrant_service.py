"""Qdrant vector store adapter."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, List, Optional, Set

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchAny,
    PointStruct,
    VectorParams,
)

from profile_rag.config import Settings, get_settings
from profile_rag.models.vector import SearchResult, VectorPayload, VectorPoint
from profile_rag.services.vector_store import VectorStore
from profile_rag.utils.errors import VectorStoreError
from profile_rag.utils.logging import get_logger

logger = get_logger("qdrant_service")

# Deterministic namespace for deriving Qdrant point UUIDs from opaque vector ids.
# uuid5 is SHA-1 based and not a security boundary.
_POINT_ID_NAMESPACE = uuid.UUID("3f1d2a9e-8c47-4b6e-9a0f-5d7e2c1b4a68")

# Payload key holding the caller's opaque id
VECTOR_ID_KEY = "vector_id"


def make_point_id(vector_id: str) -> str:
    """Stable UUID point id for an opaque vector id."""
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, vector_id))


class QdrantVectorStore(VectorStore):
    """
    Store vectors in Qdrant.

    Strategy:
    - One collection per profile and embedding model, cosine distance
    - Point ids are uuid5 digests of the opaque ids used everywhere else
    - The opaque id travels in the payload and is returned from search
    - Known collections are cached to skip repeated existence checks
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[QdrantClient] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client: Optional[QdrantClient] = client
        self._known_collections: Set[str] = set()

    def _get_client(self) -> QdrantClient:
        if self._client is not None:
            return self._client

        qdrant = self._settings.qdrant
        if not qdrant.is_configured:
            raise VectorStoreError("QDRANT_URL is not configured")
        self._client = QdrantClient(
            url=qdrant.url,
            api_key=qdrant.api_key,
            timeout=qdrant.timeout,
        )
        return self._client

    async def ping(self) -> bool:
        """Check that Qdrant answers. Never raises."""
        try:
            await asyncio.to_thread(lambda: self._get_client().get_collections())
            return True
        except Exception as e:
            logger.warning(f"Qdrant not reachable: {e}")
            return False

    async def ensure_collection(self, name: str, vector_size: int) -> None:
        """Ensure the collection exists with the right vector size."""
        if name in self._known_collections:
            return

        def _ensure() -> None:
            client = self._get_client()
            if client.collection_exists(name):
                info = client.get_collection(name)
                current_size = None
                try:
                    current_size = info.config.params.vectors.size  # type: ignore[union-attr]
                except AttributeError:
                    # Named-vector collections nest their params differently
                    current_size = None
                if current_size is not None and int(current_size) != int(vector_size):
                    raise VectorStoreError(
                        "Qdrant collection vector size mismatch",
                        details={
                            "collection": name,
                            "expected": vector_size,
                            "actual": int(current_size),
                        },
                    )
                return
            try:
                client.create_collection(
                    collection_name=name,
                    vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE),
                )
            except UnexpectedResponse as e:
                # Another task created it first
                if e.status_code == 409:
                    return
                raise

        try:
            await asyncio.to_thread(_ensure)
        except VectorStoreError:
            raise
        except Exception as e:
            raise VectorStoreError(
                "Failed to ensure Qdrant collection",
                details={"collection": name, "error": str(e)},
            ) from e

        self._known_collections.add(name)
        logger.info(f"Qdrant collection ensured: {name} (vector_size={vector_size})")

    async def upsert_vectors(self, collection: str, points: List[VectorPoint]) -> None:
        """Upsert points, keyed by the uuid5 of their opaque id."""
        if not points:
            return

        if collection not in self._known_collections:
            await self.ensure_collection(collection, len(points[0].vector))

        def _upsert() -> None:
            structs: List[PointStruct] = []
            for point in points:
                payload: Dict[str, Any] = point.payload.model_dump()
                payload[VECTOR_ID_KEY] = point.id
                structs.append(
                    PointStruct(id=make_point_id(point.id), vector=point.vector, payload=payload)
                )
            self._get_client().upsert(collection_name=collection, points=structs, wait=True)

        try:
            await asyncio.to_thread(_upsert)
        except VectorStoreError:
            raise
        except Exception as e:
            raise VectorStoreError(
                "Failed to upsert vectors into Qdrant",
                details={"collection": collection, "error": str(e)},
            ) from e
        logger.info(f"Qdrant upsert complete: collection={collection}, points={len(points)}")

    async def search(
        self,
        collection: str,
        vector: List[float],
        limit: int,
        score_threshold: float = 0.0,
    ) -> List[SearchResult]:
        def _search() -> List[Any]:
            client = self._get_client()
            if collection not in self._known_collections and not client.collection_exists(
                collection
            ):
                return []
            response = client.query_points(
                collection_name=collection,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            )
            return list(response.points)

        try:
            hits = await asyncio.to_thread(_search)
        except VectorStoreError:
            raise
        except UnexpectedResponse as e:
            if e.status_code == 404:
                self._known_collections.discard(collection)
                return []
            raise VectorStoreError(
                "Qdrant search failed",
                details={"collection": collection, "error": str(e)},
            ) from e
        except Exception as e:
            raise VectorStoreError(
                "Qdrant search failed",
                details={"collection": collection, "error": str(e)},
            ) from e

        results: List[SearchResult] = []
        for hit in hits:
            payload = dict(hit.payload or {})
            vector_id = payload.pop(VECTOR_ID_KEY, None) or str(hit.id)
            results.append(
                SearchResult(
                    id=vector_id,
                    score=float(hit.score),
                    payload=VectorPayload.model_validate(payload),
                )
            )
        return results

    async def delete_vectors(self, collection: str, ids: List[str]) -> None:
        """Delete points whose payload vector_id is among `ids`."""
        if not ids:
            return

        def _delete() -> None:
            client = self._get_client()
            if not client.collection_exists(collection):
                return
            client.delete(
                collection_name=collection,
                points_selector=FilterSelector(
                    filter=Filter(
                        must=[FieldCondition(key=VECTOR_ID_KEY, match=MatchAny(any=list(ids)))]
                    )
                ),
                wait=True,
            )

        try:
            await asyncio.to_thread(_delete)
        except VectorStoreError:
            raise
        except Exception as e:
            raise VectorStoreError(
                "Failed to delete vectors from Qdrant",
                details={"collection": collection, "error": str(e)},
            ) from e
        logger.info(f"Qdrant delete complete: collection={collection}, ids={len(ids)}")

    async def delete_collection(self, name: str) -> None:
        def _drop() -> None:
            client = self._get_client()
            if client.collection_exists(name):
                client.delete_collection(collection_name=name)

        try:
            await asyncio.to_thread(_drop)
        except VectorStoreError:
            raise
        except Exception as e:
            raise VectorStoreError(
                "Failed to delete Qdrant collection",
                details={"collection": name, "error": str(e)},
            ) from e
        finally:
            self._known_collections.discard(name)
        logger.info(f"Qdrant collection deleted: {name}")

    async def count(self, collection: str) -> int:
        def _count() -> int:
            client = self._get_client()
            if not client.collection_exists(collection):
                return 0
            return int(client.count(collection_name=collection, exact=True).count)

        try:
            return await asyncio.to_thread(_count)
        except VectorStoreError:
            raise
        except Exception as e:
            raise VectorStoreError(
                "Failed to count Qdrant points",
                details={"collection": collection, "error": str(e)},
            ) from e

    async def close(self) -> None:
        if self._client is not None:
            await asyncio.to_thread(self._client.close)
            self._client = None
