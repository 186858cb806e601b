"""Tests for the in-memory vector store and cosine similarity."""

import pytest

from profile_rag.models.vector import VectorPayload, VectorPoint
from profile_rag.services.memory_vector_store import InMemoryVectorStore
from profile_rag.services.vector_store import cosine_similarity, get_collection_name
from profile_rag.utils.errors import VectorStoreError


def _point(point_id, vector, content="text"):
    return VectorPoint(
        id=point_id,
        vector=vector,
        payload=VectorPayload(
            chunk_id=f"chunk-{point_id}",
            resource_id="res-1",
            profile_id="p-1",
            content=content,
            embedding_model_id="nomic-embed-text",
        ),
    )


def test_collection_name():
    assert get_collection_name("p-1", "nomic-embed-text") == "profile_p-1_nomic-embed-text"


def test_cosine_similarity():
    assert cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)
    assert cosine_similarity([0, 0], [1, 1]) == 0.0
    with pytest.raises(VectorStoreError):
        cosine_similarity([1, 0], [1, 0, 0])


@pytest.mark.asyncio
async def test_search_orders_and_applies_threshold_and_limit():
    store = InMemoryVectorStore()
    await store.ensure_collection("c", 2)
    await store.upsert_vectors(
        "c",
        [
            _point("a", [1.0, 0.0], "exact"),
            _point("b", [1.0, 1.0], "diagonal"),
            _point("c", [0.0, 1.0], "orthogonal"),
        ],
    )

    results = await store.search("c", [1.0, 0.0], limit=10, score_threshold=0.5)
    assert [r.id for r in results] == ["a", "b"]
    assert results[0].score == pytest.approx(1.0)
    assert results[1].score == pytest.approx(0.7071, abs=1e-4)
    assert results[0].payload.content == "exact"

    limited = await store.search("c", [1.0, 0.0], limit=1, score_threshold=0.0)
    assert [r.id for r in limited] == ["a"]


@pytest.mark.asyncio
async def test_upsert_replaces_by_id_and_counts():
    store = InMemoryVectorStore()
    await store.ensure_collection("c", 2)
    await store.upsert_vectors("c", [_point("a", [1.0, 0.0], "v1")])
    await store.upsert_vectors("c", [_point("a", [0.0, 1.0], "v2")])

    assert await store.count("c") == 1
    results = await store.search("c", [0.0, 1.0], limit=5)
    assert results[0].payload.content == "v2"


@pytest.mark.asyncio
async def test_size_mismatch_is_rejected():
    store = InMemoryVectorStore()
    await store.ensure_collection("c", 3)
    with pytest.raises(VectorStoreError):
        await store.upsert_vectors("c", [_point("a", [1.0, 0.0])])
    with pytest.raises(VectorStoreError):
        await store.ensure_collection("d", 0)


@pytest.mark.asyncio
async def test_missing_collection_is_empty():
    store = InMemoryVectorStore()
    assert await store.search("nope", [1.0], limit=3) == []
    assert await store.count("nope") == 0
    await store.delete_vectors("nope", ["a"])
    await store.delete_collection("nope")


@pytest.mark.asyncio
async def test_delete_vectors_and_collection():
    store = InMemoryVectorStore()
    await store.upsert_vectors("c", [_point("a", [1.0, 0.0]), _point("b", [0.0, 1.0])])
    await store.delete_vectors("c", ["a", "missing"])
    assert await store.count("c") == 1

    await store.delete_collection("c")
    assert await store.count("c") == 0


def test_cosine_similarity_is_symmetric_and_bounded():
    a = [0.3, -1.2, 4.0, 0.0]
    b = [2.0, 0.5, -0.1, 7.0]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
    assert -1.0 <= cosine_similarity(a, b) <= 1.0
    assert cosine_similarity(a, a) == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_threshold_above_one_returns_nothing():
    store = InMemoryVectorStore()
    await store.upsert_vectors("c", [_point("a", [1.0, 0.0]), _point("b", [0.5, 0.5])])
    assert await store.search("c", [1.0, 0.0], limit=10, score_threshold=1.1) == []


@pytest.mark.asyncio
async def test_locks_follow_collection_lifetime():
    store = InMemoryVectorStore()
    await store.search("ghost", [1.0, 0.0], limit=3)
    await store.count("ghost")
    await store.delete_vectors("ghost", ["a"])
    await store.delete_collection("ghost")
    assert store._locks == {}

    await store.upsert_vectors("c", [_point("a", [1.0, 0.0])])
    assert set(store._locks) == {"c"}

    await store.delete_collection("c")
    assert store._locks == {}
    assert await store.count("c") == 0
