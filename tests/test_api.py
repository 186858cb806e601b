"""HTTP API tests using FastAPI's TestClient."""

import asyncio
import time

import pytest
from fastapi.testclient import TestClient

from profile_rag.dependencies import build_container
from profile_rag.main import create_app
from profile_rag.models.profile import Profile, RagSettings


@pytest.fixture
def container(settings, fake_ollama):
    container = asyncio.run(build_container(settings, ollama_transport=fake_ollama.transport()))
    yield container
    asyncio.run(container.ollama_client.close())


@pytest.fixture
def client(container):
    app = create_app(container=container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def profile(container):
    return asyncio.run(
        container.store.create_profile(
            Profile(
                name="Support assistant",
                rag_enabled=True,
                embedding_model_id="nomic-embed-text",
                rag_settings=RagSettings(similarity_threshold=0.1),
            )
        )
    )


def _wait_for_job(client, job_id, timeout=5.0):
    deadline = time.monotonic() + timeout
    while True:
        job = client.get(f"/api/v1/indexing-jobs/{job_id}").json()
        if job["status"] in ("completed", "failed", "cancelled") or time.monotonic() > deadline:
            return job
        time.sleep(0.05)


class TestHealth:
    def test_health(self, client):
        for path in ("/health", "/api/v1/health"):
            response = client.get(path)
            assert response.status_code == 200
            assert response.json()["status"] == "healthy"

    def test_ready(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ready"
        assert body["checks"] == {"embeddings": True, "vector_store": True}
        assert body["vector_store"] == "InMemoryVectorStore"

    def test_not_ready_without_ollama(self, client, fake_ollama):
        fake_ollama.available = False
        response = client.get("/api/v1/ready")
        assert response.status_code == 503
        assert response.json()["checks"]["embeddings"] is False

    def test_root_and_api_info(self, client):
        assert client.get("/").json()["status"] == "running"
        assert client.get("/api/v1/").json()["version"] == "v1"

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Process-Time"].endswith("ms")
        assert client.get("/health").headers["X-Request-ID"]


class TestResources:
    def test_add_list_delete_text_resource(self, client, profile):
        response = client.post(
            f"/api/v1/profiles/{profile.id}/resources/text",
            json={"content": "Parking is free.", "name": "parking.txt"},
        )
        assert response.status_code == 201
        resource = response.json()
        assert resource["type"] == "text"
        assert resource["original_name"] == "parking.txt"

        listed = client.get(f"/api/v1/profiles/{profile.id}/resources").json()
        assert [r["id"] for r in listed] == [resource["id"]]

        response = client.delete(f"/api/v1/profiles/{profile.id}/resources/{resource['id']}")
        assert response.status_code == 204
        assert client.get(f"/api/v1/profiles/{profile.id}/resources").json() == []

    def test_upload_files(self, client, profile):
        response = client.post(
            f"/api/v1/profiles/{profile.id}/resources/upload",
            files=[
                ("files", ("a.txt", b"first file", "text/plain")),
                ("files", ("b.json", b'{"k": "v"}', "application/json")),
            ],
        )
        assert response.status_code == 201
        names = [r["original_name"] for r in response.json()]
        assert names == ["a.txt", "b.json"]

    def test_blank_text_is_rejected(self, client, profile):
        response = client.post(
            f"/api/v1/profiles/{profile.id}/resources/text", json={"content": "  "}
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_unknown_profile(self, client):
        response = client.get("/api/v1/profiles/missing/resources")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestIndexingAndSearch:
    def test_index_then_search(self, client, profile):
        client.post(
            f"/api/v1/profiles/{profile.id}/resources/text",
            json={"content": "Refund policy: refunds within 30 days.", "name": "refunds.txt"},
        )

        response = client.post(f"/api/v1/profiles/{profile.id}/index")
        assert response.status_code == 201
        job = response.json()
        assert job["status"] == "pending"

        job = _wait_for_job(client, job["id"])
        assert job["status"] == "completed"
        assert job["progress"] == 100

        jobs = client.get(f"/api/v1/profiles/{profile.id}/indexing-jobs").json()
        assert [j["id"] for j in jobs] == [job["id"]]

        response = client.post(
            f"/api/v1/profiles/{profile.id}/rag/search", json={"query": "refund policy"}
        )
        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["metadata"]["original_name"] == "refunds.txt"

        debug = client.get(f"/api/v1/profiles/{profile.id}/rag/debug").json()
        assert debug["index_status"] == "ready"
        assert debug["vector_count"] == 1
        assert debug["vector_size"] == 768
        assert debug["resources"] == {"total": 1, "indexed": 1}
        assert debug["latest_job"]["id"] == job["id"]
        assert debug["embedding_backend_available"] is True
        assert debug["installed_models"] == ["nomic-embed-text:latest"]
        assert debug["embedding_model_installed"] is True

        response = client.post(f"/api/v1/indexing-jobs/{job['id']}/cancel")
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_index_without_resources(self, client, profile):
        response = client.post(f"/api/v1/profiles/{profile.id}/index")
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NO_RESOURCES"

    def test_index_rag_disabled(self, client, container):
        disabled = asyncio.run(container.store.create_profile(Profile(name="Plain")))
        response = client.post(f"/api/v1/profiles/{disabled.id}/index")
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "RAG_DISABLED"

    def test_search_requires_query(self, client, profile):
        response = client.post(f"/api/v1/profiles/{profile.id}/rag/search", json={"query": ""})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_search_on_unindexed_profile_is_empty(self, client, profile):
        response = client.post(
            f"/api/v1/profiles/{profile.id}/rag/search", json={"query": "anything"}
        )
        assert response.status_code == 200
        assert response.json()["results"] == []

    def test_debug_without_ollama(self, client, profile, fake_ollama):
        fake_ollama.available = False
        debug = client.get(f"/api/v1/profiles/{profile.id}/rag/debug").json()
        assert debug["embedding_backend_available"] is False
        assert debug["installed_models"] == []
        assert debug["embedding_model_installed"] is False
        assert debug["index_status"] == "none"

    def test_unknown_job(self, client):
        assert client.get("/api/v1/indexing-jobs/missing").status_code == 404
        assert client.post("/api/v1/indexing-jobs/missing/cancel").status_code == 404
