"""Resource, indexing and retrieval endpoints."""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status

from profile_rag.dependencies import ServiceContainer, get_container
from profile_rag.models.indexing_job import IndexingJob
from profile_rag.models.resource import Resource, TextResourceCreate
from profile_rag.models.vector import SearchRequest
from profile_rag.services.vector_store import get_collection_name
from profile_rag.utils.errors import ExternalServiceError, NotFoundError, ValidationError
from profile_rag.utils.logging import get_logger

logger = get_logger("api.rag")

router = APIRouter(tags=["rag"])


# Resources


@router.post(
    "/profiles/{profile_id}/resources/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=List[Resource],
)
async def upload_resources(
    profile_id: str,
    files: List[UploadFile] = File(...),
    container: ServiceContainer = Depends(get_container),
):
    """Upload one or more files as resources of a profile."""
    if not files:
        raise ValidationError("No files uploaded")

    created = []
    for upload in files:
        data = await upload.read()
        created.append(
            await container.resources.add_file_resource(
                profile_id,
                upload.filename or "upload",
                data,
                upload.content_type,
            )
        )
    return created


@router.post(
    "/profiles/{profile_id}/resources/text",
    status_code=status.HTTP_201_CREATED,
    response_model=Resource,
)
async def add_text_resource(
    profile_id: str,
    body: TextResourceCreate,
    container: ServiceContainer = Depends(get_container),
):
    """Add pasted text as a resource."""
    return await container.resources.add_text_resource(profile_id, body.content, body.name)


@router.get("/profiles/{profile_id}/resources", response_model=List[Resource])
async def list_resources(profile_id: str, container: ServiceContainer = Depends(get_container)):
    return await container.resources.list_resources(profile_id)


@router.delete(
    "/profiles/{profile_id}/resources/{resource_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_resource(
    profile_id: str,
    resource_id: str,
    container: ServiceContainer = Depends(get_container),
):
    await container.resources.delete_resource(profile_id, resource_id)


# Indexing


@router.post(
    "/profiles/{profile_id}/index",
    status_code=status.HTTP_201_CREATED,
    response_model=IndexingJob,
)
async def start_indexing(profile_id: str, container: ServiceContainer = Depends(get_container)):
    """Start indexing a profile's resources; returns the pending job."""
    return await container.indexing.start_indexing(profile_id)


@router.get("/profiles/{profile_id}/indexing-jobs", response_model=List[IndexingJob])
async def list_indexing_jobs(
    profile_id: str, container: ServiceContainer = Depends(get_container)
):
    return await container.indexing.list_indexing_jobs(profile_id)


@router.get("/indexing-jobs/{job_id}", response_model=IndexingJob)
async def get_indexing_job(job_id: str, container: ServiceContainer = Depends(get_container)):
    return await container.indexing.get_indexing_job(job_id)


@router.post("/indexing-jobs/{job_id}/cancel", response_model=IndexingJob)
async def cancel_indexing_job(job_id: str, container: ServiceContainer = Depends(get_container)):
    """Request cancellation; the job stops before its next resource."""
    return await container.indexing.cancel_indexing(job_id)


# Retrieval


@router.post("/profiles/{profile_id}/rag/search")
async def search(
    profile_id: str,
    body: SearchRequest,
    container: ServiceContainer = Depends(get_container),
):
    results = await container.retrieval.search_similar(profile_id, body.query, body.top_k)
    return {"query": body.query, "results": [r.model_dump() for r in results]}


@router.get("/profiles/{profile_id}/rag/debug")
async def rag_debug(profile_id: str, container: ServiceContainer = Depends(get_container)):
    """Summarize a profile's RAG state: resources, vectors and the latest job."""
    profile = await container.store.get_profile(profile_id)
    if profile is None:
        raise NotFoundError("Profile", profile_id)

    resources = await container.store.list_resources(profile_id)
    jobs = await container.store.list_jobs(profile_id)

    model_id = container.embedding_service.resolve_model_id(profile.embedding_model_id)
    collection = get_collection_name(profile_id, model_id)
    chunk_count = 0
    for resource in resources:
        chunk_count += len(await container.store.list_chunks(resource.id))

    try:
        installed_models = await container.embedding_service.list_models()
        backend_available = True
    except ExternalServiceError as e:
        logger.warning(f"Could not list embedding models: {e.message}")
        installed_models = []
        backend_available = False
    # Ollama reports tagged names such as "nomic-embed-text:latest"
    model_installed = any(
        name == model_id or name.split(":")[0] == model_id for name in installed_models
    )

    return {
        "profile_id": profile_id,
        "rag_enabled": profile.rag_enabled,
        "index_status": profile.index_status.value,
        "embedding_model_id": model_id,
        "vector_size": container.embedding_service.get_model_dimensions(model_id),
        "collection": collection,
        "vector_count": await container.vector_store.count(collection),
        "resources": {
            "total": len(resources),
            "indexed": sum(1 for r in resources if r.indexed),
        },
        "chunk_count": chunk_count,
        "rag_settings": profile.rag_settings.model_dump(),
        "latest_job": jobs[0].model_dump(mode="json") if jobs else None,
        "embedding_backend_available": backend_available,
        "installed_models": installed_models,
        "embedding_model_installed": model_installed,
    }
