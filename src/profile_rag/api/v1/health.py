"""Health check endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from profile_rag.dependencies import ServiceContainer, get_container
from profile_rag.utils.logging import get_logger

logger = get_logger("health")

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(container: ServiceContainer = Depends(get_container)):
    """
    Health check endpoint.

    Does not touch external dependencies.
    """
    logger.debug("Health check requested")
    settings = container.settings
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "environment": settings.environment.value,
    }


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(container: ServiceContainer = Depends(get_container)):
    """
    Readiness check endpoint.

    Checks:
    - Ollama (embedding backend) answers
    - The vector store answers a count query

    Returns 503 when the embedding backend is unavailable.
    """
    logger.debug("Readiness check requested")
    settings = container.settings

    checks = {
        "embeddings": await container.embedding_service.is_available(),
        "vector_store": False,
    }

    try:
        await container.vector_store.count("__readiness_probe__")
        checks["vector_store"] = True
    except Exception as e:
        logger.warning(f"Vector store check failed: {e}")

    body = {
        "status": "ready" if all(checks.values()) else "not_ready",
        "app_name": settings.app_name,
        "environment": settings.environment.value,
        "vector_store": type(container.vector_store).__name__,
        "running_jobs": container.task_manager.running_jobs,
        "checks": checks,
    }

    if not checks["embeddings"]:
        logger.warning(f"Readiness check failed: {checks}")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)

    return body
