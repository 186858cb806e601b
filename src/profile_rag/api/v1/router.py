"""API v1 router aggregation."""

from fastapi import APIRouter

from profile_rag.api.v1 import health, rag

# Create v1 API router with version prefix
router = APIRouter(
    prefix="/api/v1",
    tags=["v1"],
    responses={
        404: {"description": "Not found"},
        422: {"description": "Validation error"},
        500: {"description": "Internal server error"},
    },
)

router.include_router(health.router)
router.include_router(rag.router)


@router.get("/", summary="API Information", tags=["v1"])
async def api_info():
    """Get API v1 information."""
    return {
        "version": "v1",
        "status": "active",
        "service": "profile-rag",
        "endpoints": {
            "health": "/api/v1/health",
            "ready": "/api/v1/ready",
            "resources": "/api/v1/profiles/{profile_id}/resources",
            "index": "/api/v1/profiles/{profile_id}/index",
            "jobs": "/api/v1/indexing-jobs/{job_id}",
            "search": "/api/v1/profiles/{profile_id}/rag/search",
        },
    }
