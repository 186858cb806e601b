"""FastAPI application entry point.

This module creates and configures the FastAPI application instance with:
- Application metadata and OpenAPI documentation
- Middleware (CORS, RequestID, Timing)
- Exception handlers
- API routers (v1)
- Health check endpoints (/health, /ready)
- Startup/shutdown lifecycle management (service container)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from profile_rag import __version__
from profile_rag.api.v1 import health
from profile_rag.api.v1.router import router as v1_router
from profile_rag.config import Settings, get_settings
from profile_rag.dependencies import ServiceContainer, build_container, get_container
from profile_rag.middleware import RequestIDMiddleware, TimingMiddleware
from profile_rag.utils.errors import RagException
from profile_rag.utils.logging import get_logger, log_error, setup_logging

logger = get_logger("main")


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (defaults to the global settings)
        container: Prebuilt service container; when given, the lifespan uses it
            instead of building one and leaves closing it to the caller
    """
    settings = settings or (container.settings if container else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        setup_logging()
        logger.info("Starting profile RAG service...")
        owns_container = container is None
        try:
            app.state.container = container or await build_container(settings)
        except Exception as e:
            logger.error(f"Failed to start profile RAG service: {e}", exc_info=True)
            raise

        if owns_container and not await app.state.container.embedding_service.is_available():
            logger.warning(
                f"Ollama is not reachable at {settings.ollama.url}. "
                "Indexing and search will fail until it is available."
            )

        logger.info("Profile RAG service started successfully")
        try:
            yield
        finally:
            # Shutdown
            logger.info("Shutting down profile RAG service...")
            if owns_container:
                await app.state.container.close()
            logger.info("Profile RAG service shut down")

    app = FastAPI(
        title="Profile RAG Service",
        description="Indexes profile knowledge-base resources and retrieves relevant context",
        version=__version__,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure via environment in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Exception handlers
    @app.exception_handler(RagException)
    async def rag_exception_handler(request: Request, exc: RagException):
        """Handle RagException."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "message": exc.detail,
                    "code": "HTTP_ERROR",
                    "status_code": exc.status_code,
                }
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": {
                    "message": "Validation error",
                    "code": "VALIDATION_ERROR",
                    "status_code": 422,
                    "details": [
                        {k: v for k, v in err.items() if k in ("loc", "msg", "type")}
                        for err in exc.errors()
                    ],
                }
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        log_error(exc, context={"path": request.url.path, "method": request.method})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "message": "Internal server error",
                    "code": "INTERNAL_ERROR",
                    "status_code": 500,
                }
            },
        )

    app.include_router(v1_router)

    # Root-level health checks for container orchestration.
    # These are also available at /api/v1/health and /api/v1/ready
    @app.get("/health", tags=["health"], include_in_schema=False)
    async def root_health_check(c: ServiceContainer = Depends(get_container)):
        return await health.health_check(c)

    @app.get("/ready", tags=["health"], include_in_schema=False)
    async def root_readiness_check(c: ServiceContainer = Depends(get_container)):
        return await health.readiness_check(c)

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint."""
        return {
            "service": settings.app_name,
            "version": __version__,
            "status": "running",
            "environment": settings.environment.value,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "profile_rag.main:app",
        host=_settings.server.host,
        port=_settings.server.port,
        reload=_settings.server.reload and _settings.is_development,
        log_level=_settings.log_level.lower(),
    )
