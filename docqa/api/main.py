"""
FastAPI application with assembled routers.

Initializes the FastAPI app, builds services in the lifespan, registers the
typed error handler and configures the uvicorn server.

Dependencies: fastapi, uvicorn, docqa.api.routers, docqa.api.deps
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docqa.api.deps import ServiceContainer, build_services
from docqa.configs import get_settings
from docqa.core.exceptions import (
    DocQAException,
    ProviderAuthError,
    ProviderQuotaError,
    ProviderRateLimitError,
    ValidationError,
)
from docqa.observability import configure_logging
from docqa.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import admin_router, agent_router, documents_router, health_router

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS: tuple[tuple[type[DocQAException], int], ...] = (
    (ValidationError, 400),
    (ProviderAuthError, 401),
    (ProviderQuotaError, 402),
    (ProviderRateLimitError, 429),
)


def status_for(exc: DocQAException) -> int:
    """HTTP status for a typed error; unlisted errors are server failures."""
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


async def docqa_exception_handler(request: Request, exc: DocQAException) -> JSONResponse:
    """Render typed errors as ``{"code", "message"}``."""
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.warning
    log(f"{__name__}:docqa_exception_handler - {request.url.path} {status} {exc.code}: {exc}")
    return JSONResponse(status_code=status, content={"code": exc.code, "message": exc.message})


def create_app(services: ServiceContainer | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        services: Prebuilt services (built from settings in the lifespan when omitted)

    Returns:
        FastAPI: Configured application instance with all routers registered
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build services on startup, release them on shutdown."""
        container = services or await build_services(get_settings())
        app.state.services = container
        container.cache.start()
        await container.document_service.warm_cache(container.settings.cache.warm_queries)
        logger.info(f"{__name__}:lifespan - services ready")

        yield

        await container.close()
        logger.info(f"{__name__}:lifespan - services closed")

    app = FastAPI(
        title="DocQA Retrieval API",
        description="Adaptive hybrid retrieval and question answering over uploaded documents",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(DocQAException, docqa_exception_handler)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(agent_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")
    app.include_router(documents_router, prefix="/api/v1")

    return app


def main() -> None:
    """Run the API server."""
    configure_logging(get_settings().log_level)
    uvicorn.run(
        "docqa.api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )


if __name__ == "__main__":
    main()
