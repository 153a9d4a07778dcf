"""
Health check API endpoints.

Routes: GET /health, GET /health/cache

Dependencies: docqa.api.deps
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from docqa.api.deps import ServiceContainer, get_services


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/cache", response_model=HealthResponse)
async def health_check_cache(services: ServiceContainer = Depends(get_services)) -> HealthResponse:
    """Cache health check; a missing persistent tier is degraded, not down."""
    stats = services.cache.stats()
    if not stats.persistent_enabled:
        return HealthResponse(status="degraded", message="Persistent cache tier disabled")
    return HealthResponse(status="healthy", message="Persistent cache tier enabled")
