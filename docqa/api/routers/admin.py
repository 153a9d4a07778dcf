"""Admin API endpoints.

Routes:
- POST /admin/cluster - Recompute document cluster labels
- POST /admin/cache/invalidate - Invalidate one cache namespace or all of them
- GET /admin/cache/stats - Approximate cache counters

Dependencies: docqa.core.retrieval, docqa.core.cache
System role: Corpus maintenance HTTP API
"""

import logging

from fastapi import APIRouter, Depends

from docqa.api.deps import get_clusterer, get_tiered_cache
from docqa.core.cache import TieredCache
from docqa.core.retrieval import DocumentClusterer
from docqa.models.agent import (
    CacheInvalidateRequest,
    CacheInvalidateResponse,
    ClusterRequest,
    ClusterResponse,
)
from docqa.models.cache import CacheStats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/cluster", response_model=ClusterResponse)
async def cluster_documents(
    request: ClusterRequest,
    clusterer: DocumentClusterer = Depends(get_clusterer),
) -> ClusterResponse:
    """Run k-means over document mean embeddings and persist the labels."""
    assignments = await clusterer.cluster(request.k, request.max_iterations)
    logger.info(f"{__name__}:cluster_documents - k={request.k} documents={len(assignments)}")
    return ClusterResponse(assignments=assignments)


@router.post("/cache/invalidate", response_model=CacheInvalidateResponse)
async def invalidate_cache(
    request: CacheInvalidateRequest,
    cache: TieredCache = Depends(get_tiered_cache),
) -> CacheInvalidateResponse:
    """Invalidate cache entries across every tier."""
    if request.namespace is None:
        removed = await cache.invalidate_all()
    else:
        removed = await cache.invalidate(request.namespace)
    return CacheInvalidateResponse(removed=removed)


@router.get("/cache/stats", response_model=CacheStats)
async def cache_stats(cache: TieredCache = Depends(get_tiered_cache)) -> CacheStats:
    """Approximate hit, miss and size counters."""
    return cache.stats()
