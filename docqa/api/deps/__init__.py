"""API-specific dependencies."""

from .dependencies import (
    ServiceContainer,
    build_services,
    get_answer_service,
    get_clusterer,
    get_document_service,
    get_services,
    get_tiered_cache,
)

__all__ = [
    "ServiceContainer",
    "build_services",
    "get_answer_service",
    "get_clusterer",
    "get_document_service",
    "get_services",
    "get_tiered_cache",
]
