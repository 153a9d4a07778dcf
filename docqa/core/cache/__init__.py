"""
Tiered caching.

Dependencies: docqa.boundary.cache
System role: Cache tier manager and cache-aware wrappers
"""

from docqa.core.cache.embedder import CachedEmbedder
from docqa.core.cache.keys import ANSWER_NAMESPACE, EMBEDDING_NAMESPACE, SEARCH_NAMESPACE, make_key
from docqa.core.cache.tiered_cache import TieredCache

__all__ = [
    "ANSWER_NAMESPACE",
    "CachedEmbedder",
    "EMBEDDING_NAMESPACE",
    "SEARCH_NAMESPACE",
    "TieredCache",
    "make_key",
]
