"""
Persistent cache boundary.

Dependencies: redis
System role: Networked cache tier adapters
"""

from docqa.boundary.cache.base import PersistentCache
from docqa.boundary.cache.redis_cache import RedisPersistentCache

__all__ = ["PersistentCache", "RedisPersistentCache"]
