"""
Cache models.

Dependencies: pydantic
System role: Tiered cache entry and statistics structures
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CacheTier(str, Enum):
    """Cache layer, increasing in latency and decreasing in volatility."""

    HOT = "hot"
    MEMORY = "memory"
    PERSISTENT = "persistent"


class CacheEntry(BaseModel):
    """
    In-process cache entry.

    Attributes:
        key: Fully qualified cache key
        data: Cached value
        expiry: Monotonic expiry instant (None for the hot tier)
        hit_count: Memory tier hits recorded so far
        tier: Tier currently holding the entry
        created_at: Monotonic creation instant
    """

    key: str
    data: Any
    expiry: float | None = None
    hit_count: int = 0
    tier: CacheTier = CacheTier.MEMORY
    created_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return self.expiry is not None and self.expiry <= now


class CacheStats(BaseModel):
    """Approximate cache counters."""

    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    memory_size: int = 0
    hot_size: int = 0
    persistent_enabled: bool = False
    promotions: int = 0
    evictions: int = 0
    tier_hits: dict[str, int] = Field(default_factory=dict)
