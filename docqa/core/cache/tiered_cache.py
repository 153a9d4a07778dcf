"""
Tiered cache manager.

Three layers shared by every component of the retrieval core:

- hot: unconditional in-process map, no TTL, cleared only by invalidation
- memory: TTL-bounded in-process map with hit counting and eviction
- persistent: optional networked store (Redis) holding the full TTL

Lookups go hot -> memory -> persistent. A memory entry reaching the promotion
hit count moves to the hot tier. The persistent tier is never a hard
dependency: any failure there is logged and treated as a miss.

Dependencies: docqa.boundary.cache, docqa.configs
System role: Cross-request cache for embeddings, search results and answers
"""

import asyncio
import contextlib
import logging
import math
import threading
import time
from collections.abc import Callable, Iterable
from typing import Any

from docqa.boundary.cache.base import PersistentCache
from docqa.configs.cache import CacheSettings
from docqa.core.cache.keys import (
    ANSWER_NAMESPACE,
    EMBEDDING_NAMESPACE,
    SEARCH_NAMESPACE,
    make_key,
    namespace_prefix,
)
from docqa.core.exceptions import CacheUnavailableError
from docqa.models.cache import CacheEntry, CacheStats, CacheTier
from docqa.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class TieredCache:
    """Hot / memory / persistent cache with promotion and eviction."""

    def __init__(
        self,
        settings: CacheSettings | None = None,
        persistent: PersistentCache | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            settings: Cache settings (defaults when omitted)
            persistent: Optional persistent tier
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self.settings = settings or CacheSettings()
        self.persistent = persistent
        self._clock = clock
        self._lock = threading.RLock()
        self._hot: dict[str, CacheEntry] = {}
        self._memory: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._promotions = 0
        self._evictions = 0
        self._tier_hits = {tier.value: 0 for tier in CacheTier}
        self._sweeper: asyncio.Task | None = None

    def key(self, namespace: str, identifier: str) -> str:
        return make_key(self.settings.key_prefix, namespace, identifier)

    def ttl_for(self, namespace: str) -> int:
        """Logical TTL for a namespace."""
        return {
            EMBEDDING_NAMESPACE: self.settings.embedding_ttl_seconds,
            SEARCH_NAMESPACE: self.settings.search_ttl_seconds,
            ANSWER_NAMESPACE: self.settings.answer_ttl_seconds,
        }.get(namespace, self.settings.default_ttl_seconds)

    def _record_hit(self, tier: CacheTier) -> None:
        self._hits += 1
        self._tier_hits[tier.value] += 1

    async def get(self, namespace: str, identifier: str) -> tuple[Any, bool]:
        """
        Look up a value.

        Args:
            namespace: Logical namespace
            identifier: Raw identifier

        Returns:
            tuple[Any, bool]: ``(value, found)``
        """
        key = self.key(namespace, identifier)
        now = self._clock()

        with self._lock:
            hot = self._hot.get(key)
            if hot is not None:
                self._record_hit(CacheTier.HOT)
                return hot.data, True

            entry = self._memory.get(key)
            if entry is not None:
                if entry.is_expired(now):
                    del self._memory[key]
                else:
                    entry.hit_count += 1
                    self._record_hit(CacheTier.MEMORY)
                    if entry.hit_count >= self.settings.promotion_hits:
                        self._promote(key, entry)
                    return entry.data, True

        value, found = await self._persistent_get(key)
        if found:
            with self._lock:
                self._memory[key] = CacheEntry(
                    key=key,
                    data=value,
                    expiry=now + self.settings.persistent_repopulate_ttl_seconds,
                    hit_count=1,
                    tier=CacheTier.MEMORY,
                    created_at=now,
                )
                self._record_hit(CacheTier.PERSISTENT)
            return value, True

        with self._lock:
            self._misses += 1
        return None, False

    def _promote(self, key: str, entry: CacheEntry) -> None:
        self._memory.pop(key, None)
        self._hot[key] = entry.model_copy(update={"tier": CacheTier.HOT, "expiry": None})
        self._promotions += 1
        logger.debug(f"{__name__}:_promote - promoted to hot tier key={key}")

    async def set(
        self,
        namespace: str,
        identifier: str,
        value: Any,
        ttl: int | None = None,
        hot: bool = False,
    ) -> None:
        """
        Store a value in the memory and persistent tiers.

        Args:
            namespace: Logical namespace
            identifier: Raw identifier
            value: JSON-serializable value
            ttl: Logical TTL in seconds (namespace default when omitted)
            hot: Also pin the value in the hot tier
        """
        key = self.key(namespace, identifier)
        full_ttl = ttl or self.ttl_for(namespace)
        now = self._clock()

        with self._lock:
            self._memory[key] = CacheEntry(
                key=key,
                data=value,
                expiry=now + min(full_ttl, self.settings.memory_ttl_cap_seconds),
                hit_count=0,
                tier=CacheTier.MEMORY,
                created_at=now,
            )
            # A pinned entry is refreshed in place so the hot tier never serves a stale value.
            if hot or key in self._hot:
                self._hot[key] = CacheEntry(key=key, data=value, tier=CacheTier.HOT, created_at=now)
            if len(self._memory) > self.settings.memory_capacity:
                self._evict(now)

        if self.persistent is not None:
            try:
                await self.persistent.set(key, value, full_ttl)
            except CacheUnavailableError as e:
                log_exception_with_context(logger, f"{__name__}:set - persistent tier unavailable", e, key=key)

    async def _persistent_get(self, key: str) -> tuple[Any, bool]:
        if self.persistent is None:
            return None, False
        try:
            return await self.persistent.get(key)
        except CacheUnavailableError as e:
            log_exception_with_context(logger, f"{__name__}:get - persistent tier unavailable", e, key=key)
            return None, False

    def _evict(self, now: float) -> int:
        """Drop the lowest scoring share of the memory tier (lock held)."""
        size = len(self._memory)
        count = max(1, math.floor(size * self.settings.eviction_fraction))

        def score(entry: CacheEntry) -> float:
            return entry.hit_count - (now - entry.created_at) / 60.0

        victims = sorted(self._memory.values(), key=lambda e: (score(e), e.created_at))[:count]
        for entry in victims:
            del self._memory[entry.key]
        self._evictions += len(victims)
        logger.debug(f"{__name__}:_evict - evicted {len(victims)} of {size} memory entries")
        return len(victims)

    def sweep(self) -> int:
        """
        Remove expired memory entries, then evict if over capacity.

        Returns:
            int: Entries removed
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._memory.items() if entry.is_expired(now)]
            for key in expired:
                del self._memory[key]
            removed = len(expired)
            if len(self._memory) > self.settings.memory_capacity:
                removed += self._evict(now)
        if removed:
            logger.debug(f"{__name__}:sweep - removed {removed} entries")
        return removed

    def _drop_local(self, prefix: str) -> int:
        with self._lock:
            doomed_memory = [key for key in self._memory if key.startswith(prefix)]
            doomed_hot = [key for key in self._hot if key.startswith(prefix)]
            for key in doomed_memory:
                del self._memory[key]
            for key in doomed_hot:
                del self._hot[key]
        return len(doomed_memory) + len(doomed_hot)

    async def _drop_persistent(self, prefix: str) -> int:
        if self.persistent is None:
            return 0
        try:
            keys = await self.persistent.keys(f"{prefix}*")
            return await self.persistent.delete(*keys) if keys else 0
        except CacheUnavailableError as e:
            log_exception_with_context(logger, f"{__name__}:invalidate - persistent tier unavailable", e, prefix=prefix)
            return 0

    async def invalidate(self, namespace: str) -> int:
        """
        Delete every entry of a namespace across all tiers.

        Args:
            namespace: Namespace to clear

        Returns:
            int: Entries removed (persistent failures count as zero)
        """
        prefix = namespace_prefix(self.settings.key_prefix, namespace)
        removed = self._drop_local(prefix) + await self._drop_persistent(prefix)
        logger.info(f"{__name__}:invalidate - namespace={namespace} removed={removed}")
        return removed

    async def invalidate_all(self) -> int:
        """Delete every entry under the cache prefix across all tiers."""
        prefix = namespace_prefix(self.settings.key_prefix)
        removed = self._drop_local(prefix) + await self._drop_persistent(prefix)
        logger.info(f"{__name__}:invalidate_all - removed={removed}")
        return removed

    async def warm(self, namespace: str, entries: Iterable[tuple[str, Any]], ttl: int | None = None) -> int:
        """
        Pre-populate popular entries directly into the hot tier.

        Args:
            namespace: Namespace to warm
            entries: ``(identifier, value)`` pairs
            ttl: Persistent TTL

        Returns:
            int: Entries written
        """
        count = 0
        for identifier, value in entries:
            await self.set(namespace, identifier, value, ttl=ttl, hot=True)
            count += 1
        logger.info(f"{__name__}:warm - namespace={namespace} entries={count}")
        return count

    def stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                hit_rate=self._hits / total if total else 0.0,
                memory_size=len(self._memory),
                hot_size=len(self._hot),
                persistent_enabled=self.persistent is not None,
                promotions=self._promotions,
                evictions=self._evictions,
                tier_hits=dict(self._tier_hits),
            )

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.settings.sweep_interval_seconds)
            self.sweep()

    def start(self) -> None:
        """Start the periodic sweeper on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever())
            logger.info(f"{__name__}:start - sweeper every {self.settings.sweep_interval_seconds}s")

    async def stop(self) -> None:
        """Stop the sweeper and close the persistent tier."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
        if self.persistent is not None:
            await self.persistent.close()
