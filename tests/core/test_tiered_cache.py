"""
Tests for the tiered cache and the cache-backed embedder.

Uses an injectable clock to drive TTL expiry, promotion and eviction, and an
in-memory stand-in for the persistent tier.

System role: Verification of cross-request caching
"""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from docqa.configs.cache import CacheSettings
from docqa.core.cache import ANSWER_NAMESPACE, EMBEDDING_NAMESPACE, SEARCH_NAMESPACE, CachedEmbedder, TieredCache
from docqa.core.cache.keys import hash_identifier, make_key
from docqa.core.exceptions import CacheUnavailableError, ProviderError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DictPersistentCache:
    """Persistent tier stand-in recording TTLs."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.ttls: dict[str, int | None] = {}
        self.closed = False

    async def get(self, key: str) -> tuple[Any, bool]:
        if key in self.data:
            return self.data[key], True
        return None, False

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys: str) -> int:
        removed = [key for key in keys if self.data.pop(key, None) is not None]
        return len(removed)

    async def keys(self, pattern: str) -> list[str]:
        prefix = pattern.rstrip("*")
        return [key for key in self.data if key.startswith(prefix)]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tiered(clock: FakeClock) -> TieredCache:
    return TieredCache(CacheSettings(), clock=clock)


class TestKeys:
    """Test suite for cache key derivation."""

    def test_key_shape(self) -> None:
        """Test keys are prefix, namespace and a fixed-width hash."""
        # Act
        key = make_key("docqa", SEARCH_NAMESPACE, "What is ATP?")

        # Assert
        prefix, namespace, digest = key.split(":")
        assert (prefix, namespace) == ("docqa", "search")
        assert len(digest) == 16

    def test_near_duplicates_share_a_hash(self) -> None:
        assert hash_identifier("What is ATP?") == hash_identifier("  what is   atp ")


class TestGetSet:
    """Test suite for basic get/set."""

    @pytest.mark.asyncio
    async def test_round_trip(self, tiered: TieredCache) -> None:
        # Arrange
        await tiered.set(SEARCH_NAMESPACE, "query", {"chunks": [1, 2]})

        # Act
        value, found = await tiered.get(SEARCH_NAMESPACE, "query")

        # Assert
        assert found is True
        assert value == {"chunks": [1, 2]}
        assert tiered.stats().hits == 1

    @pytest.mark.asyncio
    async def test_miss(self, tiered: TieredCache) -> None:
        value, found = await tiered.get(SEARCH_NAMESPACE, "unknown")

        assert (value, found) == (None, False)
        assert tiered.stats().misses == 1

    @pytest.mark.asyncio
    async def test_namespaces_are_isolated(self, tiered: TieredCache) -> None:
        await tiered.set(SEARCH_NAMESPACE, "query", "search value")

        _, found = await tiered.get(ANSWER_NAMESPACE, "query")

        assert found is False

    @pytest.mark.asyncio
    async def test_identifier_is_normalized(self, tiered: TieredCache) -> None:
        """Test case and punctuation variants of a query share an entry."""
        # Arrange
        await tiered.set(ANSWER_NAMESPACE, "What is ATP?", "adenosine triphosphate")

        # Act
        value, found = await tiered.get(ANSWER_NAMESPACE, "what is atp")

        # Assert
        assert found is True
        assert value == "adenosine triphosphate"

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, tiered: TieredCache, clock: FakeClock) -> None:
        """Test an explicit TTL bounds the memory entry."""
        # Arrange
        await tiered.set(SEARCH_NAMESPACE, "query", "value", ttl=10)
        clock.advance(11)

        # Act
        _, found = await tiered.get(SEARCH_NAMESPACE, "query")

        # Assert
        assert found is False
        assert tiered.stats().memory_size == 0

    @pytest.mark.asyncio
    async def test_memory_ttl_is_capped(self, tiered: TieredCache, clock: FakeClock) -> None:
        """Test memory entries never outlive the memory TTL cap."""
        # Arrange
        await tiered.set(EMBEDDING_NAMESPACE, "text", [0.1, 0.2])
        clock.advance(299)
        _, still_there = await tiered.get(EMBEDDING_NAMESPACE, "text")
        clock.advance(2)

        # Act
        _, found = await tiered.get(EMBEDDING_NAMESPACE, "text")

        # Assert
        assert still_there is True
        assert found is False

    def test_namespace_ttls(self, tiered: TieredCache) -> None:
        assert tiered.ttl_for(EMBEDDING_NAMESPACE) == 86400 * 7
        assert tiered.ttl_for(SEARCH_NAMESPACE) == 1800
        assert tiered.ttl_for(ANSWER_NAMESPACE) == 3600
        assert tiered.ttl_for("other") == 3600


class TestPromotion:
    """Test suite for hot tier promotion."""

    @pytest.mark.asyncio
    async def test_fifth_hit_promotes(self, tiered: TieredCache, clock: FakeClock) -> None:
        """Test an entry read five times moves to the hot tier and stops expiring."""
        # Arrange
        await tiered.set(SEARCH_NAMESPACE, "popular", "value")
        for _ in range(5):
            await tiered.get(SEARCH_NAMESPACE, "popular")

        # Act
        clock.advance(10_000)
        value, found = await tiered.get(SEARCH_NAMESPACE, "popular")

        # Assert
        stats = tiered.stats()
        assert stats.promotions == 1
        assert stats.hot_size == 1
        assert stats.memory_size == 0
        assert (value, found) == ("value", True)
        assert stats.tier_hits["hot"] == 1

    @pytest.mark.asyncio
    async def test_four_hits_do_not_promote(self, tiered: TieredCache) -> None:
        await tiered.set(SEARCH_NAMESPACE, "query", "value")
        for _ in range(4):
            await tiered.get(SEARCH_NAMESPACE, "query")

        assert tiered.stats().promotions == 0
        assert tiered.stats().hot_size == 0

    @pytest.mark.asyncio
    async def test_set_refreshes_hot_entry(self, tiered: TieredCache) -> None:
        """Test writing a promoted key replaces the hot value."""
        # Arrange
        await tiered.set(SEARCH_NAMESPACE, "query", "old")
        for _ in range(5):
            await tiered.get(SEARCH_NAMESPACE, "query")

        # Act
        await tiered.set(SEARCH_NAMESPACE, "query", "new")
        value, _ = await tiered.get(SEARCH_NAMESPACE, "query")

        # Assert
        assert value == "new"

    @pytest.mark.asyncio
    async def test_warm_pins_entries(self, tiered: TieredCache, clock: FakeClock) -> None:
        # Arrange
        written = await tiered.warm(ANSWER_NAMESPACE, [("q1", "a1"), ("q2", "a2")])
        clock.advance(10_000)

        # Act
        value, found = await tiered.get(ANSWER_NAMESPACE, "q2")

        # Assert
        assert written == 2
        assert (value, found) == ("a2", True)


class TestEviction:
    """Test suite for eviction and sweeping."""

    @pytest.mark.asyncio
    async def test_overflow_evicts_lowest_scoring_entry(self, clock: FakeClock) -> None:
        """Test the coldest, oldest entry is evicted when capacity is exceeded."""
        # Arrange
        cache = TieredCache(CacheSettings(memory_capacity=5, eviction_fraction=0.2), clock=clock)
        for index in range(5):
            await cache.set(SEARCH_NAMESPACE, f"k{index}", index)
            clock.advance(1)
        await cache.get(SEARCH_NAMESPACE, "k0")

        # Act
        await cache.set(SEARCH_NAMESPACE, "k5", 5)

        # Assert
        stats = cache.stats()
        assert stats.memory_size == 5
        assert stats.evictions == 1
        assert (await cache.get(SEARCH_NAMESPACE, "k1"))[1] is False
        assert (await cache.get(SEARCH_NAMESPACE, "k0"))[1] is True

    @pytest.mark.asyncio
    async def test_sweep_removes_expired(self, tiered: TieredCache, clock: FakeClock) -> None:
        # Arrange
        await tiered.set(SEARCH_NAMESPACE, "short", "a", ttl=5)
        await tiered.set(SEARCH_NAMESPACE, "long", "b", ttl=100)
        clock.advance(10)

        # Act
        removed = tiered.sweep()

        # Assert
        assert removed == 1
        assert tiered.stats().memory_size == 1


class TestInvalidation:
    """Test suite for namespace invalidation."""

    @pytest.mark.asyncio
    async def test_invalidate_namespace(self, tiered: TieredCache) -> None:
        """Test only the named namespace is cleared."""
        # Arrange
        await tiered.set(SEARCH_NAMESPACE, "q", "search")
        await tiered.set(ANSWER_NAMESPACE, "q", "answer")

        # Act
        removed = await tiered.invalidate(SEARCH_NAMESPACE)

        # Assert
        assert removed == 1
        assert (await tiered.get(SEARCH_NAMESPACE, "q"))[1] is False
        assert (await tiered.get(ANSWER_NAMESPACE, "q"))[1] is True

    @pytest.mark.asyncio
    async def test_invalidate_clears_hot_tier(self, tiered: TieredCache) -> None:
        await tiered.warm(SEARCH_NAMESPACE, [("q", "pinned")])

        await tiered.invalidate(SEARCH_NAMESPACE)

        assert (await tiered.get(SEARCH_NAMESPACE, "q"))[1] is False

    @pytest.mark.asyncio
    async def test_invalidate_all(self, tiered: TieredCache) -> None:
        # Arrange
        await tiered.set(SEARCH_NAMESPACE, "q", "search")
        await tiered.set(EMBEDDING_NAMESPACE, "q", [1.0])

        # Act
        removed = await tiered.invalidate_all()

        # Assert
        assert removed == 2
        assert tiered.stats().memory_size == 0


class TestPersistentTier:
    """Test suite for the optional persistent tier."""

    @pytest.mark.asyncio
    async def test_write_through_with_full_ttl(self, clock: FakeClock) -> None:
        """Test writes reach the persistent tier with the logical TTL."""
        # Arrange
        persistent = DictPersistentCache()
        cache = TieredCache(CacheSettings(), persistent=persistent, clock=clock)

        # Act
        await cache.set(SEARCH_NAMESPACE, "q", "value")

        # Assert
        key = cache.key(SEARCH_NAMESPACE, "q")
        assert persistent.data[key] == "value"
        assert persistent.ttls[key] == 1800

    @pytest.mark.asyncio
    async def test_memory_miss_falls_through_to_persistent(self, clock: FakeClock) -> None:
        """Test an expired memory entry is served and repopulated from the persistent tier."""
        # Arrange
        persistent = DictPersistentCache()
        cache = TieredCache(CacheSettings(), persistent=persistent, clock=clock)
        await cache.set(SEARCH_NAMESPACE, "q", "value")
        clock.advance(301)

        # Act
        value, found = await cache.get(SEARCH_NAMESPACE, "q")

        # Assert
        assert (value, found) == ("value", True)
        stats = cache.stats()
        assert stats.tier_hits["persistent"] == 1
        assert stats.memory_size == 1
        assert stats.persistent_enabled is True

    @pytest.mark.asyncio
    async def test_invalidate_reaches_persistent(self, clock: FakeClock) -> None:
        # Arrange
        persistent = DictPersistentCache()
        cache = TieredCache(CacheSettings(), persistent=persistent, clock=clock)
        await cache.set(ANSWER_NAMESPACE, "q", "value")

        # Act
        removed = await cache.invalidate(ANSWER_NAMESPACE)

        # Assert
        assert removed == 2
        assert persistent.data == {}

    @pytest.mark.asyncio
    async def test_unavailable_tier_degrades_to_miss(self, clock: FakeClock) -> None:
        """Test persistent failures never surface to callers."""
        # Arrange
        persistent = AsyncMock()
        persistent.get.side_effect = CacheUnavailableError("connection refused")
        persistent.set.side_effect = CacheUnavailableError("connection refused")
        persistent.keys.side_effect = CacheUnavailableError("connection refused")
        cache = TieredCache(CacheSettings(), persistent=persistent, clock=clock)

        # Act
        await cache.set(SEARCH_NAMESPACE, "q", "value")
        local_value, local_found = await cache.get(SEARCH_NAMESPACE, "q")
        _, remote_found = await cache.get(SEARCH_NAMESPACE, "missing")
        removed = await cache.invalidate(SEARCH_NAMESPACE)

        # Assert
        assert (local_value, local_found) == ("value", True)
        assert remote_found is False
        assert removed == 1

    @pytest.mark.asyncio
    async def test_start_and_stop(self, clock: FakeClock) -> None:
        """Test the sweeper starts on the running loop and stop closes the tier."""
        # Arrange
        persistent = DictPersistentCache()
        cache = TieredCache(CacheSettings(), persistent=persistent, clock=clock)

        # Act
        cache.start()
        running = cache._sweeper is not None and not cache._sweeper.done()
        await cache.stop()

        # Assert
        assert running is True
        assert cache._sweeper is None
        assert persistent.closed is True


class TestCachedEmbedder:
    """Test suite for CachedEmbedder."""

    @pytest.mark.asyncio
    async def test_repeat_text_uses_cache(self, embedding_provider, cache: TieredCache) -> None:
        """Test the provider is called once for repeated (normalized) text."""
        # Arrange
        embedder = CachedEmbedder(embedding_provider, cache)

        # Act
        first = await embedder.embed("Photosynthesis?")
        second = await embedder.embed("photosynthesis")

        # Assert
        assert first == second
        assert embedding_provider.calls == ["Photosynthesis?"]
        assert embedder.name == "fake-embed"

    @pytest.mark.asyncio
    async def test_without_cache_always_calls_provider(self, embedding_provider) -> None:
        embedder = CachedEmbedder(embedding_provider)

        await embedder.embed("plants")
        await embedder.embed("plants")

        assert len(embedding_provider.calls) == 2

    @pytest.mark.asyncio
    async def test_batch_only_embeds_misses(self, embedding_provider, cache: TieredCache) -> None:
        """Test cached texts are skipped in the batch call and order is kept."""
        # Arrange
        embedder = CachedEmbedder(embedding_provider, cache)
        await embedder.embed("plants")

        # Act
        vectors = await embedder.embed_batch(["ocean", "plants", "python code"])

        # Assert
        assert embedding_provider.batch_calls == [["ocean", "python code"]]
        assert vectors == [[0.0, 0.0, 0.0, 0.0, 1.0], [1.0, 0.0, 0.0, 0.0, 0.0], [0.0, 0.0, 0.0, 2.0, 0.0]]

    @pytest.mark.asyncio
    async def test_provider_errors_are_not_cached(self, cache: TieredCache, provider_error_factory) -> None:
        # Arrange
        provider = AsyncMock()
        provider.name = "flaky"
        provider.embed.side_effect = [provider_error_factory("timeout"), [1.0, 0.0]]
        embedder = CachedEmbedder(provider, cache)

        # Act
        with pytest.raises(ProviderError):
            await embedder.embed("plants")
        vector = await embedder.embed("plants")

        # Assert
        assert vector == [1.0, 0.0]
        assert provider.embed.await_count == 2
