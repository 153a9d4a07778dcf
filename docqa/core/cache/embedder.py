"""
Cache-backed embedder.

Wraps an embedding provider with the ``embedding`` cache namespace so repeat
queries never pay for a second provider call.

Dependencies: docqa.core.cache.tiered_cache
System role: Embedding memoization for retrieval
"""

import logging

from docqa.boundary.providers.base import EmbeddingProvider
from docqa.core.cache.keys import EMBEDDING_NAMESPACE
from docqa.core.cache.tiered_cache import TieredCache

logger = logging.getLogger(__name__)


class CachedEmbedder:
    """Embedding provider decorator backed by the tiered cache."""

    def __init__(self, provider: EmbeddingProvider, cache: TieredCache | None = None) -> None:
        self.provider = provider
        self.cache = cache
        self.name = provider.name

    def _identifier(self, text: str) -> str:
        return f"{self.provider.name} {text}"

    async def embed(self, text: str) -> list[float]:
        """
        Embed text, consulting the cache first.

        Args:
            text: Text to embed

        Returns:
            list[float]: Embedding vector

        Raises:
            ProviderError: On provider failure (never cached)
        """
        if self.cache is not None:
            cached, found = await self.cache.get(EMBEDDING_NAMESPACE, self._identifier(text))
            if found:
                return list(cached)

        vector = await self.provider.embed(text)
        if self.cache is not None:
            await self.cache.set(EMBEDDING_NAMESPACE, self._identifier(text), vector)
        return vector

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts, calling the provider only for cache misses."""
        results: list[list[float] | None] = [None] * len(texts)
        missing: list[int] = []
        for index, text in enumerate(texts):
            if self.cache is not None:
                cached, found = await self.cache.get(EMBEDDING_NAMESPACE, self._identifier(text))
                if found:
                    results[index] = list(cached)
                    continue
            missing.append(index)

        if missing:
            vectors = await self.provider.embed_batch([texts[i] for i in missing])
            for index, vector in zip(missing, vectors):
                results[index] = vector
                if self.cache is not None:
                    await self.cache.set(EMBEDDING_NAMESPACE, self._identifier(texts[index]), vector)
            logger.debug(f"{__name__}:embed_batch - {len(missing)}/{len(texts)} cache misses")
        return results

    async def warm(self, texts: list[str]) -> int:
        """
        Embed texts and pin their vectors in the hot tier.

        Args:
            texts: Queries expected to recur

        Returns:
            int: Entries warmed

        Raises:
            ProviderError: On provider failure
        """
        if self.cache is None or not texts:
            return 0
        vectors = await self.embed_batch(texts)
        entries = [(self._identifier(text), vector) for text, vector in zip(texts, vectors)]
        return await self.cache.warm(EMBEDDING_NAMESPACE, entries)
