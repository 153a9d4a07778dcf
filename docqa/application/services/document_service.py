"""
Document service orchestrator.

Coordinates corpus changes, document similarity and cache warming. Every
change to the chunk store is followed by invalidation of the cached search
results and answers derived from it.

Dependencies: docqa.boundary.store, docqa.core.retrieval, docqa.core.cache
System role: Document management orchestration
"""

import logging
from collections.abc import Sequence

from docqa.boundary.store.base import ChunkStore
from docqa.core.cache.embedder import CachedEmbedder
from docqa.core.cache.keys import ANSWER_NAMESPACE, SEARCH_NAMESPACE
from docqa.core.cache.tiered_cache import TieredCache
from docqa.core.exceptions import ProviderError
from docqa.core.retrieval.hybrid_retriever import HybridRetriever
from docqa.models.chunk import Chunk
from docqa.models.cluster import DocumentSimilarity
from docqa.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Document service orchestrator.

    Owns the write path of the chunk store so cached results never outlive
    the documents they were computed from.
    """

    def __init__(
        self,
        store: ChunkStore,
        retriever: HybridRetriever,
        cache: TieredCache | None = None,
        embedder: CachedEmbedder | None = None,
    ) -> None:
        """
        Initialize document service.

        Args:
            store: Chunk store shared with the retriever
            retriever: Hybrid retriever for document similarity
            cache: Tiered cache holding derived results
            embedder: Cache-backed embedder used for warming
        """
        self.store = store
        self.retriever = retriever
        self.cache = cache
        self.embedder = embedder

    async def list_documents(self) -> dict[str, str]:
        return await self.store.list_documents()

    async def add_chunks(self, chunks: Sequence[Chunk]) -> tuple[int, int]:
        """
        Insert or replace chunks, then invalidate derived cache entries.

        Args:
            chunks: Chunk records with embeddings

        Returns:
            tuple[int, int]: ``(chunks stored, cache entries removed)``
        """
        stored = self.store.add_chunks(chunks)
        invalidated = await self.invalidate_documents() if stored else 0
        logger.info(f"{__name__}:add_chunks - stored={stored} invalidated={invalidated}")
        return stored, invalidated

    async def delete_document(self, document_id: str) -> tuple[int, int]:
        """
        Remove a document, then invalidate derived cache entries.

        Args:
            document_id: Document to remove

        Returns:
            tuple[int, int]: ``(chunks removed, cache entries removed)``
        """
        removed = self.store.delete_document(document_id)
        invalidated = await self.invalidate_documents() if removed else 0
        logger.info(f"{__name__}:delete_document - document_id={document_id} removed={removed}")
        return removed, invalidated

    async def invalidate_documents(self) -> int:
        """
        Drop cached search results and answers after a document change.

        Embeddings stay cached since they depend only on text.

        Returns:
            int: Number of entries removed
        """
        if self.cache is None:
            return 0
        removed = await self.cache.invalidate(SEARCH_NAMESPACE)
        removed += await self.cache.invalidate(ANSWER_NAMESPACE)
        logger.info(f"{__name__}:invalidate_documents - removed={removed}")
        return removed

    async def find_similar(self, query: str, limit: int = 3) -> list[DocumentSimilarity]:
        """Documents ranked by the mean similarity of their matching chunks."""
        return await self.retriever.find_similar_documents(query, limit)

    async def warm_cache(self, queries: Sequence[str]) -> int:
        """
        Pre-embed expected queries into the hot cache tier.

        A provider failure leaves the cache cold; startup continues.

        Args:
            queries: Queries expected to recur

        Returns:
            int: Entries warmed
        """
        if self.embedder is None or not queries:
            return 0
        try:
            warmed = await self.embedder.warm(list(queries))
        except ProviderError as e:
            log_exception_with_context(logger, f"{__name__}:warm_cache - warmup failed", e)
            return 0
        logger.info(f"{__name__}:warm_cache - warmed={warmed}")
        return warmed
