"""
Hybrid retrieval engine.

Runs vector search and keyword search concurrently, fuses the two rankings
with Reciprocal Rank Fusion, deduplicates per document, optionally reranks
with a cross-encoder and applies the adaptive threshold.

Fused scores decide rank only. A candidate's ``similarity`` is its cosine
similarity, so thresholds, reranking and confidence read a relevance signal
rather than a rank. Keyword candidates pass the same relaxed pre-filter as
vector candidates; chunks without embeddings never enter a hybrid result.

Dependencies: numpy, docqa.boundary, docqa.core.cache, docqa.core.classifier
System role: Core retrieval stage of the agent pipeline
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from docqa.boundary.providers.base import EmbeddingProvider
from docqa.boundary.rerank.base import Reranker
from docqa.boundary.store.base import ChunkStore
from docqa.configs.retrieval import RetrievalSettings
from docqa.core.cache.keys import SEARCH_NAMESPACE
from docqa.core.cache.tiered_cache import TieredCache
from docqa.core.classifier.query_classifier import QueryClassifier
from docqa.core.exceptions import RerankUnavailableError
from docqa.core.retrieval.deduplication import deduplicate
from docqa.core.retrieval.fusion import normalize_fused, reciprocal_rank_fusion
from docqa.core.retrieval.similarity import cosine_scores, embedding_matrix
from docqa.models.chunk import Chunk, ScoredChunk
from docqa.models.classification import QueryClassification, QueryType, RetrievalConfig
from docqa.models.cluster import DocumentSimilarity
from docqa.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

HYBRID = "hybrid"
VECTOR = "vector"
DOCUMENT = "document"

SIMILAR_DOCUMENTS_THRESHOLD = 0.3
SIMILAR_DOCUMENTS_CHUNKS = 20


@dataclass
class RetrievalOutcome:
    """Result of one retrieval pass."""

    chunks: list[ScoredChunk] = field(default_factory=list)
    rerank_used: bool = False
    strategy: str = HYBRID
    cached: bool = False

    @property
    def top_score(self) -> float | None:
        return max((c.similarity for c in self.chunks), default=None)


@dataclass
class _VectorHits:
    chunks: list[Chunk]
    scores: dict[str, float]


class HybridRetriever:
    """Vector + keyword retrieval with rank fusion."""

    def __init__(
        self,
        store: ChunkStore,
        embedder: EmbeddingProvider,
        classifier: QueryClassifier,
        settings: RetrievalSettings | None = None,
        cache: TieredCache | None = None,
        reranker: Reranker | None = None,
    ) -> None:
        """
        Initialize retriever.

        Args:
            store: Chunk store
            embedder: Embedding provider (usually a ``CachedEmbedder``)
            classifier: Query classifier for config lookup
            settings: Retrieval settings
            cache: Tiered cache for search results
            reranker: Optional cross-encoder
        """
        self.store = store
        self.embedder = embedder
        self.classifier = classifier
        self.settings = settings or classifier.settings
        self.cache = cache
        self.reranker = reranker

    @property
    def rerank_model(self) -> str | None:
        return self.reranker.model_name if self.reranker is not None else None

    def fusion_weights(self, query_type: QueryType) -> tuple[float, float]:
        return self.settings.fusion_weights.get(query_type.value, self.settings.default_fusion_weights)

    async def _vector_hits(self, query: str, scope: Sequence[str] | None) -> _VectorHits:
        """Score every in-scope chunk against the query embedding."""
        if scope is not None:
            chunks = await self.store.scan_by_documents(list(scope))
        else:
            chunks = await self.store.scan_all()
        if not chunks:
            return _VectorHits(chunks=[], scores={})

        query_vector = await self.embedder.embed(query)
        matrix, positions = embedding_matrix(chunks, len(query_vector))
        workers = self.settings.parallel_scoring_workers
        if matrix.shape[0] >= self.settings.parallel_scoring_min_rows:
            scores = await asyncio.to_thread(
                cosine_scores, query_vector, matrix, self.settings.parallel_scoring_min_rows, workers
            )
        else:
            scores = cosine_scores(query_vector, matrix, self.settings.parallel_scoring_min_rows, workers)

        by_id = {chunks[position].chunk_id: float(score) for position, score in zip(positions, np.asarray(scores))}
        return _VectorHits(chunks=chunks, scores=by_id)

    @staticmethod
    def _ranked(hits: _VectorHits, minimum: float) -> list[tuple[Chunk, float]]:
        ranked = [
            (chunk, hits.scores[chunk.chunk_id])
            for chunk in hits.chunks
            if chunk.chunk_id in hits.scores and hits.scores[chunk.chunk_id] >= minimum
        ]
        ranked.sort(key=lambda item: (-item[1], item[0].chunk_id))
        return ranked

    def _cache_identifier(
        self,
        strategy: str,
        query: str,
        scope: Sequence[str] | None,
        config: RetrievalConfig,
        query_type: QueryType,
        rerank: bool,
    ) -> str:
        scope_part = ",".join(sorted(scope)) if scope is not None else "all"
        return (
            f"{strategy} {query_type.value} k{config.top_k} t{config.threshold:.4f} "
            f"r{int(rerank)} s{scope_part} q {query}"
        )

    async def _cached(self, identifier: str) -> RetrievalOutcome | None:
        if self.cache is None:
            return None
        value, found = await self.cache.get(SEARCH_NAMESPACE, identifier)
        if not found:
            return None
        return RetrievalOutcome(
            chunks=[ScoredChunk.model_validate(item) for item in value["chunks"]],
            rerank_used=value.get("rerank_used", False),
            strategy=value.get("strategy", HYBRID),
            cached=True,
        )

    async def _store(self, identifier: str, outcome: RetrievalOutcome) -> None:
        if self.cache is None:
            return
        await self.cache.set(
            SEARCH_NAMESPACE,
            identifier,
            {
                "chunks": [c.model_dump(mode="json") for c in outcome.chunks],
                "rerank_used": outcome.rerank_used,
                "strategy": outcome.strategy,
            },
        )

    async def retrieve(
        self,
        query: str,
        classification: QueryClassification,
        scope: Sequence[str] | None = None,
        rerank: bool = False,
        config: RetrievalConfig | None = None,
        use_cache: bool = True,
    ) -> RetrievalOutcome:
        """
        Hybrid retrieval for a classified query.

        Args:
            query: Query text
            classification: Classifier output
            scope: Restrict to these document ids
            rerank: Apply the cross-encoder when available
            config: Override the classification's retrieval config
            use_cache: Consult and populate the search cache

        Returns:
            RetrievalOutcome: At most ``top_k`` chunks at or above threshold

        Raises:
            DimensionMismatchError: Stored and query embeddings disagree
            ProviderError: Embedding provider failure
        """
        config = config or self.classifier.retrieval_config(classification)
        identifier = self._cache_identifier(HYBRID, query, scope, config, classification.type, rerank)
        if use_cache:
            cached = await self._cached(identifier)
            if cached is not None:
                logger.info(f"{__name__}:retrieve - cache hit count={len(cached.chunks)}")
                return cached

        keyword_limit = max(
            self.settings.keyword_candidates_min,
            config.top_k * self.settings.keyword_candidates_multiplier,
        )
        hits, keyword_results = await asyncio.gather(
            self._vector_hits(query, scope),
            self.store.text_search(query, keyword_limit),
        )
        if not hits.chunks:
            return RetrievalOutcome(strategy=HYBRID)

        by_id = {chunk.chunk_id: chunk for chunk in hits.chunks}
        minimum = config.threshold * self.settings.prefilter_factor
        vector_ranked = self._ranked(hits, minimum)
        keyword_ranked = [
            (cid, score) for cid, score in keyword_results if cid in by_id and hits.scores.get(cid, float("-inf")) >= minimum
        ]
        keyword_scores = dict(keyword_ranked)
        keyword_ranking = [cid for cid, _ in keyword_ranked]

        weights = self.fusion_weights(classification.type)
        fused = reciprocal_rank_fusion(
            [chunk.chunk_id for chunk, _ in vector_ranked],
            keyword_ranking,
            weights,
            self.settings.rrf_k,
        )
        candidates = []
        for chunk_id, fused_score in fused:
            cosine = hits.scores[chunk_id]
            candidates.append(
                ScoredChunk(
                    chunk=by_id[chunk_id],
                    similarity=cosine,
                    vector_score=cosine,
                    keyword_score=keyword_scores.get(chunk_id),
                    fused_score=normalize_fused(fused_score, weights, self.settings.rrf_k),
                )
            )

        deduped = deduplicate(
            candidates,
            self.settings.max_chunks_per_document_hybrid,
            self.settings.duplicate_jaccard_threshold,
            self.settings.fingerprint_width,
        )

        rerank_used = False
        if rerank:
            deduped, rerank_used = await self._rerank(query, deduped)

        final = [c for c in deduped if c.similarity >= config.threshold][: config.top_k]
        outcome = RetrievalOutcome(chunks=final, rerank_used=rerank_used, strategy=HYBRID)
        logger.info(
            f"{__name__}:retrieve - vector={len(vector_ranked)} keyword={len(keyword_ranking)}/{len(keyword_results)} "
            f"fused={len(fused)} deduped={len(deduped)} final={len(final)} rerank_used={rerank_used}"
        )
        if use_cache:
            await self._store(identifier, outcome)
        return outcome

    async def _rerank(self, query: str, candidates: list[ScoredChunk]) -> tuple[list[ScoredChunk], bool]:
        """Blend cross-encoder scores into the head of the ranking."""
        if self.reranker is None or not candidates:
            return candidates, False

        head = candidates[: self.settings.rerank_candidates]
        tail = candidates[self.settings.rerank_candidates:]
        try:
            scores = await self.reranker.score(query, [c.content for c in head])
        except RerankUnavailableError as e:
            log_exception_with_context(logger, f"{__name__}:_rerank - reranker unavailable", e)
            return candidates, False
        if len(scores) != len(head):
            logger.warning(f"{__name__}:_rerank - score count mismatch, keeping original order")
            return candidates, False

        factor = self.settings.rerank_blend_factor
        blended = [
            c.with_similarity(max(c.similarity, score * factor), rerank_score=score)
            for c, score in zip(head, scores)
        ]
        blended.sort(key=lambda c: (-c.similarity, c.chunk_id))
        return blended + tail, True

    async def vector_search(
        self,
        query: str,
        threshold: float,
        top_k: int,
        scope: Sequence[str] | None = None,
        max_per_document: int | None = None,
        low_confidence_fallback: bool | None = None,
    ) -> RetrievalOutcome:
        """
        Plain vector search.

        Args:
            query: Query text
            threshold: Minimum cosine similarity
            top_k: Maximum results
            scope: Restrict to these document ids
            max_per_document: Per-document cap (vector default when omitted)
            low_confidence_fallback: When nothing meets the threshold, return
                the best few hits flagged ``low_confidence``

        Returns:
            RetrievalOutcome: Deduplicated vector hits
        """
        cap = max_per_document or self.settings.max_chunks_per_document_vector
        fallback = self.settings.low_confidence_fallback if low_confidence_fallback is None else low_confidence_fallback

        hits = await self._vector_hits(query, scope)
        ranked = [
            ScoredChunk(chunk=chunk, similarity=score, vector_score=score)
            for chunk, score in self._ranked(hits, float("-inf"))
        ]
        passing = [c for c in ranked if c.similarity >= threshold]
        chunks = deduplicate(
            passing,
            cap,
            self.settings.duplicate_jaccard_threshold,
            self.settings.fingerprint_width,
        )[:top_k]

        if not chunks and fallback and ranked:
            chunks = [
                c.with_similarity(c.similarity, low_confidence=True)
                for c in deduplicate(ranked, cap, self.settings.duplicate_jaccard_threshold, self.settings.fingerprint_width)
            ][: self.settings.low_confidence_fallback_count]
            logger.info(f"{__name__}:vector_search - low-confidence fallback count={len(chunks)}")

        logger.info(f"{__name__}:vector_search - threshold={threshold} count={len(chunks)}")
        return RetrievalOutcome(chunks=chunks, strategy=VECTOR)

    async def search_document(
        self,
        query: str,
        document_id: str,
        threshold: float,
        top_k: int,
    ) -> RetrievalOutcome:
        """Vector search restricted to one named document."""
        outcome = await self.vector_search(
            query,
            threshold,
            top_k,
            scope=[document_id],
            max_per_document=top_k,
            low_confidence_fallback=False,
        )
        outcome.strategy = DOCUMENT
        return outcome

    async def find_similar_documents(self, query: str, limit: int = 3) -> list[DocumentSimilarity]:
        """
        Rank documents by the mean similarity of their matching chunks.

        Args:
            query: Query text
            limit: Maximum documents

        Returns:
            list[DocumentSimilarity]: Best documents first
        """
        hits = await self._vector_hits(query, None)
        ranked = self._ranked(hits, SIMILAR_DOCUMENTS_THRESHOLD)[:SIMILAR_DOCUMENTS_CHUNKS]

        grouped: dict[str, tuple[str, list[float]]] = {}
        for chunk, score in ranked:
            grouped.setdefault(chunk.document_id, (chunk.document_name, []))[1].append(score)

        documents = [
            DocumentSimilarity(document_id=doc_id, document_name=name, avg_similarity=sum(scores) / len(scores))
            for doc_id, (name, scores) in grouped.items()
        ]
        documents.sort(key=lambda d: (-d.avg_similarity, d.document_id))
        return documents[:limit]
