"""
Tests for the hybrid retrieval engine.

Runs vector + keyword retrieval over the topic corpus with the deterministic
fake embedder: thresholds, caching, scoping, reranking, vector search with the
low-confidence fallback, document search and document similarity.

System role: Verification of the core retrieval stage
"""

from collections.abc import Sequence

import pytest

from docqa.boundary.store import InMemoryChunkStore
from docqa.configs.retrieval import RetrievalSettings
from docqa.core.cache import CachedEmbedder
from docqa.core.classifier import QueryClassifier
from docqa.core.exceptions import DimensionMismatchError, RerankUnavailableError
from docqa.core.retrieval import HybridRetriever
from docqa.core.retrieval.hybrid_retriever import DOCUMENT, HYBRID, VECTOR

PLANTS_QUERY = "Why do plants need sunlight for photosynthesis?"


class FakeReranker:
    """Reranker scoring passages by a keyword, or failing on demand."""

    model_name = "fake-cross-encoder"

    def __init__(self, keyword: str = "", error: Exception | None = None, short: bool = False) -> None:
        self.keyword = keyword
        self.error = error
        self.short = short
        self.calls: list[tuple[str, list[str]]] = []

    async def score(self, query: str, texts: Sequence[str]) -> list[float]:
        self.calls.append((query, list(texts)))
        if self.error is not None:
            raise self.error
        scores = [0.95 if self.keyword and self.keyword in text.lower() else 0.1 for text in texts]
        return scores[:-1] if self.short else scores


@pytest.fixture
def reranked_retriever(store, embedding_provider, classifier) -> HybridRetriever:
    return HybridRetriever(
        store,
        CachedEmbedder(embedding_provider),
        classifier,
        reranker=FakeReranker(keyword="absorbs"),
    )


class TestRetrieve:
    """Test suite for HybridRetriever.retrieve."""

    @pytest.mark.asyncio
    async def test_returns_relevant_chunks_above_threshold(
        self, retriever: HybridRetriever, classifier: QueryClassifier
    ) -> None:
        """Test an explanatory query retrieves only the matching document."""
        # Arrange
        classification = classifier.classify(PLANTS_QUERY)

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classification)

        # Assert
        assert outcome.strategy == HYBRID
        assert {c.chunk_id for c in outcome.chunks} == {"bio-0", "bio-1"}
        assert all(c.similarity >= 0.40 for c in outcome.chunks)
        assert outcome.top_score == pytest.approx(1.0)
        assert outcome.cached is False

    @pytest.mark.asyncio
    async def test_scores_carry_component_signals(
        self, retriever: HybridRetriever, classifier: QueryClassifier
    ) -> None:
        """Test fused candidates keep their cosine and keyword scores."""
        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY))

        # Assert
        for chunk in outcome.chunks:
            assert chunk.vector_score == pytest.approx(1.0)
            assert chunk.similarity == chunk.vector_score
            assert chunk.keyword_score is not None
            assert 0.0 < chunk.fused_score <= 1.0

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(
        self, retriever: HybridRetriever, classifier: QueryClassifier, embedding_provider
    ) -> None:
        """Test identical retrievals hit the search cache."""
        # Arrange
        classification = classifier.classify(PLANTS_QUERY)
        first = await retriever.retrieve(PLANTS_QUERY, classification)

        # Act
        second = await retriever.retrieve(PLANTS_QUERY, classification)

        # Assert
        assert second.cached is True
        assert [c.chunk_id for c in second.chunks] == [c.chunk_id for c in first.chunks]
        assert len(embedding_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_cache_can_be_bypassed(self, retriever: HybridRetriever, classifier: QueryClassifier) -> None:
        # Arrange
        classification = classifier.classify(PLANTS_QUERY)
        await retriever.retrieve(PLANTS_QUERY, classification, use_cache=False)

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classification, use_cache=False)

        # Assert
        assert outcome.cached is False

    @pytest.mark.asyncio
    async def test_scope_restricts_documents(self, retriever: HybridRetriever, classifier: QueryClassifier) -> None:
        """Test chunks outside the scope are never returned."""
        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY), scope=["history"])

        # Assert
        assert outcome.chunks == []

    @pytest.mark.asyncio
    async def test_irrelevant_query_returns_nothing(
        self, retriever: HybridRetriever, classifier: QueryClassifier
    ) -> None:
        query = "Explain quantum entanglement experiments"

        outcome = await retriever.retrieve(query, classifier.classify(query))

        assert outcome.chunks == []
        assert outcome.top_score is None

    @pytest.mark.asyncio
    async def test_empty_store(self, embedding_provider, classifier: QueryClassifier) -> None:
        """Test an empty corpus retrieves nothing without calling the embedder."""
        # Arrange
        retriever = HybridRetriever(InMemoryChunkStore(), CachedEmbedder(embedding_provider), classifier)

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY))

        # Assert
        assert outcome.chunks == []
        assert embedding_provider.calls == []

    @pytest.mark.asyncio
    async def test_dimension_mismatch_is_fatal(
        self, store: InMemoryChunkStore, retriever: HybridRetriever, classifier: QueryClassifier, chunk_factory
    ) -> None:
        """Test a stored vector of another width aborts retrieval."""
        # Arrange
        store.add_chunks([chunk_factory("bad-0", "biology", "broken vector", embedding=[1.0, 0.0, 0.0])])

        # Act & Assert
        with pytest.raises(DimensionMismatchError):
            await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY))

    @pytest.mark.asyncio
    async def test_result_count_bounded_by_top_k(self, embedding_provider, chunk_factory) -> None:
        """Test no more than top_k chunks are returned."""
        # Arrange
        chunks = [
            chunk_factory(f"p{i}", f"doc{i}", f"plants sunlight photosynthesis variant{i}")
            for i in range(12)
        ]
        settings = RetrievalSettings(top_k={**RetrievalSettings().top_k, "EXPLANATORY": 3})
        classifier = QueryClassifier(settings)
        retriever = HybridRetriever(InMemoryChunkStore(chunks), CachedEmbedder(embedding_provider), classifier)

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY))

        # Assert
        assert len(outcome.chunks) == 3


class RecordingStore(InMemoryChunkStore):
    """In-memory store remembering the keyword candidate limits it was asked for."""

    def __init__(self, chunks) -> None:
        super().__init__(chunks)
        self.limits: list[int] = []

    async def text_search(self, query: str, limit: int) -> list[tuple[str, float]]:
        self.limits.append(limit)
        return await super().text_search(query, limit)


def strict_settings(threshold: float) -> RetrievalSettings:
    """Settings applying one threshold to every query type."""
    return RetrievalSettings(thresholds={name: threshold for name in RetrievalSettings().thresholds})


class TestRelevanceFiltering:
    """Test suite for the pre-filter and the final relevance threshold."""

    @pytest.mark.asyncio
    async def test_keyword_only_match_is_dropped(self, embedding_provider, chunk_factory) -> None:
        """Test a chunk matching only by keywords never clears the threshold."""
        # Arrange
        store = InMemoryChunkStore([
            chunk_factory("fin-0", "finance", "Budget planning for the next fiscal year.", embedding=[0.0, 0.0, 0.0, 0.0, 1.0]),
            chunk_factory("bio-0", "biology", "Photosynthesis lets plants turn sunlight into sugar."),
        ])
        classifier = QueryClassifier(RetrievalSettings())
        retriever = HybridRetriever(store, CachedEmbedder(embedding_provider), classifier)
        query = "What budget applies to photosynthesis?"

        # Act
        outcome = await retriever.retrieve(query, classifier.classify(query))

        # Assert
        assert [c.chunk_id for c in outcome.chunks] == ["bio-0"]
        assert all(c.similarity >= 0.5 for c in outcome.chunks)

    @pytest.mark.asyncio
    async def test_top_ranked_chunk_below_threshold_is_dropped(self, embedding_provider, chunk_factory) -> None:
        """Test ranking first does not lift a chunk over the threshold."""
        # Arrange
        store = InMemoryChunkStore([chunk_factory("band-0", "notes", "sunlight notes", embedding=[3.0, 4.0, 0.0, 0.0, 0.0])])
        classifier = QueryClassifier(strict_settings(0.7))
        retriever = HybridRetriever(store, CachedEmbedder(embedding_provider), classifier)

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY))

        # Assert
        assert outcome.chunks == []

    @pytest.mark.asyncio
    async def test_prefilter_bounds_rerank_candidates(self, embedding_provider, chunk_factory) -> None:
        """Test only chunks within threshold x 0.8 reach the reranker."""
        # Arrange
        store = InMemoryChunkStore([
            chunk_factory("band-0", "notes", "sunlight notes", embedding=[3.0, 4.0, 0.0, 0.0, 0.0]),
            chunk_factory("low-0", "drafts", "sunlight drafts", embedding=[1.0, 2.0, 0.0, 0.0, 0.0]),
        ])
        classifier = QueryClassifier(strict_settings(0.7))
        reranker = FakeReranker(keyword="sunlight")
        retriever = HybridRetriever(store, CachedEmbedder(embedding_provider), classifier, reranker=reranker)

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY), rerank=True)

        # Assert
        assert reranker.calls == [(PLANTS_QUERY, ["sunlight notes"])]
        assert [c.chunk_id for c in outcome.chunks] == ["band-0"]
        assert outcome.chunks[0].vector_score == pytest.approx(0.6)
        assert outcome.chunks[0].similarity == pytest.approx(0.855)

    @pytest.mark.asyncio
    async def test_keyword_candidates_share_the_prefilter(self, embedding_provider, chunk_factory) -> None:
        """Test a keyword hit with no vector relevance cannot be rescued by reranking."""
        # Arrange
        store = InMemoryChunkStore([
            chunk_factory("fin-0", "finance", "Budget planning for the next fiscal year.", embedding=[0.0, 0.0, 0.0, 0.0, 1.0]),
        ])
        classifier = QueryClassifier(RetrievalSettings())
        reranker = FakeReranker(keyword="budget")
        retriever = HybridRetriever(store, CachedEmbedder(embedding_provider), classifier, reranker=reranker)
        query = "What budget applies to photosynthesis?"

        # Act
        outcome = await retriever.retrieve(query, classifier.classify(query), rerank=True)

        # Assert
        assert outcome.chunks == []
        assert reranker.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("top_k", "expected"), [(3, 30), (5, 30), (10, 60)])
    async def test_keyword_candidate_limit(self, embedding_provider, corpus, top_k: int, expected: int) -> None:
        """Test keyword search asks for max(30, top_k x 6) candidates."""
        # Arrange
        store = RecordingStore(corpus)
        classifier = QueryClassifier(RetrievalSettings(top_k={name: top_k for name in RetrievalSettings().top_k}))
        retriever = HybridRetriever(store, CachedEmbedder(embedding_provider), classifier)

        # Act
        await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY))

        # Assert
        assert store.limits == [expected]


class TestRerank:
    """Test suite for cross-encoder reranking inside retrieve."""

    @pytest.mark.asyncio
    async def test_rerank_blends_scores(
        self, reranked_retriever: HybridRetriever, classifier: QueryClassifier
    ) -> None:
        """Test reranked candidates carry the reranker score."""
        # Act
        outcome = await reranked_retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY), rerank=True)

        # Assert
        assert outcome.rerank_used is True
        assert reranked_retriever.rerank_model == "fake-cross-encoder"
        scores = {c.chunk_id: c.rerank_score for c in outcome.chunks}
        assert scores["bio-1"] == pytest.approx(0.95)
        assert scores["bio-0"] == pytest.approx(0.1)

    @pytest.mark.asyncio
    async def test_rerank_not_requested(
        self, reranked_retriever: HybridRetriever, classifier: QueryClassifier
    ) -> None:
        outcome = await reranked_retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY), rerank=False)

        assert outcome.rerank_used is False
        assert all(c.rerank_score is None for c in outcome.chunks)

    @pytest.mark.asyncio
    async def test_unavailable_reranker_keeps_fused_order(
        self, store, embedding_provider, classifier: QueryClassifier
    ) -> None:
        """Test a failing reranker degrades to the fused ranking."""
        # Arrange
        retriever = HybridRetriever(
            store,
            CachedEmbedder(embedding_provider),
            classifier,
            reranker=FakeReranker(error=RerankUnavailableError("model missing")),
        )

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY), rerank=True)

        # Assert
        assert outcome.rerank_used is False
        assert {c.chunk_id for c in outcome.chunks} == {"bio-0", "bio-1"}

    @pytest.mark.asyncio
    async def test_score_count_mismatch_is_ignored(
        self, store, embedding_provider, classifier: QueryClassifier
    ) -> None:
        # Arrange
        retriever = HybridRetriever(
            store, CachedEmbedder(embedding_provider), classifier, reranker=FakeReranker(short=True)
        )

        # Act
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY), rerank=True)

        # Assert
        assert outcome.rerank_used is False

    @pytest.mark.asyncio
    async def test_rerank_without_reranker(self, retriever: HybridRetriever, classifier: QueryClassifier) -> None:
        outcome = await retriever.retrieve(PLANTS_QUERY, classifier.classify(PLANTS_QUERY), rerank=True)

        assert outcome.rerank_used is False
        assert retriever.rerank_model is None


class TestVectorSearch:
    """Test suite for vector_search and search_document."""

    @pytest.mark.asyncio
    async def test_vector_search(self, retriever: HybridRetriever) -> None:
        """Test plain vector search returns cosine-ranked chunks."""
        # Act
        outcome = await retriever.vector_search("chlorophyll and sunlight", threshold=0.5, top_k=5)

        # Assert
        assert outcome.strategy == VECTOR
        assert [c.chunk_id for c in outcome.chunks] == ["bio-0", "bio-1"]
        assert all(c.similarity == pytest.approx(1.0) for c in outcome.chunks)

    @pytest.mark.asyncio
    async def test_nothing_above_threshold(self, retriever: HybridRetriever) -> None:
        outcome = await retriever.vector_search("ocean waves", threshold=0.5, top_k=5, low_confidence_fallback=False)

        assert outcome.chunks == []

    @pytest.mark.asyncio
    async def test_low_confidence_fallback(self, retriever: HybridRetriever) -> None:
        """Test the best few hits are returned flagged when nothing passes."""
        # Act
        outcome = await retriever.vector_search("ocean waves", threshold=0.5, top_k=5, low_confidence_fallback=True)

        # Assert
        assert len(outcome.chunks) == 3
        assert all(c.low_confidence for c in outcome.chunks)

    @pytest.mark.asyncio
    async def test_search_document(self, retriever: HybridRetriever) -> None:
        """Test document search only returns chunks of the named document."""
        # Act
        outcome = await retriever.search_document("the revolution", "history", threshold=0.3, top_k=10)

        # Assert
        assert outcome.strategy == DOCUMENT
        assert [c.chunk_id for c in outcome.chunks] == ["hist-0", "hist-1"]

    @pytest.mark.asyncio
    async def test_find_similar_documents(self, retriever: HybridRetriever) -> None:
        """Test documents rank by mean similarity of their matching chunks."""
        # Act
        documents = await retriever.find_similar_documents("photosynthesis in plants", limit=3)

        # Assert
        assert documents[0].document_id == "biology"
        assert documents[0].document_name == "Biology_Notes.pdf"
        assert documents[0].avg_similarity == pytest.approx(1.0)
        assert len(documents) == 1
