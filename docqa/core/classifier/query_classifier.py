"""
Query classifier.

Assigns a query type by ordered pattern matching, detects references to known
documents and derives the retrieval parameters for the query.

Dependencies: docqa.configs, docqa.core.text
System role: First stage of the retrieval pipeline
"""

import logging
from collections.abc import Mapping

from docqa.configs.retrieval import RetrievalSettings
from docqa.core.classifier.document_matcher import DocumentMatcher
from docqa.core.classifier.patterns import BROAD_PATTERNS, FOLLOW_UP_PATTERNS, TYPE_PATTERNS
from docqa.core.text import key_terms, words
from docqa.models.classification import QueryClassification, QueryType, RetrievalConfig

logger = logging.getLogger(__name__)

SHORT_QUERY_WORDS = 2


class QueryClassifier:
    """
    Rule-based query classifier.

    All tables come from ``RetrievalSettings`` so thresholds and result
    counts stay tunable without code changes.
    """

    def __init__(
        self,
        settings: RetrievalSettings | None = None,
        matcher: DocumentMatcher | None = None,
    ) -> None:
        """
        Initialize classifier.

        Args:
            settings: Retrieval settings (defaults when omitted)
            matcher: Document matcher (built from settings when omitted)
        """
        self.settings = settings or RetrievalSettings()
        self.matcher = matcher or DocumentMatcher(self.settings.document_match_threshold)

    def detect_type(self, query: str) -> QueryType:
        """
        Classify a query by the first matching pattern group.

        Args:
            query: Raw query text

        Returns:
            QueryType: Detected type, GENERAL for empty input
        """
        if not query or not query.strip():
            return QueryType.GENERAL
        for query_type, patterns in TYPE_PATTERNS:
            if any(pattern.search(query) for pattern in patterns):
                return query_type
        return QueryType.GENERAL

    def classify(
        self,
        query: str,
        known_documents: Mapping[str, str] | None = None,
    ) -> QueryClassification:
        """
        Classify a query.

        Args:
            query: Raw query text
            known_documents: ``{document_id: document_name}`` for reference detection

        Returns:
            QueryClassification: Type, document reference and key terms
        """
        query_type = self.detect_type(query)
        reference = self.matcher.match(query, known_documents or {}) if query.strip() else None
        classification = QueryClassification(
            type=query_type,
            document_reference=reference,
            key_terms=key_terms(query),
        )
        logger.info(
            f"{__name__}:classify - type={query_type.value} "
            f"doc_ref={reference.document_name if reference else None}"
        )
        return classification

    def adaptive_threshold(self, query_type: QueryType, has_document_reference: bool = False) -> float:
        """
        Minimum relevance score for a query type.

        Args:
            query_type: Classified type
            has_document_reference: Whether the query names a known document

        Returns:
            float: Threshold in [0, 1]
        """
        if has_document_reference:
            return self.settings.document_reference_threshold
        return self.settings.thresholds[query_type.value]

    def retrieval_config(self, classification: QueryClassification) -> RetrievalConfig:
        """Look up retrieval parameters for a classification."""
        query_type = classification.type
        return RetrievalConfig(
            top_k=self.settings.top_k[query_type.value],
            threshold=self.adaptive_threshold(query_type, classification.document_reference is not None),
            use_query_expansion=query_type.value in self.settings.expansion_types,
        )

    @staticmethod
    def is_follow_up_candidate(query: str) -> bool:
        """Whether the query leans on earlier turns (pronouns, continuations)."""
        if not query.strip():
            return False
        return any(pattern.search(query) for pattern in FOLLOW_UP_PATTERNS)

    @staticmethod
    def needs_clarification(query: str) -> bool:
        """Whether the query is very short or too broad to retrieve on."""
        if not query.strip():
            return False
        if any(pattern.search(query) for pattern in BROAD_PATTERNS):
            return True
        return len(words(query)) <= SHORT_QUERY_WORDS
