"""
Retrieval configuration settings.

Adaptive thresholds, rank fusion weights, deduplication caps and fallback
constants for the hybrid retrieval engine.

Dependencies: pydantic, pydantic_settings
System role: Tunables for classification-driven retrieval
"""

from pydantic import Field

from docqa.configs.base import DocQASettings, settings_config


class RetrievalSettings(DocQASettings):
    """Hybrid retrieval configuration."""

    model_config = settings_config("RETRIEVAL_")

    thresholds: dict[str, float] = Field(
        default={
            "FACTUAL": 0.50,
            "EXPLANATORY": 0.40,
            "SUMMARIZATION": 0.35,
            "SPECIFIC": 0.55,
            "GENERAL": 0.45,
            "COMPARATIVE": 0.45,
        },
        description="Minimum relevance score per query type",
    )
    document_reference_threshold: float = Field(
        default=0.30,
        description="Threshold used when the query names a known document",
    )
    top_k: dict[str, int] = Field(
        default={
            "FACTUAL": 5,
            "EXPLANATORY": 8,
            "SUMMARIZATION": 10,
            "SPECIFIC": 5,
            "GENERAL": 6,
            "COMPARATIVE": 8,
        },
        description="Result count per query type",
    )
    expansion_types: list[str] = Field(
        default=["EXPLANATORY", "GENERAL", "COMPARATIVE"],
        description="Query types allowed to use provider query expansion",
    )

    prefilter_factor: float = Field(
        default=0.8,
        description="Vector candidates are kept at threshold * factor before fusion",
    )
    rrf_k: int = Field(default=60, description="Reciprocal rank fusion constant")
    keyword_candidates_min: int = Field(default=30, description="Keyword candidate floor")
    keyword_candidates_multiplier: int = Field(
        default=6,
        description="Keyword candidates requested per top_k slot",
    )
    fusion_weights: dict[str, tuple[float, float]] = Field(
        default={
            "EXPLANATORY": (0.7, 0.3),
            "SPECIFIC": (0.4, 0.6),
            "FACTUAL": (0.5, 0.5),
            "SUMMARIZATION": (0.6, 0.4),
            "COMPARATIVE": (0.6, 0.4),
        },
        description="(vector, keyword) weights per query type",
    )
    default_fusion_weights: tuple[float, float] = Field(
        default=(0.55, 0.45),
        description="(vector, keyword) weights for unlisted query types",
    )

    max_chunks_per_document_hybrid: int = Field(default=2, ge=1)
    max_chunks_per_document_vector: int = Field(default=4, ge=1)
    duplicate_jaccard_threshold: float = Field(default=0.5)
    fingerprint_width: int = Field(default=100, description="Characters kept from each end")

    rerank_blend_factor: float = Field(default=0.9)
    rerank_candidates: int = Field(default=20, description="Candidates passed to the reranker")

    fallback_vector_threshold: float = Field(default=0.35)
    low_confidence_threshold: float = Field(default=0.4)
    low_confidence_fallback: bool = Field(
        default=False,
        description="Return top vector hits flagged low-confidence when nothing meets the threshold",
    )
    low_confidence_fallback_count: int = Field(default=3)
    expansion_relaxation: float = Field(
        default=0.05,
        description="Threshold reduction applied on the query expansion retry",
    )
    max_expansions: int = Field(default=3)

    context_chunk_limit: int = Field(default=8, description="Chunks handed to the answer prompt")
    document_match_threshold: float = Field(default=0.45)
    parallel_scoring_min_rows: int = Field(
        default=20000,
        description="Candidate count above which vector scoring is split across worker threads",
    )
    parallel_scoring_workers: int = Field(default=4)
    corpus_path: str | None = Field(
        default=None,
        description="JSON lines file of chunk records loaded into the in-memory store at startup",
    )
