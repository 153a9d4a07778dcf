"""
Hybrid retrieval.

Dependencies: numpy
System role: Vector/keyword search, fusion, deduplication and clustering
"""

from docqa.core.retrieval.clustering import DocumentClusterer
from docqa.core.retrieval.deduplication import deduplicate
from docqa.core.retrieval.fusion import reciprocal_rank_fusion
from docqa.core.retrieval.hybrid_retriever import HybridRetriever, RetrievalOutcome
from docqa.core.retrieval.similarity import cosine_similarity

__all__ = [
    "DocumentClusterer",
    "HybridRetriever",
    "RetrievalOutcome",
    "cosine_similarity",
    "deduplicate",
    "reciprocal_rank_fusion",
]
