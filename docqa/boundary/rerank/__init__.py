"""
Rerank boundary.

Dependencies: sentence_transformers
System role: Relevance scorer adapters
"""

from docqa.boundary.rerank.base import Reranker
from docqa.boundary.rerank.cross_encoder import CrossEncoderReranker

__all__ = ["CrossEncoderReranker", "Reranker"]
