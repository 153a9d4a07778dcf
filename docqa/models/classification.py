"""
Query classification models.

Dependencies: pydantic
System role: Per-query analysis results and derived retrieval parameters
"""

from enum import Enum

from pydantic import BaseModel, Field


class QueryType(str, Enum):
    """Query intent categories, most specific first."""

    SPECIFIC = "SPECIFIC"
    COMPARATIVE = "COMPARATIVE"
    SUMMARIZATION = "SUMMARIZATION"
    FACTUAL = "FACTUAL"
    EXPLANATORY = "EXPLANATORY"
    GENERAL = "GENERAL"


class DocumentReference(BaseModel):
    """Known document the query refers to by name."""

    document_id: str
    document_name: str
    match_score: float = Field(ge=0.0, le=1.0)


class QueryClassification(BaseModel):
    """Classifier output, derived fresh per query."""

    type: QueryType
    document_reference: DocumentReference | None = None
    key_terms: list[str] = Field(default_factory=list, max_length=5)
    is_follow_up: bool = False


class RetrievalConfig(BaseModel):
    """Retrieval parameters looked up from the classification."""

    top_k: int = Field(ge=1)
    threshold: float = Field(ge=0.0, le=1.0)
    use_query_expansion: bool = False
