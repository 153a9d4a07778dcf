"""
Orchestrator trace events.

Each step the retrieval agent takes is recorded as one variant of a tagged
union keyed on ``kind`` so traces serialize with a stable shape.

Dependencies: pydantic
System role: Structured agent trace
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class QueryAnalysisStep(BaseModel):
    """Classifier output for the effective query."""

    kind: Literal["query_analysis"] = "query_analysis"
    query_type: str
    threshold: float
    top_k: int
    key_terms: list[str] = Field(default_factory=list)
    document_reference: str | None = None


class FollowUpStep(BaseModel):
    """Follow-up resolution attempt."""

    kind: Literal["follow_up"] = "follow_up"
    original_query: str
    resolved_query: str | None = None
    accepted: bool = False


class ClarifyStep(BaseModel):
    """Clarifying question produced by the provider."""

    kind: Literal["clarify"] = "clarify"
    question: str


class RetrievalStep(BaseModel):
    """One retrieval pass."""

    kind: Literal["retrieval"] = "retrieval"
    strategy: str
    threshold: float
    count: int
    top_score: float | None = None
    rerank_requested: bool = False
    rerank_used: bool = False
    direct_reference: bool = False
    cached: bool = False


class ExpansionStep(BaseModel):
    """Low-confidence query expansion retry."""

    kind: Literal["expansion"] = "expansion"
    expansions: list[str] = Field(default_factory=list)
    previous_top_score: float | None = None
    new_top_score: float | None = None
    accepted: bool = False


class FallbackStep(BaseModel):
    """Graduated fallback stage entered after an empty retrieval."""

    kind: Literal["fallback"] = "fallback"
    stage: Literal["vector", "general_knowledge", "no_results"]
    count: int = 0
    threshold: float | None = None


class AnswerStep(BaseModel):
    """Answer generation summary."""

    kind: Literal["answer"] = "answer"
    context_chunks: int
    confidence: int
    tokens_used: int = 0
    streamed: bool = False
    from_cache: bool = False


class PersistStep(BaseModel):
    """Hand-off to the persistence sink."""

    kind: Literal["persist"] = "persist"
    thread_id: str | None = None
    stored: bool = True


TraceStep = Annotated[
    Union[
        QueryAnalysisStep,
        FollowUpStep,
        ClarifyStep,
        RetrievalStep,
        ExpansionStep,
        FallbackStep,
        AnswerStep,
        PersistStep,
    ],
    Field(discriminator="kind"),
]

trace_adapter: TypeAdapter[list[TraceStep]] = TypeAdapter(list[TraceStep])
