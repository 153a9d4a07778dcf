"""
Agent answer schemas.

Request context and structured response of the retrieval orchestrator.

Dependencies: pydantic
System role: Public contract between the orchestrator and its callers
"""

from typing import Literal

from pydantic import BaseModel, Field

from docqa.models.chunk import ScoredChunk
from docqa.models.trace import TraceStep


class ChatTurn(BaseModel):
    """Single message of the conversation history."""

    role: Literal["user", "assistant"]
    content: str


class SessionContext(BaseModel):
    """Conversation scope of a query."""

    thread_id: str | None = Field(default=None, description="Existing thread to append to")
    history: list[ChatTurn] = Field(default_factory=list, description="Recent turns, oldest first")
    scope: list[str] | None = Field(default=None, description="Restrict retrieval to these documents")


class AnswerOptions(BaseModel):
    """Per-request orchestrator switches."""

    strategy: Literal["hybrid", "vector"] = "hybrid"
    rerank: bool = True
    use_cache: bool = True
    allow_clarify: bool = True


class AnswerMetadata(BaseModel):
    """Diagnostics attached to every answer."""

    strategy: str
    rerank_used: bool = False
    rerank_model: str | None = None
    asked_clarifying: str | None = None
    resolved_query: str | None = None
    is_general_knowledge: bool = False
    query_type: str | None = None
    threshold: float | None = None
    cached: bool = False
    thread_id: str | None = None
    tokens_used: int = 0


class AgentAnswer(BaseModel):
    """Structured response from the retrieval agent."""

    answer: str
    chunks: list[ScoredChunk] = Field(default_factory=list)
    confidence: int = Field(default=0, ge=0, le=100)
    sources: list[str] = Field(default_factory=list)
    trace: list[TraceStep] = Field(default_factory=list)
    metadata: AnswerMetadata
