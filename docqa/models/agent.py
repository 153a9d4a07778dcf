"""
Agent API schemas.

Request/response schemas for the agent and admin endpoints.

Dependencies: pydantic
System role: Agent API contracts
"""

from typing import Literal

from pydantic import BaseModel, Field

from docqa.models.answer import AnswerOptions
from docqa.models.cluster import ClusterAssignment


class AgentRequest(BaseModel):
    """Request schema for agent questions."""

    query: str = Field(description="User question")
    thread_id: str | None = Field(default=None, description="Existing conversation thread")
    scope: list[str] | None = Field(default=None, description="Restrict retrieval to these document ids")
    strategy: Literal["hybrid", "vector"] = "hybrid"
    rerank: bool = True
    use_cache: bool = True
    allow_clarify: bool = True

    def options(self) -> AnswerOptions:
        return AnswerOptions(
            strategy=self.strategy,
            rerank=self.rerank,
            use_cache=self.use_cache,
            allow_clarify=self.allow_clarify,
        )


class ErrorResponse(BaseModel):
    """Typed error body."""

    code: str
    message: str


class ClusterRequest(BaseModel):
    """Request schema for document clustering."""

    k: int = Field(ge=1, description="Number of clusters")
    max_iterations: int = Field(default=20, ge=1)


class ClusterResponse(BaseModel):
    """Cluster labels computed for every document."""

    assignments: list[ClusterAssignment]


class CacheInvalidateRequest(BaseModel):
    """Namespace to invalidate; every namespace when omitted."""

    namespace: str | None = None


class CacheInvalidateResponse(BaseModel):
    """Number of cache entries removed."""

    removed: int
