"""
Chunk domain models.

Represents stored document chunks and per-query scored candidates.

Dependencies: pydantic
System role: Chunk data structures
"""

from pydantic import BaseModel, ConfigDict, Field


class Chunk(BaseModel):
    """Stored document chunk with its embedding."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique chunk identifier")
    document_id: str = Field(description="Owning document identifier")
    document_name: str = Field(description="Owning document display name")
    content: str = Field(description="Chunk text content")
    embedding: list[float] = Field(default_factory=list, description="Embedding vector")
    chunk_index: int = Field(default=0, ge=0, description="Position within the document")
    start_offset: int = Field(default=0, ge=0, description="Start character offset")
    end_offset: int = Field(default=0, ge=0, description="End character offset")


class ScoredChunk(BaseModel):
    """Chunk with a per-query relevance score. Never persisted."""

    chunk: Chunk
    similarity: float = Field(description="Relevance: cosine similarity, raised by a reranker blend")
    low_confidence: bool = Field(default=False)
    vector_score: float | None = Field(default=None, description="Raw cosine similarity")
    keyword_score: float | None = Field(default=None, description="Raw text relevance score")
    fused_score: float | None = Field(default=None, description="Rank fusion score normalized onto [0, 1]")
    rerank_score: float | None = Field(default=None, description="Reranker score (0-1)")

    @property
    def chunk_id(self) -> str:
        return self.chunk.chunk_id

    @property
    def document_id(self) -> str:
        return self.chunk.document_id

    @property
    def document_name(self) -> str:
        return self.chunk.document_name

    @property
    def content(self) -> str:
        return self.chunk.content

    def with_similarity(self, similarity: float, **updates) -> "ScoredChunk":
        """Return a copy carrying a new score."""
        return self.model_copy(update={"similarity": similarity, **updates})
