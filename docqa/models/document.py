"""
Document API schemas.

Request/response schemas for corpus maintenance and document similarity.

Dependencies: pydantic
System role: Document API contracts
"""

from pydantic import BaseModel, Field

from docqa.models.chunk import Chunk
from docqa.models.cluster import DocumentSimilarity


class DocumentSummary(BaseModel):
    """Known document."""

    document_id: str
    document_name: str


class ChunkUploadRequest(BaseModel):
    """Chunk records to insert or replace."""

    chunks: list[Chunk] = Field(min_length=1)


class ChunkUploadResponse(BaseModel):
    """Result of a chunk upload."""

    stored: int
    invalidated: int


class DocumentDeleteResponse(BaseModel):
    """Result of a document deletion."""

    document_id: str
    removed_chunks: int
    invalidated: int


class SimilarDocumentsResponse(BaseModel):
    """Documents ranked by similarity to a query."""

    documents: list[DocumentSimilarity]
