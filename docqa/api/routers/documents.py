"""Document API endpoints.

Routes:
- GET /documents - List known documents
- POST /documents/chunks - Insert or replace chunk records
- GET /documents/similar - Rank documents by similarity to a query
- DELETE /documents/{document_id} - Remove a document

Every corpus change invalidates the cached search results and answers.

Dependencies: docqa.application.services.document_service
System role: Document management HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from docqa.api.deps import get_document_service
from docqa.application.services import DocumentService
from docqa.models.document import (
    ChunkUploadRequest,
    ChunkUploadResponse,
    DocumentDeleteResponse,
    DocumentSummary,
    SimilarDocumentsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=list[DocumentSummary])
async def list_documents(
    document_service: DocumentService = Depends(get_document_service),
) -> list[DocumentSummary]:
    """List every document in the chunk store."""
    documents = await document_service.list_documents()
    return [DocumentSummary(document_id=doc_id, document_name=name) for doc_id, name in documents.items()]


@router.post("/chunks", response_model=ChunkUploadResponse)
async def upload_chunks(
    request: ChunkUploadRequest,
    document_service: DocumentService = Depends(get_document_service),
) -> ChunkUploadResponse:
    """Insert or replace chunk records.

    Args:
        request: Chunks with embeddings
        document_service: Injected DocumentService

    Returns:
        ChunkUploadResponse: Chunks stored and cache entries invalidated
    """
    stored, invalidated = await document_service.add_chunks(request.chunks)
    logger.info(f"{__name__}:upload_chunks - stored={stored}")
    return ChunkUploadResponse(stored=stored, invalidated=invalidated)


@router.get("/similar", response_model=SimilarDocumentsResponse)
async def similar_documents(
    query: str = Query(min_length=1, description="Text to compare documents against"),
    limit: int = Query(default=3, ge=1, le=20),
    document_service: DocumentService = Depends(get_document_service),
) -> SimilarDocumentsResponse:
    """Rank documents by the mean similarity of their matching chunks."""
    documents = await document_service.find_similar(query, limit)
    return SimilarDocumentsResponse(documents=documents)


@router.delete("/{document_id}", response_model=DocumentDeleteResponse)
async def delete_document(
    document_id: str,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentDeleteResponse:
    """Remove a document and invalidate results derived from it.

    Raises:
        HTTPException: 404 if the document is unknown
    """
    removed, invalidated = await document_service.delete_document(document_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return DocumentDeleteResponse(document_id=document_id, removed_chunks=removed, invalidated=invalidated)
