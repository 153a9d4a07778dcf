"""
Document-level retrieval models.

Dependencies: pydantic
System role: Clustering and document similarity results
"""

from pydantic import BaseModel


class ClusterAssignment(BaseModel):
    """Cluster label computed for one document."""

    document_id: str
    cluster_id: int


class DocumentSimilarity(BaseModel):
    """Document ranked by the mean similarity of its matching chunks."""

    document_id: str
    document_name: str
    avg_similarity: float
