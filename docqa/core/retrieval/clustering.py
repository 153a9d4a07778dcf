"""
Document clustering.

K-means with cosine distance over per-document mean embeddings. Centroids are
seeded from the first ``k`` documents in document-id order, so runs are
deterministic. Used for corpus browsing, never on the query path.

Dependencies: numpy, docqa.boundary.store
System role: Batch document grouping
"""

import logging
from collections import defaultdict

import numpy as np

from docqa.boundary.store.base import ChunkStore
from docqa.core.exceptions import DimensionMismatchError
from docqa.models.cluster import ClusterAssignment

logger = logging.getLogger(__name__)


def _unit_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    return matrix / np.where(norms == 0.0, 1.0, norms)


def kmeans_cosine(vectors: np.ndarray, k: int, max_iterations: int) -> np.ndarray:
    """
    Cluster row vectors by cosine similarity.

    Args:
        vectors: One row per item
        k: Cluster count (1 <= k <= rows)
        max_iterations: Upper bound on reassignment rounds

    Returns:
        np.ndarray: Cluster id per row
    """
    units = _unit_rows(vectors)
    centroids = units[:k].copy()
    labels = np.full(units.shape[0], -1, dtype=np.int64)

    for iteration in range(max(1, max_iterations)):
        # argmax breaks ties toward the lowest cluster id
        new_labels = np.argmax(units @ centroids.T, axis=1)
        if np.array_equal(new_labels, labels):
            logger.debug(f"{__name__}:kmeans_cosine - converged after {iteration} iterations")
            break
        labels = new_labels
        for cluster in range(k):
            members = units[labels == cluster]
            if members.shape[0]:
                centroids[cluster] = _unit_rows(members.mean(axis=0, keepdims=True))[0]
    return labels


class DocumentClusterer:
    """Groups documents by the mean embedding of their chunks."""

    def __init__(self, store: ChunkStore) -> None:
        self.store = store

    async def document_embeddings(self) -> tuple[list[str], np.ndarray]:
        """
        Mean embedding per document, in document-id order.

        Returns:
            tuple: ``(document_ids, matrix)``

        Raises:
            DimensionMismatchError: If chunks disagree on embedding width
        """
        grouped: dict[str, list[list[float]]] = defaultdict(list)
        dimension: int | None = None
        for chunk in await self.store.scan_all():
            if not chunk.embedding:
                continue
            if dimension is None:
                dimension = len(chunk.embedding)
            elif len(chunk.embedding) != dimension:
                raise DimensionMismatchError(
                    expected=dimension,
                    actual=len(chunk.embedding),
                    chunk_id=chunk.chunk_id,
                )
            grouped[chunk.document_id].append(chunk.embedding)

        document_ids = sorted(grouped)
        if not document_ids:
            return [], np.empty((0, 0), dtype=np.float64)
        matrix = np.asarray(
            [np.mean(np.asarray(grouped[doc_id], dtype=np.float64), axis=0) for doc_id in document_ids]
        )
        return document_ids, matrix

    async def cluster(self, k: int, max_iterations: int = 20) -> list[ClusterAssignment]:
        """
        Cluster documents and persist their labels.

        Args:
            k: Requested cluster count (clamped to the document count)
            max_iterations: Upper bound on reassignment rounds

        Returns:
            list[ClusterAssignment]: One assignment per document

        Raises:
            ValueError: If ``k`` or ``max_iterations`` is not positive
        """
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")
        if max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {max_iterations}")

        document_ids, matrix = await self.document_embeddings()
        if not document_ids:
            logger.info(f"{__name__}:cluster - no embedded documents")
            return []

        effective_k = min(k, len(document_ids))
        labels = kmeans_cosine(matrix, effective_k, max_iterations)
        assignments = [
            ClusterAssignment(document_id=doc_id, cluster_id=int(label))
            for doc_id, label in zip(document_ids, labels)
        ]
        await self.store.set_cluster_labels({a.document_id: a.cluster_id for a in assignments})
        logger.info(f"{__name__}:cluster - documents={len(document_ids)} k={effective_k}")
        return assignments
