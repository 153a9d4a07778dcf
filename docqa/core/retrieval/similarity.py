"""
Vector similarity.

Cosine scoring of a query vector against a candidate matrix. Large matrices
are split into row blocks scored on a thread pool; numpy releases the GIL in
the matrix product so blocks run on separate cores.

Dependencies: numpy
System role: Vector search scoring kernel
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from docqa.core.exceptions import DimensionMismatchError
from docqa.models.chunk import Chunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        float: Similarity in [-1, 1]; 0.0 when either vector is zero

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.shape != right.shape:
        raise DimensionMismatchError(expected=left.shape[0], actual=right.shape[0])
    denominator = np.linalg.norm(left) * np.linalg.norm(right)
    if denominator == 0.0:
        return 0.0
    return float(np.clip(np.dot(left, right) / denominator, -1.0, 1.0))


def embedding_matrix(chunks: Sequence[Chunk], dimension: int) -> tuple[np.ndarray, list[int]]:
    """
    Stack chunk embeddings into a matrix.

    Chunks without an embedding are skipped; any other length is fatal.

    Args:
        chunks: Candidate chunks
        dimension: Query embedding dimension

    Returns:
        tuple: ``(matrix, positions)`` where ``positions[i]`` is the index in
        ``chunks`` of matrix row ``i``

    Raises:
        DimensionMismatchError: If a stored embedding has another dimension
    """
    rows: list[Sequence[float]] = []
    positions: list[int] = []
    for position, chunk in enumerate(chunks):
        if not chunk.embedding:
            continue
        if len(chunk.embedding) != dimension:
            raise DimensionMismatchError(
                expected=dimension,
                actual=len(chunk.embedding),
                chunk_id=chunk.chunk_id,
            )
        rows.append(chunk.embedding)
        positions.append(position)
    if not rows:
        return np.empty((0, dimension), dtype=np.float64), positions
    return np.asarray(rows, dtype=np.float64), positions


def _score_block(query_unit: np.ndarray, block: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(block, axis=1)
    safe = np.where(norms == 0.0, 1.0, norms)
    scores = (block @ query_unit) / safe
    return np.where(norms == 0.0, 0.0, scores)


def cosine_scores(
    query: Sequence[float],
    matrix: np.ndarray,
    parallel_min_rows: int = 20000,
    workers: int = 4,
) -> np.ndarray:
    """
    Cosine similarity of a query against every matrix row.

    Args:
        query: Query vector
        matrix: Candidate matrix, one row per chunk
        parallel_min_rows: Row count above which scoring is split into blocks
        workers: Thread pool size for block scoring

    Returns:
        np.ndarray: Scores in [-1, 1], aligned with matrix rows

    Raises:
        DimensionMismatchError: If query and matrix widths differ
    """
    query_vector = np.asarray(query, dtype=np.float64)
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)
    if matrix.shape[1] != query_vector.shape[0]:
        raise DimensionMismatchError(expected=query_vector.shape[0], actual=matrix.shape[1])

    query_norm = np.linalg.norm(query_vector)
    if query_norm == 0.0:
        return np.zeros(matrix.shape[0], dtype=np.float64)
    query_unit = query_vector / query_norm

    if matrix.shape[0] < parallel_min_rows or workers <= 1:
        scores = _score_block(query_unit, matrix)
    else:
        blocks = np.array_split(matrix, workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            scores = np.concatenate(list(pool.map(lambda block: _score_block(query_unit, block), blocks)))
    return np.clip(scores, -1.0, 1.0)
