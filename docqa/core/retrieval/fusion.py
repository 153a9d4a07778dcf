"""
Reciprocal Rank Fusion.

Each candidate at 0-based rank ``r`` of a list contributes
``weight / (k + r + 1)``; candidates present in both lists accumulate both
contributions. Output order is ``(fused score desc, chunk id asc)``.

Dependencies: None
System role: Rank fusion of vector and keyword search
"""

from collections.abc import Sequence


def reciprocal_rank_fusion(
    vector_ranking: Sequence[str],
    keyword_ranking: Sequence[str],
    weights: tuple[float, float],
    k: int = 60,
) -> list[tuple[str, float]]:
    """
    Fuse two rankings of chunk ids.

    Args:
        vector_ranking: Chunk ids ordered by vector similarity
        keyword_ranking: Chunk ids ordered by text relevance
        weights: ``(vector_weight, keyword_weight)``
        k: Rank smoothing constant

    Returns:
        list[tuple[str, float]]: ``(chunk_id, fused_score)``, best first
    """
    vector_weight, keyword_weight = weights
    fused: dict[str, float] = {}
    for weight, ranking in ((vector_weight, vector_ranking), (keyword_weight, keyword_ranking)):
        seen: set[str] = set()
        for rank, chunk_id in enumerate(ranking):
            if chunk_id in seen:
                continue
            seen.add(chunk_id)
            fused[chunk_id] = fused.get(chunk_id, 0.0) + weight / (k + rank + 1)
    return sorted(fused.items(), key=lambda item: (-item[1], item[0]))


def max_fused_score(weights: tuple[float, float], k: int = 60) -> float:
    """Score of a candidate ranked first in both lists."""
    return (weights[0] + weights[1]) / (k + 1)


def normalize_fused(score: float, weights: tuple[float, float], k: int = 60) -> float:
    """Map a fused score onto [0, 1] relative to the best attainable score."""
    ceiling = max_fused_score(weights, k)
    if ceiling <= 0:
        return 0.0
    return min(1.0, score / ceiling)
