"""
Reranker interface.

Dependencies: None
System role: Contract for pluggable relevance scorers
"""

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class Reranker(Protocol):
    """Scores (query, text) pairs on a 0..1 scale.

    Implementations raise ``RerankUnavailableError`` when they cannot score.
    """

    model_name: str

    async def score(self, query: str, texts: Sequence[str]) -> list[float]:
        ...
