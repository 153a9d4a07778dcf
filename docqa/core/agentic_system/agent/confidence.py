"""
Answer confidence scoring.

Dependencies: docqa.configs
System role: Pure confidence computation from retrieved chunk statistics
"""

from collections.abc import Sequence

from docqa.configs.confidence import ConfidenceSettings
from docqa.models.chunk import ScoredChunk


class ConfidenceScorer:
    """
    Scores how well a chunk set supports an answer, on a 0-100 scale.

    Weighted blend of the top similarity, the mean of the top three, the
    number of highly relevant chunks and the number of distinct sources,
    followed by the configured floor corrections.
    """

    def __init__(self, settings: ConfidenceSettings | None = None) -> None:
        self.settings = settings or ConfidenceSettings()

    def score(self, chunks: Sequence[ScoredChunk]) -> int:
        """
        Compute confidence for a ranked chunk set.

        Args:
            chunks: Chunks handed to the answer prompt, best first

        Returns:
            int: Confidence in [0, max_confidence]
        """
        if not chunks:
            return 0

        s = self.settings
        similarities = sorted((max(0.0, min(1.0, c.similarity)) for c in chunks), reverse=True)
        top = similarities[0]
        top3 = similarities[:3]
        top3_avg = sum(top3) / len(top3)
        highly_relevant = sum(1 for value in similarities if value > s.highly_relevant_bar)
        coverage = min(highly_relevant / s.coverage_saturation, 1.0)
        diversity = min(len({c.document_id for c in chunks}) / s.diversity_saturation, 1.0)

        raw = (
            s.top_weight * top
            + s.top3_weight * top3_avg
            + s.coverage_weight * coverage
            + s.diversity_weight * diversity
        )
        confidence = round(raw * 100)

        # Floors are ordered strongest first; the first matching bar applies.
        for bar, minimum in sorted(s.floors, key=lambda floor: floor[0], reverse=True):
            if top > bar:
                confidence = max(confidence, minimum)
                break

        if all(c.low_confidence for c in chunks):
            confidence = min(confidence, s.low_confidence_cap)
        return max(0, min(confidence, s.max_confidence))
