"""
Result deduplication.

Caps chunks per document and drops near-duplicates within a document:
identical head/tail fingerprints or word Jaccard overlap above a threshold.
Chunks of different documents never suppress each other.

Dependencies: docqa.core.text
System role: Diversity filter for retrieval results
"""

from collections.abc import Sequence

from docqa.core.text import fingerprint, jaccard, overlap_tokens
from docqa.models.chunk import ScoredChunk


def deduplicate(
    candidates: Sequence[ScoredChunk],
    max_per_document: int,
    jaccard_threshold: float = 0.5,
    fingerprint_width: int = 100,
) -> list[ScoredChunk]:
    """
    Filter ranked candidates, keeping the earlier of any duplicate pair.

    Args:
        candidates: Candidates in ranked order
        max_per_document: Maximum chunks kept per document
        jaccard_threshold: Overlap above which two chunks are duplicates
        fingerprint_width: Characters compared at each end of the content

    Returns:
        list[ScoredChunk]: Surviving candidates in their original order
    """
    kept: list[ScoredChunk] = []
    per_document: dict[str, list[tuple[str, set[str]]]] = {}

    for candidate in candidates:
        selected = per_document.setdefault(candidate.document_id, [])
        if len(selected) >= max_per_document:
            continue

        head_tail = fingerprint(candidate.content, fingerprint_width)
        tokens = overlap_tokens(candidate.content)
        if any(
            head_tail == other_print or jaccard(tokens, other_tokens) > jaccard_threshold
            for other_print, other_tokens in selected
        ):
            continue

        selected.append((head_tail, tokens))
        kept.append(candidate)
    return kept
