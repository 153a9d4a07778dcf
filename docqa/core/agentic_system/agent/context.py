"""
Answer context assembly.

Orders the final chunk set for the answer prompt: chunks from the same
document are grouped and sorted by their original position, documents keep
the order of their best chunk, and the set is capped at the context limit.

Dependencies: docqa.models
System role: Prompt context preparation for the retrieval agent
"""

from collections.abc import Sequence

from docqa.models.answer import ChatTurn
from docqa.models.chunk import ScoredChunk

HISTORY_TURNS = 6
HISTORY_CHARS = 500
SOURCE_SEPARATOR = "\n---\n\n"


def order_for_context(chunks: Sequence[ScoredChunk], limit: int) -> list[ScoredChunk]:
    """
    Cap a ranked chunk set and group it by document position.

    Args:
        chunks: Ranked chunks, best first
        limit: Maximum chunks kept

    Returns:
        list[ScoredChunk]: Grouped, position-ordered chunks
    """
    kept = list(chunks)[: max(limit, 0)]
    groups: dict[str, list[ScoredChunk]] = {}
    for chunk in kept:
        groups.setdefault(chunk.document_id, []).append(chunk)

    ordered: list[ScoredChunk] = []
    for group in groups.values():
        ordered.extend(sorted(group, key=lambda c: (c.chunk.chunk_index, c.chunk.start_offset, c.chunk_id)))
    return ordered


def format_context(chunks: Sequence[ScoredChunk]) -> str:
    """Render chunks as numbered source blocks."""
    return SOURCE_SEPARATOR.join(
        f"[Source {i}: {chunk.document_name}]\n{chunk.content}"
        for i, chunk in enumerate(chunks, start=1)
    )


def unique_sources(chunks: Sequence[ScoredChunk]) -> list[str]:
    """Document names in first-seen order."""
    return list(dict.fromkeys(chunk.document_name for chunk in chunks))


def format_history(
    history: Sequence[ChatTurn],
    turns: int = HISTORY_TURNS,
    max_chars: int = HISTORY_CHARS,
) -> str:
    """
    Render recent turns for a prompt.

    Args:
        history: Conversation turns, oldest first
        turns: Most recent turns kept
        max_chars: Per-turn character cap

    Returns:
        str: Formatted history, empty when there is none
    """
    if not history or turns <= 0:
        return ""
    lines = [
        f"{'User' if turn.role == 'user' else 'Assistant'}: {turn.content[:max_chars]}"
        for turn in list(history)[-turns:]
    ]
    return "Previous Conversation:\n" + "\n".join(lines) + "\n"
