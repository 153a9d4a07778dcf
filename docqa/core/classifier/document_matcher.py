"""
Document reference detection.

Fuzzy-matches query text against known document names. Candidates come from
the whole query, "about X" style phrases and quoted substrings; each candidate
is scored against every name with the best of word-set Jaccard, substring
containment and positional character overlap.

Dependencies: docqa.core.text
System role: Document-name disambiguation for the query classifier
"""

import logging
import re
from collections.abc import Mapping

from docqa.core.classifier.patterns import DOCUMENT_PHRASE_PATTERNS, QUOTED
from docqa.core.text import STOPWORDS, jaccard, normalize
from docqa.models.classification import DocumentReference

logger = logging.getLogger(__name__)

_EXTENSION = re.compile(r"\.(pdf|docx?|txt|md|markdown|html?|pptx?|xlsx?|csv|json|rtf|odt)$", re.IGNORECASE)
_SEPARATORS = re.compile(r"[_\-]+")

CONTAINMENT_WEIGHT = 0.95
POSITIONAL_WEIGHT = 0.7


def normalize_name(name: str) -> str:
    """Strip a file extension and separators from a document name."""
    stripped = _EXTENSION.sub("", name.strip())
    return normalize(_SEPARATORS.sub(" ", stripped))


def _content_words(text: str) -> set[str]:
    return {word for word in text.split() if word not in STOPWORDS}


def _containment(candidate: str, name: str) -> float:
    if len(name) < 3 or len(candidate) < 3:
        return 0.0
    if re.search(rf"\b{re.escape(name)}\b", candidate):
        return 1.0
    if re.search(rf"\b{re.escape(candidate)}\b", name):
        return len(candidate) / len(name)
    return 0.0


def _positional_overlap(candidate: str, name: str) -> float:
    longest = max(len(candidate), len(name))
    if longest == 0:
        return 0.0
    same = sum(1 for a, b in zip(candidate, name) if a == b)
    return same / longest


def name_similarity(candidate: str, name: str) -> float:
    """
    Similarity of a normalized candidate phrase and a normalized document name.

    Args:
        candidate: Normalized query fragment
        name: Normalized document name

    Returns:
        float: Score in [0, 1]
    """
    if not candidate or not name:
        return 0.0
    if candidate == name:
        return 1.0
    word_score = jaccard(_content_words(candidate), _content_words(name))
    return max(
        word_score,
        CONTAINMENT_WEIGHT * _containment(candidate, name),
        POSITIONAL_WEIGHT * _positional_overlap(candidate, name),
    )


class DocumentMatcher:
    """Finds the known document a query names, if any."""

    def __init__(self, threshold: float = 0.45) -> None:
        """
        Initialize matcher.

        Args:
            threshold: Minimum similarity for a match
        """
        self.threshold = threshold

    @staticmethod
    def candidates(query: str) -> list[str]:
        """Normalized query fragments that may name a document."""
        found: list[str] = []
        for groups in QUOTED.findall(query):
            found.extend(group for group in groups if group)
        for pattern in DOCUMENT_PHRASE_PATTERNS:
            match = pattern.search(query)
            if match:
                found.append(match.group(1))
        found.append(query)

        unique: list[str] = []
        for fragment in found:
            cleaned = normalize_name(fragment)
            if cleaned and cleaned not in unique:
                unique.append(cleaned)
        return unique

    def match(self, query: str, documents: Mapping[str, str]) -> DocumentReference | None:
        """
        Return the best matching document above the threshold.

        Args:
            query: Raw query text
            documents: ``{document_id: document_name}``

        Returns:
            DocumentReference | None: Best match, ties broken by document id
        """
        if not query.strip() or not documents:
            return None

        fragments = self.candidates(query)
        best: tuple[float, str] | None = None
        for document_id in sorted(documents):
            name = normalize_name(documents[document_id])
            score = max((name_similarity(fragment, name) for fragment in fragments), default=0.0)
            if best is None or score > best[0]:
                best = (score, document_id)

        if best is None or best[0] < self.threshold:
            return None

        score, document_id = best
        logger.debug(f"{__name__}:match - document_id={document_id} score={score:.3f}")
        return DocumentReference(
            document_id=document_id,
            document_name=documents[document_id],
            match_score=round(min(score, 1.0), 4),
        )
