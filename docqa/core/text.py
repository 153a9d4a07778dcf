"""
Text normalization helpers.

Shared tokenization, stemming, stopword filtering and overlap measures used
by the classifier, the keyword index, deduplication and cache key derivation.

Dependencies: re (stdlib)
System role: Pure text utilities for the retrieval core
"""

import re

STOPWORDS: frozenset[str] = frozenset(
    {
        "a", "about", "above", "after", "again", "all", "also", "am", "an", "and",
        "any", "are", "as", "at", "be", "been", "before", "being", "between", "both",
        "but", "by", "can", "could", "did", "do", "does", "doing", "down", "each",
        "few", "for", "from", "further", "had", "has", "have", "having", "he", "her",
        "here", "hers", "him", "his", "how", "i", "if", "in", "into", "is", "it",
        "its", "itself", "just", "me", "more", "most", "my", "no", "nor", "not",
        "now", "of", "off", "on", "once", "only", "or", "other", "our", "out",
        "over", "own", "same", "she", "should", "so", "some", "such", "tell",
        "than", "that", "the", "their", "them", "then", "there", "these", "they",
        "this", "those", "through", "to", "too", "under", "until", "up", "very",
        "was", "we", "were", "what", "when", "where", "which", "while", "who",
        "whom", "why", "will", "with", "would", "you", "your", "please", "explain",
        "describe", "document", "documents", "file",
    }
)

_PUNCTUATION = re.compile(r"[^\w\s]+", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")
_WORD = re.compile(r"[a-z0-9]+")

# Longest suffixes first
_SUFFIXES = ("ational", "ization", "fulness", "ousness", "iveness", "ations", "ation", "ments",
             "ment", "ness", "ings", "ing", "ies", "ied", "edly", "ed", "ly", "es", "s")


def normalize(text: str) -> str:
    """
    Lowercase, replace punctuation with spaces and collapse whitespace.

    Args:
        text: Raw text

    Returns:
        str: Normalized text
    """
    lowered = _PUNCTUATION.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text.lower()).strip()


def words(text: str) -> list[str]:
    """Split text into lowercase alphanumeric words."""
    return _WORD.findall(text.lower())


def stem(word: str) -> str:
    """Strip a common English suffix, keeping a stem of at least three characters."""
    for suffix in _SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            if suffix in ("ies", "ied"):
                return word[: -len(suffix)] + "y"
            return word[: -len(suffix)]
    return word


def search_tokens(text: str) -> list[str]:
    """Stemmed, stopword-free tokens for keyword search."""
    return [stem(word) for word in words(text) if word not in STOPWORDS and len(word) > 1]


def key_terms(text: str, limit: int = 5) -> list[str]:
    """
    Extract distinct non-stopword terms longer than three characters.

    Args:
        text: Query text
        limit: Maximum number of terms

    Returns:
        list[str]: Terms in order of first appearance
    """
    terms: list[str] = []
    for word in words(text):
        if len(word) > 3 and word not in STOPWORDS and word not in terms:
            terms.append(word)
            if len(terms) == limit:
                break
    return terms


def overlap_tokens(text: str) -> set[str]:
    """Whitespace tokens longer than two characters, used for duplicate detection."""
    return {token for token in text.lower().split() if len(token) > 2}


def jaccard(left: set[str], right: set[str]) -> float:
    """Jaccard similarity of two token sets (0.0 when both are empty)."""
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def fingerprint(text: str, width: int = 100) -> str:
    """Head and tail of the whitespace-collapsed text."""
    collapsed = collapse_whitespace(text)
    return f"{collapsed[:width]}|{collapsed[-width:]}"
