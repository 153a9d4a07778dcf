"""
Cache key derivation.

Identifiers are normalized before hashing so near-duplicate queries share a
key: lowercase, punctuation replaced by spaces, whitespace collapsed.

Dependencies: hashlib (stdlib), docqa.core.text
System role: Stable fixed-width cache keys
"""

import hashlib

from docqa.core.text import normalize

HASH_WIDTH = 16

EMBEDDING_NAMESPACE = "embedding"
SEARCH_NAMESPACE = "search"
ANSWER_NAMESPACE = "answer"


def hash_identifier(identifier: str) -> str:
    """Hash the normalized identifier to a fixed-width hex digest."""
    return hashlib.sha256(normalize(identifier).encode("utf-8")).hexdigest()[:HASH_WIDTH]


def make_key(prefix: str, namespace: str, identifier: str) -> str:
    """
    Build a fully qualified cache key.

    Args:
        prefix: Deployment-wide key prefix
        namespace: Logical cache namespace
        identifier: Raw identifier (query text, chunk text, ...)

    Returns:
        str: ``"{prefix}:{namespace}:{hash}"``
    """
    return f"{prefix}:{namespace}:{hash_identifier(identifier)}"


def namespace_prefix(prefix: str, namespace: str | None = None) -> str:
    """Key prefix shared by every entry of a namespace (or of the whole cache)."""
    if namespace is None:
        return f"{prefix}:"
    return f"{prefix}:{namespace}:"
