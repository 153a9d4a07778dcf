"""
Embedding and generation providers.

One interface per capability with swappable implementations selected by
configuration.
"""

from docqa.boundary.providers.base import (
    EmbeddingProvider,
    GenerationOptions,
    GenerationProvider,
    GenerationResult,
)
from docqa.boundary.providers.factory import create_embedding_provider, create_generation_provider
from docqa.boundary.providers.token_stream import TokenStream

__all__ = [
    "EmbeddingProvider",
    "GenerationOptions",
    "GenerationProvider",
    "GenerationResult",
    "TokenStream",
    "create_embedding_provider",
    "create_generation_provider",
]
