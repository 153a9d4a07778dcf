"""
Chunk store boundary.

Dependencies: rank_bm25
System role: Chunk storage adapters
"""

from docqa.boundary.store.base import ChunkStore
from docqa.boundary.store.memory_store import InMemoryChunkStore

__all__ = ["ChunkStore", "InMemoryChunkStore"]
