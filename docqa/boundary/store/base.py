"""
Chunk store interface.

Dependencies: docqa.models
System role: Contract for the external chunk storage collaborator
"""

from typing import Iterable, Protocol, Sequence, runtime_checkable

from docqa.models.chunk import Chunk


@runtime_checkable
class ChunkStore(Protocol):
    """Holds chunk records with vectors and supports scans and text search."""

    async def scan_all(self) -> list[Chunk]:
        ...

    async def scan_by_documents(self, document_ids: Sequence[str]) -> list[Chunk]:
        ...

    async def text_search(self, query: str, limit: int) -> list[tuple[str, float]]:
        """Return ``(chunk_id, score)`` pairs, best first."""
        ...

    async def list_documents(self) -> dict[str, str]:
        """Return ``{document_id: document_name}``."""
        ...

    async def get_chunks(self, chunk_ids: Sequence[str]) -> list[Chunk]:
        ...

    async def set_cluster_labels(self, labels: dict[str, int]) -> None:
        ...

    def add_chunks(self, chunks: Iterable[Chunk]) -> int:
        """Insert or replace chunk records; returns the number written."""
        ...

    def delete_document(self, document_id: str) -> int:
        """Remove a document's chunks; returns the number removed."""
        ...
