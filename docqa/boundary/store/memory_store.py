"""
In-memory chunk store.

Brute-force chunk storage with a BM25 keyword index over stemmed tokens. The
index is rebuilt lazily whenever the chunk collection changes.

Dependencies: rank_bm25, docqa.core.text
System role: Default chunk store for development and tests
"""

import logging
import threading
from collections.abc import Iterable, Sequence
from pathlib import Path

from rank_bm25 import BM25Okapi

from docqa.core.text import search_tokens
from docqa.models.chunk import Chunk

logger = logging.getLogger(__name__)


class InMemoryChunkStore:
    """Chunk store backed by process memory."""

    def __init__(self, chunks: Iterable[Chunk] = ()) -> None:
        """
        Initialize store.

        Args:
            chunks: Initial chunk records
        """
        self._chunks: dict[str, Chunk] = {}
        self._cluster_labels: dict[str, int] = {}
        self._lock = threading.RLock()
        self._index: BM25Okapi | None = None
        self._index_ids: list[str] = []
        self._index_terms: list[set[str]] = []
        self._dirty = True
        self.add_chunks(chunks)

    @classmethod
    def from_jsonl(cls, path: str | Path) -> "InMemoryChunkStore":
        """
        Load a store from a JSON lines file with one chunk record per line.

        Args:
            path: File path

        Returns:
            InMemoryChunkStore: Populated store
        """
        with open(path, encoding="utf-8") as handle:
            chunks = [Chunk.model_validate_json(line) for line in handle if line.strip()]
        logger.info(f"{__name__}:from_jsonl - loaded {len(chunks)} chunks from {path}")
        return cls(chunks)

    def add_chunks(self, chunks: Iterable[Chunk]) -> int:
        """
        Insert or replace chunk records.

        Args:
            chunks: Chunks to store

        Returns:
            int: Number of chunks written
        """
        count = 0
        with self._lock:
            for chunk in chunks:
                self._chunks[chunk.chunk_id] = chunk
                count += 1
            if count:
                self._dirty = True
        if count:
            logger.debug(f"{__name__}:add_chunks - stored {count} chunks")
        return count

    def delete_document(self, document_id: str) -> int:
        """
        Remove every chunk of a document.

        Args:
            document_id: Document to remove

        Returns:
            int: Number of chunks removed
        """
        with self._lock:
            doomed = [cid for cid, chunk in self._chunks.items() if chunk.document_id == document_id]
            for chunk_id in doomed:
                del self._chunks[chunk_id]
            self._cluster_labels.pop(document_id, None)
            if doomed:
                self._dirty = True
        logger.info(f"{__name__}:delete_document - document_id={document_id} removed={len(doomed)}")
        return len(doomed)

    def _ordered(self) -> list[Chunk]:
        return sorted(self._chunks.values(), key=lambda c: (c.document_id, c.chunk_index, c.chunk_id))

    async def scan_all(self) -> list[Chunk]:
        with self._lock:
            return self._ordered()

    async def scan_by_documents(self, document_ids: Sequence[str]) -> list[Chunk]:
        wanted = set(document_ids)
        with self._lock:
            return [chunk for chunk in self._ordered() if chunk.document_id in wanted]

    async def get_chunks(self, chunk_ids: Sequence[str]) -> list[Chunk]:
        with self._lock:
            return [self._chunks[cid] for cid in chunk_ids if cid in self._chunks]

    async def list_documents(self) -> dict[str, str]:
        with self._lock:
            return {chunk.document_id: chunk.document_name for chunk in self._ordered()}

    def _rebuild_index(self) -> None:
        chunks = self._ordered()
        corpus = [search_tokens(chunk.content) for chunk in chunks]
        if not chunks or not any(corpus):
            self._index, self._index_ids, self._index_terms = None, [], []
        else:
            self._index = BM25Okapi(corpus)
            self._index_ids = [chunk.chunk_id for chunk in chunks]
            self._index_terms = [set(tokens) for tokens in corpus]
        self._dirty = False
        logger.debug(f"{__name__}:_rebuild_index - indexed {len(self._index_ids)} chunks")

    async def text_search(self, query: str, limit: int) -> list[tuple[str, float]]:
        """
        Rank chunks by BM25 relevance of stemmed query tokens.

        Args:
            query: Free text query
            limit: Maximum results

        Returns:
            list[tuple[str, float]]: ``(chunk_id, score)`` for matching chunks,
            best first, ties broken by chunk id
        """
        tokens = search_tokens(query)
        if not tokens or limit <= 0:
            return []
        with self._lock:
            if self._dirty:
                self._rebuild_index()
            if self._index is None:
                return []
            wanted = set(tokens)
            scores = self._index.get_scores(tokens)
            # BM25 idf collapses to zero for terms present in half of a tiny corpus
            ranked = [
                (chunk_id, float(score))
                for chunk_id, score, terms in zip(self._index_ids, scores, self._index_terms)
                if score > 0 or wanted & terms
            ]
        ranked.sort(key=lambda item: (-item[1], item[0]))
        return ranked[:limit]

    async def set_cluster_labels(self, labels: dict[str, int]) -> None:
        with self._lock:
            self._cluster_labels.update(labels)

    def cluster_labels(self) -> dict[str, int]:
        with self._lock:
            return dict(self._cluster_labels)
