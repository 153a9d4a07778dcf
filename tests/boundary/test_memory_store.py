"""
Tests for the in-memory chunk store.

Covers scans, document listing, BM25 text search, deletion with index
rebuilds, cluster labels and loading from JSON lines.

System role: Verification of the default chunk store
"""

from pathlib import Path

import pytest

from docqa.boundary.store import ChunkStore, InMemoryChunkStore
from docqa.models.chunk import Chunk


class TestScans:
    """Test suite for scan and lookup operations."""

    @pytest.mark.asyncio
    async def test_scan_all_ordered_by_document_and_position(self, store: InMemoryChunkStore) -> None:
        chunks = await store.scan_all()

        assert [c.chunk_id for c in chunks] == ["bio-0", "bio-1", "bio-2", "hist-0", "hist-1", "code-0"]

    @pytest.mark.asyncio
    async def test_scan_by_documents(self, store: InMemoryChunkStore) -> None:
        chunks = await store.scan_by_documents(["history", "missing"])

        assert [c.chunk_id for c in chunks] == ["hist-0", "hist-1"]

    @pytest.mark.asyncio
    async def test_get_chunks_skips_unknown_ids(self, store: InMemoryChunkStore) -> None:
        chunks = await store.get_chunks(["code-0", "nope", "bio-1"])

        assert [c.chunk_id for c in chunks] == ["code-0", "bio-1"]

    @pytest.mark.asyncio
    async def test_list_documents(self, store: InMemoryChunkStore) -> None:
        assert await store.list_documents() == {
            "biology": "Biology_Notes.pdf",
            "history": "French_Revolution.docx",
            "python": "python-guide.md",
        }

    def test_satisfies_protocol(self, store: InMemoryChunkStore) -> None:
        assert isinstance(store, ChunkStore)

    def test_add_chunks_replaces_by_id(self, store: InMemoryChunkStore, chunk_factory) -> None:
        """Test re-adding a chunk id overwrites the record."""
        # Act
        written = store.add_chunks([chunk_factory("bio-0", "biology", "Replaced text about plants")])

        # Assert
        assert written == 1
        assert store._chunks["bio-0"].content == "Replaced text about plants"


class TestTextSearch:
    """Test suite for BM25 text search."""

    @pytest.mark.asyncio
    async def test_matching_chunks_ranked(self, store: InMemoryChunkStore) -> None:
        """Test only chunks sharing stemmed terms are returned."""
        # Act
        results = await store.text_search("chlorophyll photosynthesis", limit=5)

        # Assert
        assert {chunk_id for chunk_id, _ in results} == {"bio-0", "bio-1"}
        assert all(score > 0 for _, score in results)
        assert results[0][1] >= results[1][1]

    @pytest.mark.asyncio
    async def test_limit_applies(self, store: InMemoryChunkStore) -> None:
        results = await store.text_search("france revolution king", limit=1)

        assert len(results) == 1
        assert results[0][0].startswith("hist")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("query", "limit"), [("", 5), ("the and of", 5), ("photosynthesis", 0)])
    async def test_no_results(self, store: InMemoryChunkStore, query: str, limit: int) -> None:
        assert await store.text_search(query, limit) == []

    @pytest.mark.asyncio
    async def test_empty_store(self) -> None:
        assert await InMemoryChunkStore().text_search("photosynthesis", 5) == []

    @pytest.mark.asyncio
    async def test_index_rebuilt_after_changes(self, store: InMemoryChunkStore, chunk_factory) -> None:
        """Test new and deleted chunks are reflected in later searches."""
        # Arrange
        await store.text_search("photosynthesis", 5)
        store.add_chunks([chunk_factory("ocean-0", "ocean", "Tides follow the moon across the ocean.")])

        # Act
        added = await store.text_search("tides", 5)
        store.delete_document("ocean")
        removed = await store.text_search("tides", 5)

        # Assert
        assert [chunk_id for chunk_id, _ in added] == ["ocean-0"]
        assert removed == []


class TestDocumentsAndLabels:
    """Test suite for deletion and cluster labels."""

    @pytest.mark.asyncio
    async def test_delete_document(self, store: InMemoryChunkStore) -> None:
        # Act
        removed = store.delete_document("biology")

        # Assert
        assert removed == 3
        assert "biology" not in await store.list_documents()

    def test_delete_unknown_document(self, store: InMemoryChunkStore) -> None:
        assert store.delete_document("nope") == 0

    @pytest.mark.asyncio
    async def test_cluster_labels_cleared_with_document(self, store: InMemoryChunkStore) -> None:
        # Arrange
        await store.set_cluster_labels({"biology": 0, "history": 1})

        # Act
        store.delete_document("biology")

        # Assert
        assert store.cluster_labels() == {"history": 1}


class TestFromJsonl:
    """Test suite for InMemoryChunkStore.from_jsonl."""

    @pytest.mark.asyncio
    async def test_loads_one_chunk_per_line(self, tmp_path: Path, corpus: list[Chunk]) -> None:
        """Test blank lines are skipped and every record is loaded."""
        # Arrange
        path = tmp_path / "chunks.jsonl"
        path.write_text("\n".join(chunk.model_dump_json() for chunk in corpus) + "\n\n", encoding="utf-8")

        # Act
        loaded = InMemoryChunkStore.from_jsonl(path)

        # Assert
        assert await loaded.scan_all() == await InMemoryChunkStore(corpus).scan_all()
