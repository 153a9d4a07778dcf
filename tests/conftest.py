"""
Shared test fixtures and configuration for entire test suite.

Provides: deterministic fake embedding/generation providers, a topic-based
chunk corpus, in-memory SQLite chat store, service container for API tests
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

from collections.abc import AsyncIterator, Callable, Sequence

import pytest
from langchain_core.messages import BaseMessage
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from docqa.boundary.providers.base import GenerationOptions, GenerationResult
from docqa.boundary.providers.token_stream import TokenStream
from docqa.boundary.store import InMemoryChunkStore
from docqa.configs.cache import CacheSettings
from docqa.configs.retrieval import RetrievalSettings
from docqa.configs.settings import Settings
from docqa.core.cache import CachedEmbedder, TieredCache
from docqa.core.classifier import QueryClassifier
from docqa.core.exceptions import ProviderError
from docqa.core.retrieval import HybridRetriever
from docqa.models.chunk import Chunk, ScoredChunk

# Each topic is one embedding dimension; text is embedded by counting topic words.
TOPICS: tuple[tuple[str, ...], ...] = (
    ("photosynthesis", "chlorophyll", "sunlight", "plants"),
    ("mitochondria", "cell", "energy", "atp"),
    ("revolution", "france", "bastille", "king"),
    ("python", "programming", "code", "function"),
    ("ocean", "tides", "moon", "waves"),
)


def topic_vector(text: str) -> list[float]:
    """Deterministic embedding: topic word counts per dimension."""
    tokens = [token.strip(".,?!:;\"'()").lower() for token in text.split()]
    return [float(sum(tokens.count(word) for word in topic)) for topic in TOPICS]


class FakeEmbeddingProvider:
    """Embedding provider returning topic vectors and counting calls."""

    def __init__(self, name: str = "fake-embed") -> None:
        self.name = name
        self.calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return topic_vector(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        return [topic_vector(text) for text in texts]


def prompt_kind(prompt: str | Sequence[BaseMessage]) -> str:
    """Identify which agent prompt a provider call came from."""
    text = prompt if isinstance(prompt, str) else " ".join(str(m.content) for m in prompt)
    lowered = text.lower()
    if "standalone question" in lowered:
        return "follow_up"
    if "clarifying question" in lowered:
        return "clarify"
    if "alternative search terms" in lowered:
        return "expansion"
    if "title" in lowered and "conversation starting" in lowered:
        return "title"
    if "general knowledge" in lowered:
        return "general_knowledge"
    return "answer"


class FakeGenerationProvider:
    """
    Generation provider with canned responses per prompt kind.

    Attributes:
        responses: ``{kind: text}`` overrides
        errors: ``{kind: exception}`` raised instead of responding
        calls: ``(kind, prompt)`` pairs in call order
    """

    DEFAULTS = {
        "follow_up": "",
        "clarify": "Which document are you interested in?",
        "expansion": "",
        "title": "Photosynthesis questions",
        "general_knowledge": "From general knowledge: the answer is 42.",
        "answer": "Plants convert sunlight into energy through photosynthesis.",
    }

    def __init__(
        self,
        responses: dict[str, str] | None = None,
        errors: dict[str, Exception] | None = None,
        name: str = "fake-llm",
    ) -> None:
        self.name = name
        self.responses = {**self.DEFAULTS, **(responses or {})}
        self.errors = errors or {}
        self.calls: list[tuple[str, str | Sequence[BaseMessage]]] = []
        self.streams: list[TokenStream] = []

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.calls]

    async def generate(
        self,
        prompt: str | Sequence[BaseMessage],
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        kind = prompt_kind(prompt)
        self.calls.append((kind, prompt))
        if kind in self.errors:
            raise self.errors[kind]
        return GenerationResult(text=self.responses[kind], tokens_used=12)

    def stream_generate(
        self,
        prompt: str | Sequence[BaseMessage],
        options: GenerationOptions | None = None,
    ) -> TokenStream:
        kind = prompt_kind(prompt)
        self.calls.append((kind, prompt))
        error = self.errors.get(kind)
        text = self.responses[kind]

        async def fragments() -> AsyncIterator[str]:
            if error is not None:
                raise error
            for word in text.split(" "):
                yield word + " "

        stream = TokenStream(fragments(), maxsize=4)
        self.streams.append(stream)
        return stream


def make_chunk(
    chunk_id: str,
    document_id: str,
    content: str,
    chunk_index: int = 0,
    document_name: str | None = None,
    embedding: list[float] | None = None,
) -> Chunk:
    """Build a chunk embedded with the topic embedding."""
    return Chunk(
        chunk_id=chunk_id,
        document_id=document_id,
        document_name=document_name or f"{document_id}.pdf",
        content=content,
        embedding=topic_vector(content) if embedding is None else embedding,
        chunk_index=chunk_index,
        start_offset=chunk_index * 100,
        end_offset=chunk_index * 100 + len(content),
    )


def scored(
    chunk_id: str,
    document_id: str,
    similarity: float,
    content: str | None = None,
    chunk_index: int = 0,
    low_confidence: bool = False,
) -> ScoredChunk:
    """Build a scored chunk with explicit similarity."""
    return ScoredChunk(
        chunk=make_chunk(chunk_id, document_id, content or f"content of {chunk_id}", chunk_index),
        similarity=similarity,
        low_confidence=low_confidence,
    )


@pytest.fixture
def corpus() -> list[Chunk]:
    """Small corpus: three documents on distinct topics."""
    return [
        make_chunk("bio-0", "biology", "Photosynthesis lets plants turn sunlight into sugar using chlorophyll.", 0,
                   document_name="Biology_Notes.pdf"),
        make_chunk("bio-1", "biology", "Chlorophyll absorbs sunlight so plants can drive photosynthesis reactions.", 1,
                   document_name="Biology_Notes.pdf"),
        make_chunk("bio-2", "biology", "Mitochondria produce ATP energy for the cell during respiration.", 2,
                   document_name="Biology_Notes.pdf"),
        make_chunk("hist-0", "history", "The French revolution began when crowds stormed the Bastille in France.", 0,
                   document_name="French_Revolution.docx"),
        make_chunk("hist-1", "history", "The king of France lost power during the revolution years.", 1,
                   document_name="French_Revolution.docx"),
        make_chunk("code-0", "python", "A Python function groups reusable code for programming tasks.", 0,
                   document_name="python-guide.md"),
    ]


@pytest.fixture
def store(corpus: list[Chunk]) -> InMemoryChunkStore:
    return InMemoryChunkStore(corpus)


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def generation_provider() -> FakeGenerationProvider:
    return FakeGenerationProvider()


@pytest.fixture
def cache() -> TieredCache:
    return TieredCache(CacheSettings())


@pytest.fixture
def retrieval_settings() -> RetrievalSettings:
    return RetrievalSettings()


@pytest.fixture
def classifier(retrieval_settings: RetrievalSettings) -> QueryClassifier:
    return QueryClassifier(retrieval_settings)


@pytest.fixture
def retriever(
    store: InMemoryChunkStore,
    embedding_provider: FakeEmbeddingProvider,
    classifier: QueryClassifier,
    cache: TieredCache,
) -> HybridRetriever:
    return HybridRetriever(store, CachedEmbedder(embedding_provider, cache), classifier, cache=cache)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker]:
    """
    In-memory SQLite session factory with all tables created.

    Yields:
        async_sessionmaker: Factory bound to a throwaway database
    """
    from docqa.boundary.db.base import Base
    from docqa.boundary.db import models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def provider_error_factory() -> Callable[[str], ProviderError]:
    return lambda message: ProviderError(message, provider="fake")


@pytest.fixture
def generation_provider_factory() -> type[FakeGenerationProvider]:
    """Build generation providers with custom responses or errors."""
    return FakeGenerationProvider


@pytest.fixture
def chunk_factory() -> Callable[..., Chunk]:
    return make_chunk


@pytest.fixture
def scored_chunk_factory() -> Callable[..., ScoredChunk]:
    return scored
