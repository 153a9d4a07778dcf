"""
Dependency injection container.

Builds every service once at startup and exposes FastAPI dependencies that
read them from ``app.state``.

Dependencies: fastapi, docqa.configs, docqa.application, docqa.boundary, docqa.core
System role: DI container for service injection
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from docqa.application.services import AnswerService, DocumentService
from docqa.boundary.cache import PersistentCache, RedisPersistentCache
from docqa.boundary.db import SqlAlchemyChatStore, create_tables, get_async_engine, get_async_session_factory
from docqa.boundary.db.chat_store import ChatStore
from docqa.boundary.providers.base import EmbeddingProvider, GenerationProvider
from docqa.boundary.providers.factory import create_embedding_provider, create_generation_provider
from docqa.boundary.rerank import CrossEncoderReranker, Reranker
from docqa.boundary.store import InMemoryChunkStore
from docqa.boundary.store.base import ChunkStore
from docqa.configs import Settings, get_settings
from docqa.core.agentic_system.agent import RetrievalAgent
from docqa.core.cache import CachedEmbedder, TieredCache
from docqa.core.classifier import QueryClassifier
from docqa.core.retrieval import DocumentClusterer, HybridRetriever

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Service instances shared by every request."""

    settings: Settings
    store: ChunkStore
    cache: TieredCache
    retriever: HybridRetriever
    agent: RetrievalAgent
    clusterer: DocumentClusterer
    answer_service: AnswerService
    document_service: DocumentService
    engine: AsyncEngine | None = None

    async def close(self) -> None:
        """Stop background work and release connections."""
        await self.cache.stop()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info(f"{__name__}:close - services closed")


async def build_services(
    settings: Settings | None = None,
    *,
    store: ChunkStore | None = None,
    generation_provider: GenerationProvider | None = None,
    embedding_provider: EmbeddingProvider | None = None,
    persistent_cache: PersistentCache | None = None,
    reranker: Reranker | None = None,
    chat_store: ChatStore | None = None,
    with_database: bool = True,
) -> ServiceContainer:
    """
    Construct every service from settings, with optional overrides.

    Args:
        settings: Application settings (process settings when omitted)
        store: Chunk store (in-memory store, optionally seeded, when omitted)
        generation_provider: Generation provider (configured provider when omitted)
        embedding_provider: Embedding provider (configured provider when omitted)
        persistent_cache: Persistent cache tier (Redis when enabled)
        reranker: Reranker (cross-encoder when enabled)
        chat_store: Persistence sink (SQLAlchemy store when omitted)
        with_database: Create the SQLAlchemy engine and tables

    Returns:
        ServiceContainer: Wired services
    """
    settings = settings or get_settings()

    if store is None:
        path = settings.retrieval.corpus_path
        store = InMemoryChunkStore.from_jsonl(path) if path else InMemoryChunkStore()

    if persistent_cache is None and settings.cache.redis_enabled:
        persistent_cache = RedisPersistentCache.from_url(
            settings.cache.redis_url,
            password=settings.cache.redis_password,
            timeout=settings.cache.redis_timeout_seconds,
            default_ttl=settings.cache.default_ttl_seconds,
        )
    cache = TieredCache(settings.cache, persistent=persistent_cache)

    if reranker is None and settings.providers.rerank_enabled:
        reranker = CrossEncoderReranker(settings.providers.rerank_model)

    embedder = CachedEmbedder(embedding_provider or create_embedding_provider(settings.providers), cache)
    generator = generation_provider or create_generation_provider(settings.providers)
    classifier = QueryClassifier(settings.retrieval)
    retriever = HybridRetriever(store, embedder, classifier, settings.retrieval, cache=cache, reranker=reranker)

    engine = None
    if chat_store is None and with_database:
        engine = get_async_engine(settings.database)
        await create_tables(engine)
        chat_store = SqlAlchemyChatStore(get_async_session_factory(engine))

    agent = RetrievalAgent(retriever, generator, chat_store=chat_store, cache=cache, settings=settings)
    services = ServiceContainer(
        settings=settings,
        store=store,
        cache=cache,
        retriever=retriever,
        agent=agent,
        clusterer=DocumentClusterer(store),
        answer_service=AnswerService(agent, chat_store=chat_store),
        document_service=DocumentService(store, retriever, cache=cache, embedder=embedder),
        engine=engine,
    )
    logger.info(
        f"{__name__}:build_services - ready redis={persistent_cache is not None} "
        f"rerank={reranker is not None} database={chat_store is not None}"
    )
    return services


def get_services(request: Request) -> ServiceContainer:
    """Get the service container built in the application lifespan."""
    return request.app.state.services


def get_answer_service(services: ServiceContainer = Depends(get_services)) -> AnswerService:
    """Get answer service instance."""
    return services.answer_service


def get_document_service(services: ServiceContainer = Depends(get_services)) -> DocumentService:
    """Get document service instance."""
    return services.document_service


def get_tiered_cache(services: ServiceContainer = Depends(get_services)) -> TieredCache:
    """Get the shared tiered cache."""
    return services.cache


def get_clusterer(services: ServiceContainer = Depends(get_services)) -> DocumentClusterer:
    """Get document clusterer instance."""
    return services.clusterer
