"""
API test fixtures.

Builds a service container over the topic corpus and fake providers and
serves it through the real application factory.

Dependencies: fastapi.testclient
System role: API test infrastructure
"""

import asyncio
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from docqa.api.deps import ServiceContainer, build_services
from docqa.api.main import create_app
from docqa.boundary.store import InMemoryChunkStore
from docqa.configs.providers import ProviderSettings
from docqa.configs.settings import Settings


@pytest.fixture
def api_settings() -> Settings:
    return Settings(providers=ProviderSettings(rerank_enabled=False, general_knowledge_enabled=False))


@pytest.fixture
def services(corpus, generation_provider, embedding_provider, api_settings: Settings) -> ServiceContainer:
    """Service container without database or persistent cache."""
    return asyncio.run(
        build_services(
            api_settings,
            store=InMemoryChunkStore(corpus),
            generation_provider=generation_provider,
            embedding_provider=embedding_provider,
            with_database=False,
        )
    )


@pytest.fixture
def client(services: ServiceContainer) -> Iterator[TestClient]:
    """Test client running the application lifespan."""
    with TestClient(create_app(services)) as client:
        yield client
