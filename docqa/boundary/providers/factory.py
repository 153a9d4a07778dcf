"""
Provider factory.

Selects provider implementations from configuration instead of from whichever
wrapper happens to be imported.

Dependencies: langchain_google_genai, docqa.configs
System role: Provider strategy selection
"""

import logging

from docqa.boundary.providers.langchain_provider import (
    LangChainEmbeddingProvider,
    LangChainGenerationProvider,
)
from docqa.configs.providers import ProviderSettings

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("google",)


def create_generation_provider(settings: ProviderSettings) -> LangChainGenerationProvider:
    """
    Build the configured generation provider.

    Args:
        settings: Provider settings

    Returns:
        LangChainGenerationProvider: Ready provider

    Raises:
        ValueError: If the provider kind is unknown
    """
    if settings.kind == "google":
        # Lazy import to avoid loading heavy dependencies at startup
        from langchain_google_genai import ChatGoogleGenerativeAI

        kwargs = {"google_api_key": settings.api_key} if settings.api_key else {}
        model = ChatGoogleGenerativeAI(
            model=settings.chat_model,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
            **kwargs,
        )
        logger.info(f"{__name__}:create_generation_provider - google model={settings.chat_model}")
        return LangChainGenerationProvider(
            model,
            name="google",
            max_tokens_param="max_output_tokens",
            stream_buffer_size=settings.stream_buffer_size,
        )
    raise ValueError(f"Unknown provider kind: {settings.kind}. Supported: {SUPPORTED_PROVIDERS}")


def create_embedding_provider(settings: ProviderSettings) -> LangChainEmbeddingProvider:
    """
    Build the configured embedding provider.

    Args:
        settings: Provider settings

    Returns:
        LangChainEmbeddingProvider: Ready provider

    Raises:
        ValueError: If the provider kind is unknown
    """
    if settings.kind == "google":
        from langchain_google_genai import GoogleGenerativeAIEmbeddings

        kwargs = {"google_api_key": settings.api_key} if settings.api_key else {}
        embeddings = GoogleGenerativeAIEmbeddings(model=settings.embedding_model, **kwargs)
        logger.info(f"{__name__}:create_embedding_provider - google model={settings.embedding_model}")
        return LangChainEmbeddingProvider(
            embeddings,
            name="google",
            dimension=settings.embedding_dimension,
        )
    raise ValueError(f"Unknown provider kind: {settings.kind}. Supported: {SUPPORTED_PROVIDERS}")
