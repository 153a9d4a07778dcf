"""
LangChain-backed providers.

Adapts any LangChain chat model / embeddings implementation to the provider
protocols. Raw SDK exceptions are classified into typed provider errors.

Dependencies: langchain_core
System role: Provider strategy implementations
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from langchain_core.embeddings import Embeddings
from langchain_core.language_models.chat_models import BaseChatModel

from docqa.boundary.providers.base import GenerationOptions, GenerationResult, PromptInput
from docqa.boundary.providers.token_stream import TokenStream
from docqa.core.exceptions import DimensionMismatchError, classify_provider_error

logger = logging.getLogger(__name__)


def content_text(content: Any) -> str:
    """Flatten string or list message content into text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            item if isinstance(item, str) else (item.get("text", "") if isinstance(item, dict) else str(item))
            for item in content
        )
    return str(content or "")


class LangChainGenerationProvider:
    """Generation provider over a LangChain chat model."""

    def __init__(
        self,
        model: BaseChatModel,
        name: str = "langchain",
        max_tokens_param: str = "max_tokens",
        stream_buffer_size: int = 64,
    ) -> None:
        """
        Initialize generation provider.

        Args:
            model: LangChain chat model
            name: Provider name used in errors and logs
            max_tokens_param: Model-specific name of the output token limit
            stream_buffer_size: Bounded channel size for streaming
        """
        self.name = name
        self._model = model
        self._max_tokens_param = max_tokens_param
        self._stream_buffer_size = stream_buffer_size

    def _runnable(self, options: GenerationOptions | None):
        if options is None:
            return self._model
        overrides: dict[str, Any] = {}
        if options.temperature is not None:
            overrides["temperature"] = options.temperature
        if options.max_tokens is not None:
            overrides[self._max_tokens_param] = options.max_tokens
        return self._model.bind(**overrides) if overrides else self._model

    async def generate(
        self,
        prompt: PromptInput,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """
        Generate a complete response.

        Args:
            prompt: Prompt text or message list
            options: Optional per-call overrides

        Returns:
            GenerationResult: Text and token usage

        Raises:
            ProviderError: Typed provider failure
        """
        try:
            message = await self._runnable(options).ainvoke(prompt)
        except Exception as e:
            error = classify_provider_error(e, provider=self.name)
            logger.error(f"{__name__}:generate - FAILED {type(error).__name__}: {e}")
            raise error from e

        usage = getattr(message, "usage_metadata", None) or {}
        return GenerationResult(
            text=content_text(message.content).strip(),
            tokens_used=int(usage.get("total_tokens", 0) or 0),
        )

    def stream_generate(
        self,
        prompt: PromptInput,
        options: GenerationOptions | None = None,
    ) -> TokenStream:
        """
        Stream response fragments through a bounded channel.

        Args:
            prompt: Prompt text or message list
            options: Optional per-call overrides

        Returns:
            TokenStream: Finite, single-use fragment stream
        """
        return TokenStream(self._fragments(prompt, options), maxsize=self._stream_buffer_size)

    async def _fragments(
        self,
        prompt: PromptInput,
        options: GenerationOptions | None,
    ) -> AsyncIterator[str]:
        try:
            async for chunk in self._runnable(options).astream(prompt):
                text = content_text(chunk.content)
                if text:
                    yield text
        except Exception as e:
            error = classify_provider_error(e, provider=self.name)
            logger.error(f"{__name__}:stream_generate - FAILED {type(error).__name__}: {e}")
            raise error from e


class LangChainEmbeddingProvider:
    """Embedding provider over LangChain ``Embeddings``."""

    def __init__(
        self,
        embeddings: Embeddings,
        name: str = "langchain",
        dimension: int | None = None,
    ) -> None:
        """
        Initialize embedding provider.

        Args:
            embeddings: LangChain embeddings implementation
            name: Provider name used in errors and logs
            dimension: Expected vector dimension (checked when set)
        """
        self.name = name
        self._embeddings = embeddings
        self._dimension = dimension

    def _check(self, vector: list[float]) -> list[float]:
        if self._dimension is not None and len(vector) != self._dimension:
            raise DimensionMismatchError(expected=self._dimension, actual=len(vector))
        return vector

    async def embed(self, text: str) -> list[float]:
        """Embed a single query text."""
        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as e:
            raise classify_provider_error(e, provider=self.name) from e
        return self._check(list(vector))

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts in one provider call."""
        if not texts:
            return []
        try:
            vectors = await self._embeddings.aembed_documents(texts)
        except Exception as e:
            raise classify_provider_error(e, provider=self.name) from e
        return [self._check(list(vector)) for vector in vectors]
