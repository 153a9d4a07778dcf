"""
Provider interfaces.

Structural protocols for embedding and text generation backends. Errors raised
by implementations are always typed ``ProviderError`` subclasses.

Dependencies: pydantic, langchain_core
System role: Provider contracts consumed by the retrieval core
"""

from typing import Protocol, Sequence, runtime_checkable

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, Field

from docqa.boundary.providers.token_stream import TokenStream

PromptInput = str | Sequence[BaseMessage]


class GenerationOptions(BaseModel):
    """Per-call generation overrides."""

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)


class GenerationResult(BaseModel):
    """Completed generation."""

    text: str
    tokens_used: int = 0


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into vectors."""

    name: str

    async def embed(self, text: str) -> list[float]:
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        ...


@runtime_checkable
class GenerationProvider(Protocol):
    """Turns prompts into text or streamed text fragments."""

    name: str

    async def generate(
        self,
        prompt: PromptInput,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        ...

    def stream_generate(
        self,
        prompt: PromptInput,
        options: GenerationOptions | None = None,
    ) -> TokenStream:
        ...
