"""
Provider configuration settings.

Selects the embedding / generation backends and their model parameters.

Dependencies: pydantic, pydantic_settings
System role: LLM and embedding provider configuration
"""

from pydantic import Field

from docqa.configs.base import DocQASettings, settings_config


class ProviderSettings(DocQASettings):
    """Embedding and generation provider configuration."""

    model_config = settings_config("PROVIDER_")

    kind: str = Field(default="google", description="Provider backend: 'google'")
    chat_model: str = Field(default="gemini-2.5-flash", description="Chat model identifier")
    embedding_model: str = Field(
        default="models/gemini-embedding-001",
        description="Embedding model identifier",
    )
    embedding_dimension: int = Field(default=768, description="Deployment embedding dimension")
    temperature: float = Field(default=0.3)
    max_output_tokens: int = Field(default=1000)
    api_key: str | None = Field(default=None, description="Provider API key (falls back to SDK env)")

    general_knowledge_enabled: bool = Field(
        default=True,
        description="Answer from model knowledge when retrieval finds nothing",
    )
    follow_up_max_chars: int = Field(
        default=500,
        description="Rewrites longer than this are rejected",
    )
    stream_buffer_size: int = Field(default=64, description="Bounded token channel size")
    rerank_model: str = Field(default="cross-encoder/ms-marco-MiniLM-L-6-v2")
    rerank_enabled: bool = Field(default=True)
