"""
Cache configuration settings.

Manages the hot / memory / persistent cache tiers, eviction policy and Redis
connection for the persistent tier.

Dependencies: pydantic, pydantic_settings
System role: Tiered cache configuration
"""

from pydantic import Field

from docqa.configs.base import DocQASettings, settings_config


class CacheSettings(DocQASettings):
    """Tiered cache configuration."""

    model_config = settings_config("CACHE_")

    key_prefix: str = Field(default="docqa", description="Prefix for every cache key")
    promotion_hits: int = Field(default=5, description="Memory hits before promotion to hot tier")
    memory_ttl_cap_seconds: int = Field(default=300, description="Maximum memory tier TTL")
    memory_capacity: int = Field(default=1000, description="Maximum memory tier entries")
    eviction_fraction: float = Field(default=0.2, description="Share evicted under pressure")
    sweep_interval_seconds: float = Field(default=30.0)
    persistent_repopulate_ttl_seconds: int = Field(
        default=60,
        description="Memory TTL for values pulled up from the persistent tier",
    )
    default_ttl_seconds: int = Field(default=3600)

    embedding_ttl_seconds: int = Field(default=86400 * 7)
    search_ttl_seconds: int = Field(default=1800)
    answer_ttl_seconds: int = Field(default=3600)
    warm_queries: list[str] = Field(
        default=[],
        description="Queries embedded into the hot tier at startup",
    )

    redis_enabled: bool = Field(default=False, description="Enable the Redis persistent tier")
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_password: str | None = Field(default=None)
    redis_timeout_seconds: float = Field(default=2.0)
