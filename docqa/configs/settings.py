"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field, field_validator

from docqa.configs.base import DocQASettings
from docqa.configs.cache import CacheSettings
from docqa.configs.confidence import ConfidenceSettings
from docqa.configs.database import DatabaseSettings
from docqa.configs.providers import ProviderSettings
from docqa.configs.retrieval import RetrievalSettings

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(DocQASettings):
    """Unified application settings aggregating all config modules."""

    log_level: str = Field(default="INFO", description="Root log level, read from DOCQA_LOG_LEVEL")

    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    confidence: ConfidenceSettings = Field(default_factory=ConfidenceSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from docqa.configs import get_settings
        settings = get_settings()
    """
    return Settings()
