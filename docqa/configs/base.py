"""
Shared settings base.

Every settings group reads the same ``.env`` file, matches variables
case-insensitively and ignores keys that belong to other groups. A group only
picks its environment prefix (``RETRIEVAL_``, ``CACHE_`` ...); application-wide
values use ``DOCQA_``.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


def settings_config(env_prefix: str) -> SettingsConfigDict:
    """Settings config for a group reading ``<env_prefix><FIELD>`` variables."""
    return SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix=env_prefix,
        case_sensitive=False,
        extra="ignore",
    )


class DocQASettings(BaseSettings):
    """Base class for docqa settings groups."""

    model_config = settings_config("DOCQA_")
