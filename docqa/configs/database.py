"""
Database configuration settings.

Connection parameters for the chat / analytics persistence sink.

Dependencies: pydantic, pydantic_settings
System role: Database connection configuration for ORM
"""

from pydantic import Field

from docqa.configs.base import DocQASettings, settings_config


class DatabaseSettings(DocQASettings):
    """Chat store database configuration."""

    model_config = settings_config("DATABASE_")

    url: str = Field(
        default="sqlite+aiosqlite:///./docqa.db",
        description="SQLAlchemy async database URL",
    )
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")
