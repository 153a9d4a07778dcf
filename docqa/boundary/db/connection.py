"""
Database connection management.

Provides the async SQLAlchemy engine and session factory for the chat store.

Dependencies: sqlalchemy, docqa.configs
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from docqa.boundary.db.base import Base
from docqa.configs.database import DatabaseSettings


def get_async_engine(settings: DatabaseSettings) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    pool_pre_ping=True verifies connections before use to detect
    stale/broken connections early.

    Args:
        settings: Database settings

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = get_async_engine(get_settings().database)
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    return create_async_engine(
        settings.url,
        echo=settings.echo_sql,
        pool_pre_ping=True,
    )


def get_async_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create async session factory bound to an engine.

    autoflush=False and expire_on_commit=False keep transaction control
    explicit and objects usable after commit.

    Args:
        engine: Async engine

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory(engine)
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all registered tables if they do not exist."""
    # Register models with the metadata
    from docqa.boundary.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
