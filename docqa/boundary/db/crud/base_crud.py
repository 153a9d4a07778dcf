"""
Shared CRUD operations for chat records.

Threads, messages and search-query records are append-only: they are
created and checked for existence, never updated or deleted.

Dependencies: sqlalchemy, uuid
System role: Foundation for chat persistence CRUD
"""

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Append-only operations for one chat record model.

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **values) -> ModelT:
        """
        Insert a record and load its generated id and timestamps.

        Args:
            session: Async database session
            **values: Model field values

        Returns:
            Created model instance
        """
        instance = self.model(**values)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def exists(self, session: AsyncSession, record_id: UUID) -> bool:
        """Whether a record with this primary key is stored."""
        result = await session.execute(select(self.model.id).where(self.model.id == record_id))
        return result.first() is not None
