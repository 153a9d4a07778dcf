"""
Chat CRUD operations.

Dependencies: sqlalchemy, docqa.boundary.db.crud.base_crud
System role: Thread, message and search-query persistence
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.crud.base_crud import BaseCRUD
from docqa.boundary.db.models import MessageModel, SearchQueryModel, ThreadModel


class MessageCRUD(BaseCRUD[MessageModel]):
    """Message operations scoped to a thread."""

    def __init__(self) -> None:
        super().__init__(MessageModel)

    async def list_recent(
        self,
        session: AsyncSession,
        thread_id: UUID,
        limit: int = 10,
    ) -> Sequence[MessageModel]:
        """
        Return the most recent messages of a thread, oldest first.

        Args:
            session: Async database session
            thread_id: Thread UUID
            limit: Maximum messages

        Returns:
            Sequence of MessageModel in chronological order
        """
        stmt = (
            select(MessageModel)
            .where(MessageModel.thread_id == thread_id)
            .order_by(MessageModel.created_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))


thread_crud = BaseCRUD(ThreadModel)
message_crud = MessageCRUD()
search_query_crud = BaseCRUD(SearchQueryModel)
