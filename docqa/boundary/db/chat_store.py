"""
Chat store.

Persistence sink invoked by the retrieval agent's Persist step: threads,
messages and logged search queries.

Dependencies: sqlalchemy, docqa.boundary.db
System role: Chat and analytics persistence adapter
"""

import logging
import uuid
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import async_sessionmaker

from docqa.boundary.db.crud import message_crud, search_query_crud, thread_crud
from docqa.models.answer import ChatTurn

logger = logging.getLogger(__name__)


@runtime_checkable
class ChatStore(Protocol):
    """Persistence sink for conversations."""

    async def create_thread(self, title: str = "") -> str:
        ...

    async def add_message(
        self,
        thread_id: str,
        role: str,
        content: str,
        confidence: int | None = None,
        sources: list[str] | None = None,
        trace: list[dict[str, Any]] | None = None,
    ) -> None:
        ...

    async def log_search_query(
        self,
        query: str,
        query_type: str | None,
        result_count: int,
        top_score: float | None,
        confidence: int,
        response_time_ms: float,
        thread_id: str | None = None,
    ) -> None:
        ...

    async def get_history(self, thread_id: str, limit: int = 10) -> list[ChatTurn]:
        ...


def _parse_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid thread id: {value}") from e


class SqlAlchemyChatStore:
    """Chat store backed by async SQLAlchemy sessions."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        """
        Initialize chat store.

        Args:
            session_factory: Async session factory
        """
        self._session_factory = session_factory

    async def create_thread(self, title: str = "") -> str:
        """
        Create a conversation thread.

        Args:
            title: Thread label (truncated to 255 characters)

        Returns:
            str: New thread id
        """
        async with self._session_factory() as session:
            thread = await thread_crud.create(session, title=title[:255])
            await session.commit()
        logger.info(f"{__name__}:create_thread - thread_id={thread.id}")
        return str(thread.id)

    async def add_message(
        self,
        thread_id: str,
        role: str,
        content: str,
        confidence: int | None = None,
        sources: list[str] | None = None,
        trace: list[dict[str, Any]] | None = None,
    ) -> None:
        """
        Append a message to a thread.

        Args:
            thread_id: Existing thread id
            role: ``user`` or ``assistant``
            content: Message text
            confidence: Answer confidence
            sources: Cited document names
            trace: Serialized trace steps

        Raises:
            ValueError: If the thread does not exist
        """
        thread_uuid = _parse_uuid(thread_id)
        async with self._session_factory() as session:
            if not await thread_crud.exists(session, thread_uuid):
                raise ValueError(f"Thread {thread_id} does not exist")
            await message_crud.create(
                session,
                thread_id=thread_uuid,
                role=role,
                content=content,
                confidence=confidence,
                sources=sources or [],
                trace=trace or [],
            )
            await session.commit()

    async def log_search_query(
        self,
        query: str,
        query_type: str | None,
        result_count: int,
        top_score: float | None,
        confidence: int,
        response_time_ms: float,
        thread_id: str | None = None,
    ) -> None:
        async with self._session_factory() as session:
            await search_query_crud.create(
                session,
                query=query,
                query_type=query_type,
                result_count=result_count,
                top_score=top_score,
                confidence=confidence,
                response_time_ms=response_time_ms,
                thread_id=_parse_uuid(thread_id) if thread_id else None,
            )
            await session.commit()

    async def get_history(self, thread_id: str, limit: int = 10) -> list[ChatTurn]:
        """
        Load recent turns of a thread, oldest first.

        Args:
            thread_id: Thread id
            limit: Maximum turns

        Returns:
            list[ChatTurn]: Conversation history (empty for unknown threads)
        """
        async with self._session_factory() as session:
            messages = await message_crud.list_recent(session, _parse_uuid(thread_id), limit)
        return [ChatTurn(role=m.role, content=m.content) for m in messages if m.role in ("user", "assistant")]
