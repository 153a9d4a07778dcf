"""
Answer service for conversational question answering.

Orchestrates the transport-facing flow: query validation, thread creation,
history retrieval and delegation to the retrieval agent.

Dependencies: docqa.core.agentic_system, docqa.boundary.db
System role: Answer service orchestration layer
"""

import logging
from collections.abc import AsyncIterator, Sequence

from docqa.boundary.db.chat_store import ChatStore
from docqa.core.agentic_system.agent.retrieval_agent import RetrievalAgent
from docqa.core.exceptions import EmptyQueryError, ValidationError
from docqa.models.answer import AgentAnswer, AnswerOptions, SessionContext
from docqa.models.streaming import StreamEvent

logger = logging.getLogger(__name__)


class AnswerService:
    """
    Answer service for conversational Q&A.

    Coordinates thread creation, history loading and agent invocation for
    multi-turn conversations.
    """

    def __init__(
        self,
        agent: RetrievalAgent,
        chat_store: ChatStore | None = None,
        context_window_size: int = 10,
    ) -> None:
        """
        Initialize answer service.

        Args:
            agent: Retrieval agent
            chat_store: Conversation store (threads are not tracked when None)
            context_window_size: Number of recent messages loaded as history
        """
        self.agent = agent
        self.chat_store = chat_store
        self.context_window_size = context_window_size

    async def _session(
        self,
        query: str,
        thread_id: str | None,
        scope: Sequence[str] | None,
    ) -> SessionContext:
        """
        Resolve the conversation scope of a query.

        Flow:
        1. Reject empty queries before any side effect
        2. Create a titled thread when none is given
        3. Load recent history for an existing thread

        Raises:
            EmptyQueryError: Query is empty or whitespace-only
            ValidationError: Thread id is malformed
        """
        if not query or not query.strip():
            raise EmptyQueryError()

        history = []
        if self.chat_store is not None:
            if thread_id is None:
                title = await self.agent.generate_title(query)
                thread_id = await self.chat_store.create_thread(title)
                logger.info(f"{__name__}:_session - created thread_id={thread_id}")
            else:
                try:
                    history = await self.chat_store.get_history(thread_id, self.context_window_size)
                except ValueError as e:
                    raise ValidationError(str(e), field="thread_id") from e

        return SessionContext(
            thread_id=thread_id,
            history=history,
            scope=list(scope) if scope is not None else None,
        )

    async def answer(
        self,
        query: str,
        thread_id: str | None = None,
        scope: Sequence[str] | None = None,
        options: AnswerOptions | None = None,
    ) -> AgentAnswer:
        """
        Answer a query within a conversation.

        Args:
            query: User query
            thread_id: Existing thread (a new one is created when omitted)
            scope: Restrict retrieval to these documents
            options: Strategy, rerank and cache switches

        Returns:
            AgentAnswer: Structured answer
        """
        session = await self._session(query, thread_id, scope)
        return await self.agent.answer(query, session, options)

    async def stream(
        self,
        query: str,
        thread_id: str | None = None,
        scope: Sequence[str] | None = None,
        options: AnswerOptions | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Prepare a streamed answer.

        Validation and thread creation happen here, so request errors surface
        before the first event is sent.

        Returns:
            AsyncIterator[StreamEvent]: Agent event stream
        """
        logger.info(f"{__name__}:stream - START thread_id={thread_id}")
        session = await self._session(query, thread_id, scope)
        return self.agent.stream(query, session, options)
