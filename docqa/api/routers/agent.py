"""Agent API endpoints.

Routes:
- POST /agent - Answer a question with retrieval, fallbacks and confidence
- GET /agent/stream - Stream the answer using Server-Sent Events (SSE)

Typed errors are mapped to HTTP responses by the application exception
handlers. Errors after the stream has started arrive as a final ``error`` event.

Dependencies: docqa.application.services.answer_service
System role: Question answering HTTP API with streaming support
"""

import logging
from collections.abc import AsyncGenerator
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from docqa.api.deps import get_answer_service
from docqa.application.services import AnswerService
from docqa.models.agent import AgentRequest
from docqa.models.answer import AgentAnswer, AnswerOptions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent", tags=["agent"])


@router.post("", response_model=AgentAnswer)
async def answer(
    request: AgentRequest,
    answer_service: AnswerService = Depends(get_answer_service),
) -> AgentAnswer:
    """Answer a question from the indexed documents.

    Args:
        request: AgentRequest with query, thread and retrieval switches
        answer_service: Injected AnswerService

    Returns:
        AgentAnswer: Answer, chunks, confidence, sources, trace and metadata
    """
    logger.info(f"{__name__}:answer - START thread_id={request.thread_id}")
    return await answer_service.answer(
        request.query,
        thread_id=request.thread_id,
        scope=request.scope,
        options=request.options(),
    )


@router.get("/stream")
async def answer_stream(
    request: Request,
    query: str = Query(description="User question"),
    thread_id: str | None = Query(default=None),
    scope: list[str] | None = Query(default=None),
    strategy: Literal["hybrid", "vector"] = Query(default="hybrid"),
    rerank: bool = Query(default=True),
    use_cache: bool = Query(default=True),
    allow_clarify: bool = Query(default=True),
    answer_service: AnswerService = Depends(get_answer_service),
) -> StreamingResponse:
    """Stream an answer using Server-Sent Events (SSE).

    SSE Format:
        event: thread
        data: {"thread_id": "..."}

        event: step | clarify | retrieval
        data: {...}

        event: answer
        data: {"content": "..."}

        event: done
        data: {"confidence": 87, "sources": [...], "metadata": {...}, "trace": [...]}

        event: error
        data: {"code": "...", "message": "..."}

    Returns:
        StreamingResponse: SSE stream of agent events
    """
    logger.info(f"{__name__}:answer_stream - START thread_id={thread_id}")
    options = AnswerOptions(strategy=strategy, rerank=rerank, use_cache=use_cache, allow_clarify=allow_clarify)
    events = await answer_service.stream(query, thread_id=thread_id, scope=scope, options=options)

    async def event_generator() -> AsyncGenerator[str, None]:
        """Forward agent events until completion or client disconnect."""
        try:
            async for event in events:
                if await request.is_disconnected():
                    logger.info(f"{__name__}:answer_stream - client disconnected, closing stream")
                    break
                yield event.to_sse()
        finally:
            await events.aclose()
        logger.info(f"{__name__}:answer_stream - stream finished")

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
