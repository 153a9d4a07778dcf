"""
Streaming event schemas for SSE answers.

Defines event types and payloads for real-time answer streaming. ``thread``
is always emitted first; ``done`` or ``error`` is always last.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel


class StreamEventType(str, Enum):
    """Server-to-client event types for streaming answers."""

    THREAD = "thread"
    STEP = "step"
    CLARIFY = "clarify"
    RETRIEVAL = "retrieval"
    ANSWER = "answer"
    DONE = "done"
    ERROR = "error"


TERMINAL_EVENTS = frozenset({StreamEventType.DONE, StreamEventType.ERROR})


class StreamEvent(BaseModel):
    """
    Base streaming event model.

    Attributes:
        event: Event type identifier
        data: Event-specific payload
    """

    event: StreamEventType
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"event": self.event.value, "data": self.data}

    def to_sse(self) -> str:
        """Render as a Server-Sent Events frame."""
        return f"event: {self.event.value}\ndata: {json.dumps(self.data, default=str)}\n\n"
