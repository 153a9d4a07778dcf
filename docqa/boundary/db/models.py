"""
Chat persistence ORM models.

Threads group conversation messages; search queries are logged separately
for analytics consumers.

Dependencies: sqlalchemy, docqa.boundary.db.base
System role: Persistence sink schema for the retrieval agent
"""

import uuid

from sqlalchemy import JSON, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docqa.boundary.db.base import Base, TimestampMixin, UUIDMixin


class ThreadModel(Base, UUIDMixin, TimestampMixin):
    """
    Conversation thread.

    Attributes:
        title: Short label derived from the first query
        messages: Ordered messages (cascade delete)
    """

    __tablename__ = "threads"

    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    messages = relationship(
        "MessageModel",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="MessageModel.created_at",
    )


class MessageModel(Base, UUIDMixin, TimestampMixin):
    """
    Single chat message with answer diagnostics.

    Attributes:
        thread_id: Owning thread
        role: ``user`` or ``assistant``
        content: Message text
        confidence: Answer confidence (assistant messages only)
        sources: Cited document names
        trace: Serialized orchestrator trace
    """

    __tablename__ = "messages"

    thread_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sources: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    trace: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    thread = relationship("ThreadModel", back_populates="messages")


class SearchQueryModel(Base, UUIDMixin, TimestampMixin):
    """
    Logged search query.

    Attributes:
        query: Effective query text
        query_type: Classifier output
        result_count: Chunks used for the answer
        top_score: Best chunk score
        confidence: Answer confidence
        response_time_ms: End-to-end latency
        thread_id: Optional thread
    """

    __tablename__ = "search_queries"

    query: Mapped[str] = mapped_column(Text, nullable=False)
    query_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    result_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    top_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    response_time_ms: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    thread_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
