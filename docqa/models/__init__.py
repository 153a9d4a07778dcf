"""Domain models and schemas."""

from docqa.models.agent import (
    AgentRequest,
    CacheInvalidateRequest,
    CacheInvalidateResponse,
    ClusterRequest,
    ClusterResponse,
    ErrorResponse,
)
from docqa.models.answer import AgentAnswer, AnswerMetadata, AnswerOptions, ChatTurn, SessionContext
from docqa.models.cache import CacheEntry, CacheStats, CacheTier
from docqa.models.chunk import Chunk, ScoredChunk
from docqa.models.classification import (
    DocumentReference,
    QueryClassification,
    QueryType,
    RetrievalConfig,
)
from docqa.models.cluster import ClusterAssignment, DocumentSimilarity
from docqa.models.streaming import StreamEvent, StreamEventType

__all__ = [
    "AgentAnswer",
    "AgentRequest",
    "AnswerMetadata",
    "AnswerOptions",
    "CacheEntry",
    "CacheInvalidateRequest",
    "CacheInvalidateResponse",
    "CacheStats",
    "CacheTier",
    "ChatTurn",
    "Chunk",
    "ClusterAssignment",
    "ClusterRequest",
    "ClusterResponse",
    "DocumentReference",
    "DocumentSimilarity",
    "ErrorResponse",
    "QueryClassification",
    "QueryType",
    "RetrievalConfig",
    "ScoredChunk",
    "SessionContext",
    "StreamEvent",
    "StreamEventType",
]
