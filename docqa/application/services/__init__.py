"""Service orchestrators."""

from .answer_service import AnswerService
from .document_service import DocumentService

__all__ = ["AnswerService", "DocumentService"]
