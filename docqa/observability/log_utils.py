"""
Structured logging helpers.

Failures on degraded paths (persistent cache, reranker, auxiliary provider
calls, persistence) are logged with their stable error code and details so
they can be grouped by code. Scored chunk lists are rendered as a count and
the top score, never their content.

Dependencies: logging (stdlib), docqa.core.exceptions, docqa.models.chunk
System role: Logging helper functions
"""

import logging
from typing import Any

from docqa.core.exceptions import DocQAException
from docqa.models.chunk import ScoredChunk


def safe_log_value(value: Any, max_length: int = 200) -> str:
    """
    Convert a value to a short string for log context.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, str):
            text = value
        elif isinstance(value, float):
            text = f"{value:.4f}"
        elif isinstance(value, (list, tuple)) and value and all(isinstance(v, ScoredChunk) for v in value):
            text = f"{len(value)} chunks top={max(v.similarity for v in value):.3f}"
        elif isinstance(value, (list, tuple)):
            text = f"{type(value).__name__}({len(value)} items)"
        elif isinstance(value, dict):
            text = f"dict({len(value)} keys)"
        else:
            text = str(value)

        if len(text) > max_length:
            return text[:max_length] + f"... (truncated, {len(text)} total)"
        return text
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context,
) -> None:
    """
    Log an exception with its error code and context.

    Typed errors are logged as warnings with ``error_code`` and their details
    prefixed ``detail_``; anything else is unexpected and logged as an error.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional context
    """
    safe_context = {key: safe_log_value(val) for key, val in context.items()}
    safe_context["error_type"] = type(exc).__name__
    if isinstance(exc, DocQAException):
        level = logging.WARNING
        safe_context["error_code"] = exc.code
        safe_context["error_msg"] = exc.message
        safe_context.update({f"detail_{key}": safe_log_value(val) for key, val in exc.details.items()})
    else:
        level = logging.ERROR
        safe_context["error_msg"] = str(exc)
    logger.log(level, message, extra=safe_context, exc_info=exc)
