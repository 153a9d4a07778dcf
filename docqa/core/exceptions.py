"""
Exception hierarchy for the DocQA retrieval engine.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and a stable error code.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class DocQAException(Exception):
    """Base exception for all DocQA application errors."""

    code: str = "DOCQA_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(DocQAException):
    """Raised when input validation fails."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class EmptyQueryError(ValidationError):
    """Raised when a query is empty or whitespace-only."""

    code = "EMPTY_QUERY"

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__("Query cannot be empty", field="query", details=details)


class ProviderError(DocQAException):
    """Raised when an embedding or generation provider call fails."""

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize provider error.

        Args:
            message: Error message
            provider: Provider name (e.g. google)
            status_code: Upstream HTTP status if known
            details: Additional context
        """
        details = details or {}
        if provider:
            details["provider"] = provider
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        super().__init__(message, details)


class ProviderAuthError(ProviderError):
    """Provider rejected the credentials."""

    code = "PROVIDER_AUTH"


class ProviderRateLimitError(ProviderError):
    """Provider throttled the request."""

    code = "PROVIDER_RATE_LIMIT"


class ProviderQuotaError(ProviderError):
    """Provider quota or credit balance is exhausted."""

    code = "PROVIDER_QUOTA"


class DimensionMismatchError(DocQAException):
    """Raised when query and chunk embedding dimensions differ."""

    code = "DIMENSION_MISMATCH"

    def __init__(
        self,
        expected: int,
        actual: int,
        chunk_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize dimension mismatch error.

        Args:
            expected: Query embedding dimension
            actual: Offending stored embedding dimension
            chunk_id: Chunk carrying the offending vector
            details: Additional context
        """
        details = details or {}
        details.update({"expected": expected, "actual": actual})
        if chunk_id:
            details["chunk_id"] = chunk_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}",
            details,
        )


class RetrievalError(DocQAException):
    """Raised when chunk store operations fail."""

    code = "RETRIEVAL_ERROR"

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize retrieval error.

        Args:
            message: Error message
            operation: Operation that failed (scan, text_search, ...)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class CacheUnavailableError(DocQAException):
    """Raised when a cache tier cannot be reached (always recovered locally)."""

    code = "CACHE_UNAVAILABLE"


class RerankUnavailableError(DocQAException):
    """Raised when the reranker cannot score (always recovered locally)."""

    code = "RERANK_UNAVAILABLE"


_AUTH_MARKERS = ("api key", "api_key", "unauthorized", "unauthenticated", "permission denied", "invalid credentials")
_QUOTA_MARKERS = ("quota", "credit balance", "insufficient", "billing")
_RATE_MARKERS = ("rate limit", "rate_limit", "too many requests", "resource exhausted", "resource_exhausted")


def _extract_status(exc: BaseException) -> int | None:
    for attr in ("status_code", "status", "code", "http_status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_provider_error(exc: BaseException, provider: str | None = None) -> ProviderError:
    """
    Map a raw SDK exception onto the typed provider error taxonomy.

    Status codes win over message markers; quota markers are checked before
    rate-limit markers because several SDKs report exhausted quota as 429.

    Args:
        exc: Exception raised by the provider SDK
        provider: Provider name for context

    Returns:
        ProviderError: Typed error (never raises)
    """
    if isinstance(exc, ProviderError):
        return exc

    status = _extract_status(exc)
    text = str(exc).lower()
    message = f"{type(exc).__name__}: {exc}"

    if status in (401, 403) or any(marker in text for marker in _AUTH_MARKERS):
        return ProviderAuthError(message, provider=provider, status_code=status)
    if status == 402 or any(marker in text for marker in _QUOTA_MARKERS):
        return ProviderQuotaError(message, provider=provider, status_code=status)
    if status == 429 or any(marker in text for marker in _RATE_MARKERS):
        return ProviderRateLimitError(message, provider=provider, status_code=status)
    return ProviderError(message, provider=provider, status_code=status)
