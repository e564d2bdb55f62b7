"""
Unified Exception Hierarchy for Recipe Search.

Exception Hierarchy:
    RecipeSearchError (base)
    ├── APIError
    │   ├── RateLimitError
    │   ├── NetworkError
    │   └── ServiceUnavailableError
    ├── DataError
    │   └── ParseError
    └── ConfigurationError

Provider adapters never let these escape: they are raised by the HTTP layer
and the query client, and converted to empty results at the adapter boundary.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = auto()      # Recoverable, can continue
    ERROR = auto()        # Failed but can retry
    CRITICAL = auto()     # Cannot continue
    TRANSIENT = auto()    # Temporary, should retry automatically


class ErrorCategory(Enum):
    """Categories for error classification."""
    API = "api"
    DATA = "data"
    CONFIGURATION = "config"
    NETWORK = "network"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context for error messages."""
    provider: str | None = None
    operation: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    retry_after: float | None = None
    status_code: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_retry_after(self, retry_after: float, suggestion: str | None = None) -> ErrorContext:
        return ErrorContext(
            provider=self.provider,
            operation=self.operation,
            input_value=self.input_value,
            suggestion=self.suggestion or suggestion,
            retry_after=retry_after,
            status_code=self.status_code,
            metadata=self.metadata,
        )


class RecipeSearchError(Exception):
    """
    Base exception for all Recipe Search errors.

    Provides:
    - Structured error context
    - Severity classification
    - Retry guidance
    """

    __slots__ = ('context', 'severity', 'category', 'retryable')

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.API,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.provider:
            result["provider"] = self.context.provider
        if self.context.status_code is not None:
            result["status_code"] = self.context.status_code
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        if self.context.retry_after:
            result["retry_after_seconds"] = self.context.retry_after
        return result


# =============================================================================
# API Errors
# =============================================================================

class APIError(RecipeSearchError):
    """Base class for API-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.API,
            retryable=retryable,
        )


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded (or a circuit breaker is open)."""

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        *,
        retry_after: float = 1.0,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_retry_after(retry_after, "Wait and retry the request")
        super().__init__(message, context=ctx, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


class NetworkError(APIError):
    """Raised for network connectivity issues and unexpected HTTP statuses."""

    def __init__(
        self,
        message: str = "Network connection failed",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, context=context, retryable=True)
        self.category = ErrorCategory.NETWORK


class ServiceUnavailableError(APIError):
    """Raised when the external service is temporarily unavailable."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        *,
        service: str = "provider",
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(f"{service}: {message}", context=context, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


# =============================================================================
# Data Errors
# =============================================================================

class DataError(RecipeSearchError):
    """Base class for data-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.DATA,
            retryable=False,
        )


class ParseError(DataError):
    """Raised when data parsing fails."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        full_msg = f"Parse error: {message}"
        if source:
            full_msg = f"Parse error ({source}): {message}"
        super().__init__(full_msg, context=context)


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(RecipeSearchError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


# =============================================================================
# Utilities
# =============================================================================

def get_retry_delay(error: Exception, attempt: int) -> float:
    """
    Calculate retry delay with exponential backoff.

    Args:
        error: The exception that occurred
        attempt: Current attempt number (0-based)

    Returns:
        Delay in seconds before next retry
    """
    base_delay = 1.0

    if isinstance(error, RecipeSearchError) and error.context.retry_after:
        base_delay = error.context.retry_after

    delay = base_delay * (2 ** attempt)
    jitter = random.uniform(0, 0.1 * delay)

    # Cap at 30 seconds
    return min(delay + jitter, 30.0)
