"""
Core module for Recipe Search.

Provides:
- Unified exception hierarchy
- Async utilities (circuit breaker, lazy init, debounce, timeouts)
"""

from .async_utils import (
    AsyncInitializer,
    CircuitBreaker,
    Debouncer,
    timeout_with_fallback,
)
from .exceptions import (
    APIError,
    ConfigurationError,
    DataError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    NetworkError,
    ParseError,
    RateLimitError,
    RecipeSearchError,
    ServiceUnavailableError,
    get_retry_delay,
)

__all__ = [
    # Exceptions
    "RecipeSearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "APIError",
    "RateLimitError",
    "NetworkError",
    "ServiceUnavailableError",
    "DataError",
    "ParseError",
    "ConfigurationError",
    "get_retry_delay",
    # Async utilities
    "AsyncInitializer",
    "CircuitBreaker",
    "Debouncer",
    "timeout_with_fallback",
]
