"""
Base API Client - Common HTTP request pattern with retry, rate limiting, and circuit breaker.

Every recipe provider adapter sits on top of this class:
- Automatic retry on 429 (rate limit) with Retry-After support
- Retry on transport errors with exponential backoff
- Rate limiting (configurable interval between requests)
- Circuit breaker for fault tolerance
- Consistent error handling and logging

The httpx client is created lazily on first request through an
AsyncInitializer, so constructing an adapter never opens a connection pool
and an unconfigured adapter never opens one at all.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx
from typing_extensions import Self

from recipe_search.core.async_utils import AsyncInitializer, CircuitBreaker
from recipe_search.core.exceptions import RateLimitError, get_retry_delay

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base class for external API clients.

    Provides common infrastructure:
    - Lazy httpx.AsyncClient management
    - Rate limiting with configurable interval
    - Retry on 429 with exponential backoff
    - Circuit breaker for fault tolerance
    - Consistent error handling (``None`` for anything but a usable 2xx body)

    Subclasses should set `_service_name` and can override:
    - `_handle_expected_status()`: Handle service-specific status codes (e.g., 404)
    - `_parse_response()`: Custom response processing

    Example:
        class MyClient(BaseAPIClient):
            _service_name = "MyAPI"

            def __init__(self):
                super().__init__(base_url="https://api.example.com", min_interval=0.1)

            async def get_item(self, item_id: str) -> dict | None:
                return await self._make_request(f"/items/{item_id}")
    """

    _service_name: str = "API"
    _MAX_RETRIES: int = 3

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        min_interval: float = 0.1,
        headers: dict[str, str] | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize base client.

        Args:
            base_url: Base URL for the API (optional, can pass full URLs)
            timeout: Request timeout in seconds
            min_interval: Minimum seconds between requests (rate limiting)
            headers: Default headers for all requests
            circuit_breaker: Optional circuit breaker for fault tolerance.
                             If None, a default one is created (threshold=10, recovery=60s).
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._min_interval = min_interval
        self._headers = headers or {}
        self._transport = transport
        self._last_request_time = 0.0
        self._http = AsyncInitializer(self._create_client, name=f"{self._service_name} HTTP client")
        self._circuit_breaker = circuit_breaker or CircuitBreaker(failure_threshold=10, recovery_timeout=60.0)

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers=self._headers,
            transport=self._transport,
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )

    async def _rate_limit(self) -> None:
        """Enforce minimum interval between requests."""
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = time.monotonic()

    def _build_url(self, url: str) -> str:
        """Build full URL from path or full URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}{url}"

    async def _make_request(
        self,
        url: str,
        *,
        params: Any = None,
        headers: dict[str, str] | None = None,
        expect_json: bool = True,
    ) -> Any:
        """
        Make a GET request with retry on 429 and circuit breaker protection.

        Args:
            url: Full URL or path (appended to base_url)
            params: Query parameters; a list of pairs keeps repeated keys
            headers: Additional headers for this request
            expect_json: If True, parse response as JSON; otherwise return text

        Returns:
            Parsed JSON, response text, or None on error
        """
        full_url = self._build_url(url)

        for attempt in range(self._MAX_RETRIES + 1):
            await self._rate_limit()
            try:
                async with self._circuit_breaker:
                    response = await self._execute_request(full_url, params=params, headers=headers)

                    expected = self._handle_expected_status(response, full_url)
                    if expected is not _CONTINUE:
                        return expected

                    if response.status_code == 429:
                        if attempt < self._MAX_RETRIES:
                            retry_after = self._get_retry_after(response, attempt)
                            logger.warning(
                                f"{self._service_name}: Rate limited (429), "
                                f"retry {attempt + 1}/{self._MAX_RETRIES} in {retry_after:.1f}s"
                            )
                            await asyncio.sleep(retry_after)
                            continue
                        logger.warning(f"{self._service_name}: Rate limit exceeded after retries")
                        return None

                    response.raise_for_status()
                    return self._parse_response(response, expect_json)

            except RateLimitError:
                logger.warning(f"{self._service_name}: Circuit breaker open, skipping request")
                return None
            except httpx.HTTPStatusError as e:
                logger.warning(
                    f"{self._service_name} HTTP error {e.response.status_code}: {e.response.reason_phrase}"
                )
                return None
            except httpx.RequestError as e:
                if attempt < self._MAX_RETRIES:
                    delay = get_retry_delay(e, attempt)
                    logger.warning(f"{self._service_name} request error (attempt {attempt + 1}): {e}")
                    await asyncio.sleep(delay)
                    continue
                logger.warning(f"{self._service_name} request failed: {e}")
                return None
            except ValueError as e:
                # Body was not valid JSON
                logger.warning(f"{self._service_name} returned an unparseable body: {e}")
                return None

        return None

    async def _execute_request(
        self,
        url: str,
        *,
        params: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute the actual HTTP request. Override for custom behavior."""
        client = await self._http.ensure_ready()
        return await client.get(url, params=params, headers=headers or {})

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        """
        Handle expected non-200 status codes that shouldn't trigger retry.

        Override in subclasses for service-specific behavior.
        Return a value to short-circuit (e.g., None for 404).
        Return the sentinel _CONTINUE to continue normal processing.

        Default: no special handling.
        """
        return _CONTINUE

    def _parse_response(self, response: httpx.Response, expect_json: bool) -> Any:
        """Parse response body. Override for custom extraction logic."""
        if expect_json:
            return response.json()
        return response.text

    @staticmethod
    def _get_retry_after(response: httpx.Response, attempt: int) -> float:
        """Extract Retry-After from response headers, with exponential backoff fallback."""
        try:
            return float(response.headers.get("Retry-After", 2 ** (attempt + 1)))
        except (ValueError, TypeError):
            return float(2 ** (attempt + 1))

    async def close(self) -> None:
        """Close the underlying HTTP client (no-op if it was never opened)."""
        if self._http.is_ready:
            client = self._http.value
            self._http.reset()
            if client is not None:
                await client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


# Sentinel object to indicate "continue normal processing" from _handle_expected_status
_CONTINUE = object()
