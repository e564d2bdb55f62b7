"""
Async Utilities for Provider Calls.

Provides:
- Circuit breaker for persistently failing providers
- Timeout with fallback value
- Explicit, coalescing lazy initialization (AsyncInitializer)
- Debounced dispatch (Debouncer)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .exceptions import RateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Circuit Breaker Pattern
# =============================================================================

@dataclass
class CircuitBreaker:
    """
    Circuit breaker for fault tolerance.

    States:
    - CLOSED: Normal operation
    - OPEN: Failing, reject requests immediately
    - HALF_OPEN: Testing if service recovered

    Example:
        breaker = CircuitBreaker(failure_threshold=5)

        async with breaker:
            result = await risky_api_call()
    """
    failure_threshold: int = 5
    recovery_timeout: float = 30.0
    half_open_max_calls: int = 3

    _failure_count: int = field(init=False, default=0)
    _last_failure_time: float | None = field(init=False, default=None)
    _state: str = field(init=False, default="closed")
    _half_open_calls: int = field(init=False, default=0)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_open(self) -> bool:
        """Check if circuit is open (rejecting requests)."""
        if self._state == "open":
            if self._last_failure_time:
                if time.monotonic() - self._last_failure_time > self.recovery_timeout:
                    return False  # Move to half-open
            return True
        return False

    async def __aenter__(self) -> CircuitBreaker:
        async with self._lock:
            if self.is_open:
                raise RateLimitError(
                    "Circuit breaker is open",
                    retry_after=self.recovery_timeout
                )

            if self._state == "open":
                self._state = "half_open"
                self._half_open_calls = 0

            if self._state == "half_open":
                if self._half_open_calls >= self.half_open_max_calls:
                    raise RateLimitError(
                        "Circuit breaker is half-open (max calls reached)",
                        retry_after=self.recovery_timeout / 2
                    )
                self._half_open_calls += 1

        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        async with self._lock:
            if exc_val is not None:
                self._failure_count += 1
                self._last_failure_time = time.monotonic()

                if self._failure_count >= self.failure_threshold:
                    self._state = "open"
                    logger.warning(
                        f"Circuit breaker opened after {self._failure_count} failures"
                    )
            else:
                if self._state == "half_open":
                    self._state = "closed"
                    self._failure_count = 0
                    logger.info("Circuit breaker closed (recovered)")
                elif self._state == "closed":
                    self._failure_count = max(0, self._failure_count - 1)


# =============================================================================
# Lazy Initialization
# =============================================================================

class AsyncInitializer(Generic[T]):
    """
    Explicitly owned initialization state with an idempotent ``ensure_ready``.

    Concurrent callers are coalesced onto one in-flight initialization. A
    failed initialization is not cached: the next caller starts a new attempt.

    Example:
        ready = AsyncInitializer(load_seed_recipes)
        records = await ready.ensure_ready()   # runs load_seed_recipes once
        records = await ready.ensure_ready()   # returns cached value
    """

    def __init__(self, factory: Callable[[], Awaitable[T] | T], name: str = "resource") -> None:
        self._factory = factory
        self._name = name
        self._value: T | None = None
        self._ready = False
        self._pending: asyncio.Future[T] | None = None

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def value(self) -> T | None:
        return self._value

    async def ensure_ready(self) -> T:
        if self._ready:
            return self._value  # type: ignore[return-value]

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._initialize())
        pending = self._pending
        try:
            return await asyncio.shield(pending)
        finally:
            if pending.done() and self._pending is pending:
                self._pending = None

    async def _initialize(self) -> T:
        logger.debug(f"Initializing {self._name}")
        result = self._factory()
        if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
            result = await result
        self._value = result  # type: ignore[assignment]
        self._ready = True
        return result  # type: ignore[return-value]

    def reset(self) -> None:
        """Forget the initialized value; the next ``ensure_ready`` re-runs the factory."""
        self._value = None
        self._ready = False
        self._pending = None


# =============================================================================
# Debounce
# =============================================================================

class Debouncer:
    """
    Defer dispatch until input has been stable for ``delay`` seconds.

    Every ``schedule`` call cancels the pending timer and starts a new one,
    so only the last callback of a burst runs.

    Example:
        debouncer = Debouncer(0.3)
        for text in ("p", "pa", "pas", "pasta"):
            debouncer.schedule(lambda t=text: fetch(t))
        # only fetch("pasta") runs, 0.3s after the last keystroke
    """

    def __init__(self, delay: float = 0.3) -> None:
        self.delay = delay
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callable[[], Awaitable[Any]]) -> asyncio.Task[None]:
        self.cancel()
        self._task = asyncio.ensure_future(self._run(callback))
        return self._task

    async def _run(self, callback: Callable[[], Awaitable[Any]]) -> None:
        await asyncio.sleep(self.delay)
        await callback()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Wait for the pending dispatch (if any) to finish."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass


# =============================================================================
# Utility Functions
# =============================================================================

async def timeout_with_fallback(
    coro: Awaitable[T],
    timeout: float,
    fallback: T | Callable[[], T],
) -> T:
    """
    Execute coroutine with timeout and fallback.

    Args:
        coro: Coroutine to execute
        timeout: Timeout in seconds
        fallback: Value or callable to return on timeout

    Returns:
        Result or fallback value
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        if callable(fallback):
            return fallback()
        return fallback
