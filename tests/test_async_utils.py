"""Tests for async_utils.py - CircuitBreaker, AsyncInitializer, Debouncer, timeout_with_fallback."""

import asyncio

import pytest

from recipe_search.core.async_utils import (
    AsyncInitializer,
    CircuitBreaker,
    Debouncer,
    timeout_with_fallback,
)
from recipe_search.core.exceptions import RateLimitError

# ============================================================
# CircuitBreaker
# ============================================================


class TestCircuitBreaker:
    async def test_success_keeps_closed(self):
        cb = CircuitBreaker(failure_threshold=2)
        async with cb:
            pass
        assert cb.state == "closed"
        assert not cb.is_open

    async def test_opens_after_threshold(self):
        cb = CircuitBreaker(failure_threshold=2, recovery_timeout=60)
        for _ in range(2):
            with pytest.raises(ValueError):
                async with cb:
                    raise ValueError("boom")
        assert cb.state == "open"
        assert cb.is_open

        with pytest.raises(RateLimitError):
            async with cb:
                pass

    async def test_half_open_recovers(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0.01)
        with pytest.raises(ValueError):
            async with cb:
                raise ValueError("boom")
        await asyncio.sleep(0.02)

        async with cb:
            pass
        assert cb.state == "closed"


# ============================================================
# AsyncInitializer
# ============================================================


class TestAsyncInitializer:
    async def test_runs_factory_once(self):
        calls = 0

        async def factory():
            nonlocal calls
            calls += 1
            return "value"

        init = AsyncInitializer(factory)
        assert not init.is_ready
        assert await init.ensure_ready() == "value"
        assert await init.ensure_ready() == "value"
        assert calls == 1
        assert init.is_ready
        assert init.value == "value"

    async def test_sync_factory(self):
        init = AsyncInitializer(lambda: [1, 2])
        assert await init.ensure_ready() == [1, 2]

    async def test_concurrent_callers_coalesce(self):
        calls = 0

        async def factory():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return object()

        init = AsyncInitializer(factory)
        results = await asyncio.gather(*(init.ensure_ready() for _ in range(5)))
        assert calls == 1
        assert all(r is results[0] for r in results)

    async def test_failure_allows_retry(self):
        attempts = 0

        async def factory():
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("first attempt fails")
            return "ok"

        init = AsyncInitializer(factory)
        with pytest.raises(RuntimeError):
            await init.ensure_ready()
        assert not init.is_ready

        assert await init.ensure_ready() == "ok"
        assert attempts == 2

    async def test_reset(self):
        calls = 0

        def factory():
            nonlocal calls
            calls += 1
            return calls

        init = AsyncInitializer(factory)
        assert await init.ensure_ready() == 1
        init.reset()
        assert init.value is None
        assert await init.ensure_ready() == 2


# ============================================================
# Debouncer
# ============================================================


class TestDebouncer:
    async def test_only_last_call_runs(self):
        fired: list[str] = []
        debouncer = Debouncer(0.02)

        for text in ("p", "pa", "pas", "pasta"):
            debouncer.schedule(lambda t=text: _record(fired, t))
            await asyncio.sleep(0.005)

        await debouncer.flush()
        assert fired == ["pasta"]

    async def test_waits_for_delay(self):
        fired: list[str] = []
        debouncer = Debouncer(0.05)
        debouncer.schedule(lambda: _record(fired, "x"))
        await asyncio.sleep(0.01)
        assert fired == []
        assert debouncer.pending
        await debouncer.flush()
        assert fired == ["x"]
        assert not debouncer.pending

    async def test_cancel(self):
        fired: list[str] = []
        debouncer = Debouncer(0.01)
        debouncer.schedule(lambda: _record(fired, "x"))
        debouncer.cancel()
        await asyncio.sleep(0.03)
        assert fired == []

    async def test_flush_without_pending(self):
        await Debouncer().flush()

    def test_default_delay(self):
        assert Debouncer().delay == 0.3


async def _record(sink: list[str], value: str) -> None:
    sink.append(value)


# ============================================================
# timeout_with_fallback
# ============================================================


class TestTimeoutWithFallback:
    async def test_returns_result(self):
        async def quick():
            return 42

        assert await timeout_with_fallback(quick(), 1.0, 0) == 42

    async def test_returns_fallback_value(self):
        async def slow():
            await asyncio.sleep(1)
            return 42

        assert await timeout_with_fallback(slow(), 0.01, -1) == -1

    async def test_fallback_callable(self):
        async def slow():
            await asyncio.sleep(1)

        assert await timeout_with_fallback(slow(), 0.01, list) == []
