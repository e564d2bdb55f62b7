"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from recipe_search.domain.entities.recipe import NormalizedRecipe

# ============================================================
# Record Factories
# ============================================================


@pytest.fixture
def make_recipe():
    """Factory for NormalizedRecipe with sensible defaults."""

    def _create(id: str = "1", title: str = "Test Recipe", source: str = "local", **kwargs: Any) -> NormalizedRecipe:
        for tag_field in ("cuisines", "diets", "meal_types"):
            if tag_field in kwargs:
                kwargs[tag_field] = frozenset(kwargs[tag_field])
        for text_field in ("ingredients", "instructions"):
            if text_field in kwargs:
                kwargs[text_field] = tuple(kwargs[text_field])
        return NormalizedRecipe(id=id, title=title, source=source, **kwargs)

    return _create


@pytest.fixture
def numbered_recipes(make_recipe):
    """``n`` recipes with ids "<prefix>1".."<prefix>n"."""

    def _create(n: int, prefix: str = "r", source: str = "local") -> list[NormalizedRecipe]:
        return [make_recipe(id=f"{prefix}{i}", title=f"Recipe {i}", source=source) for i in range(1, n + 1)]

    return _create


# ============================================================
# Fake Sources
# ============================================================


class FakeProvider:
    """Provider double: returns canned records after an optional delay, or raises."""

    def __init__(
        self,
        name: str,
        records: list[NormalizedRecipe] | None = None,
        *,
        delay: float = 0.0,
        error: BaseException | None = None,
    ):
        self.name = name
        self.records = records or []
        self.delay = delay
        self.error = error
        self.queries: list[Any] = []
        self.closed = False

    async def search(self, query):
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.records)

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_provider():
    return FakeProvider


# ============================================================
# HTTP Mocking
# ============================================================


@pytest.fixture
def mock_transport():
    """
    Build an httpx.MockTransport from a handler; every request is recorded
    on ``transport.requests``.
    """

    def _create(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
        requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        transport = httpx.MockTransport(_record)
        transport.requests = requests  # type: ignore[attr-defined]
        return transport

    return _create


@pytest.fixture
def json_transport(mock_transport):
    """MockTransport answering every request with the same JSON body and status."""

    def _create(payload: Any, status_code: int = 200, headers: dict[str, str] | None = None) -> httpx.MockTransport:
        return mock_transport(lambda request: httpx.Response(status_code, json=payload, headers=headers))

    return _create


@pytest.fixture
def no_sleep(monkeypatch):
    """Make retry/backoff sleeps in the HTTP layer instant."""

    async def _instant(_seconds: float) -> None:
        return None

    monkeypatch.setattr("recipe_search.infrastructure.sources.base_client.asyncio.sleep", _instant)
