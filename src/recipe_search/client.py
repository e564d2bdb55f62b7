"""
Recipes Query Client - consumer side of the search endpoint.

Holds the UI filter state, turns it into requests and exposes the outcome as
a QueryState that listeners subscribe to.

- Text edits are debounced; filter and page changes dispatch immediately.
- Responses are cached per request URL for a fixed staleness window.
- Only the response for the currently active request is ever applied.

Usage:
    client = RecipesQueryClient("http://localhost:8000")
    client.subscribe(lambda state: print(state.status, state.total))

    client.set_text("pas")
    client.set_text("pasta")          # restarts the debounce timer
    await client.settle()             # one request, for "pasta"

    await client.set_filters({"selectedCuisines": ["Italian"]})
    await client.set_page(2)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any
from urllib.parse import urlencode

import httpx

from recipe_search.application.search.query_translator import (
    UIFilterState,
    build_query_params,
    translate,
)
from recipe_search.core.async_utils import AsyncInitializer, Debouncer
from recipe_search.core.exceptions import (
    ErrorContext,
    NetworkError,
    ParseError,
    RecipeSearchError,
    ServiceUnavailableError,
)
from recipe_search.domain.entities.query import MAX_PAGE_SIZE, SearchQuery, SearchResponse
from recipe_search.domain.entities.recipe import NormalizedRecipe
from recipe_search.infrastructure.cache.query_cache import QueryCache

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_PATH = "/api/recipes/search"
DEFAULT_DEBOUNCE = 0.3


class QueryStatus(Enum):
    """Lifecycle of the active request."""
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    SUCCESS = "success"


@dataclass(frozen=True)
class QueryState:
    """Snapshot handed to listeners."""
    status: QueryStatus = QueryStatus.IDLE
    data: SearchResponse | None = None
    error: RecipeSearchError | None = None
    key: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    @property
    def results(self) -> list[NormalizedRecipe]:
        return self.data.results if self.data else []

    @property
    def total(self) -> int:
        return self.data.total if self.data else 0


Listener = Callable[[QueryState], Any]


def parse_search_response(payload: Any) -> SearchResponse:
    """Decode a ``{results, total, source}`` body."""
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        raise ParseError("expected an object with a 'results' list", source="search response")
    if not all(isinstance(item, dict) for item in payload["results"]):
        raise ParseError("every result must be an object", source="search response")
    try:
        results = [NormalizedRecipe.from_dict(item) for item in payload["results"]]
        total = int(payload.get("total", len(results)))
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ParseError(str(e), source="search response") from e
    return SearchResponse(results=results, total=total, source=str(payload.get("source", "all")))


class RecipesQueryClient:
    """
    Debounced, cached, stale-safe client for the recipe search endpoint.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``
        path: Search endpoint path
        cache: Response cache (a fresh 5-minute QueryCache by default)
        debounce: Seconds text input must be stable before dispatch
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        path: str = DEFAULT_SEARCH_PATH,
        cache: QueryCache | None = None,
        debounce: float = DEFAULT_DEBOUNCE,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 15.0,
        max_page_size: int = MAX_PAGE_SIZE,
        filters: UIFilterState | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._path = path
        self._cache = cache if cache is not None else QueryCache()
        self._debouncer = Debouncer(debounce)
        self._max_page_size = max_page_size
        self._filters = filters or UIFilterState()
        self._state = QueryState()
        self._listeners: list[Listener] = []
        self._active_key: str | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._http = AsyncInitializer(
            lambda: httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=transport),
            name="recipe search HTTP client",
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def filters(self) -> UIFilterState:
        return self._filters

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def current_query(self) -> SearchQuery:
        return translate(self._filters, max_page_size=self._max_page_size)

    def cache_key(self, query: SearchQuery) -> str:
        """Request URL (path + stable query string); also the cache key."""
        return f"{self._path}?{urlencode(build_query_params(query))}"

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: QueryState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Query state listener failed")

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def set_text(self, text: str) -> None:
        """Update search text; dispatches once input is stable for the debounce delay."""
        self._filters = replace(self._filters, search=text, page=1)
        self._debouncer.schedule(self._dispatch)

    def set_filters(self, filters: UIFilterState | Mapping[str, Any]) -> asyncio.Task[None]:
        """Replace the non-text filters and dispatch now. Current text is kept."""
        if not isinstance(filters, UIFilterState):
            filters = UIFilterState.from_dict(filters)
        self._debouncer.cancel()
        self._filters = replace(filters, search=self._filters.search, page=1)
        return self._start()

    def set_page(self, page: int) -> asyncio.Task[None]:
        self._debouncer.cancel()
        self._filters = replace(self._filters, page=page)
        return self._start()

    async def refetch(self) -> QueryState:
        """Re-request the active query, bypassing the cache."""
        self._debouncer.cancel()
        await self._start(force=True)
        return self._state

    async def settle(self) -> QueryState:
        """Wait for any pending debounce and the in-flight request."""
        await self._debouncer.flush()
        task = self._inflight
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        return self._state

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self) -> None:
        await self._start()

    def _start(self, *, force: bool = False) -> asyncio.Task[None]:
        query = self.current_query
        key = self.cache_key(query)
        self._active_key = key

        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

        self._inflight = asyncio.ensure_future(self._run(key, query, force=force))
        return self._inflight

    async def _run(self, key: str, query: SearchQuery, *, force: bool) -> None:
        if force:
            self._cache.invalidate(key)
        elif (cached := self._cache.get(key)) is not None:
            self._apply(key, cached)
            return

        self._set_state(QueryState(QueryStatus.LOADING, data=self._state.data, key=key))

        try:
            response = await self._cache.get_or_fetch(key, lambda: self._fetch(query))
        except RecipeSearchError as e:
            self._fail(key, e)
            return
        except Exception as e:
            logger.exception("Unexpected failure while fetching recipes")
            self._fail(key, RecipeSearchError(f"Unexpected error: {e}"))
            return

        if key != self._active_key:
            logger.debug(f"Discarding stale response for {key}")
            return
        self._apply(key, response)

    def _fail(self, key: str, error: RecipeSearchError) -> None:
        if key != self._active_key:
            return
        logger.warning(f"Recipe search failed: {error}")
        self._set_state(QueryState(QueryStatus.ERROR, error=error, key=key))

    def _apply(self, key: str, response: SearchResponse) -> None:
        status = QueryStatus.SUCCESS if response.results or response.total else QueryStatus.EMPTY
        self._set_state(QueryState(status, data=response, key=key))

    async def _fetch(self, query: SearchQuery) -> SearchResponse:
        client = await self._http.ensure_ready()
        try:
            response = await client.get(self._path, params=build_query_params(query))
        except httpx.RequestError as e:
            raise NetworkError(
                f"Recipe search request failed: {e}",
                context=ErrorContext(operation="search"),
            ) from e

        if response.status_code == 503:
            raise ServiceUnavailableError(
                _error_detail(response),
                service="recipe search",
                context=ErrorContext(operation="search", status_code=503),
            )
        if response.status_code >= 400:
            detail = _error_detail(response)
            raise NetworkError(
                f"Recipe search returned HTTP {response.status_code}: {detail}",
                context=ErrorContext(operation="search", status_code=response.status_code),
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(str(e), source="search response") from e
        return parse_search_response(payload)

    async def aclose(self) -> None:
        self._debouncer.cancel()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        if self._http.is_ready:
            client = self._http.value
            self._http.reset()
            if client is not None:
                await client.aclose()

    async def __aenter__(self) -> RecipesQueryClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.reason_phrase
