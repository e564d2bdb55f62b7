"""
RecipeSearchService - Aggregation Façade

One query in, one paginated envelope out:

    SearchQuery
        │
        ├── LocalRecipeStore.search ─┐
        ├── provider[0].search ──────┤  asyncio.gather (all settle,
        ├── provider[1].search ──────┤  each bounded by provider_timeout)
        └── ...                     ─┘
                                     │
                   RecipeAggregator.merge (local first, then config order)
                                     │
                   slice [offset : offset + page_size]
                                     │
                         SearchResponse(results, total, source)

A failing or slow source contributes an empty list; the search itself only
fails if merging or pagination does.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from recipe_search.application.search.query_translator import to_offset
from recipe_search.application.search.result_aggregator import RecipeAggregator
from recipe_search.core.async_utils import timeout_with_fallback
from recipe_search.domain.entities.query import MAX_PAGE_SIZE, SearchQuery, SearchResponse

if TYPE_CHECKING:
    from recipe_search.domain.entities.recipe import NormalizedRecipe
    from recipe_search.infrastructure.sources.provider import RecipeProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 10.0


class RecipeSearchService:
    """
    Fans a query out to the local store and every provider, merges, paginates.

    Usage:
        service = RecipeSearchService(LocalRecipeStore(), [SpoonacularClient(key)])
        response = await service.search_recipes(SearchQuery(text="pasta"))
    """

    def __init__(
        self,
        local_store: RecipeProvider | None = None,
        providers: Sequence[RecipeProvider] = (),
        aggregator: RecipeAggregator | None = None,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._local_store = local_store
        self._providers = list(providers)
        self._aggregator = aggregator or RecipeAggregator()
        self._provider_timeout = provider_timeout
        self._max_page_size = max_page_size

    @property
    def providers(self) -> list[str]:
        """Configured provider names in priority order."""
        return [getattr(p, "name", type(p).__name__) for p in self._providers]

    @property
    def max_page_size(self) -> int:
        return self._max_page_size

    def _sources_for(self, query: SearchQuery) -> list[RecipeProvider]:
        sources: list[RecipeProvider] = []
        if query.source_scope.includes_local and self._local_store is not None:
            sources.append(self._local_store)
        if query.source_scope.includes_external:
            sources.extend(self._providers)
        return sources

    async def _search_one(self, source: RecipeProvider, query: SearchQuery) -> list[NormalizedRecipe]:
        name = getattr(source, "name", type(source).__name__)
        try:
            records = source.search(query)
            # Local stores may answer synchronously
            if inspect.isawaitable(records):
                records = await timeout_with_fallback(records, self._provider_timeout, None)
        except Exception:
            logger.exception(f"Source {name} raised during search")
            return []

        if records is None:
            logger.warning(f"Source {name} timed out after {self._provider_timeout}s")
            return []
        return list(records)

    async def search_recipes(self, query: SearchQuery) -> SearchResponse:
        """
        Run ``query`` against every source in scope.

        Results are merged in fixed priority order (local store, then
        providers in configuration order) regardless of which source answers
        first, then paginated. ``total`` is the size of the merged set.
        """
        start = time.perf_counter()
        sources = self._sources_for(query)

        settled = await asyncio.gather(
            *(self._search_one(source, query) for source in sources),
            return_exceptions=True,
        )

        record_lists: list[list[NormalizedRecipe]] = []
        for source, outcome in zip(sources, settled, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(f"Source {getattr(source, 'name', source)!r} failed: {outcome}")
                record_lists.append([])
            else:
                record_lists.append(outcome)

        merged, stats = self._aggregator.aggregate(record_lists)

        page_size = max(1, min(query.page_size, self._max_page_size))
        if query.start_offset is not None:
            offset = max(0, query.start_offset)
        else:
            offset = to_offset(query.page, page_size)
        page = merged[offset : offset + page_size]

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Recipe search scope={query.source_scope.value} sources={len(sources)} "
            f"merged={stats.unique_records} (dupes={stats.duplicates_removed}) "
            f"page={query.page} returned={len(page)} in {elapsed_ms:.0f}ms"
        )

        return SearchResponse(results=page, total=len(merged), source=query.source_scope.value)

    async def close(self) -> None:
        """Release provider HTTP clients."""
        for provider in self._providers:
            close = getattr(provider, "close", None)
            if close is not None:
                await close()
