"""
Recipe provider contract.

A provider is anything with an async ``search(query)`` returning normalized
records. External adapters derive from RecipeProviderClient, which adds the
boundary guarantees every adapter must keep:

- unconfigured (missing credentials) -> [] without a network call
- non-2xx, transport or parse failure -> [] plus a log line, never an exception
- raw items that cannot be normalized are skipped one by one
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from recipe_search.infrastructure.sources.base_client import BaseAPIClient

if TYPE_CHECKING:
    from recipe_search.domain.entities.query import SearchQuery
    from recipe_search.domain.entities.recipe import NormalizedRecipe

logger = logging.getLogger(__name__)


@runtime_checkable
class RecipeProvider(Protocol):
    """Anything the search service can fan a query out to."""

    name: str

    async def search(self, query: SearchQuery) -> list[NormalizedRecipe]: ...


class RecipeProviderClient(BaseAPIClient):
    """
    Base class for external recipe APIs.

    Subclasses implement:
    - `is_configured`: credentials present
    - `_fetch(query)`: the provider request, returning the raw item list or None
    - `_normalize(item)`: one raw item to a NormalizedRecipe (or None to skip)
    - optionally `_post_filter(records, query)` when the API cannot filter
    """

    name: str = "provider"

    @property
    def is_configured(self) -> bool:
        return True

    async def search(self, query: SearchQuery) -> list[NormalizedRecipe]:
        if not self.is_configured:
            logger.debug(f"{self._service_name}: not configured, skipping")
            return []

        try:
            items = await self._fetch(query)
        except Exception:
            logger.exception(f"{self._service_name}: search failed")
            return []

        if not items:
            return []

        records = list(self._normalize_all(items))
        records = self._post_filter(records, query)
        logger.debug(f"{self._service_name}: {len(records)} records")
        return records

    def _normalize_all(self, items: Iterable[Any]) -> Iterable[NormalizedRecipe]:
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                record = self._normalize(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.debug(f"{self._service_name}: skipping malformed item: {e}")
                continue
            if record is not None:
                yield record

    def _post_filter(self, records: list[NormalizedRecipe], query: SearchQuery) -> list[NormalizedRecipe]:
        return records

    async def _fetch(self, query: SearchQuery) -> list[Any] | None:
        raise NotImplementedError

    def _normalize(self, item: dict[str, Any]) -> NormalizedRecipe | None:
        raise NotImplementedError

    def qualified_id(self, raw_id: Any) -> str:
        """Provider-qualified record id, e.g. ``spoonacular:716429``."""
        return f"{self.name}:{raw_id}"
