"""
TheMealDB API Integration

API Documentation: https://www.themealdb.com/api.php

The API key is part of the URL path; "1" is the public test key.
``search.php`` only supports name search (``s=``) or first-letter listing
(``f=``), so every other filter is applied to the normalized records with the
shared record predicate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from recipe_search.domain.entities.recipe import (
    UNTITLED,
    NormalizedRecipe,
    RecipeSource,
    clean_text,
    normalize_tags,
    recipe_matches,
)
from recipe_search.infrastructure.sources.provider import RecipeProviderClient

if TYPE_CHECKING:
    from recipe_search.domain.entities.query import SearchQuery

logger = logging.getLogger(__name__)

THEMEALDB_API_BASE = "https://www.themealdb.com/api/json/v1"

# Public test key
DEFAULT_API_KEY = "1"

# Listing used when there is no search text
DEFAULT_FIRST_LETTER = "c"

MAX_INGREDIENTS = 20


class TheMealDBClient(RecipeProviderClient):
    """
    TheMealDB recipe search adapter.

    Usage:
        client = TheMealDBClient()
        records = await client.search(SearchQuery(text="chicken"))
    """

    _service_name = "TheMealDB"
    name = RecipeSource.THEMEALDB.value

    def __init__(
        self,
        api_key: str | None = DEFAULT_API_KEY,
        timeout: float = 15.0,
        **kwargs: Any,
    ):
        self._api_key = api_key or ""
        super().__init__(
            base_url=f"{THEMEALDB_API_BASE}/{self._api_key}",
            timeout=timeout,
            min_interval=0.1,
            **kwargs,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def build_params(self, query: SearchQuery) -> dict[str, str]:
        if query.text:
            return {"s": query.text}
        return {"f": DEFAULT_FIRST_LETTER}

    async def _fetch(self, query: SearchQuery) -> list[Any] | None:
        data = await self._make_request("/search.php", params=self.build_params(query))
        if not isinstance(data, dict):
            return None
        # "meals": null when nothing matches
        meals = data.get("meals")
        return meals if isinstance(meals, list) else None

    def _post_filter(self, records: list[NormalizedRecipe], query: SearchQuery) -> list[NormalizedRecipe]:
        return [r for r in records if recipe_matches(r, query)]

    def _normalize(self, item: dict[str, Any]) -> NormalizedRecipe | None:
        raw_id = clean_text(item.get("idMeal"))
        if not raw_id:
            return None

        area = clean_text(item.get("strArea"))
        category = clean_text(item.get("strCategory"))
        return NormalizedRecipe(
            id=self.qualified_id(raw_id),
            title=clean_text(item.get("strMeal")) or UNTITLED,
            source=self.name,
            image=clean_text(item.get("strMealThumb")),
            cuisines=normalize_tags([area] if area else []),
            meal_types=normalize_tags([category] if category else []),
            url=clean_text(item.get("strSource")) or clean_text(item.get("strYoutube")),
            ingredients=_ingredients(item),
            instructions=_instruction_lines(item.get("strInstructions")),
        )


def _ingredients(item: dict[str, Any]) -> tuple[str, ...]:
    lines = []
    for i in range(1, MAX_INGREDIENTS + 1):
        ingredient = clean_text(item.get(f"strIngredient{i}"))
        if not ingredient:
            continue
        measure = clean_text(item.get(f"strMeasure{i}"))
        lines.append(f"{measure} {ingredient}" if measure else ingredient)
    return tuple(lines)


def _instruction_lines(text: Any) -> tuple[str, ...]:
    if not isinstance(text, str):
        return ()
    return tuple(line.strip() for line in text.splitlines() if line.strip())
