"""
Spoonacular API Integration

Recipe search via the ``complexSearch`` endpoint with
``addRecipeInformation=true`` so one call returns image, timing, tags,
ingredients and instructions.

API Documentation: https://spoonacular.com/food-api/docs#Search-Recipes-Complex

Authentication:
- ``apiKey`` query parameter (SPOONACULAR_API_KEY)

Rate Limits:
- Quota based (points per day); 402 means the daily quota is spent
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from recipe_search.domain.entities.recipe import (
    UNTITLED,
    NormalizedRecipe,
    RecipeSource,
    clean_text,
    normalize_tags,
    safe_float,
    safe_int,
)
from recipe_search.infrastructure.sources.base_client import _CONTINUE
from recipe_search.infrastructure.sources.provider import RecipeProviderClient

if TYPE_CHECKING:
    import httpx

    from recipe_search.domain.entities.query import SearchQuery

logger = logging.getLogger(__name__)

SPOONACULAR_API_BASE = "https://api.spoonacular.com"

# complexSearch refuses larger pages
MAX_NUMBER = 100

_HTML_TAG = re.compile(r"<[^>]+>")


class SpoonacularClient(RecipeProviderClient):
    """
    Spoonacular recipe search adapter.

    Usage:
        client = SpoonacularClient(api_key="...")
        records = await client.search(SearchQuery(text="pasta", cuisines=frozenset({"italian"})))
    """

    _service_name = "Spoonacular"
    name = RecipeSource.SPOONACULAR.value

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 15.0,
        **kwargs: Any,
    ):
        self._api_key = api_key or ""
        super().__init__(
            base_url=SPOONACULAR_API_BASE,
            timeout=timeout,
            min_interval=0.1,
            headers={"Accept": "application/json"},
            **kwargs,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def build_params(self, query: SearchQuery) -> dict[str, str]:
        """complexSearch parameters for a query; inactive filters are omitted."""
        params: dict[str, str] = {}
        if query.text:
            params["query"] = query.text
        if query.cuisines:
            params["cuisine"] = ",".join(sorted(query.cuisines))
        if query.diets:
            params["diet"] = ",".join(sorted(query.diets))
        if query.meal_types:
            params["type"] = ",".join(sorted(query.meal_types))
        if query.max_ready_minutes:
            params["maxReadyTime"] = str(query.max_ready_minutes)
        params["number"] = str(MAX_NUMBER)
        params["offset"] = "0"
        params["addRecipeInformation"] = "true"
        params["apiKey"] = self._api_key
        return params

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        """402 = daily quota exhausted; no point retrying."""
        if response.status_code == 402:
            logger.warning("Spoonacular: daily quota exhausted")
            return None
        return _CONTINUE

    async def _fetch(self, query: SearchQuery) -> list[Any] | None:
        data = await self._make_request("/recipes/complexSearch", params=self.build_params(query))
        if not isinstance(data, dict):
            return None
        results = data.get("results")
        return results if isinstance(results, list) else None

    def _normalize(self, item: dict[str, Any]) -> NormalizedRecipe | None:
        if item.get("id") is None:
            return None
        return NormalizedRecipe(
            id=self.qualified_id(item["id"]),
            title=clean_text(item.get("title")) or UNTITLED,
            source=self.name,
            image=clean_text(item.get("image")),
            ready_in_minutes=safe_int(item.get("readyInMinutes")),
            servings=safe_int(item.get("servings"), minimum=1),
            cuisines=normalize_tags(item.get("cuisines")),
            diets=normalize_tags(item.get("diets")),
            meal_types=normalize_tags(item.get("dishTypes")),
            rating=safe_float(item.get("spoonacularScore")),
            url=clean_text(item.get("sourceUrl")) or clean_text(item.get("spoonacularSourceUrl")),
            author=clean_text(item.get("sourceName")) or clean_text(item.get("creditsText")),
            ingredients=_ingredients(item.get("extendedIngredients")),
            instructions=_instructions(item),
        )


def _ingredients(values: Any) -> tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    lines = []
    for entry in values:
        if isinstance(entry, dict):
            text = clean_text(entry.get("original")) or clean_text(entry.get("name"))
            if text:
                lines.append(text)
    return tuple(lines)


def _instructions(item: dict[str, Any]) -> tuple[str, ...]:
    # Structured steps first, then the (often HTML) free-text field
    steps = []
    analyzed = item.get("analyzedInstructions")
    if isinstance(analyzed, list):
        for block in analyzed:
            if not isinstance(block, dict) or not isinstance(block.get("steps"), list):
                continue
            for step in block["steps"]:
                text = clean_text(step.get("step")) if isinstance(step, dict) else None
                if text:
                    steps.append(text)
    if steps:
        return tuple(steps)

    raw = item.get("instructions")
    if not isinstance(raw, str):
        return ()
    return tuple(line.strip() for line in _HTML_TAG.sub("\n", raw).splitlines() if line.strip())
