"""
Edamam Recipe Search API (v2) Integration

API Documentation: https://developer.edamam.com/edamam-docs-recipe-api

Authentication:
- ``app_id`` + ``app_key`` query parameters (EDAMAM_APP_ID / EDAMAM_APP_KEY)

Request encoding differs from the other providers: list filters are sent as
repeated keys (``health=vegan&health=gluten-free``) and the cook-time ceiling
is a range (``time=1-30``).
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
    safe_int,
)
from recipe_search.infrastructure.sources.provider import RecipeProviderClient

if TYPE_CHECKING:
    from recipe_search.domain.entities.query import SearchQuery

logger = logging.getLogger(__name__)

EDAMAM_API_BASE = "https://api.edamam.com"

# Values Edamam accepts for ``diet``; every other diet tag is sent as ``health``
EDAMAM_DIET_LABELS = frozenset({
    "balanced",
    "high-fiber",
    "high-protein",
    "low-carb",
    "low-fat",
    "low-sodium",
})


class EdamamClient(RecipeProviderClient):
    """
    Edamam recipe search adapter.

    Usage:
        client = EdamamClient(app_id="...", app_key="...")
        records = await client.search(SearchQuery(diets=frozenset({"vegan"})))
    """

    _service_name = "Edamam"
    name = RecipeSource.EDAMAM.value

    def __init__(
        self,
        app_id: str | None = None,
        app_key: str | None = None,
        timeout: float = 15.0,
        **kwargs: Any,
    ):
        self._app_id = app_id or ""
        self._app_key = app_key or ""
        super().__init__(
            base_url=EDAMAM_API_BASE,
            timeout=timeout,
            min_interval=0.2,
            headers={"Accept": "application/json"},
            **kwargs,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._app_id and self._app_key)

    def build_params(self, query: SearchQuery) -> list[tuple[str, str]]:
        """Recipe v2 parameters as ordered pairs so repeated keys survive."""
        params: list[tuple[str, str]] = [
            ("type", "public"),
            ("app_id", self._app_id),
            ("app_key", self._app_key),
            ("q", query.text or "recipe"),
        ]
        for cuisine in sorted(query.cuisines):
            params.append(("cuisineType", cuisine))
        for meal_type in sorted(query.meal_types):
            params.append(("mealType", meal_type))
        for diet in sorted(query.diets):
            params.append(("diet" if diet in EDAMAM_DIET_LABELS else "health", diet))
        if query.max_ready_minutes:
            params.append(("time", f"1-{query.max_ready_minutes}"))
        return params

    async def _fetch(self, query: SearchQuery) -> list[Any] | None:
        data = await self._make_request("/api/recipes/v2", params=self.build_params(query))
        if not isinstance(data, dict):
            return None
        hits = data.get("hits")
        if not isinstance(hits, list):
            return None
        return [hit.get("recipe") for hit in hits if isinstance(hit, dict)]

    def _normalize(self, item: dict[str, Any]) -> NormalizedRecipe | None:
        raw_id = recipe_id_from_uri(item.get("uri"))
        if not raw_id:
            return None

        diets = normalize_tags(item.get("dietLabels")) | normalize_tags(item.get("healthLabels"))
        return NormalizedRecipe(
            id=self.qualified_id(raw_id),
            title=clean_text(item.get("label")) or UNTITLED,
            source=self.name,
            image=clean_text(item.get("image")),
            # Edamam reports 0 when the time is unknown
            ready_in_minutes=safe_int(item.get("totalTime"), minimum=1),
            servings=safe_int(item.get("yield"), minimum=1),
            cuisines=normalize_tags(item.get("cuisineType")),
            diets=diets,
            meal_types=_split_meal_types(item.get("mealType")),
            rating=None,
            url=clean_text(item.get("url")),
            author=clean_text(item.get("source")),
            ingredients=_ingredient_lines(item.get("ingredientLines")),
        )


def recipe_id_from_uri(uri: Any) -> str | None:
    """``http://www.edamam.com/ontologies/edamam.owl#recipe_b79327d0`` -> ``b79327d0``."""
    if not isinstance(uri, str) or not uri.strip():
        return None
    return uri.rsplit("#recipe_", 1)[-1].strip() or None


def _split_meal_types(values: Any) -> frozenset[str]:
    # "lunch/dinner" is a single Edamam label
    tags = set()
    for tag in normalize_tags(values):
        tags.update(part.strip() for part in tag.split("/") if part.strip())
    return frozenset(tags)


def _ingredient_lines(values: Any) -> tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    return tuple(v.strip() for v in values if isinstance(v, str) and v.strip())
