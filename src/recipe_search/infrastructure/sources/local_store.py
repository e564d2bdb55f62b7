"""
Local recipe store.

The application's own recipes, searched in memory. Rows come from a loader
(a callable returning dicts, sync or async); without one the built-in seed
set is used so a search never comes back empty just because every external
provider is down or unconfigured.

Rows are loaded once, on first search, through an AsyncInitializer.
Concurrent first searches share the one load; a failed load is retried on
the next search.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from recipe_search.core.async_utils import AsyncInitializer
from recipe_search.domain.entities.recipe import NormalizedRecipe, RecipeSource, recipe_matches

if TYPE_CHECKING:
    from recipe_search.domain.entities.query import SearchQuery

logger = logging.getLogger(__name__)

RecipeLoader = Callable[[], Iterable[Mapping[str, Any]] | Awaitable[Iterable[Mapping[str, Any]]]]

SEED_RECIPES: tuple[dict[str, Any], ...] = (
    {
        "id": "seed-1",
        "title": "Honey Glazed Salmon with Roasted Vegetables",
        "image": "https://images.unsplash.com/photo-1467003909585-2f8a72700288?w=800&h=600&fit=crop&auto=format",
        "ingredients": [
            "4 salmon fillets",
            "2 tbsp honey",
            "1 tbsp soy sauce",
            "2 cloves garlic, minced",
            "Mixed vegetables (broccoli, carrots, bell peppers)",
            "Olive oil",
            "Salt and pepper to taste",
        ],
        "instructions": [
            "Preheat oven to 400°F (200°C).",
            "Mix honey, soy sauce, and garlic for glaze.",
            "Season salmon; brush with glaze.",
            "Roast vegetables with olive oil for 15 minutes.",
            "Add salmon to pan and bake 12-15 minutes.",
        ],
        "cookTime": 30,
        "servings": 4,
        "cuisines": ["Seafood"],
        "diets": ["High-Protein"],
        "mealTypes": ["Dinner"],
    },
    {
        "id": "seed-2",
        "title": "Fresh Fettuccine with Wild Mushroom Ragu",
        "image": "https://images.unsplash.com/photo-1621996346565-e3dbc353d2e5?w=800&h=600&fit=crop&auto=format",
        "ingredients": [
            "2 cups all-purpose flour",
            "3 large eggs",
            "1 lb mixed wild mushrooms",
            "1/2 cup white wine",
            "2 tbsp olive oil",
            "2 cloves garlic, minced",
            "Fresh thyme",
            "Parmesan cheese",
            "Salt and pepper to taste",
        ],
        "instructions": [
            "Make pasta dough; rest 30 minutes.",
            "Roll and cut into fettuccine.",
            "Sauté mushrooms with garlic and thyme.",
            "Add wine and simmer.",
            "Cook pasta; toss with ragu; serve with Parmesan.",
        ],
        "cookTime": 45,
        "servings": 4,
        "cuisines": ["Italian"],
        "diets": ["Vegetarian"],
        "mealTypes": ["Dinner"],
    },
)


def _seed_loader() -> Iterable[Mapping[str, Any]]:
    return SEED_RECIPES


class LocalRecipeStore:
    """
    In-memory search over the application's own recipes.

    Usage:
        store = LocalRecipeStore(loader=lambda: db.fetch_recipes())
        records = await store.search(query)
    """

    name = RecipeSource.LOCAL.value

    def __init__(self, loader: RecipeLoader | None = None) -> None:
        self._records = AsyncInitializer(self._load, name="local recipe store")
        self._loader = loader or _seed_loader

    async def _load(self) -> list[NormalizedRecipe]:
        rows = self._loader()
        if isinstance(rows, Awaitable):
            rows = await rows

        records = []
        for row in rows:
            try:
                records.append(NormalizedRecipe.from_dict(dict(row), source=self.name))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed local recipe row: {e}")
        logger.info(f"Loaded {len(records)} local recipes")
        return records

    async def records(self) -> list[NormalizedRecipe]:
        return await self._records.ensure_ready()

    async def search(self, query: SearchQuery) -> list[NormalizedRecipe]:
        """All local records matching ``query``, in store order."""
        return [r for r in await self.records() if recipe_matches(r, query)]

    def invalidate(self) -> None:
        """Reload rows on the next search."""
        self._records.reset()
