"""Domain entities: normalized recipe records and search queries."""

from .query import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SearchQuery,
    SearchResponse,
    SourceScope,
)
from .recipe import (
    NormalizedRecipe,
    RecipeSource,
    normalize_tags,
    normalize_title,
    recipe_matches,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "NormalizedRecipe",
    "RecipeSource",
    "SearchQuery",
    "SearchResponse",
    "SourceScope",
    "normalize_tags",
    "normalize_title",
    "recipe_matches",
]
