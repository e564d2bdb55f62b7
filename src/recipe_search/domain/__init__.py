"""Domain layer - pure data types, no I/O."""

from .entities import (
    NormalizedRecipe,
    RecipeSource,
    SearchQuery,
    SearchResponse,
    SourceScope,
)

__all__ = [
    "NormalizedRecipe",
    "RecipeSource",
    "SearchQuery",
    "SearchResponse",
    "SourceScope",
]
