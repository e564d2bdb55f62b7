"""
Recipe Search - Multi-provider recipe search aggregation.

Fans one normalized query out to the application's own recipes and several
external recipe APIs, normalizes every answer into a common record, merges
and deduplicates across sources and returns one paginated result set.

Usage:
    from recipe_search import RecipeSearchService, SearchQuery
    from recipe_search.infrastructure.sources import LocalRecipeStore, TheMealDBClient

    service = RecipeSearchService(LocalRecipeStore(), [TheMealDBClient()])
    response = await service.search_recipes(SearchQuery(text="pasta", page_size=10))

    for recipe in response.results:
        print(f"{recipe.source}: {recipe.title}")
"""

__version__ = "0.1.0"

from .application.search import (
    DedupStrategy,
    RecipeAggregator,
    RecipeSearchService,
    UIFilterState,
    build_query_params,
    parse_query_params,
    translate,
)
from .domain import NormalizedRecipe, RecipeSource, SearchQuery, SearchResponse, SourceScope

__all__ = [
    "__version__",
    "DedupStrategy",
    "NormalizedRecipe",
    "RecipeAggregator",
    "RecipeSearchService",
    "RecipeSource",
    "SearchQuery",
    "SearchResponse",
    "SourceScope",
    "UIFilterState",
    "build_query_params",
    "parse_query_params",
    "translate",
]
