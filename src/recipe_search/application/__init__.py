"""Application layer - use cases built on domain entities and infrastructure sources."""

from .search import RecipeAggregator, RecipeSearchService

__all__ = ["RecipeAggregator", "RecipeSearchService"]
