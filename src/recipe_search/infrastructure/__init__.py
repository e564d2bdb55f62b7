"""
Infrastructure Layer - External Systems Integration

Contains:
- sources: Recipe provider adapters and the local recipe store
- cache: Client-side query cache
"""

from .cache import QueryCache
from .sources import LocalRecipeStore, RecipeProvider, build_providers

__all__ = [
    "LocalRecipeStore",
    "QueryCache",
    "RecipeProvider",
    "build_providers",
]
