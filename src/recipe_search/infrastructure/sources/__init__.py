"""
Recipe sources: the local store and the external provider adapters.

Usage:
    from recipe_search.infrastructure.sources import build_providers

    providers = build_providers(["spoonacular", "themealdb"], settings)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from recipe_search.core.exceptions import ConfigurationError, ErrorContext

from .base_client import BaseAPIClient
from .edamam import EdamamClient
from .local_store import SEED_RECIPES, LocalRecipeStore
from .provider import RecipeProvider, RecipeProviderClient
from .spoonacular import SpoonacularClient
from .themealdb import TheMealDBClient

DEFAULT_PROVIDER_ORDER: tuple[str, ...] = ("spoonacular", "edamam", "themealdb")

# name -> factory(settings); settings keys mirror ApplicationContainer config
PROVIDER_FACTORIES: dict[str, Callable[[Mapping[str, Any]], RecipeProviderClient]] = {
    "spoonacular": lambda s: SpoonacularClient(api_key=s.get("spoonacular_api_key")),
    "edamam": lambda s: EdamamClient(app_id=s.get("edamam_app_id"), app_key=s.get("edamam_app_key")),
    "themealdb": lambda s: TheMealDBClient(api_key=s.get("themealdb_api_key", "1")),
}


def build_providers(names: Iterable[str], settings: Mapping[str, Any]) -> list[RecipeProviderClient]:
    """Instantiate adapters in the given (priority) order."""
    providers = []
    for name in names:
        factory = PROVIDER_FACTORIES.get(name.strip().lower())
        if factory is None:
            raise ConfigurationError(
                f"Unknown recipe provider: {name!r}",
                context=ErrorContext(
                    input_value=name,
                    suggestion=f"Use one of: {', '.join(PROVIDER_FACTORIES)}",
                ),
            )
        providers.append(factory(settings))
    return providers


__all__ = [
    "DEFAULT_PROVIDER_ORDER",
    "PROVIDER_FACTORIES",
    "SEED_RECIPES",
    "BaseAPIClient",
    "EdamamClient",
    "LocalRecipeStore",
    "RecipeProvider",
    "RecipeProviderClient",
    "SpoonacularClient",
    "TheMealDBClient",
    "build_providers",
]
