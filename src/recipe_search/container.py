"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management.

Usage::

    from recipe_search.container import ApplicationContainer, config_from_env

    container = ApplicationContainer()
    container.config.from_dict(config_from_env())

    service = container.search_service()

    # In tests, override any provider:
    container.search_service.override(providers.Object(mock_service))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from dependency_injector import containers, providers
from dotenv import load_dotenv

from recipe_search.core.exceptions import ConfigurationError, ErrorContext

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "spoonacular_api_key": "",
    "edamam_app_id": "",
    "edamam_app_key": "",
    "themealdb_api_key": "1",
    "provider_order": ["spoonacular", "edamam", "themealdb"],
    "max_page_size": 50,
    "provider_timeout": 10.0,
    "dedup_strategy": "id",
    "host": "0.0.0.0",
    "port": 8000,
}


def _env_number(env: Mapping[str, str], name: str, default: Any, cast: type) -> Any:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            context=ErrorContext(input_value=raw),
        ) from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}", context=ErrorContext(input_value=raw))
    return value


def config_from_env(env: Mapping[str, str] | None = None, *, dotenv: bool = True) -> dict[str, Any]:
    """
    Build container configuration from environment variables.

    Missing provider credentials are valid: the matching adapter simply
    returns no results.
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    provider_names = [
        name.strip().lower()
        for name in env.get("RECIPE_PROVIDERS", ",".join(DEFAULTS["provider_order"])).split(",")
        if name.strip()
    ]

    return {
        "spoonacular_api_key": env.get("SPOONACULAR_API_KEY", ""),
        "edamam_app_id": env.get("EDAMAM_APP_ID", ""),
        "edamam_app_key": env.get("EDAMAM_APP_KEY", ""),
        "themealdb_api_key": env.get("THEMEALDB_API_KEY") or DEFAULTS["themealdb_api_key"],
        "provider_order": provider_names,
        "max_page_size": _env_number(env, "RECIPE_MAX_PAGE_SIZE", DEFAULTS["max_page_size"], int),
        "provider_timeout": _env_number(env, "RECIPE_PROVIDER_TIMEOUT", DEFAULTS["provider_timeout"], float),
        "dedup_strategy": env.get("RECIPE_DEDUP_STRATEGY", DEFAULTS["dedup_strategy"]).strip().lower(),
        "host": env.get("RECIPE_API_HOST", DEFAULTS["host"]),
        "port": _env_number(env, "RECIPE_API_PORT", DEFAULTS["port"], int),
    }


def _create_aggregator(dedup_strategy: str | None) -> object:
    from recipe_search.application.search.result_aggregator import DedupStrategy, RecipeAggregator

    try:
        strategy = DedupStrategy(dedup_strategy or DEFAULTS["dedup_strategy"])
    except ValueError:
        raise ConfigurationError(
            f"Unknown dedup strategy: {dedup_strategy!r}",
            context=ErrorContext(
                input_value=dedup_strategy,
                suggestion=f"Use one of: {', '.join(s.value for s in DedupStrategy)}",
            ),
        ) from None
    return RecipeAggregator(strategy)


def _create_providers(names: list[str] | None, **settings: Any) -> list:
    from recipe_search.infrastructure.sources import build_providers

    return build_providers(names if names is not None else DEFAULTS["provider_order"], settings)


def _create_local_store() -> object:
    from recipe_search.infrastructure.sources.local_store import LocalRecipeStore

    return LocalRecipeStore()


def _create_search_service(
    local_store: object,
    recipe_providers: list,
    aggregator: object,
    provider_timeout: float | None,
    max_page_size: int | None,
) -> object:
    from recipe_search.application.search.service import RecipeSearchService

    return RecipeSearchService(
        local_store=local_store,
        providers=recipe_providers,
        aggregator=aggregator,
        provider_timeout=provider_timeout or DEFAULTS["provider_timeout"],
        max_page_size=max_page_size or DEFAULTS["max_page_size"],
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for the recipe search application.

    Manages creation and lifecycle of all core services:
    - ``local_store``: the application's own recipes
    - ``recipe_providers``: external adapters in priority order
    - ``aggregator``: cross-source merge/dedup
    - ``search_service``: the aggregation façade
    """

    config = providers.Configuration(default=DEFAULTS)

    local_store = providers.Singleton(_create_local_store)

    recipe_providers = providers.Singleton(
        _create_providers,
        names=config.provider_order,
        spoonacular_api_key=config.spoonacular_api_key,
        edamam_app_id=config.edamam_app_id,
        edamam_app_key=config.edamam_app_key,
        themealdb_api_key=config.themealdb_api_key,
    )

    aggregator = providers.Singleton(
        _create_aggregator,
        dedup_strategy=config.dedup_strategy,
    )

    search_service = providers.Singleton(
        _create_search_service,
        local_store=local_store,
        recipe_providers=recipe_providers,
        aggregator=aggregator,
        provider_timeout=config.provider_timeout,
        max_page_size=config.max_page_size,
    )


__all__ = ["DEFAULTS", "ApplicationContainer", "config_from_env"]
