"""Tests for DI container and environment configuration."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from dependency_injector import providers

from recipe_search.application.search.result_aggregator import DedupStrategy
from recipe_search.application.search.service import RecipeSearchService
from recipe_search.container import DEFAULTS, ApplicationContainer, config_from_env
from recipe_search.core.exceptions import ConfigurationError
from recipe_search.infrastructure.sources import (
    EdamamClient,
    LocalRecipeStore,
    SpoonacularClient,
    TheMealDBClient,
)

# ============================================================================
# config_from_env
# ============================================================================


class TestConfigFromEnv:
    def test_defaults(self):
        config = config_from_env({})
        assert config["provider_order"] == ["spoonacular", "edamam", "themealdb"]
        assert config["themealdb_api_key"] == "1"
        assert config["max_page_size"] == 50
        assert config["provider_timeout"] == 10.0
        assert config["dedup_strategy"] == "id"
        assert config["spoonacular_api_key"] == ""

    def test_reads_variables(self):
        config = config_from_env(
            {
                "SPOONACULAR_API_KEY": "spoon",
                "EDAMAM_APP_ID": "eid",
                "EDAMAM_APP_KEY": "ekey",
                "RECIPE_PROVIDERS": " TheMealDB , spoonacular ",
                "RECIPE_MAX_PAGE_SIZE": "30",
                "RECIPE_PROVIDER_TIMEOUT": "2.5",
                "RECIPE_DEDUP_STRATEGY": "Title",
                "RECIPE_API_PORT": "9000",
            }
        )
        assert config["spoonacular_api_key"] == "spoon"
        assert config["edamam_app_id"] == "eid"
        assert config["provider_order"] == ["themealdb", "spoonacular"]
        assert config["max_page_size"] == 30
        assert config["provider_timeout"] == 2.5
        assert config["dedup_strategy"] == "title"
        assert config["port"] == 9000

    @pytest.mark.parametrize(("name", "value"), [("RECIPE_MAX_PAGE_SIZE", "lots"), ("RECIPE_PROVIDER_TIMEOUT", "-1")])
    def test_bad_numbers(self, name, value):
        with pytest.raises(ConfigurationError):
            config_from_env({name: value})

    def test_loads_dotenv_for_process_env(self):
        with patch("recipe_search.container.load_dotenv") as load:
            config_from_env()
        load.assert_called_once()

    def test_dotenv_can_be_skipped(self):
        with patch("recipe_search.container.load_dotenv") as load:
            config_from_env(dotenv=False)
        load.assert_not_called()


# ============================================================================
# ApplicationContainer
# ============================================================================


def _container(**overrides) -> ApplicationContainer:
    container = ApplicationContainer()
    container.config.from_dict({**DEFAULTS, **overrides})
    return container


class TestApplicationContainer:
    def test_search_service_singleton(self):
        container = _container()
        s1 = container.search_service()
        s2 = container.search_service()
        assert s1 is s2
        assert isinstance(s1, RecipeSearchService)

    def test_providers_in_configured_order(self):
        container = _container(provider_order=["themealdb", "spoonacular", "edamam"])
        built = container.recipe_providers()
        assert [type(p) for p in built] == [TheMealDBClient, SpoonacularClient, EdamamClient]
        assert container.search_service().providers == ["themealdb", "spoonacular", "edamam"]

    def test_credentials_wired(self):
        container = _container(spoonacular_api_key="k", edamam_app_id="i", edamam_app_key="")
        spoon, edamam, mealdb = container.recipe_providers()
        assert spoon.is_configured
        assert not edamam.is_configured
        assert mealdb.is_configured

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            _container(provider_order=["allrecipes"]).recipe_providers()

    def test_dedup_strategy(self):
        assert _container(dedup_strategy="source_id").aggregator().strategy is DedupStrategy.SOURCE_ID

    def test_unknown_dedup_strategy(self):
        with pytest.raises(ConfigurationError):
            _container(dedup_strategy="fuzzy").aggregator()

    def test_local_store(self):
        assert isinstance(_container().local_store(), LocalRecipeStore)

    def test_service_settings(self):
        service = _container(max_page_size=20, provider_timeout=3.0).search_service()
        assert service.max_page_size == 20
        assert service._provider_timeout == 3.0

    def test_override_provider(self):
        container = _container()
        sentinel = object()
        container.search_service.override(providers.Object(sentinel))
        assert container.search_service() is sentinel
        container.search_service.reset_override()
