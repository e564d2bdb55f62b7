"""
Tests for the Spoonacular adapter.
"""

import httpx

from recipe_search.domain.entities.query import SearchQuery
from recipe_search.infrastructure.sources.spoonacular import MAX_NUMBER, SpoonacularClient

SAMPLE_RESULT = {
    "id": 716429,
    "title": "Pasta with Garlic, Scallions, Cauliflower & Breadcrumbs",
    "image": "https://img.spoonacular.com/recipes/716429-312x231.jpg",
    "readyInMinutes": 45,
    "servings": 2,
    "cuisines": ["Italian", "Mediterranean"],
    "diets": ["Dairy Free"],
    "dishTypes": ["Lunch", "Main Course"],
    "spoonacularScore": 83.5,
    "sourceUrl": "https://fullbellysisters.blogspot.com/2012/06/pasta.html",
    "sourceName": "Full Belly Sisters",
    "extendedIngredients": [{"original": "1 tbsp butter"}, {"name": "cauliflower"}, {"foo": "bar"}],
    "analyzedInstructions": [{"steps": [{"step": "Boil pasta."}, {"step": " Toss. "}]}],
}


def _client(transport=None, api_key="test-key") -> SpoonacularClient:
    client = SpoonacularClient(api_key=api_key, transport=transport)
    client._min_interval = 0
    return client


class TestSpoonacularConfig:
    async def test_unconfigured_makes_no_request(self, json_transport):
        transport = json_transport({"results": [SAMPLE_RESULT]})
        client = _client(transport, api_key="")

        assert not client.is_configured
        assert await client.search(SearchQuery(text="pasta")) == []
        assert transport.requests == []

    def test_name(self):
        assert SpoonacularClient().name == "spoonacular"


class TestSpoonacularParams:
    def test_full_query(self):
        query = SearchQuery(
            text="pasta",
            cuisines=frozenset({"thai", "italian"}),
            diets=frozenset({"vegan"}),
            meal_types=frozenset({"dinner"}),
            max_ready_minutes=30,
            page=2,
            page_size=10,
        )
        params = _client().build_params(query)

        assert params["query"] == "pasta"
        assert params["cuisine"] == "italian,thai"
        assert params["diet"] == "vegan"
        assert params["type"] == "dinner"
        assert params["maxReadyTime"] == "30"
        assert params["number"] == str(MAX_NUMBER)
        assert params["offset"] == "0"
        assert params["addRecipeInformation"] == "true"
        assert params["apiKey"] == "test-key"

    def test_inactive_filters_omitted(self):
        params = _client().build_params(SearchQuery())
        assert "query" not in params
        assert "cuisine" not in params
        assert "maxReadyTime" not in params

    def test_number_independent_of_page(self):
        first = _client().build_params(SearchQuery(page=1, page_size=10))
        later = _client().build_params(SearchQuery(page=10, page_size=50))
        assert first["number"] == later["number"] == str(MAX_NUMBER)


class TestSpoonacularSearch:
    async def test_normalizes_results(self, json_transport):
        transport = json_transport({"results": [SAMPLE_RESULT]})
        client = _client(transport)

        records = await client.search(SearchQuery(text="pasta"))

        assert len(records) == 1
        recipe = records[0]
        assert recipe.id == "spoonacular:716429"
        assert recipe.source == "spoonacular"
        assert recipe.ready_in_minutes == 45
        assert recipe.servings == 2
        assert recipe.cuisines == frozenset({"italian", "mediterranean"})
        assert recipe.diets == frozenset({"dairy free"})
        assert recipe.meal_types == frozenset({"lunch", "main course"})
        assert recipe.rating == 83.5
        assert recipe.url.startswith("https://fullbellysisters")
        assert recipe.author == "Full Belly Sisters"
        assert recipe.ingredients == ("1 tbsp butter", "cauliflower")
        assert recipe.instructions == ("Boil pasta.", "Toss.")

        request = transport.requests[0]
        assert request.url.path == "/recipes/complexSearch"
        assert request.url.params["apiKey"] == "test-key"

    async def test_defensive_normalization(self, json_transport):
        raw = {
            "id": 1,
            "readyInMinutes": "forty",
            "servings": None,
            "cuisines": None,
            "spoonacularSourceUrl": "https://spoonacular.com/x",
            "instructions": "<ol><li>Chop</li><li>Fry</li></ol>",
        }
        records = await _client(json_transport({"results": [raw, "junk", {"title": "no id"}]})).search(SearchQuery())

        assert len(records) == 1
        recipe = records[0]
        assert recipe.title == "Untitled"
        assert recipe.ready_in_minutes is None
        assert recipe.servings is None
        assert recipe.cuisines == frozenset()
        assert recipe.url == "https://spoonacular.com/x"
        assert recipe.instructions == ("Chop", "Fry")

    async def test_non_2xx_returns_empty(self, json_transport):
        assert await _client(json_transport({"message": "bad key"}, status_code=401)).search(SearchQuery()) == []

    async def test_quota_exhausted_returns_empty(self, json_transport):
        transport = json_transport({}, status_code=402)
        assert await _client(transport).search(SearchQuery()) == []
        assert len(transport.requests) == 1

    async def test_missing_results_key(self, json_transport):
        assert await _client(json_transport({"totalResults": 0})).search(SearchQuery()) == []

    async def test_transport_failure_returns_empty(self, mock_transport, no_sleep):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert await _client(mock_transport(handler)).search(SearchQuery()) == []

    async def test_returns_every_result_regardless_of_page_size(self, json_transport):
        results = [dict(SAMPLE_RESULT, id=i) for i in range(10)]
        records = await _client(json_transport({"results": results})).search(SearchQuery(page_size=3))
        assert len(records) == 10
