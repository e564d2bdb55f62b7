"""
Tests for query_translator - UI state and HTTP params to SearchQuery.
"""

import pytest

from recipe_search.application.search.query_translator import (
    ETHNICITY_TO_CUISINES,
    UIFilterState,
    build_query_params,
    clamp_page_size,
    expand_ethnicities,
    parse_query_params,
    parse_scope,
    split_csv,
    to_offset,
    translate,
)
from recipe_search.domain.entities.query import DEFAULT_PAGE_SIZE, SearchQuery, SourceScope

# =============================================================================
# translate
# =============================================================================


class TestTranslate:
    def test_whitespace_text_means_no_filter(self):
        assert translate(UIFilterState(search="   ")).text is None

    def test_text_trimmed(self):
        assert translate(UIFilterState(search="  pasta ")).text == "pasta"

    def test_ethnicity_merged_into_cuisines(self):
        query = translate(UIFilterState(cuisines=["Italian"], ethnicities=["Thai", "italian"]))
        assert query.cuisines == frozenset({"italian", "thai"})

    def test_known_ethnicity_expands(self):
        query = translate(UIFilterState(ethnicities=["Southern / Soul Food"]))
        assert query.cuisines == frozenset(ETHNICITY_TO_CUISINES["southern / soul food"])

    @pytest.mark.parametrize(("size", "expected"), [(0, 1), (-4, 1), (500, 50), (10, 10), ("abc", DEFAULT_PAGE_SIZE)])
    def test_page_size_clamped(self, size, expected):
        assert translate(UIFilterState(page_size=size)).page_size == expected

    def test_custom_max_page_size(self):
        assert translate(UIFilterState(page_size=40), max_page_size=20).page_size == 20

    @pytest.mark.parametrize("page", [0, -1, None, "x"])
    def test_page_clamped(self, page):
        assert translate(UIFilterState(page=page)).page == 1

    @pytest.mark.parametrize("minutes", [0, -10, "soon", None])
    def test_non_positive_cook_time_omitted(self, minutes):
        assert translate(UIFilterState(max_cook_time=minutes)).max_ready_minutes is None

    def test_cook_time_kept(self):
        assert translate(UIFilterState(max_cook_time="30")).max_ready_minutes == 30

    def test_empty_filters_omitted(self):
        query = translate(UIFilterState())
        assert query == SearchQuery()

    def test_from_camel_case_mapping(self):
        query = translate(
            {
                "search": "curry",
                "selectedCuisines": ["Indian"],
                "selectedEthnicities": [],
                "selectedDietary": ["Vegan"],
                "selectedMealTypes": ["Dinner"],
                "maxCookTime": 45,
                "page": 2,
                "pageSize": 12,
                "source": "external",
            }
        )
        assert query.text == "curry"
        assert query.cuisines == frozenset({"indian"})
        assert query.diets == frozenset({"vegan"})
        assert query.meal_types == frozenset({"dinner"})
        assert query.max_ready_minutes == 45
        assert query.page == 2
        assert query.page_size == 12
        assert query.source_scope is SourceScope.EXTERNAL_ONLY

    def test_from_mapping_comma_string(self):
        assert translate({"cuisines": "thai, indian"}).cuisines == frozenset({"thai", "indian"})


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    def test_to_offset(self):
        assert to_offset(1, 24) == 0
        assert to_offset(2, 10) == 10
        assert to_offset(0, 10) == 0

    def test_split_csv(self):
        assert split_csv(" a, b ,,c ") == ["a", "b", "c"]
        assert split_csv(None) == []
        assert split_csv("") == []

    def test_split_csv_list(self):
        assert split_csv(["a", " b,c ", ""]) == ["a", "b", "c"]
        assert split_csv(42) == []

    def test_parse_scope_unknown(self):
        assert parse_scope("everything") is SourceScope.ALL
        assert parse_scope(" LOCAL ") is SourceScope.LOCAL_ONLY
        assert parse_scope(SourceScope.EXTERNAL_ONLY) is SourceScope.EXTERNAL_ONLY

    def test_clamp_page_size_default(self):
        assert clamp_page_size(None) == DEFAULT_PAGE_SIZE

    def test_expand_ethnicities_skips_blank(self):
        assert expand_ethnicities(["", "  ", "Cajun"]) == {"cajun"}


# =============================================================================
# HTTP boundary
# =============================================================================


class TestBuildQueryParams:
    def test_minimal(self):
        assert build_query_params(SearchQuery()) == {"pageSize": "24", "offset": "0", "source": "all"}

    def test_full_order_and_encoding(self):
        query = SearchQuery(
            text="pasta",
            cuisines=frozenset({"thai", "italian"}),
            diets=frozenset({"vegan"}),
            meal_types=frozenset({"dinner", "lunch"}),
            max_ready_minutes=30,
            page=3,
            page_size=10,
            source_scope=SourceScope.LOCAL_ONLY,
        )
        params = build_query_params(query)
        assert list(params) == [
            "q", "cuisines", "diets", "mealTypes", "maxReadyMinutes", "pageSize", "offset", "source",
        ]
        assert params["cuisines"] == "italian,thai"
        assert params["mealTypes"] == "dinner,lunch"
        assert params["offset"] == "20"
        assert params["source"] == "local"

    def test_stable_for_equal_queries(self):
        a = SearchQuery(cuisines=frozenset(["b", "a", "c"]))
        b = SearchQuery(cuisines=frozenset(["c", "a", "b"]))
        assert build_query_params(a) == build_query_params(b)


class TestParseQueryParams:
    def test_inverse_of_build(self):
        query = SearchQuery(
            text="pasta",
            cuisines=frozenset({"italian"}),
            diets=frozenset({"vegan"}),
            meal_types=frozenset({"dinner"}),
            max_ready_minutes=30,
            page=2,
            page_size=10,
            source_scope=SourceScope.EXTERNAL_ONLY,
        )
        assert parse_query_params(build_query_params(query)) == query

    def test_splits_and_trims(self):
        query = parse_query_params({"cuisines": " Italian , Thai,", "diets": "Vegan"})
        assert query.cuisines == frozenset({"italian", "thai"})
        assert query.diets == frozenset({"vegan"})

    def test_clamps_silently(self):
        query = parse_query_params({"pageSize": "500", "offset": "-20"})
        assert query.page_size == 50
        assert query.page == 1

    def test_malformed_numbers_defaulted(self):
        query = parse_query_params({"pageSize": "lots", "offset": "x", "maxReadyMinutes": "soon"})
        assert query.page_size == DEFAULT_PAGE_SIZE
        assert query.page == 1
        assert query.max_ready_minutes is None

    def test_offset_to_page(self):
        assert parse_query_params({"pageSize": "10", "offset": "10"}).page == 2
        assert parse_query_params({"pageSize": "10", "offset": "10"}).start_offset is None

    def test_unaligned_offset_kept(self):
        query = parse_query_params({"pageSize": "10", "offset": "5"})
        assert query.offset == 5
        assert query.page == 1
        assert build_query_params(query)["offset"] == "5"

    def test_unknown_source(self):
        assert parse_query_params({"source": "mars"}).source_scope is SourceScope.ALL

    def test_empty(self):
        assert parse_query_params({}) == SearchQuery()

    def test_limit_alias(self):
        assert parse_query_params({"limit": "12"}).page_size == 12
        assert parse_query_params({"limit": "12", "pageSize": "8"}).page_size == 8

    def test_list_values(self):
        query = parse_query_params({"cuisines": ["Italian", "thai,Mexican"], "pageSize": 10, "offset": 20})
        assert query.cuisines == frozenset({"italian", "thai", "mexican"})
        assert query.page == 3

    def test_compliance_round_trip(self):
        query = parse_query_params({"compliance": "Halal,kosher"})
        assert query.compliance == frozenset({"halal", "kosher"})
        assert build_query_params(query)["compliance"] == "halal,kosher"
        assert parse_query_params(build_query_params(query)) == query
