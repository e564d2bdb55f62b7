"""
Search application services.

- query_translator: UI filter state / HTTP params <-> SearchQuery
- result_aggregator: cross-source merge and dedup
- service: the aggregation façade
"""

from .query_translator import (
    UIFilterState,
    build_query_params,
    parse_query_params,
    to_offset,
    translate,
)
from .result_aggregator import AggregationStats, DedupStrategy, RecipeAggregator, merge_recipes
from .service import RecipeSearchService

__all__ = [
    "AggregationStats",
    "DedupStrategy",
    "RecipeAggregator",
    "RecipeSearchService",
    "UIFilterState",
    "build_query_params",
    "merge_recipes",
    "parse_query_params",
    "to_offset",
    "translate",
]
