"""
RecipeAggregator - Multi-Source Result Merging

Combines the normalized lists returned by the local store and every provider
adapter into one deduplicated list.

Architecture Decision:
    RecipeAggregator operates on NormalizedRecipe objects only.
    It does NOT make API calls - purely processes existing results.

    Merging is first-seen-wins over the lists in caller priority order and
    keeps the order of first appearance. Nothing is re-sorted or scored:
    provider ratings are not comparable across sources.

Dedup keys:
    ID        - ``id`` alone. Adapters qualify external ids with the provider
                name ("spoonacular:716429"), so only a record that deliberately
                carries another record's id (a local copy of an external
                recipe) is treated as the same recipe.
    SOURCE_ID - ``(source, id)``; nothing is merged across sources.
    TITLE     - ``id`` plus the normalized title; catches the same dish
                published by several providers under different ids.

Example:
    >>> aggregator = RecipeAggregator()
    >>> merged, stats = aggregator.aggregate([local, spoonacular, edamam])
    >>> stats.duplicates_removed
    3
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from recipe_search.domain.entities.recipe import NormalizedRecipe

logger = logging.getLogger(__name__)


class DedupStrategy(Enum):
    """
    Strategy for deciding that two records are the same recipe.

    ID: Same ``id`` (default)
    SOURCE_ID: Same ``(source, id)`` pair
    TITLE: Same ``id`` or same normalized title
    """

    ID = "id"
    SOURCE_ID = "source_id"
    TITLE = "title"


@dataclass
class AggregationStats:
    """Statistics from aggregation process."""

    total_input: int = 0
    unique_records: int = 0
    duplicates_removed: int = 0
    by_source: dict[str, int] = field(default_factory=dict)
    dedup_by_id: int = 0
    dedup_by_title: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_input": self.total_input,
            "unique_records": self.unique_records,
            "duplicates_removed": self.duplicates_removed,
            "by_source": self.by_source,
            "dedup_by_id": self.dedup_by_id,
            "dedup_by_title": self.dedup_by_title,
        }


class RecipeAggregator:
    """
    Merges recipe lists from multiple sources.

    Responsibilities:
    1. Deduplicate records across sources by the configured key
    2. Keep the first-seen record (earlier lists win)
    3. Preserve order of first appearance

    Usage:
        aggregator = RecipeAggregator(DedupStrategy.TITLE)
        merged = aggregator.merge([local_results, provider_results])
    """

    def __init__(self, strategy: DedupStrategy = DedupStrategy.ID):
        self._strategy = strategy

    @property
    def strategy(self) -> DedupStrategy:
        return self._strategy

    def dedup_key(self, recipe: NormalizedRecipe) -> Hashable:
        """Primary dedup key of a record under the current strategy."""
        if self._strategy is DedupStrategy.SOURCE_ID:
            return (recipe.source, recipe.id)
        return recipe.id

    def merge(self, record_lists: Sequence[Sequence[NormalizedRecipe]]) -> list[NormalizedRecipe]:
        """Deduplicate ``record_lists`` (highest priority first) into one list."""
        merged, _ = self.aggregate(record_lists)
        return merged

    def aggregate(
        self,
        record_lists: Sequence[Sequence[NormalizedRecipe]],
        strategy: DedupStrategy | None = None,
    ) -> tuple[list[NormalizedRecipe], AggregationStats]:
        """
        Aggregate records from multiple sources.

        Args:
            record_lists: Lists in priority order (earlier lists win ties)
            strategy: Override the configured dedup strategy for this call

        Returns:
            Tuple of (deduplicated records, aggregation statistics)
        """
        if strategy is not None and strategy is not self._strategy:
            return RecipeAggregator(strategy).aggregate(record_lists)

        stats = AggregationStats()
        seen_keys: set[Hashable] = set()
        seen_titles: set[str] = set()
        use_title = self._strategy is DedupStrategy.TITLE
        merged: list[NormalizedRecipe] = []

        for records in record_lists:
            for recipe in records:
                stats.total_input += 1
                stats.by_source[recipe.source] = stats.by_source.get(recipe.source, 0) + 1

                key = self.dedup_key(recipe)
                if key in seen_keys:
                    stats.dedup_by_id += 1
                    continue

                title_key = recipe.title_key if use_title else ""
                if title_key and title_key in seen_titles:
                    stats.dedup_by_title += 1
                    continue

                seen_keys.add(key)
                if title_key:
                    seen_titles.add(title_key)
                merged.append(recipe)

        stats.unique_records = len(merged)
        stats.duplicates_removed = stats.total_input - stats.unique_records

        if stats.duplicates_removed:
            logger.debug(
                f"Merged {stats.total_input} records into {stats.unique_records} "
                f"({stats.dedup_by_id} by id, {stats.dedup_by_title} by title)"
            )

        return merged, stats


def merge_recipes(
    record_lists: Sequence[Sequence[NormalizedRecipe]],
    strategy: DedupStrategy = DedupStrategy.ID,
) -> list[NormalizedRecipe]:
    """Convenience function: merge with a one-off aggregator."""
    return RecipeAggregator(strategy).merge(record_lists)
