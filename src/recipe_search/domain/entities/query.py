"""
Search query and response envelope.

A SearchQuery is built fresh per request (see query_translator) and is
immutable once dispatched.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from recipe_search.domain.entities.recipe import NormalizedRecipe

DEFAULT_PAGE_SIZE = 24
MAX_PAGE_SIZE = 50


class SourceScope(str, Enum):
    """Which sources a search is dispatched to."""

    ALL = "all"
    LOCAL_ONLY = "local"
    EXTERNAL_ONLY = "external"

    @property
    def includes_local(self) -> bool:
        return self is not SourceScope.EXTERNAL_ONLY

    @property
    def includes_external(self) -> bool:
        return self is not SourceScope.LOCAL_ONLY


@dataclass(frozen=True)
class SearchQuery:
    """
    Normalized search request.

    Tag sets are OR-combined within a field and AND-combined across fields.
    Empty sets and ``None`` mean "no constraint".
    """

    text: str | None = None
    cuisines: frozenset[str] = field(default_factory=frozenset)
    diets: frozenset[str] = field(default_factory=frozenset)
    meal_types: frozenset[str] = field(default_factory=frozenset)
    # Halal, kosher and similar; carried through to the request, not filtered on
    compliance: frozenset[str] = field(default_factory=frozenset)
    max_ready_minutes: int | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    source_scope: SourceScope = SourceScope.ALL
    # Set only when a caller asked for an offset that is not on a page boundary
    start_offset: int | None = None

    @property
    def offset(self) -> int:
        """0-based offset of the first record on this page."""
        if self.start_offset is not None:
            return self.start_offset
        return (self.page - 1) * self.page_size

    def to_dict(self) -> dict[str, Any]:
        """Stable serialization: fixed key order, sorted tags."""
        return {
            "text": self.text,
            "cuisines": sorted(self.cuisines),
            "diets": sorted(self.diets),
            "mealTypes": sorted(self.meal_types),
            "compliance": sorted(self.compliance),
            "maxReadyMinutes": self.max_ready_minutes,
            "page": self.page,
            "pageSize": self.page_size,
            "offset": self.offset,
            "source": self.source_scope.value,
        }

    def cache_key(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


@dataclass
class SearchResponse:
    """Paginated envelope returned by the aggregation façade."""

    results: list[NormalizedRecipe]
    total: int
    source: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "total": self.total,
            "source": self.source,
        }
