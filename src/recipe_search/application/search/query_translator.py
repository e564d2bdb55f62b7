"""
Query Translator - UI filter state and HTTP parameters to SearchQuery.

Two directions share one set of coercion rules:

    UIFilterState ──translate()──────────▶ SearchQuery ──build_query_params()──▶ ?q=&cuisines=...
    ?q=&cuisines=... ──parse_query_params()──▶ SearchQuery

Invalid shapes are corrected, never rejected:
- whitespace-only text means "no text filter"
- page_size is clamped into [1, max_page_size], page to >= 1
- non-positive or malformed numbers are dropped
- unknown source scopes fall back to "all"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from recipe_search.domain.entities.query import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SearchQuery,
    SourceScope,
)
from recipe_search.domain.entities.recipe import clean_text, normalize_tags, safe_int

logger = logging.getLogger(__name__)

# Ethnicity facet labels that map onto several provider cuisines.
# Labels not listed here are used verbatim (lower-cased).
ETHNICITY_TO_CUISINES: dict[str, tuple[str, ...]] = {
    "southern / soul food": ("southern", "american"),
    "cajun": ("cajun",),
    "creole": ("creole",),
    "levantine (palestinian/lebanese/syrian/jordanian)": (
        "lebanese",
        "syrian",
        "jordanian",
        "palestinian",
        "middle eastern",
    ),
}


@dataclass
class UIFilterState:
    """Filter state as the recipes page holds it."""

    search: str = ""
    cuisines: list[str] = field(default_factory=list)
    ethnicities: list[str] = field(default_factory=list)
    dietary: list[str] = field(default_factory=list)
    meal_types: list[str] = field(default_factory=list)
    compliance: list[str] = field(default_factory=list)
    max_cook_time: int | float | str | None = None
    page: int | str | None = 1
    page_size: int | str | None = DEFAULT_PAGE_SIZE
    source: str = SourceScope.ALL.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UIFilterState:
        """Accept the camelCase keys the web client persists (``selectedCuisines`` etc.)."""

        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            search=pick("search", "q", "text", default=""),
            cuisines=_as_list(pick("selectedCuisines", "cuisines")),
            ethnicities=_as_list(pick("selectedEthnicities", "ethnicities")),
            dietary=_as_list(pick("selectedDietary", "dietary", "diets")),
            meal_types=_as_list(pick("selectedMealTypes", "mealTypes", "meal_types")),
            compliance=_as_list(pick("selectedCompliance", "compliance")),
            max_cook_time=pick("maxCookTime", "max_cook_time", "maxReadyMinutes"),
            page=pick("page", default=1),
            page_size=pick("pageSize", "page_size", default=DEFAULT_PAGE_SIZE),
            source=pick("source", default=SourceScope.ALL.value),
        )


# =============================================================================
# Coercion helpers
# =============================================================================


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_csv(value)
    return list(value)


def split_csv(value: str | Iterable[str] | None) -> list[str]:
    """
    Split a comma-joined parameter, trimming whitespace and dropping empties.

    A list (repeated query keys, JSON arrays) is flattened, each entry split
    on commas in turn.
    """
    if isinstance(value, str):
        chunks: Iterable[Any] = [value]
    elif isinstance(value, (list, tuple)):
        chunks = value
    else:
        return []
    return [
        part.strip()
        for chunk in chunks
        if isinstance(chunk, str)
        for part in chunk.split(",")
        if part.strip()
    ]


def clamp_page_size(value: Any, max_page_size: int = MAX_PAGE_SIZE) -> int:
    size = safe_int(value, minimum=None)
    if size is None:
        size = DEFAULT_PAGE_SIZE
    return max(1, min(max_page_size, size))


def clamp_page(value: Any) -> int:
    page = safe_int(value, minimum=None)
    return max(1, page if page is not None else 1)


def positive_or_none(value: Any) -> int | None:
    return safe_int(value, minimum=1)


def to_offset(page: int, page_size: int) -> int:
    """1-based page to 0-based offset."""
    return max(0, (page - 1) * page_size)


def parse_scope(value: Any) -> SourceScope:
    if isinstance(value, SourceScope):
        return value
    try:
        return SourceScope(str(value).strip().lower())
    except ValueError:
        logger.debug(f"Unknown source scope {value!r}, using 'all'")
        return SourceScope.ALL


def expand_ethnicities(labels: Iterable[str]) -> set[str]:
    cuisines: set[str] = set()
    for label in labels:
        if not isinstance(label, str) or not label.strip():
            continue
        key = label.strip().lower()
        cuisines.update(ETHNICITY_TO_CUISINES.get(key, (key,)))
    return cuisines


# =============================================================================
# Translation
# =============================================================================


def translate(state: UIFilterState | Mapping[str, Any], *, max_page_size: int = MAX_PAGE_SIZE) -> SearchQuery:
    """
    Map UI filter state to a SearchQuery.

    The ethnicity facet is folded into ``cuisines`` (union, deduplicated);
    the engine has a single cuisine axis.
    """
    if not isinstance(state, UIFilterState):
        state = UIFilterState.from_dict(state)

    cuisines = set(normalize_tags(state.cuisines)) | expand_ethnicities(state.ethnicities)

    return SearchQuery(
        text=clean_text(state.search),
        cuisines=frozenset(cuisines),
        diets=normalize_tags(state.dietary),
        meal_types=normalize_tags(state.meal_types),
        compliance=normalize_tags(state.compliance),
        max_ready_minutes=positive_or_none(state.max_cook_time),
        page=clamp_page(state.page),
        page_size=clamp_page_size(state.page_size, max_page_size),
        source_scope=parse_scope(state.source),
    )


def build_query_params(query: SearchQuery) -> dict[str, str]:
    """
    Encode a SearchQuery as HTTP query parameters.

    Key order is fixed and inactive filters are omitted, so the resulting
    query string is a stable identity for the query.
    """
    params: dict[str, str] = {}
    if query.text:
        params["q"] = query.text
    if query.cuisines:
        params["cuisines"] = ",".join(sorted(query.cuisines))
    if query.diets:
        params["diets"] = ",".join(sorted(query.diets))
    if query.meal_types:
        params["mealTypes"] = ",".join(sorted(query.meal_types))
    if query.compliance:
        params["compliance"] = ",".join(sorted(query.compliance))
    if query.max_ready_minutes:
        params["maxReadyMinutes"] = str(query.max_ready_minutes)
    params["pageSize"] = str(query.page_size)
    params["offset"] = str(query.offset)
    params["source"] = query.source_scope.value
    return params


def parse_query_params(params: Mapping[str, Any], *, max_page_size: int = MAX_PAGE_SIZE) -> SearchQuery:
    """
    Server-side inverse of ``build_query_params``.

    List parameters may be comma-joined strings or lists of them. ``limit``
    is accepted in place of ``pageSize``.

    ``offset`` is converted back to a 1-based page. An offset that is not a
    multiple of ``pageSize`` is kept verbatim in ``start_offset`` so the
    slice starts exactly there.
    """
    raw_size = params.get("pageSize")
    if raw_size is None:
        raw_size = params.get("limit")
    page_size = clamp_page_size(raw_size, max_page_size)
    offset = safe_int(params.get("offset"), minimum=0) or 0

    return SearchQuery(
        text=clean_text(params.get("q")),
        cuisines=normalize_tags(split_csv(params.get("cuisines"))),
        diets=normalize_tags(split_csv(params.get("diets"))),
        meal_types=normalize_tags(split_csv(params.get("mealTypes"))),
        compliance=normalize_tags(split_csv(params.get("compliance"))),
        max_ready_minutes=positive_or_none(params.get("maxReadyMinutes")),
        page=offset // page_size + 1,
        page_size=page_size,
        source_scope=parse_scope(params.get("source", SourceScope.ALL.value)),
        start_offset=offset if offset % page_size else None,
    )
