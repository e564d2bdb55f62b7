"""
Recipe domain entities.

NormalizedRecipe is the provider-agnostic record every source is mapped into.
Records are rebuilt for every query and never persisted by this package.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from itertools import chain
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from recipe_search.domain.entities.query import SearchQuery


class RecipeSource(str, Enum):
    """Known record provenances."""

    LOCAL = "local"
    SPOONACULAR = "spoonacular"
    EDAMAM = "edamam"
    THEMEALDB = "themealdb"


# Placeholder for records that arrive without a title
UNTITLED = "Untitled"

_TITLE_NOISE = re.compile(r"[^\w\s]+")
_WHITESPACE = re.compile(r"\s+")
_TAG_WORD = re.compile(r"[^\W_]+")


def normalize_tags(values: Any) -> frozenset[str]:
    """Lower-case, strip and deduplicate a tag list. Anything that is not a list becomes empty."""
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(
        v.strip().lower() for v in values if isinstance(v, str) and v.strip()
    )


def normalize_title(title: str | None) -> str:
    """Title key used for cross-source matching: case-folded, punctuation and spacing collapsed."""
    text = _TITLE_NOISE.sub(" ", (title or "").casefold())
    return _WHITESPACE.sub(" ", text).strip()


def safe_int(value: Any, *, minimum: int | None = 0) -> int | None:
    """Coerce to int; None for missing, non-numeric or below ``minimum`` (no bound when None)."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None
    if minimum is not None and number < minimum:
        return None
    return number


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number == number else None  # NaN


def clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


@dataclass(frozen=True)
class NormalizedRecipe:
    """Provider-agnostic recipe record."""

    id: str
    title: str
    source: str
    image: str | None = None
    ready_in_minutes: int | None = None
    servings: int | None = None
    cuisines: frozenset[str] = field(default_factory=frozenset)
    diets: frozenset[str] = field(default_factory=frozenset)
    meal_types: frozenset[str] = field(default_factory=frozenset)
    rating: float | None = None
    url: str | None = None
    author: str | None = None
    ingredients: tuple[str, ...] = ()
    instructions: tuple[str, ...] = ()

    @property
    def title_key(self) -> str:
        """Cross-source title key; empty for placeholder titles so they never match each other."""
        if self.title == UNTITLED:
            return ""
        return normalize_title(self.title)

    def to_dict(self) -> dict[str, Any]:
        """JSON wire shape. Tag sets are emitted as sorted lists."""
        return {
            "id": self.id,
            "title": self.title,
            "image": self.image,
            "source": self.source,
            "readyInMinutes": self.ready_in_minutes,
            "cookTime": self.ready_in_minutes,
            "servings": self.servings,
            "cuisines": sorted(self.cuisines),
            "diets": sorted(self.diets),
            "mealTypes": sorted(self.meal_types),
            "rating": self.rating,
            "url": self.url,
            "author": self.author,
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source: str | None = None) -> NormalizedRecipe:
        """
        Build a record from a loosely shaped dict (local store rows, seed data).

        Accepts both ``readyInMinutes`` and ``cookTime`` and both plural and
        singular tag keys.
        """
        ready = data.get("readyInMinutes", data.get("cookTime", data.get("ready_in_minutes")))
        return cls(
            id=str(data["id"]),
            title=clean_text(data.get("title")) or UNTITLED,
            source=str(source or data.get("source") or RecipeSource.LOCAL.value),
            image=clean_text(data.get("image") or data.get("imageUrl")),
            ready_in_minutes=safe_int(ready),
            servings=safe_int(data.get("servings"), minimum=1),
            cuisines=normalize_tags(data.get("cuisines", data.get("cuisine"))),
            diets=normalize_tags(data.get("diets", data.get("dietTags"))),
            meal_types=normalize_tags(
                data.get("mealTypes", data.get("meal_types", data.get("mealType")))
            ),
            rating=safe_float(data.get("rating")),
            url=clean_text(data.get("url")),
            author=clean_text(data.get("author")),
            ingredients=_text_tuple(data.get("ingredients")),
            instructions=_text_tuple(data.get("instructions")),
        )


def _text_tuple(values: Any) -> tuple[str, ...]:
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        return ()
    return tuple(v.strip() for v in values if isinstance(v, str) and v.strip())


def _tag_words(tag: str) -> frozenset[str]:
    return frozenset(_TAG_WORD.findall(tag))


def _tags_match(record_tags: frozenset[str], wanted: frozenset[str]) -> bool:
    # Unknown tags never exclude a record.
    if not wanted or not record_tags:
        return True
    # Whole words only: "main" matches "main course", "asian" does not match "caucasian"
    record_words = [_tag_words(tag) for tag in record_tags]
    for w in wanted:
        words = _tag_words(w)
        if words and any(words <= tag_words for tag_words in record_words):
            return True
    return False


def recipe_matches(recipe: NormalizedRecipe, query: SearchQuery) -> bool:
    """
    Record-level filter for sources that cannot filter server-side.

    Text matches title, ingredients, instructions and tags (substring,
    case-insensitive). Tag filters compare whole words, OR within a field
    and AND across fields; a record with no tags on an axis is kept. A missing cook time
    passes the ``max_ready_minutes`` ceiling.
    """
    if query.text:
        haystack = " ".join(
            chain(
                [recipe.title],
                recipe.ingredients,
                recipe.instructions,
                recipe.cuisines,
                recipe.diets,
                recipe.meal_types,
            )
        ).lower()
        if query.text.lower() not in haystack:
            return False

    if not _tags_match(recipe.cuisines, query.cuisines):
        return False
    if not _tags_match(recipe.diets, query.diets):
        return False
    if not _tags_match(recipe.meal_types, query.meal_types):
        return False

    if query.max_ready_minutes is not None and recipe.ready_in_minutes is not None:
        if recipe.ready_in_minutes > query.max_ready_minutes:
            return False

    return True

