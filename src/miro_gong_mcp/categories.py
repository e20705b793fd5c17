"""Keyword matching of content against the template category taxonomy."""

import math
from enum import Enum
from typing import Iterable

from .taxonomy import Taxonomy, load_taxonomy
from .types import CategoryAnalysis, CategoryScore

GENERAL_CONTEXT = "General collaborative work"
CONTEXT_PREFIX = "Content appears to focus on: "
CONTEXT_CATEGORY_LIMIT = 3


class ScoringMode(str, Enum):
    """How matched keywords turn into a category score.

    ``count`` ranks by the raw number of matched keywords.  ``weighted``
    multiplies that count by the category weight and rounds up, so that a
    heavier category wins a tie in raw matches.
    """

    COUNT = "count"
    WEIGHTED = "weighted"


def _category_score(matches: int, weight: float, mode: ScoringMode) -> float:
    if mode is ScoringMode.COUNT:
        return float(matches)
    # round() first so that 5 * 1.2 == 6.000000000000001 does not ceil to 7
    return float(math.ceil(round(matches * weight, 9)))


def describe_context(categories: list[str], taxonomy: Taxonomy) -> str:
    """Human-readable summary of the top-ranked categories."""
    names = [
        name
        for name in (taxonomy.display_name(c) for c in categories[:CONTEXT_CATEGORY_LIMIT])
        if name
    ]
    if not names:
        return GENERAL_CONTEXT
    return CONTEXT_PREFIX + ", ".join(names)


def analyze_categories(
    content: Iterable[str],
    taxonomy: Taxonomy | None = None,
    mode: ScoringMode | str = ScoringMode.WEIGHTED,
) -> CategoryAnalysis:
    """Score *content* against every category of *taxonomy*.

    A keyword matches when it occurs as a case-insensitive substring of the
    joined content.  Categories with at least one match are ranked by score,
    descending, ties keeping the taxonomy's declaration order.
    """
    taxonomy = taxonomy or load_taxonomy()
    mode = ScoringMode(mode)
    text = " ".join(c for c in content if isinstance(c, str)).lower()

    found: dict[str, None] = {}
    scores: list[CategoryScore] = []
    for category in taxonomy.categories:
        matching = [k for k in category.keywords if k in text]
        if not matching:
            continue
        found.update(dict.fromkeys(matching))
        scores.append(
            CategoryScore(
                category=category.key,
                matches=len(matching),
                score=_category_score(len(matching), category.weight, mode),
            )
        )

    scores.sort(key=lambda s: s.score, reverse=True)
    ranked = [s.category for s in scores]

    return CategoryAnalysis(
        keywords=list(found),
        categories=ranked,
        context=describe_context(ranked, taxonomy),
        scores=scores,
    )
