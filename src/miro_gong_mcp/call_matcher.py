"""Match a customer name against recorded call titles."""

import math
import re
from datetime import timezone

from .text import similarity
from .types import CallRecord, MatchResult

EXACT_SCORE = 100
SUBSTRING_SCORE = 90
FUZZY_SCORE_CAP = 85
POINTS_PER_WORD = 20
COVERAGE_POINTS = 30

WORD_SIMILARITY = 0.8
LOOSE_WORD_SIMILARITY = 0.7

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_title(text: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    text = _NON_WORD_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def exact_match(title: str, query: str) -> bool:
    """Whole-word, case-insensitive occurrence of *query* in *title*."""
    pattern = re.compile(rf"\b{re.escape(query.strip())}\b", re.IGNORECASE)
    return pattern.search(title) is not None


def fuzzy_match(title: str, query: str) -> bool:
    """Looser title match used when no call matches exactly.

    Accepts a normalized substring match, a title containing every query
    word (by substring in either direction or similarity above 0.8), or any
    pair of words of three or more characters with similarity above 0.7.
    """
    norm_title = normalize_title(title)
    norm_query = normalize_title(query)
    if not norm_query:
        return False
    if norm_query in norm_title:
        return True

    title_words = [w for w in norm_title.split() if len(w) > 1]
    query_words = [w for w in norm_query.split() if len(w) > 1]

    if query_words and all(
        any(
            q in t or t in q or similarity(t, q) > WORD_SIMILARITY
            for t in title_words
        )
        for q in query_words
    ):
        return True

    for q in query_words:
        if len(q) < 3:
            continue
        for t in title_words:
            if len(t) >= 3 and similarity(t, q) > LOOSE_WORD_SIMILARITY:
                return True
    return False


def match_score(title: str, query: str) -> int:
    """Confidence (0-85, or 90 for a substring) of a fuzzy title match."""
    norm_title = normalize_title(title)
    norm_query = normalize_title(query)
    if not norm_query:
        return 0
    if norm_query in norm_title:
        return SUBSTRING_SCORE

    title_words = norm_title.split()
    query_words = norm_query.split()
    matched = sum(
        1 for q in query_words if any(q in t or t in q for t in title_words)
    )
    score = matched * POINTS_PER_WORD + COVERAGE_POINTS * matched / len(query_words)
    # half-up rounding
    return min(math.floor(score + 0.5), FUZZY_SCORE_CAP)


def _recency(call: CallRecord) -> float:
    if call.started is None:
        return float("-inf")
    started = call.started
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    return started.timestamp()


def match_calls(calls: list[CallRecord], query: str) -> list[MatchResult]:
    """Find calls whose title refers to *query*.

    Whole-word matches score 100.  Only when there are none does the fuzzy
    fallback run over every call.  Results are ordered by score, then most
    recent first, and numbered from 1 for later selection.
    """
    if not calls or not query or not query.strip():
        return []

    matches = [
        MatchResult(call=call, match_type="exact", score=EXACT_SCORE)
        for call in calls
        if exact_match(call.title, query)
    ]
    if not matches:
        matches = [
            MatchResult(call=call, match_type="fuzzy", score=match_score(call.title, query))
            for call in calls
            if fuzzy_match(call.title, query)
        ]

    matches.sort(key=lambda m: (m.score, _recency(m.call)), reverse=True)
    for number, match in enumerate(matches, start=1):
        match.selection_number = number
    return matches


def search_hint(match_count: int) -> str:
    """Instruction shown to the caller alongside search results."""
    if match_count > 1:
        return (
            "Multiple calls found. Please use 'select_gong_call' with the "
            "selection number or call ID to choose a specific call."
        )
    if match_count == 1:
        return (
            "One call found. You can proceed with this call or use "
            "'select_gong_call' to confirm."
        )
    return "No matching calls found. Try adjusting the customer name or date range."
