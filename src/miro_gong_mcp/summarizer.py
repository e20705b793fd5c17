"""Reduce noisy extracted text to a short, deduplicated, ranked summary."""

import re
from typing import Any, Iterable

from .text import normalize_text, similarity
from .types import ContentSummary, SummaryStats

DEFAULT_MAX_ITEMS = 20

MIN_ITEM_LENGTH = 3
MAX_ITEM_LENGTH = 300
DUPLICATE_THRESHOLD = 0.8

BUSINESS_TERMS: tuple[str, ...] = (
    "project",
    "task",
    "goal",
    "team",
    "strategy",
    "plan",
    "idea",
    "issue",
    "solution",
    "user",
    "customer",
    "feature",
    "requirement",
    "sprint",
    "meeting",
    "action",
    "decision",
    "risk",
    "opportunity",
)

_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
_PUNCTUATION_RE = re.compile(r"^[^\w\s]+$")
_REPEATED_CHAR_RE = re.compile(r"^(.)\1{3,}$")
_PLACEHOLDER_RE = re.compile(r"^(untitled|new|item|text|note|card)\s*\d*$", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^\d+$")


def is_noise(text: str) -> bool:
    """True when *text* (already trimmed) carries no useful content."""
    if len(text) < MIN_ITEM_LENGTH or len(text) > MAX_ITEM_LENGTH:
        return True
    if _URL_RE.match(text):
        return True
    if _PUNCTUATION_RE.match(text):
        return True
    return bool(_REPEATED_CHAR_RE.match(text))


def _filter(items: Iterable[Any]) -> list[str]:
    kept: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        text = normalize_text(item)
        if text and not is_noise(text):
            kept.append(text)
    return kept


def _deduplicate(items: list[str]) -> list[str]:
    # Greedy and order-dependent: the first of a group of near-duplicates wins.
    accepted: list[str] = []
    seen: list[str] = []
    for item in items:
        key = item.strip().lower()
        if any(key == s or similarity(key, s) > DUPLICATE_THRESHOLD for s in seen):
            continue
        accepted.append(item)
        seen.append(key)
    return accepted


def relevance_score(text: str) -> int:
    """Heuristic relevance of a single content item."""
    text = text.strip()
    lowered = text.lower()
    score = 0

    length = len(text)
    if 10 <= length <= 100:
        score += 3
    elif 100 < length <= 200:
        score += 1

    word_count = len(text.split())
    if word_count > 1:
        score += 2
    if word_count >= 4:
        score += 1

    score += 2 * sum(1 for term in BUSINESS_TERMS if term in lowered)

    if "?" in text:
        score += 1
    if _PLACEHOLDER_RE.match(text):
        score -= 5
    if _NUMERIC_RE.match(text):
        score -= 3
    return score


def summarize(items: Iterable[Any], max_items: int = DEFAULT_MAX_ITEMS) -> ContentSummary:
    """Filter, deduplicate and rank raw content items.

    Items that are not strings, are too short or too long, are bare URLs,
    punctuation or a single repeated character are dropped.  Near-duplicates
    (case-insensitive similarity above 0.8) keep only their first occurrence.
    The survivors are ordered by :func:`relevance_score` (stable for ties)
    and truncated to *max_items*.
    """
    items = list(items)
    total = len(items)

    if max_items <= 0:
        return ContentSummary(stats=SummaryStats(total=total, skipped=total))

    unique = _deduplicate(_filter(items))
    ranked = sorted(unique, key=relevance_score, reverse=True)[:max_items]

    return ContentSummary(
        summary=ranked,
        stats=SummaryStats(
            total=total,
            summarized=len(ranked),
            skipped=total - len(ranked),
        ),
    )
