"""Plain-text helpers shared by the summarizer and the call matcher."""

import re

from rapidfuzz.distance import Levenshtein

# Only tag-shaped spans; a decoded "a < b > c" is text, not markup
_TAG_RE = re.compile(r"</?[A-Za-z][^<>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

# Named entities Miro emits in rich-text item content
_ENTITIES: dict[str, str] = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "#39": "'",
    "apos": "'",
}
_ENTITY_RE = re.compile("&(" + "|".join(_ENTITIES) + ");")

_BULLET_RE = re.compile(r"^[-*•]\s*")
_NUMBERING_RE = re.compile(r"^\d+\.\s*")
_HEADING_RE = re.compile(r"^#{1,6}\s*")


def _clean_once(text: str) -> str:
    text = _TAG_RE.sub("", text)
    text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(1)], text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_text(value: str | None) -> str:
    """Strip markup tags, decode common entities and collapse whitespace.

    Cleaning is repeated until the text stops changing, so entities that
    decode into markup (``&lt;b&gt;``) or into other entities (``&amp;lt;``)
    are fully resolved and the function is idempotent.
    """
    if not value or not isinstance(value, str):
        return ""
    text = value
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (insertions, deletions, substitutions)."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """Return ``1 - edit_distance / max(len)``, in the range [0, 1].

    Two empty strings are identical (1.0); an empty string against a
    non-empty one scores 0.0.
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / longest


def parse_meeting_notes(notes: str) -> list[str]:
    """Split free-form meeting notes into content lines.

    Leading bullets, list numbering and Markdown heading marks are removed;
    lines shorter than three characters are dropped.
    """
    content: list[str] = []
    for line in notes.splitlines():
        stripped = line.strip()
        if len(stripped) < 3:
            continue
        cleaned = _BULLET_RE.sub("", stripped)
        cleaned = _NUMBERING_RE.sub("", cleaned)
        cleaned = _HEADING_RE.sub("", cleaned).strip()
        if cleaned:
            content.append(cleaned)
    return content
