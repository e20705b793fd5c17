"""Data models for board content, recorded calls and analysis results."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Miro
# ---------------------------------------------------------------------------


class MiroItem(BaseModel):
    """A single widget on a Miro board, as returned by the items endpoint."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    type: str
    data: dict[str, Any] | None = None
    position: dict[str, Any] | None = None
    style: dict[str, Any] | None = None
    geometry: dict[str, Any] | None = None
    parent: dict[str, Any] | None = None
    is_supported: bool | None = Field(default=None, alias="isSupported")


class Position(BaseModel):
    """Board coordinates of an item's centre."""

    x: float
    y: float


class BoardInfo(BaseModel):
    """Board metadata together with its items."""

    id: str
    name: str = ""
    description: str | None = None
    items: list[MiroItem] = []


# ---------------------------------------------------------------------------
# Gong
# ---------------------------------------------------------------------------


class CallRecord(BaseModel):
    """A recorded call. Read-only: matching only looks at ``title``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    title: str = ""
    url: str | None = None
    started: datetime | None = None
    primary_user_id: str | None = Field(default=None, alias="primaryUserId")
    duration: int | None = None
    parties: list[Any] = []


MatchType = Literal["exact", "fuzzy"]


class MatchResult(BaseModel):
    """A call whose title matched a customer-name query."""

    call: CallRecord
    match_type: MatchType
    score: int
    selection_number: int = 0


# ---------------------------------------------------------------------------
# Content analysis
# ---------------------------------------------------------------------------


class SummaryStats(BaseModel):
    total: int = 0
    summarized: int = 0
    skipped: int = 0


class ContentSummary(BaseModel):
    """Deduplicated, relevance-ordered content items."""

    summary: list[str] = []
    stats: SummaryStats = SummaryStats()


class TemplateEntry(BaseModel):
    """A reusable board template offered for a category."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    description: str = ""


class Category(BaseModel):
    """A named keyword cluster with its template catalog."""

    model_config = ConfigDict(frozen=True)

    key: str
    keywords: tuple[str, ...] = Field(min_length=1)
    weight: float = 1.0
    description: str = ""
    templates: tuple[TemplateEntry, ...] = ()


class CategoryScore(BaseModel):
    category: str
    matches: int
    score: float


class CategoryAnalysis(BaseModel):
    """Keywords found in a block of text and the categories they rank."""

    keywords: list[str] = []
    categories: list[str] = []
    context: str = ""
    scores: list[CategoryScore] = []


class TemplateRecommendation(BaseModel):
    name: str
    url: str
    description: str
    category: str
    relevance_score: float
    link: str
