"""MCP tools for Miro board content and template recommendations."""

import json
from typing import Annotated, Any

from fastmcp import Context
from fastmcp.exceptions import ToolError
from pydantic import Field

from miro_gong_mcp.categories import analyze_categories
from miro_gong_mcp.clients.miro import MiroClient, extract_item_text
from miro_gong_mcp.config import Config
from miro_gong_mcp.errors import UpstreamError
from miro_gong_mcp.recommendations import recommend
from miro_gong_mcp.server import mcp
from miro_gong_mcp.summarizer import summarize
from miro_gong_mcp.text import parse_meeting_notes
from miro_gong_mcp.types import CategoryAnalysis, ContentSummary

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _lifespan(ctx: Context) -> dict[str, Any]:
    return ctx.request_context.lifespan_context


def _get_miro(ctx: Context) -> MiroClient:
    miro: MiroClient | None = _lifespan(ctx)["miro"]
    if miro is None:
        raise ToolError("Miro is not configured: set MIRO_ACCESS_TOKEN")
    return miro


async def _board_content(ctx: Context, board_id: str) -> list[str]:
    try:
        return await _get_miro(ctx).get_board_content(board_id)
    except UpstreamError as e:
        raise ToolError(str(e)) from e


def _analyze(
    ctx: Context, content: list[str], max_items: int | None = None
) -> tuple[ContentSummary, CategoryAnalysis]:
    lc = _lifespan(ctx)
    config: Config = lc["config"]
    summary = summarize(
        content, config.summary_max_items if max_items is None else max_items
    )
    analysis = analyze_categories(
        summary.summary, taxonomy=lc["taxonomy"], mode=config.scoring_mode
    )
    return summary, analysis


def _dump(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, default=str)


_TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}

_BoardId = Annotated[str, Field(description="The Miro board ID (e.g. uXjVKMOJbXg=)")]
_ItemType = Annotated[
    str | None,
    Field(description="Only items of this type (text, sticky_note, card, frame, shape)"),
]

# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def get_board_content(
    board_id: _BoardId,
    ctx: Context,
    item_type: _ItemType = None,
) -> str:
    """Get all text content from a Miro board as a list of strings."""
    if not item_type:
        return _dump({"board_id": board_id, "content": await _board_content(ctx, board_id)})

    try:
        items = await _get_miro(ctx).get_items_by_type(board_id, item_type)
    except UpstreamError as e:
        raise ToolError(str(e)) from e
    content = [text for text in map(extract_item_text, items) if text]
    return _dump({"board_id": board_id, "item_type": item_type, "content": content})


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def get_all_items(
    board_id: _BoardId,
    ctx: Context,
    item_type: _ItemType = None,
) -> str:
    """Get every item on a Miro board (not just text), optionally of one type."""
    miro = _get_miro(ctx)
    try:
        if item_type:
            items = await miro.get_items_by_type(board_id, item_type)
        else:
            items = (await miro.get_board_info(board_id)).items
    except UpstreamError as e:
        raise ToolError(str(e)) from e
    return _dump(
        {
            "board_id": board_id,
            "count": len(items),
            "items": [i.model_dump(by_alias=True, exclude_none=True) for i in items],
        }
    )


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def get_board_analysis(
    board_id: _BoardId,
    ctx: Context,
    max_items: Annotated[
        int | None,
        Field(description="Maximum number of summarized items", ge=1, le=100),
    ] = None,
) -> str:
    """Summarize a Miro board's content and identify what it is about."""
    content = await _board_content(ctx, board_id)
    summary, analysis = _analyze(ctx, content, max_items)
    return _dump(
        {
            "board_id": board_id,
            "content_summary": {
                "item_count": len(content),
                "items": summary.summary,
                "stats": summary.stats.model_dump(),
            },
            "analysis": analysis.model_dump(),
        }
    )


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def recommend_templates(
    ctx: Context,
    board_id: Annotated[
        str | None, Field(description="The Miro board ID to analyze")
    ] = None,
    meeting_notes: Annotated[
        str | None, Field(description="Meeting notes text to analyze")
    ] = None,
    max_recommendations: Annotated[
        int, Field(description="Maximum number of recommendations", ge=1, le=50)
    ] = 5,
    per_category: Annotated[
        int | None, Field(description="Maximum templates offered per category", ge=1)
    ] = None,
) -> str:
    """Recommend Miro templates from a board's content or from meeting notes."""
    if board_id:
        content = await _board_content(ctx, board_id)
        content_type = "miro_board"
    elif meeting_notes and meeting_notes.strip():
        content = parse_meeting_notes(meeting_notes)
        content_type = "meeting_notes"
    else:
        raise ToolError("Please provide either a Miro board ID or meeting notes text.")

    lc = _lifespan(ctx)
    config: Config = lc["config"]
    summary, analysis = _analyze(ctx, content)
    recommendations = recommend(
        analysis.categories,
        analysis.keywords,
        max_recommendations=max_recommendations,
        per_category=per_category if per_category is not None else config.templates_per_category,
        taxonomy=lc["taxonomy"],
    )

    payload: dict[str, Any] = {"content_type": content_type}
    if board_id:
        payload["board_id"] = board_id
    payload["analysis"] = {
        "keywords": analysis.keywords,
        "categories": analysis.categories,
        "context": analysis.context,
    }
    if content_type == "meeting_notes":
        payload["analysis"]["extracted_content"] = summary.summary
    payload["recommendations"] = [r.model_dump() for r in recommendations]
    return _dump(payload)
