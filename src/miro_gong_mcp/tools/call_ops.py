"""MCP tools for finding and inspecting Gong calls."""

import json
from datetime import tzinfo
from typing import Annotated, Any

from fastmcp import Context
from fastmcp.exceptions import ToolError
from pydantic import Field

from miro_gong_mcp.call_matcher import match_calls, search_hint
from miro_gong_mcp.clients.gong import GongClient
from miro_gong_mcp.config import Config
from miro_gong_mcp.errors import UpstreamError
from miro_gong_mcp.server import mcp
from miro_gong_mcp.timezone import (
    default_search_range,
    format_call_date,
    format_duration,
    parse_date,
)
from miro_gong_mcp.types import MatchResult

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_state(ctx: Context) -> tuple[GongClient, Config, tzinfo]:
    lc: dict[str, Any] = ctx.request_context.lifespan_context
    gong: GongClient | None = lc["gong"]
    if gong is None:
        raise ToolError("Gong is not configured: set GONG_KEY and GONG_SECRET")
    return gong, lc["config"], lc["tz"]


def _format_match(match: MatchResult, tz: tzinfo) -> dict[str, Any]:
    call = match.call
    return {
        "selection_number": match.selection_number,
        "call_id": call.id,
        "title": call.title,
        "date": format_call_date(call.started, tz),
        "duration": format_duration(call.duration),
        "participants": len(call.parties),
        "match_type": match.match_type,
        "score": match.score,
        "url": call.url,
    }


async def _search(
    ctx: Context,
    customer_name: str,
    from_date: str | None,
    to_date: str | None,
) -> dict[str, Any]:
    gong, config, tz = _get_state(ctx)

    start, end = default_search_range(tz, config.search_lookback_months)
    try:
        if from_date:
            start = parse_date(from_date, tz)
        if to_date:
            end = parse_date(to_date, tz, end_of_day=True)
    except ValueError as e:
        raise ToolError(f"Invalid date: {e}") from e

    try:
        calls = await gong.list_calls(start, end)
    except UpstreamError as e:
        raise ToolError(str(e)) from e

    matches = match_calls(calls, customer_name)
    return {
        "search_query": customer_name,
        "date_range": {"from": start.isoformat(), "to": end.isoformat()},
        "total_calls_in_range": len(calls),
        "matches_found": len(matches),
        "matches": [_format_match(m, tz) for m in matches],
        "user_instructions": search_hint(len(matches)),
    }


_TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}

_FromDate = Annotated[
    str | None,
    Field(description="Start date (ISO 8601). Defaults to two months ago."),
]
_ToDate = Annotated[
    str | None,
    Field(description="End date (ISO 8601). Defaults to today."),
]

_NEXT_STEPS = (
    "You can now use 'get_gong_call_details' with this callId to get "
    "highlights and key points."
)

# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def search_gong_calls(
    customer_name: Annotated[
        str, Field(description="Customer name to search for in call titles", min_length=1)
    ],
    ctx: Context,
    from_date: _FromDate = None,
    to_date: _ToDate = None,
) -> str:
    """Search Gong calls by customer name and date range.

    Returns numbered matches so a specific call can be picked with
    ``select_gong_call``.
    """
    return json.dumps(await _search(ctx, customer_name, from_date, to_date), indent=2)


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def select_gong_call(
    ctx: Context,
    call_id: Annotated[str | None, Field(description="Gong call ID to select")] = None,
    selection_number: Annotated[
        int | None,
        Field(description="Selection number from search results (1, 2, 3, ...)", ge=1),
    ] = None,
    customer_name: Annotated[
        str | None,
        Field(description="Customer name used in the search (with selection_number)"),
    ] = None,
    from_date: _FromDate = None,
    to_date: _ToDate = None,
) -> str:
    """Select a call by its ID or by its number in a previous search."""
    if selection_number is not None and customer_name:
        result = await _search(ctx, customer_name, from_date, to_date)
        matches = result["matches"]
        if not 1 <= selection_number <= len(matches):
            if not matches:
                raise ToolError(f"No calls match '{customer_name}'.")
            raise ToolError(
                f"Selection number {selection_number} not found. "
                f"Please use a number between 1 and {len(matches)}."
            )
        selected = matches[selection_number - 1]
        return json.dumps(
            {
                "selected_call": {
                    k: selected[k]
                    for k in ("call_id", "title", "date", "duration", "participants", "url")
                },
                "message": f'Selected call: "{selected["title"]}" from {selected["date"]}',
                "next_steps": _NEXT_STEPS,
            },
            indent=2,
        )

    if call_id:
        gong, _config, tz = _get_state(ctx)
        try:
            call = await gong.get_call(call_id)
        except UpstreamError as e:
            raise ToolError(f"Call with ID {call_id} not found or not accessible: {e}") from e
        return json.dumps(
            {
                "selected_call": {
                    "call_id": call.id,
                    "title": call.title,
                    "date": format_call_date(call.started, tz),
                    "duration": format_duration(call.duration),
                    "participants": len(call.parties),
                    "url": call.url,
                },
                "message": f'Selected call: "{call.title}"',
                "next_steps": _NEXT_STEPS,
            },
            indent=2,
        )

    raise ToolError("Please provide either a call_id or selection_number with customer_name.")


@mcp.tool(annotations=_TOOL_ANNOTATIONS)
async def get_gong_call_details(
    call_id: Annotated[str, Field(description="The Gong call ID")],
    ctx: Context,
) -> str:
    """Fetch the brief, outline, highlights and key points of a Gong call."""
    gong, _config, _tz = _get_state(ctx)
    try:
        details = await gong.get_call_details(call_id)
    except UpstreamError as e:
        raise ToolError(str(e)) from e
    return json.dumps(details, indent=2, default=str)
