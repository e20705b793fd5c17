"""MCP tools that create, edit and share Miro boards and their items."""

from typing import Annotated, Any, Awaitable, Literal

from fastmcp import Context
from fastmcp.exceptions import ToolError
from pydantic import Field

from miro_gong_mcp.errors import UpstreamError
from miro_gong_mcp.server import mcp
from miro_gong_mcp.tools.board_ops import _dump, _get_miro
from miro_gong_mcp.types import Position

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _run(call: Awaitable[Any]) -> Any:
    try:
        return await call
    except UpstreamError as e:
        raise ToolError(str(e)) from e


async def _create(
    ctx: Context,
    board_id: str,
    item_type: str,
    data: dict[str, Any],
    position: Position,
    geometry: dict[str, Any] | None,
    style: dict[str, Any] | None,
    parent_id: str | None,
) -> str:
    miro = _get_miro(ctx)
    result = await _run(
        miro.create_item(
            board_id, item_type, data, position.model_dump(), geometry, style, parent_id
        )
    )
    return _dump(result)


async def _get(ctx: Context, board_id: str, item_type: str, item_id: str) -> str:
    miro = _get_miro(ctx)
    return _dump(await _run(miro.get_item(board_id, item_type, item_id)))


async def _update(
    ctx: Context,
    board_id: str,
    item_type: str,
    item_id: str,
    data: dict[str, Any] | None,
    style: dict[str, Any] | None,
    geometry: dict[str, Any] | None,
    parent_id: str | None = None,
) -> str:
    if data is None and style is None and geometry is None and not parent_id:
        raise ToolError("Nothing to update: pass data, style, geometry or parent_id.")
    miro = _get_miro(ctx)
    result = await _run(
        miro.update_item(board_id, item_type, item_id, data, style, geometry, parent_id)
    )
    return _dump(result)


async def _delete(ctx: Context, board_id: str, item_type: str, item_id: str) -> str:
    miro = _get_miro(ctx)
    await _run(miro.delete_item(board_id, item_type, item_id))
    return _dump({"board_id": board_id, "item_id": item_id, "deleted": True})


_CREATE_ANNOTATIONS = {
    "readOnlyHint": False,
    "destructiveHint": False,
    "idempotentHint": False,
    "openWorldHint": True,
}
_UPDATE_ANNOTATIONS = {
    "readOnlyHint": False,
    "destructiveHint": True,
    "idempotentHint": True,
    "openWorldHint": True,
}
_READ_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": True,
}

_BoardId = Annotated[str, Field(description="The Miro board ID")]
_ItemId = Annotated[str, Field(description="The item ID")]
_ParentId = Annotated[str | None, Field(description="Frame to place the item in")]
_Data = Annotated[dict[str, Any], Field(description="Item data (content, title, ...)")]
_OptData = Annotated[dict[str, Any] | None, Field(description="Item data to update")]
_Style = Annotated[dict[str, Any] | None, Field(description="Item style")]
_Geometry = Annotated[dict[str, Any] | None, Field(description="Item geometry (width, height)")]

# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_CREATE_ANNOTATIONS)
async def create_miro_board(
    name: Annotated[str, Field(description="Name of the new board", min_length=1)],
    ctx: Context,
    description: Annotated[str | None, Field(description="Board description")] = None,
    sharing_access: Annotated[
        Literal["private", "view", "comment", "edit"] | None,
        Field(description="Access level for people in the team"),
    ] = None,
) -> str:
    """Create a new Miro board and return it."""
    miro = _get_miro(ctx)
    return _dump(await _run(miro.create_board(name, description, sharing_access)))


@mcp.tool(annotations=_CREATE_ANNOTATIONS)
async def share_board(
    board_id: _BoardId,
    emails: Annotated[list[str], Field(description="Email addresses to invite", min_length=1)],
    role: Annotated[
        Literal["viewer", "commenter", "editor"], Field(description="Role of the invitees")
    ],
    ctx: Context,
    message: Annotated[str | None, Field(description="Invitation message")] = None,
) -> str:
    """Invite people to a Miro board by email."""
    miro = _get_miro(ctx)
    return _dump(await _run(miro.share_board(board_id, emails, role, message)))


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def update_item_position_or_parent(
    board_id: _BoardId,
    item_id: _ItemId,
    position: Position,
    ctx: Context,
    parent_id: _ParentId = None,
) -> str:
    """Move any board item, optionally into a frame."""
    miro = _get_miro(ctx)
    result = await _run(
        miro.update_item_position(board_id, item_id, position.model_dump(), parent_id)
    )
    return _dump(result)


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_CREATE_ANNOTATIONS)
async def create_frame(
    board_id: _BoardId,
    title: Annotated[str, Field(description="Frame title")],
    x: Annotated[float, Field(description="X coordinate of the frame centre")],
    y: Annotated[float, Field(description="Y coordinate of the frame centre")],
    width: Annotated[float, Field(description="Frame width", gt=0)],
    height: Annotated[float, Field(description="Frame height", gt=0)],
    ctx: Context,
) -> str:
    """Create a frame on a Miro board."""
    miro = _get_miro(ctx)
    return _dump(await _run(miro.create_frame(board_id, title, x, y, width, height)))


@mcp.tool(annotations=_READ_ANNOTATIONS)
async def get_frame(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Get a frame by ID."""
    return await _get(ctx, board_id, "frame", item_id)


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def update_frame(
    board_id: _BoardId,
    item_id: _ItemId,
    ctx: Context,
    data: _OptData = None,
    style: _Style = None,
    geometry: _Geometry = None,
) -> str:
    """Update a frame's title, style or size."""
    return await _update(ctx, board_id, "frame", item_id, data, style, geometry)


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def delete_frame(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Delete a frame."""
    return await _delete(ctx, board_id, "frame", item_id)


# ---------------------------------------------------------------------------
# Text items
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_CREATE_ANNOTATIONS)
async def create_text(
    board_id: _BoardId,
    data: _Data,
    position: Position,
    ctx: Context,
    geometry: _Geometry = None,
    style: _Style = None,
    parent_id: _ParentId = None,
) -> str:
    """Create a text item on a Miro board."""
    return await _create(ctx, board_id, "text", data, position, geometry, style, parent_id)


@mcp.tool(annotations=_READ_ANNOTATIONS)
async def get_text_item(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Get a text item by ID."""
    return await _get(ctx, board_id, "text", item_id)


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def update_text(
    board_id: _BoardId,
    item_id: _ItemId,
    ctx: Context,
    data: _OptData = None,
    style: _Style = None,
    geometry: _Geometry = None,
    parent_id: _ParentId = None,
) -> str:
    """Update a text item."""
    return await _update(ctx, board_id, "text", item_id, data, style, geometry, parent_id)


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def delete_text(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Delete a text item."""
    return await _delete(ctx, board_id, "text", item_id)


# ---------------------------------------------------------------------------
# Sticky notes
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_CREATE_ANNOTATIONS)
async def create_sticky(
    board_id: _BoardId,
    data: _Data,
    position: Position,
    ctx: Context,
    geometry: _Geometry = None,
    style: _Style = None,
    parent_id: _ParentId = None,
) -> str:
    """Create a sticky note on a Miro board."""
    return await _create(
        ctx, board_id, "sticky_note", data, position, geometry, style, parent_id
    )


@mcp.tool(annotations=_READ_ANNOTATIONS)
async def get_sticky(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Get a sticky note by ID."""
    return await _get(ctx, board_id, "sticky_note", item_id)


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def update_sticky(
    board_id: _BoardId,
    item_id: _ItemId,
    ctx: Context,
    data: _OptData = None,
    style: _Style = None,
    geometry: _Geometry = None,
    parent_id: _ParentId = None,
) -> str:
    """Update a sticky note."""
    return await _update(
        ctx, board_id, "sticky_note", item_id, data, style, geometry, parent_id
    )


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def delete_sticky(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Delete a sticky note."""
    return await _delete(ctx, board_id, "sticky_note", item_id)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------


@mcp.tool(annotations=_CREATE_ANNOTATIONS)
async def create_card(
    board_id: _BoardId,
    data: _Data,
    position: Position,
    ctx: Context,
    geometry: _Geometry = None,
    style: _Style = None,
    parent_id: _ParentId = None,
) -> str:
    """Create a card on a Miro board."""
    return await _create(ctx, board_id, "card", data, position, geometry, style, parent_id)


@mcp.tool(annotations=_READ_ANNOTATIONS)
async def get_card(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Get a card by ID."""
    return await _get(ctx, board_id, "card", item_id)


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def update_card(
    board_id: _BoardId,
    item_id: _ItemId,
    ctx: Context,
    data: _OptData = None,
    style: _Style = None,
    geometry: _Geometry = None,
    parent_id: _ParentId = None,
) -> str:
    """Update a card."""
    return await _update(ctx, board_id, "card", item_id, data, style, geometry, parent_id)


@mcp.tool(annotations=_UPDATE_ANNOTATIONS)
async def delete_card(board_id: _BoardId, item_id: _ItemId, ctx: Context) -> str:
    """Delete a card."""
    return await _delete(ctx, board_id, "card", item_id)
