"""Access to the Miro REST API (v2): board reads and item edits."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from miro_gong_mcp.errors import UpstreamError
from miro_gong_mcp.text import normalize_text
from miro_gong_mcp.types import BoardInfo, MiroItem

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.miro.com/v2"
ITEMS_PAGE_SIZE = 50

_SKIPPED_TYPES = {"image", "unknown"}

# Item type -> collection path segment of its type-specific endpoints
ITEM_ENDPOINTS: dict[str, str] = {
    "frame": "frames",
    "text": "texts",
    "sticky_note": "sticky_notes",
    "card": "cards",
}


def extract_item_text(item: MiroItem) -> str | None:
    """Pull the human-readable text out of a board item.

    Each widget type keeps its text somewhere different: sticky notes and
    text widgets in rich-text ``content``, frames in ``title``, cards in
    both.  Images and unsupported widgets yield ``None``.
    """
    if item.is_supported is False or item.type in _SKIPPED_TYPES:
        return None

    data = item.data or {}
    content = normalize_text(data.get("content"))
    title = normalize_text(data.get("title"))
    text = normalize_text(data.get("text"))

    if item.type in ("text", "sticky_note"):
        return content or text or None
    if item.type == "shape":
        return content or None
    if item.type == "card":
        return " - ".join(part for part in (title, content) if part) or None
    if item.type == "frame":
        return title or None

    parts = [part for part in (title, content, text) if part]
    return " ".join(parts) if parts else None


def _parse_items(raw: list[Any]) -> list[MiroItem]:
    items: list[MiroItem] = []
    for entry in raw:
        try:
            items.append(MiroItem.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed board item: %s", e)
    return items


def item_path(board_id: str, item_type: str, item_id: str | None = None) -> str:
    """Endpoint of one item type's collection, or of a single item in it."""
    try:
        collection = ITEM_ENDPOINTS[item_type]
    except KeyError:
        raise ValueError(f"Unsupported item type: {item_type}") from None
    path = f"/boards/{board_id}/{collection}"
    return f"{path}/{item_id}" if item_id else path


def item_body(
    data: dict[str, Any] | None = None,
    position: dict[str, Any] | None = None,
    geometry: dict[str, Any] | None = None,
    style: dict[str, Any] | None = None,
    parent_id: str | None = None,
) -> dict[str, Any]:
    """Request body for creating or updating an item; unset parts are omitted."""
    body: dict[str, Any] = {}
    for key, value in (
        ("data", data),
        ("position", position),
        ("geometry", geometry),
        ("style", style),
    ):
        if value is not None:
            body[key] = value
    if parent_id:
        body["parent"] = {"id": parent_id}
    return body


class MiroClient:
    """Thin async wrapper over the board, item and member endpoints."""

    def __init__(
        self,
        access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_pages: int = 20,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_pages = max_pages
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            },
        )

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        endpoint: str,
        operation: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger.debug("Miro %s %s %s", method, endpoint, params or {})
        try:
            response = await client.request(method, endpoint, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Miro %s returned %s", endpoint, e.response.status_code)
            raise UpstreamError(
                operation, e.response.reason_phrase or "request failed", e.response.status_code
            ) from e
        except httpx.RequestError as e:
            logger.error("Miro %s unreachable: %s", endpoint, e)
            raise UpstreamError(operation, str(e) or type(e).__name__) from e

        # DELETE answers 204 with no body
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error("Miro %s returned a non-JSON body", endpoint)
            raise UpstreamError(operation, "invalid JSON response", response.status_code) from e

    async def _send(
        self,
        method: str,
        endpoint: str,
        operation: str,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        async with self._client() as client:
            return await self._request(client, method, endpoint, operation, json=json)

    async def _get_items(
        self,
        client: httpx.AsyncClient,
        board_id: str,
        item_type: str | None = None,
    ) -> list[MiroItem]:
        params: dict[str, Any] = {"limit": ITEMS_PAGE_SIZE}
        if item_type:
            params["type"] = item_type

        raw: list[Any] = []
        for _page in range(self.max_pages):
            data = await self._request(
                client, "GET", f"/boards/{board_id}/items", "get_board_items", params
            )
            raw.extend(data.get("data") or [])
            cursor = data.get("cursor")
            if not cursor:
                break
            params = {**params, "cursor": cursor}
        else:
            logger.warning("Board %s has more than %d item pages", board_id, self.max_pages)
        return _parse_items(raw)

    # -- reads --------------------------------------------------------------

    async def get_board_info(self, board_id: str) -> BoardInfo:
        async with self._client() as client:
            board = await self._request(client, "GET", f"/boards/{board_id}", "get_board")
            items = await self._get_items(client, board_id)
        return BoardInfo(
            id=board.get("id", board_id),
            name=board.get("name") or "",
            description=board.get("description"),
            items=items,
        )

    async def get_items_by_type(self, board_id: str, item_type: str) -> list[MiroItem]:
        async with self._client() as client:
            return await self._get_items(client, board_id, item_type)

    async def get_board_content(self, board_id: str) -> list[str]:
        """All text on the board: name first, item text, description last."""
        info = await self.get_board_info(board_id)
        content: list[str] = []
        for item in info.items:
            text = extract_item_text(item)
            if text:
                content.append(text)
        if info.name:
            content.insert(0, info.name)
        if info.description:
            content.append(info.description)
        return content

    async def get_item(self, board_id: str, item_type: str, item_id: str) -> dict[str, Any]:
        return await self._send(
            "GET", item_path(board_id, item_type, item_id), f"get_{item_type}"
        )

    # -- writes -------------------------------------------------------------

    async def create_board(
        self,
        name: str,
        description: str | None = None,
        sharing_access: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"name": name}
        if description:
            body["description"] = description
        if sharing_access:
            body["policy"] = {"sharingPolicy": {"access": sharing_access}}
        return await self._send("POST", "/boards", "create_board", json=body)

    async def share_board(
        self,
        board_id: str,
        emails: list[str],
        role: str,
        message: str | None = None,
    ) -> dict[str, Any]:
        """Invite *emails* to the board with the given role."""
        body: dict[str, Any] = {"emails": emails, "role": role}
        if message:
            body["message"] = message
        return await self._send("POST", f"/boards/{board_id}/members", "share_board", json=body)

    async def update_item_position(
        self,
        board_id: str,
        item_id: str,
        position: dict[str, Any],
        parent_id: str | None = None,
    ) -> dict[str, Any]:
        """Move any item, optionally into another frame."""
        return await self._send(
            "PATCH",
            f"/boards/{board_id}/items/{item_id}",
            "update_item_position",
            json=item_body(position=position, parent_id=parent_id),
        )

    async def create_item(
        self,
        board_id: str,
        item_type: str,
        data: dict[str, Any],
        position: dict[str, Any],
        geometry: dict[str, Any] | None = None,
        style: dict[str, Any] | None = None,
        parent_id: str | None = None,
    ) -> dict[str, Any]:
        return await self._send(
            "POST",
            item_path(board_id, item_type),
            f"create_{item_type}",
            json=item_body(data, position, geometry, style, parent_id),
        )

    async def create_frame(
        self,
        board_id: str,
        title: str,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> dict[str, Any]:
        """Create a custom-sized frame centred on (x, y)."""
        return await self.create_item(
            board_id,
            "frame",
            data={"title": title, "format": "custom", "type": "freeform"},
            position={"x": x, "y": y, "origin": "center"},
            geometry={"width": width, "height": height},
        )

    async def update_item(
        self,
        board_id: str,
        item_type: str,
        item_id: str,
        data: dict[str, Any] | None = None,
        style: dict[str, Any] | None = None,
        geometry: dict[str, Any] | None = None,
        parent_id: str | None = None,
    ) -> dict[str, Any]:
        return await self._send(
            "PATCH",
            item_path(board_id, item_type, item_id),
            f"update_{item_type}",
            json=item_body(data=data, geometry=geometry, style=style, parent_id=parent_id),
        )

    async def delete_item(self, board_id: str, item_type: str, item_id: str) -> None:
        await self._send("DELETE", item_path(board_id, item_type, item_id), f"delete_{item_type}")
