"""Tests for the Miro and Gong HTTP clients against a mocked transport."""

import json
from datetime import datetime, timezone

import httpx
import pytest
from conftest import SAMPLE_BOARD, SAMPLE_CALLS_RAW, SAMPLE_ITEMS

from miro_gong_mcp.cache import PaginationCache
from miro_gong_mcp.clients.gong import GongClient
from miro_gong_mcp.clients.miro import MiroClient, extract_item_text, item_path
from miro_gong_mcp.errors import UpstreamError
from miro_gong_mcp.types import MiroItem

FROM = datetime(2025, 1, 1, tzinfo=timezone.utc)
TO = datetime(2025, 3, 31, 23, 59, tzinfo=timezone.utc)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _miro(handler) -> MiroClient:
    return MiroClient("test-token", transport=httpx.MockTransport(handler))


def _gong(handler, sleep: SleepRecorder | None = None, **kwargs) -> GongClient:
    kwargs.setdefault("retry_base_delay", 0)
    return GongClient(
        "key",
        "secret",
        "https://api.gong.io/v2",
        transport=httpx.MockTransport(handler),
        sleep=sleep or SleepRecorder(),
        **kwargs,
    )


def _item(item_type: str, **data) -> MiroItem:
    return MiroItem.model_validate({"id": "x", "type": item_type, "data": data})


class TestExtractItemText:
    def test_sticky_note_markup_stripped(self):
        assert extract_item_text(_item("sticky_note", content="<p>Hello&nbsp;team</p>")) == "Hello team"

    def test_card_joins_title_and_content(self):
        assert extract_item_text(_item("card", title="Retro", content="Owners")) == "Retro - Owners"
        assert extract_item_text(_item("card", title="Retro")) == "Retro"

    def test_frame_uses_title(self):
        assert extract_item_text(_item("frame", title="Backlog", content="ignored")) == "Backlog"

    def test_skipped_items(self):
        assert extract_item_text(_item("image", title="photo.png")) is None
        assert extract_item_text(_item("shape")) is None
        hidden = MiroItem.model_validate(
            {"id": "x", "type": "text", "data": {"content": "hi"}, "isSupported": False}
        )
        assert extract_item_text(hidden) is None

    def test_other_types_join_all_text(self):
        assert extract_item_text(_item("app_card", title="Ticket", text="Open")) == "Ticket Open"


class TestMiroClient:
    @pytest.mark.asyncio
    async def test_board_content_follows_cursor(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith("/items"):
                if request.url.params.get("cursor") == "page2":
                    return httpx.Response(200, json={"data": SAMPLE_ITEMS[4:]})
                return httpx.Response(200, json={"data": SAMPLE_ITEMS[:4], "cursor": "page2"})
            return httpx.Response(200, json=SAMPLE_BOARD)

        content = await _miro(handler).get_board_content("uXjVKMOJbXg=")

        assert content == [
            "Q2 Sprint Board",
            "Sprint planning for Q2 2024",
            "User story: As a customer, I want to track my order",
            "Retrospective - Action items & owners",
            "Backlog",
            "Planning space for the checkout team",
        ]
        assert len(seen) == 3
        assert all(r.headers["authorization"] == "Bearer test-token" for r in seen)

    @pytest.mark.asyncio
    async def test_items_by_type(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["type"] == "frame"
            return httpx.Response(200, json={"data": [SAMPLE_ITEMS[3]]})

        items = await _miro(handler).get_items_by_type("b1", "frame")
        assert [i.type for i in items] == ["frame"]

    @pytest.mark.asyncio
    async def test_page_limit(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json={"data": [], "cursor": "again"})

        client = MiroClient("t", max_pages=3, transport=httpx.MockTransport(handler))
        assert await client.get_items_by_type("b1", "text") == []
        assert calls == 3

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = _miro(lambda request: httpx.Response(404, json={"message": "not found"}))

        with pytest.raises(UpstreamError) as exc:
            await client.get_board_info("missing")
        assert exc.value.status_code == 404
        assert exc.value.operation == "get_board"
        assert "HTTP 404" in str(exc.value)

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc:
            await _miro(handler).get_board_content("b1")
        assert exc.value.status_code is None


class TestGongListCalls:
    @pytest.mark.asyncio
    async def test_pagination_and_cache(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.params.get("cursor") == "c2":
                return httpx.Response(200, json={"records": {}, "calls": SAMPLE_CALLS_RAW[2:]})
            return httpx.Response(
                200, json={"records": {"cursor": "c2"}, "calls": SAMPLE_CALLS_RAW[:2]}
            )

        sleep = SleepRecorder()
        client = _gong(handler, sleep, page_delay=0.2)

        calls = await client.list_calls(FROM, TO)
        again = await client.list_calls(FROM, TO)

        assert [c.id for c in calls] == ["call_001", "call_002", "call_003", "call_004"]
        assert again == calls
        assert len(seen) == 2
        assert sleep.delays == [0.2]
        assert seen[0].url.params["fromDateTime"] == FROM.isoformat()
        assert seen[0].headers["authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_different_range_not_cached(self):
        count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal count
            count += 1
            return httpx.Response(200, json={"calls": SAMPLE_CALLS_RAW[:1]})

        client = _gong(handler)
        await client.list_calls(FROM, TO)
        await client.list_calls(FROM.replace(month=2), TO)
        assert count == 2

    @pytest.mark.asyncio
    async def test_cache_disabled(self):
        count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal count
            count += 1
            return httpx.Response(200, json={"calls": []})

        client = _gong(handler, cache=PaginationCache(max_entries=0))
        await client.list_calls(FROM, TO)
        await client.list_calls(FROM, TO)
        assert count == 2

    @pytest.mark.asyncio
    async def test_malformed_records_skipped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"calls": [{"title": "no id"}, SAMPLE_CALLS_RAW[0]]})

        calls = await _gong(handler).list_calls(FROM, TO)
        assert [c.id for c in calls] == ["call_001"]


class TestGongRetries:
    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self):
        responses = [
            httpx.Response(429),
            httpx.Response(429),
            httpx.Response(200, json={"calls": SAMPLE_CALLS_RAW}),
        ]

        sleep = SleepRecorder()
        client = _gong(lambda request: responses.pop(0), sleep)

        calls = await client.list_calls(FROM, TO)
        assert len(calls) == 4
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_retry_after_honoured_and_capped(self):
        responses = [
            httpx.Response(429, headers={"Retry-After": "7"}),
            httpx.Response(429, headers={"Retry-After": "120"}),
            httpx.Response(200, json={"calls": []}),
        ]

        sleep = SleepRecorder()
        client = _gong(lambda request: responses.pop(0), sleep, retry_max_delay=60)

        await client.list_calls(FROM, TO)
        assert sleep.delays == [7.0, 60]

    @pytest.mark.asyncio
    async def test_backoff_bounded(self):
        responses = [httpx.Response(429), httpx.Response(429), httpx.Response(200, json={})]

        sleep = SleepRecorder()
        client = _gong(
            lambda request: responses.pop(0), sleep, retry_base_delay=3.0, retry_max_delay=60
        )

        await client.list_calls(FROM, TO)
        first, second = sleep.delays
        assert 3.0 <= first < 6.0
        assert 6.0 <= second < 9.0

    @pytest.mark.asyncio
    async def test_retries_exhausted(self):
        count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal count
            count += 1
            return httpx.Response(429)

        sleep = SleepRecorder()
        with pytest.raises(UpstreamError) as exc:
            await _gong(handler, sleep, max_retries=3).list_calls(FROM, TO)

        assert exc.value.status_code == 429
        assert count == 4
        assert len(sleep.delays) == 3

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self):
        count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal count
            count += 1
            return httpx.Response(401)

        with pytest.raises(UpstreamError) as exc:
            await _gong(handler).list_calls(FROM, TO)

        assert exc.value.status_code == 401
        assert count == 1


class TestGongCalls:
    @pytest.mark.asyncio
    async def test_get_call_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/calls/call_002")
            return httpx.Response(200, json={"call": SAMPLE_CALLS_RAW[1]})

        call = await _gong(handler).get_call("call_002")
        assert call.title == "Schipol - Infrastructure Review"
        assert call.primary_user_id == "user_456"

    @pytest.mark.asyncio
    async def test_get_call_bare(self):
        call = await _gong(lambda r: httpx.Response(200, json=SAMPLE_CALLS_RAW[0])).get_call(
            "call_001"
        )
        assert call.duration == 3600

    @pytest.mark.asyncio
    async def test_get_call_unexpected_body(self):
        with pytest.raises(UpstreamError):
            await _gong(lambda r: httpx.Response(200, json={"call": {}})).get_call("x")

    @pytest.mark.asyncio
    async def test_get_call_details(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"calls": [{"metaData": {"id": "call_001"}}]})

        details = await _gong(handler).get_call_details("call_001")

        assert details["calls"][0]["metaData"]["id"] == "call_001"
        assert seen[0].method == "POST"
        assert seen[0].url.path.endswith("/calls/extensive")
        body = json.loads(seen[0].content)
        assert body["filter"] == {"callIds": ["call_001"]}
        assert body["contentSelector"]["exposedFields"]["content"]["brief"] is True


class TestNonJsonBodies:
    @pytest.mark.asyncio
    async def test_miro_html_page(self):
        client = _miro(lambda request: httpx.Response(200, text="<html>login</html>"))

        with pytest.raises(UpstreamError) as exc:
            await client.get_board_content("b1")
        assert exc.value.operation == "get_board"
        assert exc.value.status_code == 200
        assert "invalid JSON response" in str(exc.value)

    @pytest.mark.asyncio
    async def test_gong_html_page(self):
        client = _gong(lambda request: httpx.Response(200, text="<html>proxy error</html>"))

        with pytest.raises(UpstreamError) as exc:
            await client.list_calls(FROM, TO)
        assert exc.value.operation == "list_calls"
        assert "invalid JSON response" in str(exc.value)


class RecordingHandler:
    """Answers every request with *body* and keeps the requests."""

    def __init__(self, body: dict | None = None, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is None:
            return httpx.Response(self.status_code)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


class TestMiroWrites:
    @pytest.mark.asyncio
    async def test_create_board(self):
        handler = RecordingHandler({"id": "new=", "name": "Retro"}, 201)

        board = await _miro(handler).create_board("Retro", "Team retro", sharing_access="view")

        assert board["id"] == "new="
        assert handler.last.method == "POST"
        assert handler.last.url.path == "/v2/boards"
        assert handler.last_json() == {
            "name": "Retro",
            "description": "Team retro",
            "policy": {"sharingPolicy": {"access": "view"}},
        }

    @pytest.mark.asyncio
    async def test_share_board(self):
        handler = RecordingHandler({"message": "ok"}, 201)

        await _miro(handler).share_board("b1", ["a@example.com"], "editor", "Welcome")

        assert handler.last.url.path == "/v2/boards/b1/members"
        assert handler.last_json() == {
            "emails": ["a@example.com"],
            "role": "editor",
            "message": "Welcome",
        }

    @pytest.mark.asyncio
    async def test_update_item_position(self):
        handler = RecordingHandler({"id": "i1"})

        await _miro(handler).update_item_position("b1", "i1", {"x": 10, "y": 20}, "f1")

        assert handler.last.method == "PATCH"
        assert handler.last.url.path == "/v2/boards/b1/items/i1"
        assert handler.last_json() == {"position": {"x": 10, "y": 20}, "parent": {"id": "f1"}}

    @pytest.mark.asyncio
    async def test_create_frame(self):
        handler = RecordingHandler({"id": "f1", "type": "frame"}, 201)

        await _miro(handler).create_frame("b1", "Ideas", 0, 0, 800, 600)

        assert handler.last.url.path == "/v2/boards/b1/frames"
        body = handler.last_json()
        assert body["data"]["title"] == "Ideas"
        assert body["position"] == {"x": 0, "y": 0, "origin": "center"}
        assert body["geometry"] == {"width": 800, "height": 600}
        assert "parent" not in body

    @pytest.mark.asyncio
    async def test_create_sticky_in_frame(self):
        handler = RecordingHandler({"id": "s1", "type": "sticky_note"}, 201)

        await _miro(handler).create_item(
            "b1",
            "sticky_note",
            data={"content": "Ship it"},
            position={"x": 1, "y": 2},
            style={"fillColor": "yellow"},
            parent_id="f1",
        )

        assert handler.last.url.path == "/v2/boards/b1/sticky_notes"
        assert handler.last_json() == {
            "data": {"content": "Ship it"},
            "position": {"x": 1, "y": 2},
            "style": {"fillColor": "yellow"},
            "parent": {"id": "f1"},
        }

    @pytest.mark.asyncio
    async def test_get_and_update_card(self):
        handler = RecordingHandler({"id": "c1", "type": "card"})
        client = _miro(handler)

        assert (await client.get_item("b1", "card", "c1"))["id"] == "c1"
        assert handler.last.method == "GET"
        assert handler.last.url.path == "/v2/boards/b1/cards/c1"

        await client.update_item("b1", "card", "c1", data={"title": "Done"})
        assert handler.last.method == "PATCH"
        assert handler.last_json() == {"data": {"title": "Done"}}

    @pytest.mark.asyncio
    async def test_delete_text(self):
        handler = RecordingHandler(status_code=204)

        assert await _miro(handler).delete_item("b1", "text", "t1") is None
        assert handler.last.method == "DELETE"
        assert handler.last.url.path == "/v2/boards/b1/texts/t1"

    @pytest.mark.asyncio
    async def test_write_error(self):
        handler = RecordingHandler({"message": "forbidden"}, 403)

        with pytest.raises(UpstreamError) as exc:
            await _miro(handler).delete_item("b1", "frame", "f1")
        assert exc.value.operation == "delete_frame"
        assert exc.value.status_code == 403

    def test_unsupported_item_type(self):
        with pytest.raises(ValueError):
            item_path("b1", "image")
