"""Read access to the Gong REST API (v2)."""

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Awaitable, Callable

import httpx
from pydantic import ValidationError

from miro_gong_mcp.cache import PaginationCache, make_key
from miro_gong_mcp.errors import UpstreamError
from miro_gong_mcp.types import CallRecord

logger = logging.getLogger(__name__)

CALL_DETAIL_SELECTOR: dict[str, Any] = {
    "exposedFields": {
        "parties": True,
        "content": {
            "structure": False,
            "topics": False,
            "trackers": False,
            "trackerOccurrences": False,
            "pointsOfInterest": False,
            "brief": True,
            "outline": True,
            "highlights": True,
            "callOutcome": False,
            "keyPoints": True,
        },
    }
}


def _page_calls(data: dict[str, Any]) -> list[Any]:
    for key in ("calls", "records", "data"):
        if isinstance(data.get(key), list):
            return data[key]
    return []


def _next_cursor(data: dict[str, Any]) -> str | None:
    records = data.get("records")
    if isinstance(records, dict) and records.get("cursor"):
        return records["cursor"]
    for key in ("next", "cursor", "nextCursor"):
        if isinstance(data.get(key), str) and data[key]:
            return data[key]
    return None


def _parse_calls(raw: list[Any]) -> list[CallRecord]:
    calls: list[CallRecord] = []
    for entry in raw:
        try:
            calls.append(CallRecord.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed call record: %s", e)
    return calls


class GongClient:
    """Async client for the calls endpoints.

    The ``/calls`` listing is followed through its cursor and cached per
    query.  Rate-limited (HTTP 429) requests are retried with exponential
    backoff and jitter, honouring ``Retry-After``; any other failure is
    raised as :class:`UpstreamError` straight away.
    """

    def __init__(
        self,
        access_key: str,
        secret: str,
        base_url: str,
        timeout: float = 30.0,
        cache: PaginationCache | None = None,
        max_retries: int = 3,
        retry_base_delay: float = 3.0,
        retry_max_delay: float = 60.0,
        max_pages: int = 50,
        page_delay: float = 0.2,
        page_limit: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else PaginationCache()
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.max_pages = max_pages
        self.page_delay = page_delay
        self.page_limit = page_limit
        self._auth = httpx.BasicAuth(access_key, secret)
        self._transport = transport
        self._sleep = sleep

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            auth=self._auth,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )

    def _retry_delay(self, response: httpx.Response, attempt: int) -> float:
        """Delay before retrying a 429: ``Retry-After`` or exponential backoff with jitter."""
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return min(float(retry_after), self.retry_max_delay)
            except ValueError:
                pass
        backoff = (2**attempt + random.random()) * self.retry_base_delay
        return min(backoff, self.retry_max_delay)

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        endpoint: str,
        operation: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        attempt = 0
        while True:
            logger.debug("Gong %s %s (attempt %d)", method, endpoint, attempt + 1)
            try:
                response = await client.request(method, endpoint, **kwargs)
            except httpx.RequestError as e:
                logger.error("Gong %s unreachable: %s", endpoint, e)
                raise UpstreamError(operation, str(e) or type(e).__name__) from e

            if response.status_code == 429 and attempt < self.max_retries:
                delay = self._retry_delay(response, attempt)
                logger.warning(
                    "Gong rate limit hit, retrying after %.1fs (attempt %d/%d)",
                    delay,
                    attempt + 1,
                    self.max_retries,
                )
                await self._sleep(delay)
                attempt += 1
                continue

            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error("Gong %s returned %s", endpoint, response.status_code)
                raise UpstreamError(
                    operation,
                    response.reason_phrase or "request failed",
                    response.status_code,
                ) from e
            try:
                return response.json()
            except ValueError as e:
                logger.error("Gong %s returned a non-JSON body", endpoint)
                raise UpstreamError(
                    operation, "invalid JSON response", response.status_code
                ) from e

    async def list_calls(self, from_dt: datetime, to_dt: datetime) -> list[CallRecord]:
        """All calls started in the given range, following pagination."""
        params: dict[str, Any] = {
            "fromDateTime": from_dt.isoformat(),
            "toDateTime": to_dt.isoformat(),
            "limit": self.page_limit,
        }
        key = make_key("/calls", params)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Gong /calls served from cache")
            return cached

        raw: list[Any] = []
        cursor: str | None = None
        async with self._client() as client:
            for page in range(self.max_pages):
                query = dict(params)
                if cursor:
                    query["cursor"] = cursor
                data = await self._request(client, "GET", "/calls", "list_calls", params=query)
                raw.extend(_page_calls(data))
                cursor = _next_cursor(data)
                if not cursor:
                    break
                if page + 1 < self.max_pages:
                    await self._sleep(self.page_delay)
            else:
                logger.warning("Stopped listing calls after %d pages", self.max_pages)

        calls = _parse_calls(raw)
        self.cache.set(key, calls)
        return calls

    async def get_call(self, call_id: str) -> CallRecord:
        async with self._client() as client:
            data = await self._request(client, "GET", f"/calls/{call_id}", "get_call")
        record = data.get("call", data)
        try:
            return CallRecord.model_validate(record)
        except ValidationError as e:
            raise UpstreamError("get_call", f"unexpected response for call {call_id}") from e

    async def get_call_details(self, call_id: str) -> dict[str, Any]:
        """Brief, outline, highlights and key points for one call."""
        body = {
            "filter": {"callIds": [call_id]},
            "contentSelector": CALL_DETAIL_SELECTOR,
        }
        async with self._client() as client:
            return await self._request(
                client, "POST", "/calls/extensive", "get_call_details", json=body
            )
