"""Shared fixtures for tests."""

import os

import pytest

# The server lifespan reads its settings from the environment; credentials
# must exist before the first in-process client connects.
os.environ.setdefault("MIRO_ACCESS_TOKEN", "test-miro-token")
os.environ.setdefault("GONG_KEY", "test-gong-key")
os.environ.setdefault("GONG_SECRET", "test-gong-secret")
os.environ.setdefault("MIRO_GONG_TIMEZONE", "UTC")

from miro_gong_mcp.types import CallRecord  # noqa: E402

# Shaped like the Miro v2 board and items endpoints.
SAMPLE_BOARD: dict = {
    "id": "uXjVKMOJbXg=",
    "name": "Q2 Sprint Board",
    "description": "Planning space for the checkout team",
}

SAMPLE_ITEMS: list[dict] = [
    {
        "id": "1",
        "type": "sticky_note",
        "data": {"content": "<p>Sprint planning for Q2 2024</p>"},
        "position": {"x": 0, "y": 0},
    },
    {
        "id": "2",
        "type": "text",
        "data": {"content": "<p>User story: As a customer, I want to track my order</p>"},
        "position": {"x": 100, "y": 100},
    },
    {
        "id": "3",
        "type": "card",
        "data": {"title": "Retrospective", "content": "Action items &amp; owners"},
    },
    {"id": "4", "type": "frame", "data": {"title": "Backlog"}},
    {"id": "5", "type": "image", "data": {"title": "screenshot.png"}},
    {"id": "6", "type": "shape", "data": {"shape": "circle"}},
    {"id": "7", "type": "sticky_note", "data": {"content": "hidden"}, "isSupported": False},
]

# Shaped like the Gong /calls listing.
SAMPLE_CALLS_RAW: list[dict] = [
    {
        "id": "call_001",
        "title": "Schipol Airport - Q1 Planning Session",
        "url": "https://app.gong.io/call?id=call_001",
        "started": "2025-03-23T10:00:00Z",
        "primaryUserId": "user_123",
        "duration": 3600,
        "parties": ["john.doe@company.com", "manager@schipol.nl"],
    },
    {
        "id": "call_002",
        "title": "Schipol - Infrastructure Review",
        "url": "https://app.gong.io/call?id=call_002",
        "started": "2025-03-15T14:30:00Z",
        "primaryUserId": "user_456",
        "duration": 2700,
        "parties": ["jane.smith@company.com", "tech@schipol.nl"],
    },
    {
        "id": "call_003",
        "title": "Weekly Sync - Schipol Team",
        "url": "https://app.gong.io/call?id=call_003",
        "started": "2025-03-20T09:00:00Z",
        "primaryUserId": "user_789",
        "duration": 1800,
        "parties": ["team@company.com", "project@schipol.nl"],
    },
    {
        "id": "call_004",
        "title": "Akme Corportation sync",
        "url": "https://app.gong.io/call?id=call_004",
        "started": "2025-03-10T16:00:00Z",
        "primaryUserId": "user_123",
        "duration": 900,
        "parties": [],
    },
]


def make_call(title: str, started: str | None = "2025-01-01T00:00:00Z", **extra) -> CallRecord:
    return CallRecord.model_validate(
        {"id": extra.pop("id", title), "title": title, "started": started, **extra}
    )


@pytest.fixture
def sample_calls() -> list[CallRecord]:
    return [CallRecord.model_validate(c) for c in SAMPLE_CALLS_RAW]
