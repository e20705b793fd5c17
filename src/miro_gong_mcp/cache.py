"""Bounded in-memory cache for paginated upstream listings."""

import json
import time
from collections import OrderedDict
from typing import Any, Callable


def make_key(endpoint: str, params: dict[str, Any] | None = None) -> str:
    """Build a cache key from an endpoint and its query parameters."""
    return f"{endpoint}:{json.dumps(params or {}, sort_keys=True, default=str)}"


class PaginationCache:
    """Least-recently-used cache whose entries also expire after a TTL.

    Args:
        max_entries: Capacity; the least recently used entry is evicted
            when it is exceeded.  ``0`` disables caching.
        ttl_seconds: Lifetime of an entry.  ``None`` keeps entries until
            they are evicted.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        max_entries: int = 128,
        ttl_seconds: float | None = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        if self.max_entries <= 0:
            return
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
