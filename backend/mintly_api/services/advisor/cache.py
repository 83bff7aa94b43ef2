from __future__ import annotations

import copy
import time
from typing import Any, Callable, Dict, Protocol, Tuple


def build_cache_key(user_id: str, month: str, language: str) -> str:
    return f"{user_id}|{month}|{language}"


class InsightCache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...

    def clear(self) -> None: ...


class InMemoryInsightCache:
    """Process-local TTL map. Expired entries are dropped on lookup, there is no sweeper thread.

    Reads and writes are not locked: two concurrent misses for one key both recompute and the
    last writer wins.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def _purge_expired(self, now: float) -> None:
        for key in [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]:
            self._entries.pop(key, None)

    def get(self, key: str) -> Any | None:
        self._purge_expired(self._clock())
        entry = self._entries.get(key)
        if entry is None:
            return None
        return copy.deepcopy(entry[1])

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        self._entries[key] = (self._clock() + ttl_seconds, copy.deepcopy(value))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullInsightCache:
    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        return None

    def clear(self) -> None:
        return None
