from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict

from mintly_api.config import ADVISOR_RATE_LIMIT_PER_MINUTE, ADVISOR_REGENERATE_COOLDOWN_SECONDS
from mintly_api.errors import ApiError
from mintly_api.services.finance.common import now_utc

RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_PRUNE_SIZE = 500
COOLDOWN_PRUNE_SIZE = 1000
FREE_USAGE_SWEEP_INTERVAL_SECONDS = 6 * 60 * 60
FREE_USAGE_RETENTION_SECONDS = 3 * 24 * 60 * 60


@dataclass
class _WindowEntry:
    count: int
    reset_at: float


class UserRateLimiter:
    """Fixed window per user: ``limit`` requests, then RATE_LIMITED until the window resets."""

    def __init__(
        self,
        limit: int = ADVISOR_RATE_LIMIT_PER_MINUTE,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[str, _WindowEntry] = {}

    def enforce(self, user_id: str) -> None:
        now = self._clock()
        entry = self._entries.get(user_id)
        if entry is None or entry.reset_at <= now:
            self._entries[user_id] = _WindowEntry(count=1, reset_at=now + self.window_seconds)
        elif entry.count >= self.limit:
            raise ApiError(
                code="RATE_LIMITED",
                message="Too many advisor insight requests. Please retry in a minute.",
                status_code=429,
            )
        else:
            entry.count += 1

        if len(self._entries) > RATE_LIMIT_PRUNE_SIZE:
            for key in [key for key, value in self._entries.items() if value.reset_at <= now]:
                del self._entries[key]

    def reset(self) -> None:
        self._entries.clear()


class RegenerateCooldown:
    def __init__(
        self,
        cooldown_seconds: float = ADVISOR_REGENERATE_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_triggered: Dict[str, float] = {}

    def enforce(self, user_id: str, regenerate: bool) -> None:
        if not regenerate:
            return
        now = self._clock()
        last = self._last_triggered.get(user_id)
        if last is not None:
            elapsed = now - last
            if elapsed < self.cooldown_seconds:
                raise ApiError(
                    code="ADVISOR_REGENERATE_COOLDOWN",
                    message="Please wait before regenerating advisor insights again.",
                    status_code=429,
                    details={"retryAfterSec": math.ceil(self.cooldown_seconds - elapsed)},
                )
        self._last_triggered[user_id] = now

        if len(self._last_triggered) > COOLDOWN_PRUNE_SIZE:
            stale_after = self.cooldown_seconds * 4
            for key in [key for key, value in self._last_triggered.items() if now - value > stale_after]:
                del self._last_triggered[key]

    def reset(self) -> None:
        self._last_triggered.clear()


class DailyFreeUsage:
    """First call per user per UTC day is free. Old entries are swept at most every 6 hours."""

    def __init__(self, clock: Callable[[], datetime] = now_utc) -> None:
        self._clock = clock
        self._entries: Dict[str, Dict[str, object]] = {}
        self._last_sweep: datetime | None = None

    def consume(self, user_id: str) -> Dict[str, object]:
        now = self._clock()
        day_key = now.strftime("%Y-%m-%d")
        existing = self._entries.get(user_id)
        allow_free = existing is None or existing["dayKey"] != day_key
        self._entries[user_id] = {"dayKey": day_key, "updatedAt": now}

        if self._last_sweep is None or (now - self._last_sweep).total_seconds() >= FREE_USAGE_SWEEP_INTERVAL_SECONDS:
            self._last_sweep = now
            for key in [
                key
                for key, value in self._entries.items()
                if (now - value["updatedAt"]).total_seconds() > FREE_USAGE_RETENTION_SECONDS
            ]:
                del self._entries[key]

        return {"allowFree": allow_free, "dayKey": day_key}

    def reset(self) -> None:
        self._entries.clear()
        self._last_sweep = None


insight_rate_limiter = UserRateLimiter()
regenerate_cooldown = RegenerateCooldown()
daily_free_usage = DailyFreeUsage()


def reset_limits() -> None:
    insight_rate_limiter.reset()
    regenerate_cooldown.reset()
    daily_free_usage.reset()
