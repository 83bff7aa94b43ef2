from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

import advisor_fixtures  # noqa: F401

from mintly_api.errors import ApiError
from mintly_api.services.rate_limit import DailyFreeUsage, RegenerateCooldown, UserRateLimiter


class Clock:
    def __init__(self, value) -> None:
        self.value = value

    def __call__(self):
        return self.value


class UserRateLimiterTests(unittest.TestCase):
    def test_window_resets(self) -> None:
        clock = Clock(0.0)
        limiter = UserRateLimiter(limit=2, window_seconds=60, clock=clock)
        limiter.enforce("u")
        limiter.enforce("u")
        with self.assertRaises(ApiError) as ctx:
            limiter.enforce("u")
        self.assertEqual(ctx.exception.code, "RATE_LIMITED")

        limiter.enforce("other")
        clock.value = 60.0
        limiter.enforce("u")


class RegenerateCooldownTests(unittest.TestCase):
    def test_plain_requests_are_not_throttled(self) -> None:
        cooldown = RegenerateCooldown(cooldown_seconds=15, clock=Clock(0.0))
        for _ in range(3):
            cooldown.enforce("u", False)

    def test_retry_after_rounds_up(self) -> None:
        clock = Clock(100.0)
        cooldown = RegenerateCooldown(cooldown_seconds=15, clock=clock)
        cooldown.enforce("u", True)
        clock.value = 104.2
        with self.assertRaises(ApiError) as ctx:
            cooldown.enforce("u", True)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.details, {"retryAfterSec": 11})
        clock.value = 115.0
        cooldown.enforce("u", True)


class DailyFreeUsageTests(unittest.TestCase):
    def test_one_free_call_per_utc_day(self) -> None:
        clock = Clock(datetime(2026, 3, 20, 23, 59, tzinfo=timezone.utc))
        usage = DailyFreeUsage(clock=clock)
        self.assertEqual(usage.consume("u"), {"allowFree": True, "dayKey": "2026-03-20"})
        self.assertFalse(usage.consume("u")["allowFree"])
        clock.value += timedelta(minutes=2)
        self.assertEqual(usage.consume("u"), {"allowFree": True, "dayKey": "2026-03-21"})


if __name__ == "__main__":
    unittest.main()
