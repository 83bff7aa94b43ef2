from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

UTC = timezone.utc
DAY = timedelta(days=1)

_EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", flags=re.IGNORECASE)
_LONG_NUMBER_PATTERN = re.compile(r"\b\d{5,}\b")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9\s]")
_MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def now_utc() -> datetime:
    return datetime.now(tz=UTC)


def iso_utc(value: datetime | None = None) -> str:
    dt = (value or now_utc()).astimezone(UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    text = str(value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=UTC)
            except ValueError:
                continue
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def safe_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return default
    text = text.replace(",", "")
    try:
        return float(text)
    except ValueError:
        return default


def round_money(value: Any) -> float:
    """Round half away from zero to 2 decimals through Decimal, never through binary floats."""
    try:
        quantized = Decimal(str(safe_float(value))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return 0.0
    result = float(quantized)
    return 0.0 if result == 0 else result


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def is_valid_month(month: str) -> bool:
    return bool(_MONTH_PATTERN.match(str(month or "")))


def month_key(value: datetime) -> str:
    return value.astimezone(UTC).strftime("%Y-%m")


def current_month(now: datetime | None = None) -> str:
    return month_key(now or now_utc())


def shift_month(month: str, delta: int) -> str:
    year, month_number = (int(part) for part in month.split("-"))
    index = year * 12 + (month_number - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def month_bounds(month: str) -> tuple[datetime, datetime]:
    """Return [start, end_exclusive) of a YYYY-MM month in UTC."""
    if not is_valid_month(month):
        raise ValueError(f"Invalid month label: {month!r}")
    year, month_number = (int(part) for part in month.split("-"))
    start = datetime(year, month_number, 1, tzinfo=UTC)
    next_year, next_month = (year + 1, 1) if month_number == 12 else (year, month_number + 1)
    return start, datetime(next_year, next_month, 1, tzinfo=UTC)


def resolve_anchor_date(month_end_exclusive: datetime, now: datetime | None = None) -> datetime:
    """Today at UTC midnight, clamped to the last day of the requested month."""
    month_last_day = month_end_exclusive - DAY
    current = (now or now_utc()).astimezone(UTC)
    today = current.replace(hour=0, minute=0, second=0, microsecond=0)
    if today > month_last_day:
        return month_last_day
    return today


def sanitize_free_text(value: Any) -> str:
    text = _EMAIL_PATTERN.sub("[redacted-email]", str(value or ""))
    text = _LONG_NUMBER_PATTERN.sub("[redacted-number]", text)
    text = _WHITESPACE_PATTERN.sub(" ", text).strip()
    return text[:120]


def normalize_for_match(value: Any) -> str:
    text = unicodedata.normalize("NFD", str(value or "").lower())
    text = "".join(char for char in text if not unicodedata.combining(char))
    text = _NON_ALNUM_PATTERN.sub(" ", text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()
