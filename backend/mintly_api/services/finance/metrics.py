"""Pure derived-metric functions over aggregated figures. No I/O."""

from __future__ import annotations

import statistics
from typing import Any, Dict, Iterable, List, Sequence

from mintly_api.config import (
    ANOMALY_MEDIAN_MULTIPLIER,
    ANOMALY_MIN_AMOUNT,
    IRREGULAR_INCOME_RATIO,
    RECURRING_BURDEN_MAX,
    WEEKLY_TO_MONTHLY_FACTOR,
)

from .common import clamp, round_money, safe_float


def mom_percent(current: float, previous: float) -> float | None:
    current = safe_float(current)
    previous = safe_float(previous)
    if previous <= 0:
        return 100.0 if current > 0 else None
    return round_money((current - previous) / previous * 100)


def monthly_recurring_total(rules: Iterable[Dict[str, Any]]) -> float:
    total = 0.0
    for rule in rules:
        amount = safe_float(rule.get("amount"))
        if str(rule.get("cadence") or "").lower() == "weekly":
            amount *= WEEKLY_TO_MONTHLY_FACTOR
        total += amount
    return round_money(total)


def recurring_burden_ratio(monthly_recurring: float, current_month_expense: float) -> float:
    expense = safe_float(current_month_expense)
    if expense <= 0:
        return 0.0
    ratio = safe_float(monthly_recurring) / expense
    return round(clamp(ratio, 0.0, RECURRING_BURDEN_MAX), 4)


def anomaly_threshold(
    amounts: Sequence[float],
    *,
    floor: float = ANOMALY_MIN_AMOUNT,
    multiplier: float = ANOMALY_MEDIAN_MULTIPLIER,
) -> float:
    values = [safe_float(item) for item in amounts if safe_float(item) > 0]
    if not values:
        return round_money(floor)
    return round_money(max(floor, statistics.median(values) * multiplier))


def detect_anomalies(
    transactions: Iterable[Dict[str, Any]],
    threshold: float,
    *,
    limit: int = 5,
) -> List[Dict[str, Any]]:
    flagged = [item for item in transactions if safe_float(item.get("amount")) >= threshold]
    flagged.sort(key=lambda item: safe_float(item.get("amount")), reverse=True)
    return flagged[:limit]


def irregular_income(
    trend_incomes: Sequence[float],
    *,
    ratio: float = IRREGULAR_INCOME_RATIO,
) -> bool:
    incomes = [safe_float(item) for item in trend_incomes]
    positive = [item for item in incomes if item > 0]
    if len(positive) >= 2:
        return max(positive) / max(1.0, min(positive)) >= ratio
    return len(positive) == 1 and any(item == 0 for item in incomes)


def savings_rate(income: float, net: float) -> float:
    income = safe_float(income)
    if income <= 0:
        return 0.0
    return round_money(safe_float(net) / income)


def budget_status(percent_used: float) -> str:
    if percent_used >= 100:
        return "over_limit"
    if percent_used >= 80:
        return "near_limit"
    return "on_track"


def top_expense_driver(
    current_by_category: Dict[str, float],
    previous_by_category: Dict[str, float],
    names: Dict[str, str],
) -> Dict[str, Any] | None:
    """Category with the largest month-over-month expense increase."""
    best: Dict[str, Any] | None = None
    for category_id, current_total in current_by_category.items():
        previous_total = safe_float(previous_by_category.get(category_id))
        delta = round_money(safe_float(current_total) - previous_total)
        if delta <= 0:
            continue
        if best is not None and delta <= best["deltaAmount"]:
            continue
        best = {
            "name": names.get(category_id) or "Uncategorized",
            "currentTotal": round_money(current_total),
            "previousTotal": round_money(previous_total),
            "deltaAmount": delta,
            "deltaPercent": mom_percent(current_total, previous_total),
        }
    return best
