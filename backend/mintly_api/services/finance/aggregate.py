from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List

from mintly_api.config import DEFAULT_RISK_PROFILE, DEFAULT_SAVINGS_TARGET_RATE
from mintly_api.errors import ApiError

from .common import (
    DAY,
    month_bounds,
    month_key,
    normalize_for_match,
    parse_datetime,
    resolve_anchor_date,
    round_money,
    safe_float,
    sanitize_free_text,
    shift_month,
)
from .metrics import (
    anomaly_threshold,
    budget_status,
    detect_anomalies,
    irregular_income,
    mom_percent,
    monthly_recurring_total,
    recurring_burden_ratio,
    savings_rate,
    top_expense_driver,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
TREND_MONTHS = 3


@dataclass(frozen=True)
class AdvisorSnapshot:
    """Aggregated and derived figures for one (user, month). Never mutated after construction."""

    user_id: str
    month: str
    currency: str | None
    preferences: Dict[str, Any]
    balances_snapshot: Dict[str, Any]
    overview: Dict[str, float]
    category_breakdown: List[Dict[str, Any]]
    cashflow_trend: List[Dict[str, Any]]
    budget_adherence: Dict[str, Any]
    recurring_outflows: Dict[str, List[Dict[str, Any]]]
    flags: Dict[str, Any]
    signals: Dict[str, Any]
    previous_month_category_totals: Dict[str, float] = field(default_factory=dict)

    @property
    def total_balance(self) -> float:
        return safe_float(self.balances_snapshot.get("totalBalance"))

    @property
    def savings_target_rate(self) -> float:
        return safe_float(self.preferences.get("savingsTargetRate"), DEFAULT_SAVINGS_TARGET_RATE)

    @property
    def risk_profile(self) -> str:
        return str(self.preferences.get("riskProfile") or DEFAULT_RISK_PROFILE)

    def to_prompt_payload(self, language: str) -> Dict[str, Any]:
        budget = self.budget_adherence
        return {
            "month": self.month,
            "language": language,
            "currency": self.currency,
            "preferences": dict(self.preferences),
            "balancesSnapshot": dict(self.balances_snapshot),
            "spendOverview": dict(self.overview),
            "categoryBreakdown": [
                {"name": item["name"], "total": item["total"], "sharePercent": item["sharePercent"]}
                for item in self.category_breakdown
            ],
            "cashflowTrend": [dict(item) for item in self.cashflow_trend],
            "monthOverMonth": {
                "incomeMoMPercent": self.signals.get("incomeMoMPercent"),
                "expenseMoMPercent": self.signals.get("expenseMoMPercent"),
                "topExpenseDriver": self.signals.get("topExpenseDriver"),
            },
            "budgetAdherence": {
                "trackedCount": budget["trackedCount"],
                "onTrackCount": budget["onTrackCount"],
                "nearLimitCount": budget["nearLimitCount"],
                "overLimitCount": budget["overLimitCount"],
                "items": [
                    {
                        key: item[key]
                        for key in (
                            "categoryName",
                            "limitAmount",
                            "spentAmount",
                            "remainingAmount",
                            "percentUsed",
                            "status",
                        )
                    }
                    for item in budget["items"]
                ],
            },
            "recurringOutflows": {
                "monthlyTotal": self.signals.get("recurringMonthlyTotal"),
                "burdenRatio": self.signals.get("recurringBurdenRatio"),
                "rules": [
                    {"label": item["label"], "cadence": item["cadence"], "amount": item["amount"]}
                    for item in self.recurring_outflows["rules"]
                ],
                "merchants": [dict(item) for item in self.recurring_outflows["merchants"]],
            },
            "anomalies": {
                "threshold": self.signals.get("anomalyThreshold"),
                "items": [dict(item) for item in self.signals.get("anomalies", [])],
            },
            "flags": dict(self.flags),
        }


def _fetch_inputs(
    repository: Any,
    *,
    user_id: str,
    month: str,
    trend_start: datetime,
    month_end: datetime,
) -> Dict[str, Any]:
    """Fan out the independent queries, then resolve category names once ids are known."""
    queries = {
        "accounts": lambda: repository.find_accounts(user_id),
        "transactions": lambda: repository.find_transactions(user_id, trend_start, month_end),
        "budgets": lambda: repository.find_budgets(user_id, month),
        "recurring_rules": lambda: repository.find_recurring_rules(user_id),
        "balances": lambda: repository.aggregate_account_balances(user_id),
    }
    with ThreadPoolExecutor(max_workers=len(queries)) as executor:
        futures = {name: executor.submit(query) for name, query in queries.items()}
        results = {name: list(future.result() or []) for name, future in futures.items()}

    category_ids: set[str] = set()
    for budget in results["budgets"]:
        if budget.get("category_id"):
            category_ids.add(str(budget["category_id"]))
    for rule in results["recurring_rules"]:
        if rule.get("category_id"):
            category_ids.add(str(rule["category_id"]))
    for txn in results["transactions"]:
        if txn.get("category_id"):
            category_ids.add(str(txn["category_id"]))

    results["categories"] = list(repository.find_categories(user_id, category_ids) or []) if category_ids else []
    return results


def aggregate_advisor_snapshot(
    repository: Any,
    *,
    user_id: str,
    month: str,
    now: datetime | None = None,
) -> AdvisorSnapshot:
    user = repository.find_user_preferences(user_id)
    if not user:
        raise ApiError(code="UNAUTHORIZED", message="User not found", status_code=401)

    risk_profile = str(user.get("risk_profile") or DEFAULT_RISK_PROFILE).lower()
    preferences = {
        "savingsTargetRate": safe_float(user.get("savings_target_rate"), DEFAULT_SAVINGS_TARGET_RATE),
        "riskProfile": risk_profile if risk_profile in {"low", "medium", "high"} else DEFAULT_RISK_PROFILE,
    }

    month_start, month_end = month_bounds(month)
    trend_months = [shift_month(month, offset) for offset in range(-(TREND_MONTHS - 1), 1)]
    trend_start, _ = month_bounds(trend_months[0])
    previous_month = trend_months[-2]

    anchor = resolve_anchor_date(month_end, now)
    last30_from = anchor - timedelta(days=29)
    last30_to = anchor + DAY

    inputs = _fetch_inputs(
        repository,
        user_id=user_id,
        month=month,
        trend_start=trend_start,
        month_end=month_end,
    )
    accounts = inputs["accounts"]
    transactions = inputs["transactions"]

    account_names = {str(item.get("id")): sanitize_free_text(item.get("name")) for item in accounts}
    category_names = {str(item.get("id")): sanitize_free_text(item.get("name")) for item in inputs["categories"]}

    current_totals = {"income": 0.0, "expense": 0.0}
    last30_totals = {"income": 0.0, "expense": 0.0}
    trend_totals: Dict[str, Dict[str, float]] = {key: {"income": 0.0, "expense": 0.0} for key in trend_months}
    expense_by_category: Dict[str, float] = defaultdict(float)
    previous_expense_by_category: Dict[str, float] = defaultdict(float)
    merchants: Dict[str, Dict[str, Any]] = {}
    recent_expense_amounts: List[float] = []
    current_expenses: List[Dict[str, Any]] = []

    for txn in transactions:
        occurred = parse_datetime(txn.get("occurred_at"))
        if occurred is None:
            continue
        amount = safe_float(txn.get("amount"))
        kind = "income" if txn.get("type") == "income" else "expense"
        category_id = str(txn.get("category_id") or "")

        txn_month = month_key(occurred)
        if txn_month in trend_totals:
            trend_totals[txn_month][kind] += amount

        if month_start <= occurred < month_end:
            current_totals[kind] += amount
            if kind == "expense":
                if category_id:
                    expense_by_category[category_id] += amount
                current_expenses.append(
                    {
                        "date": occurred.strftime("%Y-%m-%d"),
                        "categoryName": category_names.get(category_id, UNCATEGORIZED),
                        "amount": round_money(amount),
                    }
                )
        elif kind == "expense" and category_id and txn_month == previous_month:
            previous_expense_by_category[category_id] += amount

        if last30_from <= occurred < last30_to:
            last30_totals[kind] += amount

        if kind == "expense":
            recent_expense_amounts.append(amount)
            label = sanitize_free_text(txn.get("description"))
            if label:
                key = normalize_for_match(label)
                entry = merchants.setdefault(key, {"label": label, "total": 0.0, "count": 0})
                entry["label"] = label
                entry["total"] += amount
                entry["count"] += 1

    current_income = round_money(current_totals["income"])
    current_expense = round_money(current_totals["expense"])
    current_net = round_money(current_income - current_expense)
    last30_income = round_money(last30_totals["income"])
    last30_expense = round_money(last30_totals["expense"])

    category_breakdown = sorted(
        (
            {
                "categoryId": category_id,
                "name": category_names.get(category_id, UNCATEGORIZED),
                "total": round_money(total),
                "sharePercent": round_money(total / current_expense * 100) if current_expense > 0 else 0.0,
            }
            for category_id, total in expense_by_category.items()
        ),
        key=lambda item: item["total"],
        reverse=True,
    )[:5]

    budget_items: List[Dict[str, Any]] = []
    for budget in inputs["budgets"]:
        category_id = str(budget.get("category_id") or "")
        spent = round_money(expense_by_category.get(category_id, 0.0))
        limit = round_money(budget.get("limit_amount"))
        percent_used = round_money(spent / limit * 100) if limit > 0 else 0.0
        budget_items.append(
            {
                "budgetId": str(budget.get("id") or ""),
                "categoryId": category_id,
                "categoryName": category_names.get(category_id, UNCATEGORIZED),
                "limitAmount": limit,
                "spentAmount": spent,
                "remainingAmount": round_money(limit - spent),
                "percentUsed": percent_used,
                "status": budget_status(percent_used),
            }
        )
    budget_items.sort(key=lambda item: item["percentUsed"], reverse=True)
    budget_items = budget_items[:8]
    budget_adherence = {
        "trackedCount": len(budget_items),
        "onTrackCount": sum(1 for item in budget_items if item["status"] == "on_track"),
        "nearLimitCount": sum(1 for item in budget_items if item["status"] == "near_limit"),
        "overLimitCount": sum(1 for item in budget_items if item["status"] == "over_limit"),
        "items": budget_items,
    }

    rule_items: List[Dict[str, Any]] = []
    for rule in inputs["recurring_rules"]:
        if rule.get("kind") == "transfer":
            parts = [
                account_names.get(str(rule.get(key) or ""), "")
                for key in ("from_account_id", "to_account_id")
            ]
            label = " -> ".join(part for part in parts if part) or "Transfer"
        else:
            label = (
                sanitize_free_text(rule.get("description"))
                or category_names.get(str(rule.get("category_id") or ""), "")
                or "Recurring expense"
            )
        next_run = parse_datetime(rule.get("next_run_at"))
        rule_items.append(
            {
                "ruleId": str(rule.get("id") or ""),
                "label": label,
                "cadence": "weekly" if rule.get("cadence") == "weekly" else "monthly",
                "amount": round_money(rule.get("amount")),
                "nextRunAt": next_run.isoformat(timespec="milliseconds").replace("+00:00", "Z") if next_run else None,
            }
        )
    recurring_total = monthly_recurring_total(inputs["recurring_rules"])
    rule_items.sort(key=lambda item: item["amount"], reverse=True)

    merchant_items = sorted(
        (
            {"label": entry["label"], "total": round_money(entry["total"]), "count": entry["count"]}
            for entry in merchants.values()
            if entry["count"] >= 2
        ),
        key=lambda item: item["total"],
        reverse=True,
    )[:5]

    cashflow_trend = []
    for key in trend_months:
        income_total = round_money(trend_totals[key]["income"])
        expense_total = round_money(trend_totals[key]["expense"])
        cashflow_trend.append(
            {
                "month": key,
                "incomeTotal": income_total,
                "expenseTotal": expense_total,
                "netTotal": round_money(income_total - expense_total),
            }
        )

    rate = savings_rate(current_income, current_net)
    flags = {
        "overspendingCategoryNames": [
            item["categoryName"] for item in budget_items if item["status"] == "over_limit"
        ][:8],
        "negativeCashflow": current_net < 0,
        "lowSavingsRate": current_income > 0 and rate < 0.1,
        "irregularIncome": irregular_income([item["incomeTotal"] for item in cashflow_trend]),
    }

    threshold = anomaly_threshold(recent_expense_amounts)
    previous_point = cashflow_trend[-2]
    signals = {
        "incomeMoMPercent": mom_percent(current_income, previous_point["incomeTotal"]),
        "expenseMoMPercent": mom_percent(current_expense, previous_point["expenseTotal"]),
        "topExpenseDriver": top_expense_driver(expense_by_category, previous_expense_by_category, category_names),
        "recurringMonthlyTotal": recurring_total,
        "recurringBurdenRatio": recurring_burden_ratio(recurring_total, current_expense),
        "anomalyThreshold": threshold,
        "anomalies": detect_anomalies(current_expenses, threshold),
    }

    total_balance = round_money(sum(safe_float(row.get("balance")) for row in inputs["balances"]))
    currency = user.get("base_currency") or (accounts[0].get("currency") if accounts else None) or None

    logger.debug(
        "advisor snapshot aggregated user=%s month=%s transactions=%d budgets=%d rules=%d",
        user_id,
        month,
        len(transactions),
        len(inputs["budgets"]),
        len(inputs["recurring_rules"]),
    )

    return AdvisorSnapshot(
        user_id=user_id,
        month=month,
        currency=currency,
        preferences=preferences,
        balances_snapshot={"accountCount": len(accounts), "totalBalance": total_balance},
        overview={
            "last30DaysIncome": last30_income,
            "last30DaysExpense": last30_expense,
            "last30DaysNet": round_money(last30_income - last30_expense),
            "currentMonthIncome": current_income,
            "currentMonthExpense": current_expense,
            "currentMonthNet": current_net,
            "savingsRate": rate,
        },
        category_breakdown=category_breakdown,
        cashflow_trend=cashflow_trend,
        budget_adherence=budget_adherence,
        recurring_outflows={"rules": rule_items[:5], "merchants": merchant_items},
        flags=flags,
        signals=signals,
        previous_month_category_totals={
            key: round_money(value) for key, value in previous_expense_by_category.items()
        },
    )
