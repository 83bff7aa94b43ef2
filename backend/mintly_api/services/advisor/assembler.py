from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List

from mintly_api.services.finance.aggregate import AdvisorSnapshot
from mintly_api.services.finance.common import clamp, iso_utc, normalize_for_match, round_money

from .contracts import AdvisorInsight, ProviderOutput

EMERGENCY_FUND_MONTHS = 3
DEFAULT_CUT_REDUCTION_PERCENT = 10
MAX_DEFAULT_CUT_CANDIDATES = 3


def emergency_fund(snapshot: AdvisorSnapshot) -> Dict[str, Any]:
    target = round_money(max(0.0, snapshot.overview["currentMonthExpense"] * EMERGENCY_FUND_MONTHS))
    current = round_money(max(0.0, snapshot.total_balance))
    if target <= 0 or current >= target:
        status = "ready"
    elif current > 0:
        status = "building"
    else:
        status = "not_started"
    return {"emergencyFundTarget": target, "emergencyFundCurrent": current, "emergencyFundStatus": status}


def _labels_match(target: str, candidate: str) -> bool:
    if not target or not candidate:
        return False
    return target == candidate or target in candidate or candidate in target


def _match_amount(target: str, entries: Iterable[tuple[str, float]]) -> float | None:
    normalized = [(normalize_for_match(label), amount) for label, amount in entries]
    for label, amount in normalized:
        if label and label == target:
            return amount
    for label, amount in normalized:
        if _labels_match(target, label):
            return amount
    return None


def resolve_candidate_amount(label: str, snapshot: AdvisorSnapshot) -> float:
    """Category totals first, then recurring merchants. 0 when nothing matches."""
    target = normalize_for_match(label)
    if not target:
        return 0.0
    sources = (
        [(item["name"], item["total"]) for item in snapshot.category_breakdown],
        [(item["label"], item["total"]) for item in snapshot.recurring_outflows.get("merchants", [])],
    )
    for entries in sources:
        amount = _match_amount(target, entries)
        if amount is not None:
            return round_money(max(0.0, amount))
    return 0.0


def _cut_candidates(snapshot: AdvisorSnapshot, output: ProviderOutput) -> List[Dict[str, Any]]:
    optimization = output.expense_optimization
    candidates = [
        {
            "label": item.label,
            "currentAmount": resolve_candidate_amount(item.label, snapshot),
            "suggestedReductionPercent": clamp(float(item.suggested_reduction_percent), 0.0, 100.0),
            "alternativeAction": item.alternative_action,
        }
        for item in optimization.cut_candidates
    ]
    if candidates:
        return candidates
    return [
        {
            "label": item["name"],
            "currentAmount": round_money(max(0.0, item["total"])),
            "suggestedReductionPercent": DEFAULT_CUT_REDUCTION_PERCENT,
            "alternativeAction": optimization.quick_wins[0],
        }
        for item in snapshot.category_breakdown[:MAX_DEFAULT_CUT_CANDIDATES]
    ]


def _advice(snapshot: AdvisorSnapshot, output: ProviderOutput) -> Dict[str, Any]:
    savings = output.savings.model_dump(by_alias=True)
    savings["targetRate"] = clamp(float(savings["targetRate"]), 0.0, 1.0)
    savings["monthlyTargetAmount"] = round_money(max(0.0, float(savings["monthlyTargetAmount"])))

    investment = output.investment.model_dump(by_alias=True)
    return {
        "summary": output.summary,
        "topFindings": list(output.top_findings),
        "suggestedActions": list(output.suggested_actions),
        "warnings": list(output.warnings),
        "savings": savings,
        "investment": {
            **emergency_fund(snapshot),
            "profiles": investment["profiles"],
            "guidance": investment["guidance"],
        },
        "expenseOptimization": {
            "cutCandidates": _cut_candidates(snapshot, output),
            "quickWins": list(output.expense_optimization.quick_wins),
        },
        "tips": list(output.tips),
    }


def assemble_insight(
    snapshot: AdvisorSnapshot,
    output: ProviderOutput,
    *,
    language: str,
    mode: str,
    mode_reason: str | None = None,
    provider: str | None = None,
    provider_status: int | None = None,
    generated_at: datetime | None = None,
) -> Dict[str, Any]:
    """Merge chosen advice with the snapshot and validate the result against ``AdvisorInsight``."""
    payload = {
        "month": snapshot.month,
        "generatedAt": iso_utc(generated_at),
        "language": language,
        "mode": mode,
        "modeReason": None if mode in {"ai", "manual"} else mode_reason,
        "provider": provider,
        "providerStatus": provider_status,
        "currency": snapshot.currency,
        "preferences": dict(snapshot.preferences),
        "overview": dict(snapshot.overview),
        "categoryBreakdown": [dict(item) for item in snapshot.category_breakdown],
        "cashflowTrend": [dict(item) for item in snapshot.cashflow_trend],
        "budgetAdherence": snapshot.budget_adherence,
        "recurringOutflows": snapshot.recurring_outflows,
        "flags": dict(snapshot.flags),
        "signals": dict(snapshot.signals),
        "advice": _advice(snapshot, output),
    }
    insight = AdvisorInsight.model_validate(payload)
    return insight.model_dump(by_alias=True, mode="json")
