"""Seeded, fully local advice generator.

The same (user, month, language) always yields the same lines. A regenerate request mixes a
per-request nonce into the seed so the user gets a different but still reproducible variant.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence

from mintly_api.services.finance.aggregate import AdvisorSnapshot

from .contracts import ProviderOutput
from .fallback import clip_line, fallback_copy, fallback_cut_candidates, fallback_savings, order_profiles
from .templates import (
    AUTO_TRANSFER_LINES,
    CATEGORY_KEYS,
    FALLBACK_LINES,
    INVESTMENT_GUIDANCE_LINES,
    MONTH_NAMES,
    QUICK_WIN_LINES,
    WARNING_LINES,
    get_template_bank,
    template_language,
)

_MASK = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619

_TOKEN_PATTERN = re.compile(r"\{([A-Za-z0-9_]+)\}")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_SPACE_BEFORE_PUNCT_PATTERN = re.compile(r"\s+([,.;:!?])")

MIN_LINE_LENGTH = 24
MIN_LINE_LENGTH_WITH_MISSING = 40
MIN_CATEGORIES = 5
MOM_TRIGGER_PERCENT = 6
SUBSCRIPTION_TRIGGER_RATIO = 0.22
RECURRING_WARNING_RATIO = 0.35
LOW_SAVINGS_RATE = 0.15
INVESTING_MIN_SAVINGS_RATE = 0.04
MAX_WARNINGS = 4

FILL_ORDER = (
    "spending",
    "savings",
    "budgeting",
    "subscriptions",
    "income",
    "risk",
    "goals",
    "investing",
    "debt",
    "cashflow",
)


# =========================
# Seeding
# =========================
def hash_string(value: str) -> int:
    """32-bit FNV-1a over UTF-16 code units."""
    digest = _FNV_OFFSET
    encoded = value.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        digest ^= encoded[index] | (encoded[index + 1] << 8)
        digest = (digest * _FNV_PRIME) & _MASK
    return digest


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


class SeededRandom:
    """mulberry32 generator; floats in [0, 1)."""

    def __init__(self, seed: int) -> None:
        self._state = seed & _MASK

    def random(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = (t ^ ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / 4294967296

    def next_int(self, upper: int) -> int:
        if upper <= 1:
            return 0
        return int(self.random() * upper)


def resolve_seed(user_id: str, month: str, language: str, *, regenerate: bool, variant_nonce: str | None) -> int:
    base = hash_string(f"{user_id}|{month}|{language}")
    if not regenerate:
        return base
    return hash_string(f"{base}|{(variant_nonce or '').strip() or 'regenerate'}")


# =========================
# Rendering
# =========================
def normalize_line(value: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", str(value or "")).strip().lower()


def render_template(template: str, tokens: Dict[str, Any], fallback_line: str) -> str:
    missing = False

    def _replace(match: re.Match[str]) -> str:
        nonlocal missing
        value = tokens.get(match.group(1))
        text = "" if value is None else str(value).strip()
        if not text:
            missing = True
        return text

    line = _TOKEN_PATTERN.sub(_replace, template)
    line = _WHITESPACE_PATTERN.sub(" ", line)
    line = _SPACE_BEFORE_PUNCT_PATTERN.sub(r"\1", line)
    line = line.replace("( )", "").replace("()", "").strip()
    if len(line) < MIN_LINE_LENGTH:
        return fallback_line
    if missing and len(line) < MIN_LINE_LENGTH_WITH_MISSING:
        return fallback_line
    return clip_line(line)


def _dedupe_keep_order(items: Sequence[str]) -> List[str]:
    seen: set[str] = set()
    deduped: List[str] = []
    for item in items:
        key = normalize_line(item)
        if not key or key in seen:
            continue
        seen.add(key)
        deduped.append(str(item).strip())
    return deduped


def pick_unique_templates(
    pool: Sequence[str],
    count: int,
    rng: SeededRandom,
    tokens: Dict[str, Any],
    fallback_line: str,
) -> tuple[List[str], List[int]]:
    """Random picks first, then a sequential sweep, then the fallback line once."""
    lines: List[str] = []
    indexes: List[int] = []
    used_lines: set[str] = set()
    used_indexes: set[int] = set()
    if count <= 0:
        return lines, indexes

    def _take(index: int) -> None:
        line = render_template(pool[index], tokens, fallback_line)
        key = normalize_line(line)
        if key in used_lines:
            return
        used_indexes.add(index)
        used_lines.add(key)
        lines.append(line)
        indexes.append(index)

    attempts = 0
    max_attempts = max(count * 14, len(pool) * 4)
    while pool and len(lines) < count and attempts < max_attempts:
        attempts += 1
        index = rng.next_int(len(pool))
        if index in used_indexes:
            continue
        _take(index)

    for index in range(len(pool)):
        if len(lines) >= count:
            break
        if index not in used_indexes:
            _take(index)

    if len(lines) < count and normalize_line(fallback_line) not in used_lines:
        lines.append(fallback_line)
        indexes.append(-1)
    return lines, indexes


def pick_static(items: Sequence[str], count: int, rng: SeededRandom) -> List[str]:
    remaining = list(items)
    picked: List[str] = []
    while remaining and len(picked) < count:
        picked.append(remaining.pop(rng.next_int(len(remaining))))
    return picked


# =========================
# Inputs
# =========================
def derive_triggered_categories(snapshot: AdvisorSnapshot) -> List[str]:
    overview = snapshot.overview
    signals = snapshot.signals
    budget = snapshot.budget_adherence
    net = float(overview["currentMonthNet"])
    rate = float(overview["savingsRate"])

    categories = ["cashflow"]
    if net < 0:
        categories.extend(["risk", "debt"])
    if abs(float(signals.get("expenseMoMPercent") or 0)) >= MOM_TRIGGER_PERCENT:
        categories.append("spending")
    if abs(float(signals.get("incomeMoMPercent") or 0)) >= MOM_TRIGGER_PERCENT:
        categories.append("income")
    if float(signals.get("recurringBurdenRatio") or 0) >= SUBSCRIPTION_TRIGGER_RATIO:
        categories.append("subscriptions")
    if rate * 100 < snapshot.savings_target_rate or rate < LOW_SAVINGS_RATE:
        categories.append("savings")
    if budget["nearLimitCount"] > 0 or budget["overLimitCount"] > 0:
        categories.append("budgeting")
    if signals.get("anomalies"):
        categories.append("risk")
    categories.append("goals")
    if net > 0 and rate >= INVESTING_MIN_SAVINGS_RATE:
        categories.append("investing")

    ordered = [key for key in dict.fromkeys(categories) if key in CATEGORY_KEYS]
    for key in FILL_ORDER:
        if len(ordered) >= MIN_CATEGORIES:
            break
        if key not in ordered:
            ordered.append(key)
    return ordered


def _format_number(value: float) -> str:
    rounded = round(float(value), 1)
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.1f}"


def _format_signed(value: float | None) -> str:
    number = float(value or 0)
    text = _format_number(number)
    return f"+{text}" if number > 0 else text


def _format_currency(value: float, currency: str | None) -> str:
    text = f"{round(float(value)):,.0f}"
    return f"{text} {currency}" if currency else text


def _month_label(month: str, language: str) -> str:
    year, number = month.split("-")
    return f"{MONTH_NAMES[language][int(number) - 1]} {year}"


def build_tokens(snapshot: AdvisorSnapshot, language: str) -> Dict[str, Any]:
    overview = snapshot.overview
    signals = snapshot.signals
    budget = snapshot.budget_adherence
    driver = signals.get("topExpenseDriver") or {}
    if snapshot.category_breakdown:
        top_category = snapshot.category_breakdown[0]["name"]
    else:
        top_category = driver.get("name") or FALLBACK_LINES[language]["category"]
    compared = snapshot.cashflow_trend[-2]["month"] if len(snapshot.cashflow_trend) >= 2 else snapshot.month
    return {
        "monthName": _month_label(snapshot.month, language),
        "comparedMonthName": _month_label(compared, language),
        "currency": snapshot.currency or "",
        "netAmount": _format_currency(overview["currentMonthNet"], snapshot.currency),
        "spendDeltaPct": _format_signed(signals.get("expenseMoMPercent")),
        "incomeDeltaPct": _format_signed(signals.get("incomeMoMPercent")),
        "savingsRatePct": _format_number(overview["savingsRate"] * 100),
        "targetSavingsRatePct": _format_number(snapshot.savings_target_rate),
        "topCategory": top_category,
        "overBudgetCount": budget["overLimitCount"],
        "nearBudgetCount": budget["nearLimitCount"],
        "anomalyCount": len(signals.get("anomalies") or []),
    }


def _build_pool(bank: Dict[str, Any], section: str, categories: Sequence[str]) -> List[str]:
    pool: List[str] = []
    for key in categories:
        pool.extend(bank[section].get(key, []))
    pool.extend(bank[f"generic_{section}"])
    return pool


def _warnings(snapshot: AdvisorSnapshot, language: str, tokens: Dict[str, Any]) -> List[str]:
    copy = WARNING_LINES[language]
    templates: List[str] = []
    if snapshot.overview["currentMonthNet"] < 0:
        templates.append(copy["negative"])
    if float(snapshot.signals.get("recurringBurdenRatio") or 0) >= RECURRING_WARNING_RATIO:
        templates.append(copy["recurring"])
    if snapshot.budget_adherence["overLimitCount"] > 0:
        templates.append(copy["over_budget"])
    if snapshot.signals.get("anomalies"):
        templates.append(copy["anomalies"])
    rendered = [render_template(item, tokens, FALLBACK_LINES[language]["finding"]) for item in templates]
    return _dedupe_keep_order(rendered)[:MAX_WARNINGS]


# =========================
# Generation
# =========================
@dataclass
class ManualAdvice:
    variant_key: str
    categories: List[str]
    summary: str
    findings: List[str]
    actions: List[str]
    warnings: List[str]
    tips: List[str]
    weekly_actions: List[str]
    auto_transfer: str
    investment_guidance: List[str]
    quick_wins: List[str]
    tokens: Dict[str, Any] = field(default_factory=dict)


def generate_manual_advice(
    snapshot: AdvisorSnapshot,
    language: str,
    *,
    regenerate: bool = False,
    variant_nonce: str | None = None,
    rng_factory: Callable[[int], SeededRandom] = SeededRandom,
) -> ManualAdvice:
    lang = template_language(language)
    bank = get_template_bank(lang)
    fallback = FALLBACK_LINES[lang]

    seed = resolve_seed(snapshot.user_id, snapshot.month, lang, regenerate=regenerate, variant_nonce=variant_nonce)
    rng = rng_factory(seed)
    categories = derive_triggered_categories(snapshot)
    tokens = build_tokens(snapshot, lang)
    line_count = min(5, max(3, len(categories)))

    summaries, _ = pick_unique_templates(
        _build_pool(bank, "summaries", categories), 1, rng, tokens, fallback["summary"]
    )
    findings, _ = pick_unique_templates(
        _build_pool(bank, "findings", categories), line_count, rng, tokens, fallback["finding"]
    )
    actions, _ = pick_unique_templates(
        _build_pool(bank, "actions", categories), line_count, rng, tokens, fallback["action"]
    )
    tips, _ = pick_unique_templates(
        [*bank["generic_findings"], *bank["generic_actions"]], 4, rng, tokens, fallback["action"]
    )

    income = float(snapshot.overview["currentMonthIncome"])
    transfer_amount = max(0.0, income * snapshot.savings_target_rate / 100)
    auto_transfer = AUTO_TRANSFER_LINES[lang].format(amount=_format_currency(transfer_amount, snapshot.currency))

    return ManualAdvice(
        variant_key=f"{seed:08x}",
        categories=categories,
        summary=summaries[0] if summaries else fallback["summary"],
        findings=findings or [fallback["finding"]],
        actions=actions or [fallback["action"]],
        warnings=_warnings(snapshot, lang, tokens),
        tips=tips or [fallback["action"]],
        weekly_actions=(actions or [fallback["action"]])[:3],
        auto_transfer=auto_transfer,
        investment_guidance=pick_static(INVESTMENT_GUIDANCE_LINES[lang], 3, rng),
        quick_wins=pick_static(QUICK_WIN_LINES[lang], 3, rng),
        tokens=tokens,
    )


def build_manual_output(
    snapshot: AdvisorSnapshot,
    language: str,
    *,
    regenerate: bool = False,
    variant_nonce: str | None = None,
) -> tuple[ProviderOutput, ManualAdvice]:
    """Template lines completed with the fallback synthesizer's savings, profiles and cut candidates."""
    advice = generate_manual_advice(snapshot, language, regenerate=regenerate, variant_nonce=variant_nonce)
    copy = fallback_copy(language)
    savings = fallback_savings(snapshot, copy)
    savings["next7DaysActions"] = list(advice.weekly_actions)
    savings["autoTransferSuggestion"] = advice.auto_transfer

    payload = {
        "summary": advice.summary,
        "topFindings": advice.findings,
        "suggestedActions": advice.actions,
        "warnings": advice.warnings,
        "savings": savings,
        "investment": {
            "profiles": order_profiles(copy, snapshot.risk_profile),
            "guidance": advice.investment_guidance,
        },
        "expenseOptimization": {
            "cutCandidates": fallback_cut_candidates(snapshot, copy),
            "quickWins": advice.quick_wins,
        },
        "tips": advice.tips,
    }
    return ProviderOutput.model_validate(payload), advice
