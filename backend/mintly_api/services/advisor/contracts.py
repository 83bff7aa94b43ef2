from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

LanguageCode = Literal["tr", "en", "ru"]
RiskLevel = Literal["low", "medium", "high"]
AdviceMode = Literal["ai", "fallback", "manual"]
BudgetStatus = Literal["on_track", "near_limit", "over_limit"]
EmergencyFundStatus = Literal["ready", "building", "not_started"]

Line = Annotated[str, Field(min_length=1, max_length=320)]
Option = Annotated[str, Field(min_length=1, max_length=260)]


class _Contract(BaseModel):
    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class SavingsAdvice(_Contract):
    target_rate: float = Field(ge=0, le=1)
    monthly_target_amount: float = Field(ge=0)
    next7_days_actions: list[Line] = Field(min_length=1, max_length=8)
    auto_transfer_suggestion: str = Field(min_length=1, max_length=320)


class InvestmentProfile(_Contract):
    level: RiskLevel
    title: str = Field(min_length=1, max_length=180)
    rationale: str = Field(min_length=1, max_length=400)
    options: list[Option] = Field(min_length=1, max_length=6)


class InvestmentAdvice(_Contract):
    profiles: list[InvestmentProfile] = Field(min_length=1, max_length=3)
    guidance: list[Line] = Field(min_length=1, max_length=8)


class CutCandidate(_Contract):
    label: str = Field(min_length=1, max_length=120)
    suggested_reduction_percent: float = Field(ge=0, le=100)
    alternative_action: str = Field(min_length=1, max_length=320)


class ExpenseOptimization(_Contract):
    cut_candidates: list[CutCandidate] = Field(min_length=1, max_length=6)
    quick_wins: list[Line] = Field(min_length=1, max_length=8)


class ProviderOutput(_Contract):
    summary: str = Field(min_length=1, max_length=1500)
    top_findings: list[Line] = Field(min_length=1, max_length=8)
    suggested_actions: list[Line] = Field(min_length=1, max_length=8)
    warnings: list[Line] = Field(default_factory=list, max_length=8)
    savings: SavingsAdvice
    investment: InvestmentAdvice
    expense_optimization: ExpenseOptimization
    tips: list[Line] = Field(min_length=1, max_length=10)


class Preferences(_Contract):
    savings_target_rate: float = Field(ge=0, le=100)
    risk_profile: RiskLevel


class Overview(_Contract):
    last30_days_income: float
    last30_days_expense: float
    last30_days_net: float
    current_month_income: float
    current_month_expense: float
    current_month_net: float
    savings_rate: float


class CategoryBreakdownItem(_Contract):
    category_id: str
    name: str
    total: float
    share_percent: float = Field(ge=0, le=100)


class CashflowPoint(_Contract):
    month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    income_total: float
    expense_total: float
    net_total: float


class BudgetItem(_Contract):
    budget_id: str
    category_id: str
    category_name: str
    limit_amount: float
    spent_amount: float
    remaining_amount: float
    percent_used: float = Field(ge=0)
    status: BudgetStatus


class BudgetAdherence(_Contract):
    tracked_count: int = Field(ge=0)
    on_track_count: int = Field(ge=0)
    near_limit_count: int = Field(ge=0)
    over_limit_count: int = Field(ge=0)
    items: list[BudgetItem] = Field(max_length=8)


class RecurringRuleItem(_Contract):
    rule_id: str
    label: str
    cadence: Literal["weekly", "monthly"]
    amount: float
    next_run_at: str | None = None


class MerchantItem(_Contract):
    label: str
    total: float
    count: int = Field(ge=2)


class RecurringOutflows(_Contract):
    rules: list[RecurringRuleItem] = Field(max_length=5)
    merchants: list[MerchantItem] = Field(max_length=5)


class Flags(_Contract):
    overspending_category_names: list[str] = Field(max_length=8)
    negative_cashflow: bool
    low_savings_rate: bool
    irregular_income: bool


class ExpenseDriver(_Contract):
    name: str
    current_total: float
    previous_total: float
    delta_amount: float
    delta_percent: float | None = None


class AnomalyItem(_Contract):
    date: str
    category_name: str
    amount: float


class Signals(_Contract):
    income_mom_percent: float | None = Field(default=None, alias="incomeMoMPercent")
    expense_mom_percent: float | None = Field(default=None, alias="expenseMoMPercent")
    top_expense_driver: ExpenseDriver | None = None
    recurring_monthly_total: float = Field(ge=0)
    recurring_burden_ratio: float = Field(ge=0, le=5)
    anomaly_threshold: float = Field(ge=0)
    anomalies: list[AnomalyItem] = Field(max_length=5)


class InsightInvestment(_Contract):
    emergency_fund_target: float = Field(ge=0)
    emergency_fund_current: float = Field(ge=0)
    emergency_fund_status: EmergencyFundStatus
    profiles: list[InvestmentProfile] = Field(min_length=1, max_length=3)
    guidance: list[Line] = Field(min_length=1, max_length=8)


class InsightCutCandidate(_Contract):
    label: str = Field(min_length=1, max_length=120)
    current_amount: float = Field(ge=0)
    suggested_reduction_percent: float = Field(ge=0, le=100)
    alternative_action: str = Field(min_length=1, max_length=320)


class InsightExpenseOptimization(_Contract):
    cut_candidates: list[InsightCutCandidate] = Field(max_length=6)
    quick_wins: list[Line] = Field(min_length=1, max_length=8)


class InsightAdvice(_Contract):
    summary: str = Field(min_length=1, max_length=1500)
    top_findings: list[Line] = Field(min_length=1, max_length=8)
    suggested_actions: list[Line] = Field(min_length=1, max_length=8)
    warnings: list[Line] = Field(max_length=8)
    savings: SavingsAdvice
    investment: InsightInvestment
    expense_optimization: InsightExpenseOptimization
    tips: list[Line] = Field(min_length=1, max_length=10)


class AdvisorInsight(_Contract):
    month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    generated_at: str
    language: LanguageCode
    mode: AdviceMode
    mode_reason: str | None = Field(default=None, max_length=80)
    provider: Literal["cloudflare", "manual"] | None = None
    provider_status: int | None = Field(default=None, ge=100, le=599)
    currency: str | None = None
    preferences: Preferences
    overview: Overview
    category_breakdown: list[CategoryBreakdownItem] = Field(max_length=5)
    cashflow_trend: list[CashflowPoint] = Field(min_length=3, max_length=3)
    budget_adherence: BudgetAdherence
    recurring_outflows: RecurringOutflows
    flags: Flags
    signals: Signals
    advice: InsightAdvice

    @field_validator("generated_at")
    @classmethod
    def _generated_at_is_iso(cls, value: str) -> str:
        if "T" not in value:
            raise ValueError("generatedAt must be an ISO-8601 timestamp")
        return value
