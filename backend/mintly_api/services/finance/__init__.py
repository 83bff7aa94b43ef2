from .aggregate import AdvisorSnapshot, aggregate_advisor_snapshot
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

__all__ = [
    "AdvisorSnapshot",
    "aggregate_advisor_snapshot",
    "anomaly_threshold",
    "budget_status",
    "detect_anomalies",
    "irregular_income",
    "mom_percent",
    "monthly_recurring_total",
    "recurring_burden_ratio",
    "savings_rate",
    "top_expense_driver",
]
