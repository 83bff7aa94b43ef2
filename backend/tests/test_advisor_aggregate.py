from __future__ import annotations

import unittest

from advisor_fixtures import FIXED_NOW, MONTH, USER_ID, empty_store, seed_store

from mintly_api.errors import ApiError
from mintly_api.services.finance.aggregate import aggregate_advisor_snapshot


class AggregateSnapshotTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = seed_store()
        self.snapshot = aggregate_advisor_snapshot(self.store, user_id=USER_ID, month=MONTH, now=FIXED_NOW)

    def test_budget_spent_and_remaining(self) -> None:
        item = self.snapshot.budget_adherence["items"][0]
        self.assertEqual(item["categoryName"], "Food")
        self.assertEqual(item["spentAmount"], 2750.0)
        self.assertEqual(item["remainingAmount"], item["limitAmount"] - item["spentAmount"])
        self.assertAlmostEqual(item["percentUsed"], 91.67, places=2)
        # 91.67% sits in the 80-99 band
        self.assertEqual(item["status"], "near_limit")
        self.assertEqual(self.snapshot.budget_adherence["nearLimitCount"], 1)

    def test_overview_totals(self) -> None:
        overview = self.snapshot.overview
        self.assertEqual(overview["currentMonthIncome"], 12000.0)
        self.assertEqual(overview["currentMonthExpense"], 3150.0)
        self.assertEqual(overview["currentMonthNet"], 8850.0)
        self.assertEqual(overview["savingsRate"], 0.74)
        self.assertEqual(self.snapshot.total_balance, 17650.0)

    def test_trend_covers_three_months(self) -> None:
        trend = self.snapshot.cashflow_trend
        self.assertEqual([item["month"] for item in trend], ["2026-01", "2026-02", "2026-03"])
        self.assertEqual(trend[1]["incomeTotal"], 10000.0)
        self.assertEqual(trend[1]["netTotal"], 8800.0)

    def test_signals(self) -> None:
        signals = self.snapshot.signals
        self.assertEqual(signals["incomeMoMPercent"], 20.0)
        self.assertEqual(signals["expenseMoMPercent"], 162.5)
        self.assertEqual(signals["topExpenseDriver"]["name"], "Food")
        self.assertEqual(signals["recurringMonthlyTotal"], 584.5)
        self.assertEqual(signals["anomalyThreshold"], 2365.0)
        self.assertEqual(signals["anomalies"], [])

    def test_recurring_merchants_need_two_occurrences(self) -> None:
        merchants = self.snapshot.recurring_outflows["merchants"]
        self.assertEqual([item["label"] for item in merchants], ["Market"])
        self.assertEqual(merchants[0]["count"], 3)

    def test_transfer_rule_label_uses_account_names(self) -> None:
        labels = {item["label"] for item in self.snapshot.recurring_outflows["rules"]}
        self.assertIn("Checking -> Savings", labels)
        self.assertIn("Streaming", labels)

    def test_category_breakdown_is_sorted(self) -> None:
        names = [item["name"] for item in self.snapshot.category_breakdown]
        self.assertEqual(names, ["Food", "Transport"])
        self.assertAlmostEqual(self.snapshot.category_breakdown[0]["sharePercent"], 87.3, places=1)

    def test_soft_deleted_transactions_are_ignored(self) -> None:
        self.store.transactions[-1]["deleted_at"] = "2026-03-15T00:00:00Z"
        snapshot = aggregate_advisor_snapshot(self.store, user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        self.assertEqual(snapshot.overview["currentMonthExpense"], 2750.0)

    def test_unknown_user_is_unauthorized(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            aggregate_advisor_snapshot(self.store, user_id="ghost", month=MONTH, now=FIXED_NOW)
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.code, "UNAUTHORIZED")

    def test_empty_user_has_zeroed_snapshot(self) -> None:
        snapshot = aggregate_advisor_snapshot(empty_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        self.assertEqual(snapshot.overview["savingsRate"], 0.0)
        self.assertEqual(snapshot.category_breakdown, [])
        self.assertIsNone(snapshot.signals["incomeMoMPercent"])
        self.assertEqual(snapshot.preferences, {"savingsTargetRate": 20.0, "riskProfile": "medium"})


if __name__ == "__main__":
    unittest.main()
