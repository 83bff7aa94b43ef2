from __future__ import annotations

import unittest

from advisor_fixtures import FIXED_NOW, MONTH, USER_ID, empty_store, seed_store

from mintly_api.services.advisor.fallback import (
    FALLBACK_COPY,
    MAX_LINE_LENGTH,
    build_fallback_advice,
    clip_line,
    format_amount,
)
from mintly_api.services.finance.aggregate import aggregate_advisor_snapshot


class FallbackAdviceTests(unittest.TestCase):
    def test_all_zero_snapshot_is_complete(self) -> None:
        snapshot = aggregate_advisor_snapshot(empty_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        for language in ("en", "tr", "ru"):
            output = build_fallback_advice(snapshot, language)
            self.assertTrue(output.top_findings)
            self.assertTrue(output.suggested_actions)
            self.assertEqual({item.level for item in output.investment.profiles}, {"low", "medium", "high"})
            self.assertEqual(output.savings.monthly_target_amount, 0.0)
            self.assertEqual(output.warnings, [])

    def test_preferred_risk_level_sorts_first(self) -> None:
        snapshot = aggregate_advisor_snapshot(seed_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        output = build_fallback_advice(snapshot, "en")
        self.assertEqual([item.level for item in output.investment.profiles], ["low", "medium", "high"])

        store = seed_store()
        store.users[USER_ID]["risk_profile"] = "high"
        snapshot = aggregate_advisor_snapshot(store, user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        output = build_fallback_advice(snapshot, "en")
        self.assertEqual([item.level for item in output.investment.profiles], ["high", "low", "medium"])

    def test_findings_reflect_signals(self) -> None:
        snapshot = aggregate_advisor_snapshot(seed_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        output = build_fallback_advice(snapshot, "en")
        joined = " ".join(output.top_findings)
        self.assertIn("+20%", joined)
        self.assertIn("+162.5%", joined)
        self.assertIn("Food is the main expense driver", joined)
        self.assertIn("1 near limit out of 1 tracked", joined)
        self.assertEqual(output.summary, FALLBACK_COPY["en"]["summary"])
        self.assertEqual(output.savings.monthly_target_amount, 2400.0)

    def test_negative_cashflow_changes_summary_and_warnings(self) -> None:
        store = seed_store()
        store.add_transaction(
            {
                "user_id": USER_ID,
                "account_id": store.accounts[0]["id"],
                "category_id": store.categories[1]["id"],
                "type": "expense",
                "amount": 20000,
                "currency": "TRY",
                "description": "Car repair",
                "occurred_at": "2026-03-18T10:00:00Z",
            }
        )
        snapshot = aggregate_advisor_snapshot(store, user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        output = build_fallback_advice(snapshot, "tr")
        self.assertEqual(output.summary, FALLBACK_COPY["tr"]["summary_negative"])
        self.assertTrue(any("negatif" in line for line in output.warnings))
        self.assertTrue(any("olağandışı" in line for line in output.warnings))

    def test_long_overspent_category_names_are_clipped(self) -> None:
        store = empty_store()
        account = store.add_account({"user_id": USER_ID, "name": "Checking", "currency": "TRY"})
        for index in range(3):
            name = f"{index} " + "Household repairs and renovation " * 3
            category = store.add_category({"user_id": USER_ID, "name": name})
            store.add_budget({"user_id": USER_ID, "category_id": category["id"], "month": MONTH, "limit_amount": 100})
            store.add_transaction(
                {
                    "user_id": USER_ID,
                    "account_id": account["id"],
                    "category_id": category["id"],
                    "type": "expense",
                    "amount": 500,
                    "currency": "TRY",
                    "description": "Contractor",
                    "occurred_at": "2026-03-10T09:00:00Z",
                }
            )
        snapshot = aggregate_advisor_snapshot(store, user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        self.assertEqual(len(snapshot.flags["overspendingCategoryNames"]), 3)

        output = build_fallback_advice(snapshot, "en")
        lines = [*output.top_findings, *output.suggested_actions, *output.warnings]
        self.assertTrue(all(len(line) <= MAX_LINE_LENGTH for line in lines))
        self.assertTrue(any(line.endswith("...") for line in output.suggested_actions))

    def test_clip_line(self) -> None:
        self.assertEqual(clip_line("  short  "), "short")
        clipped = clip_line("x" * 400)
        self.assertEqual(len(clipped), MAX_LINE_LENGTH)
        self.assertEqual(clipped[-4:], "x...")

    def test_format_amount(self) -> None:
        self.assertEqual(format_amount(1234.5, "TRY"), "1,234.50 TRY")
        self.assertEqual(format_amount(-3), "-3.00")


if __name__ == "__main__":
    unittest.main()
