from __future__ import annotations

import unittest

from advisor_fixtures import FIXED_NOW, MONTH, USER_ID, empty_store, seed_store

from mintly_api.services.advisor.manual_engine import (
    SeededRandom,
    build_manual_output,
    derive_triggered_categories,
    generate_manual_advice,
    hash_string,
    pick_static,
    pick_unique_templates,
    render_template,
    resolve_seed,
)
from mintly_api.services.advisor.templates import CATEGORY_KEYS, TEMPLATE_BANKS, template_language
from mintly_api.services.finance.aggregate import aggregate_advisor_snapshot


class SeedingTests(unittest.TestCase):
    def test_fnv1a_known_values(self) -> None:
        self.assertEqual(hash_string(""), 2166136261)
        self.assertEqual(hash_string("a"), 0xE40C292C)

    def test_prng_is_reproducible_and_bounded(self) -> None:
        first = SeededRandom(42)
        second = SeededRandom(42)
        values = [first.random() for _ in range(50)]
        self.assertEqual(values, [second.random() for _ in range(50)])
        self.assertTrue(all(0 <= value < 1 for value in values))
        self.assertEqual(SeededRandom(1).next_int(1), 0)

    def test_regenerate_mixes_nonce(self) -> None:
        base = resolve_seed(USER_ID, MONTH, "en", regenerate=False, variant_nonce="x")
        self.assertEqual(base, hash_string(f"{USER_ID}|{MONTH}|en"))
        self.assertEqual(
            resolve_seed(USER_ID, MONTH, "en", regenerate=True, variant_nonce=None),
            hash_string(f"{base}|regenerate"),
        )
        self.assertNotEqual(
            resolve_seed(USER_ID, MONTH, "en", regenerate=True, variant_nonce="a"),
            resolve_seed(USER_ID, MONTH, "en", regenerate=True, variant_nonce="b"),
        )


class RenderingTests(unittest.TestCase):
    def test_tokens_and_punctuation(self) -> None:
        line = render_template("Spending in {topCategory} , rose sharply this month .", {"topCategory": "Food"}, "F")
        self.assertEqual(line, "Spending in Food, rose sharply this month.")

    def test_short_lines_use_fallback(self) -> None:
        self.assertEqual(render_template("Hi {name}", {"name": "x"}, "FALLBACK"), "FALLBACK")

    def test_missing_tokens_use_fallback_below_forty_chars(self) -> None:
        line = render_template("{a} and {b} went to the market today", {"a": "Ali", "b": " "}, "FALLBACK")
        self.assertEqual(line, "FALLBACK")

    def test_duplicate_pool_falls_back_once(self) -> None:
        pool = ["The same line that is long enough to pass."] * 3
        lines, indexes = pick_unique_templates(pool, 3, SeededRandom(7), {}, "A fallback line that is long enough.")
        self.assertEqual(lines, [pool[0], "A fallback line that is long enough."])
        self.assertEqual(indexes[-1], -1)

    def test_pick_static_has_no_repeats(self) -> None:
        items = ["a", "b", "c", "d", "e"]
        picked = pick_static(items, 3, SeededRandom(3))
        self.assertEqual(len(set(picked)), 3)
        self.assertEqual(items, ["a", "b", "c", "d", "e"])


class TemplateBankTests(unittest.TestCase):
    def test_every_language_covers_every_category(self) -> None:
        for bank in TEMPLATE_BANKS.values():
            for section in ("summaries", "findings", "actions"):
                self.assertEqual(set(bank[section]), set(CATEGORY_KEYS))
                self.assertTrue(all(bank[section][key] for key in CATEGORY_KEYS))
                self.assertTrue(bank[f"generic_{section}"])

    def test_language_normalization(self) -> None:
        self.assertEqual(template_language("tr-TR"), "tr")
        self.assertEqual(template_language("RU"), "ru")
        self.assertEqual(template_language("de"), "en")


class ManualAdviceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.snapshot = aggregate_advisor_snapshot(seed_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)

    def test_triggered_categories(self) -> None:
        self.assertEqual(
            derive_triggered_categories(self.snapshot),
            ["cashflow", "spending", "income", "budgeting", "goals", "investing"],
        )
        empty = aggregate_advisor_snapshot(empty_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        self.assertEqual(
            derive_triggered_categories(empty),
            ["cashflow", "savings", "goals", "spending", "budgeting"],
        )

    def test_same_inputs_same_advice(self) -> None:
        first = generate_manual_advice(self.snapshot, "en")
        second = generate_manual_advice(self.snapshot, "en")
        self.assertEqual(first, second)
        self.assertEqual(len(first.variant_key), 8)

    def test_regenerate_changes_variant(self) -> None:
        first = generate_manual_advice(self.snapshot, "en", regenerate=True, variant_nonce="one")
        second = generate_manual_advice(self.snapshot, "en", regenerate=True, variant_nonce="two")
        self.assertNotEqual(first.variant_key, second.variant_key)

    def test_counts(self) -> None:
        advice = generate_manual_advice(self.snapshot, "en")
        self.assertEqual(len(advice.findings), 5)
        self.assertEqual(len(advice.actions), 5)
        self.assertEqual(len(advice.tips), 4)
        self.assertEqual(advice.weekly_actions, advice.actions[:3])
        self.assertEqual(len(advice.investment_guidance), 3)
        self.assertEqual(len(advice.quick_wins), 3)
        self.assertIn("2,400 TRY", advice.auto_transfer)
        self.assertEqual(advice.tokens["monthName"], "March 2026")

    def test_output_is_schema_valid_for_every_language(self) -> None:
        empty = aggregate_advisor_snapshot(empty_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
        for snapshot in (self.snapshot, empty):
            for language in ("en", "tr", "ru"):
                output, advice = build_manual_output(snapshot, language)
                self.assertEqual(output.suggested_actions, advice.actions)
                self.assertEqual(output.savings.next7_days_actions, advice.weekly_actions)
                self.assertTrue(all("{" not in line for line in output.top_findings))


if __name__ == "__main__":
    unittest.main()
