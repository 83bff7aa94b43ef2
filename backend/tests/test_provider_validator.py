from __future__ import annotations

import json
import unittest

from advisor_fixtures import FIXED_NOW, MONTH, USER_ID, seed_store

from mintly_api.services.advisor.fallback import build_fallback_advice
from mintly_api.services.advisor.schemas import invalid_provider_sections, validate_provider_output_payload
from mintly_api.services.advisor.validator import (
    coerce_string_array,
    parse_provider_json,
    validate_provider_output,
)
from mintly_api.services.finance.aggregate import aggregate_advisor_snapshot


def _valid_payload() -> dict:
    snapshot = aggregate_advisor_snapshot(seed_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
    return build_fallback_advice(snapshot, "en").model_dump(by_alias=True)


class ParseProviderJsonTests(unittest.TestCase):
    def test_fenced_block(self) -> None:
        self.assertEqual(parse_provider_json('```json\n{"a": 1}\n```'), {"a": 1})

    def test_first_to_last_brace(self) -> None:
        self.assertEqual(parse_provider_json('Here you go: {"a": {"b": 2}} thanks'), {"a": {"b": 2}})

    def test_trailing_commas_and_smart_quotes(self) -> None:
        self.assertEqual(parse_provider_json("{“a”: [1, 2,],}"), {"a": [1, 2]})

    def test_garbage_returns_none(self) -> None:
        self.assertIsNone(parse_provider_json("no json here"))
        self.assertIsNone(parse_provider_json(""))


class CoercionTests(unittest.TestCase):
    def test_bullet_string_is_split(self) -> None:
        self.assertEqual(coerce_string_array("- one\n* two\n3. three"), ["one", "two", "three"])

    def test_leading_amounts_are_content(self) -> None:
        self.assertEqual(
            coerce_string_array("500 TL over budget\n2) trim dining\n12.5% more on rent"),
            ["500 TL over budget", "trim dining", "12.5% more on rent"],
        )

    def test_plain_string_is_wrapped(self) -> None:
        self.assertEqual(coerce_string_array("single line"), ["single line"])

    def test_lists_pass_through(self) -> None:
        self.assertEqual(coerce_string_array(["a"]), ["a"])


class ValidateProviderOutputTests(unittest.TestCase):
    def test_newline_delimited_findings_are_coerced(self) -> None:
        payload = _valid_payload()
        payload["topFindings"] = "Food spending rose sharply.\nIncome grew 20%.\nOne budget is near its limit."
        output, errors, _meta = validate_provider_output(json.dumps(payload))
        self.assertEqual(errors, [])
        self.assertEqual(len(output.top_findings), 3)
        self.assertEqual(output.top_findings[1], "Income grew 20%.")

    def test_fenced_output_is_accepted(self) -> None:
        text = "```json\n" + json.dumps(_valid_payload()) + "\n```"
        output, errors, _meta = validate_provider_output(text)
        self.assertIsNotNone(output)
        self.assertEqual(errors, [])

    def test_missing_warnings_default_to_empty(self) -> None:
        payload = _valid_payload()
        del payload["warnings"]
        output, errors, _meta = validate_provider_output(json.dumps(payload))
        self.assertEqual(errors, [])
        self.assertEqual(output.warnings, [])

    def test_unparseable_text(self) -> None:
        output, errors, _meta = validate_provider_output("I cannot help with that")
        self.assertIsNone(output)
        self.assertEqual(errors[0], "provider_parse_error")

    def test_strict_rejects_off_shape_section(self) -> None:
        payload = _valid_payload()
        payload["savings"]["targetRate"] = 4
        output, errors, meta = validate_provider_output(json.dumps(payload), policy="strict")
        self.assertIsNone(output)
        self.assertEqual(errors[0], "provider_validation_error")
        self.assertEqual(meta["merged_sections"], [])

    def test_merge_replaces_only_invalid_sections(self) -> None:
        fallback_payload = _valid_payload()
        fallback = build_fallback_advice(
            aggregate_advisor_snapshot(seed_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW), "en"
        )
        payload = dict(fallback_payload)
        payload["summary"] = "Provider summary"
        payload["investment"] = {"profiles": [{"level": "extreme"}], "guidance": []}
        output, errors, meta = validate_provider_output(json.dumps(payload), policy="merge", fallback=fallback)
        self.assertEqual(errors, [])
        self.assertEqual(output.summary, "Provider summary")
        self.assertEqual(meta["merged_sections"], ["investment"])
        self.assertEqual(output.investment.profiles[0].level, "low")

    def test_merge_rejects_when_nothing_survives(self) -> None:
        fallback = build_fallback_advice(
            aggregate_advisor_snapshot(seed_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW), "en"
        )
        output, errors, _meta = validate_provider_output('{"unexpected": true}', policy="merge", fallback=fallback)
        self.assertIsNone(output)
        self.assertEqual(errors[0], "provider_validation_error")


class SchemaTests(unittest.TestCase):
    def test_messages_are_path_prefixed(self) -> None:
        payload = _valid_payload()
        payload["tips"] = []
        messages = validate_provider_output_payload(payload)
        self.assertTrue(any(message.startswith("tips:") for message in messages))
        self.assertEqual(invalid_provider_sections(payload), {"tips"})


if __name__ == "__main__":
    unittest.main()
