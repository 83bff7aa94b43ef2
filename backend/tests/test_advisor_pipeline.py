from __future__ import annotations

import json
import time
import unittest
from unittest import mock

import requests

from advisor_fixtures import (
    FIXED_NOW,
    MONTH,
    USER_ID,
    empty_store,
    make_settings,
    provider_response,
    run_response,
    seed_store,
)

from mintly_api.errors import ApiError
from mintly_api.services.advisor import (
    AdvisorInsight,
    InMemoryInsightCache,
    LlmHttpProvider,
    ManualTemplateProvider,
    NullInsightCache,
    generate_advisor_insight,
)
from mintly_api.services.advisor.fallback import build_fallback_advice
from mintly_api.services.finance.aggregate import aggregate_advisor_snapshot


def _no_sleep(_seconds: float) -> None:
    return None


def _provider_payload() -> dict:
    snapshot = aggregate_advisor_snapshot(seed_store(), user_id=USER_ID, month=MONTH, now=FIXED_NOW)
    payload = build_fallback_advice(snapshot, "en").model_dump(by_alias=True)
    payload["summary"] = "Food drove a sharp rise in spending while income grew."
    payload["savings"]["targetRate"] = 0.25
    payload["savings"]["monthlyTargetAmount"] = 2999.6
    payload["expenseOptimization"]["cutCandidates"] = [
        {"label": "food", "suggestedReductionPercent": 15, "alternativeAction": "Cook at home twice a week."},
        {"label": "Market runs", "suggestedReductionPercent": 10, "alternativeAction": "Shop once a week."},
        {"label": "Gym", "suggestedReductionPercent": 20, "alternativeAction": "Pause the membership."},
    ]
    return payload


class PipelineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = seed_store()
        self.settings = make_settings()
        self.events: list = []

    def run_pipeline(self, **overrides):
        kwargs = {
            "user_id": USER_ID,
            "month": MONTH,
            "language": "en",
            "settings": self.settings,
            "cache": NullInsightCache(),
            "provider": LlmHttpProvider(self.settings, sleep=_no_sleep),
            "on_diagnostic": self.events.append,
            "now": FIXED_NOW,
        }
        kwargs.update(overrides)
        repository = kwargs.pop("repository", self.store)
        return generate_advisor_insight(repository, **kwargs)


class ProviderSuccessTests(PipelineTestCase):
    def test_ai_mode_with_resolved_cut_candidates(self) -> None:
        with mock.patch("requests.post", return_value=run_response(json.dumps(_provider_payload()))):
            result = self.run_pipeline()

        self.assertEqual(result["mode"], "ai")
        self.assertIsNone(result["modeReason"])
        self.assertEqual(result["provider"], "cloudflare")
        self.assertEqual(result["providerStatus"], 200)
        self.assertEqual(result["generatedAt"], "2026-03-20T12:00:00.000Z")

        advice = result["advice"]
        self.assertEqual(advice["summary"], "Food drove a sharp rise in spending while income grew.")
        self.assertEqual(advice["savings"]["monthlyTargetAmount"], 2999.6)
        amounts = [item["currentAmount"] for item in advice["expenseOptimization"]["cutCandidates"]]
        self.assertEqual(amounts, [2750.0, 3950.0, 0.0])

        investment = advice["investment"]
        self.assertEqual(investment["emergencyFundTarget"], 9450.0)
        self.assertEqual(investment["emergencyFundCurrent"], 17650.0)
        self.assertEqual(investment["emergencyFundStatus"], "ready")

    def test_response_shape(self) -> None:
        with mock.patch("requests.post", return_value=run_response(json.dumps(_provider_payload()))):
            result = self.run_pipeline()
        AdvisorInsight.model_validate(result)
        self.assertEqual(len(result["cashflowTrend"]), 3)
        self.assertIn("incomeMoMPercent", result["signals"])
        self.assertEqual(result["preferences"], {"savingsTargetRate": 20.0, "riskProfile": "low"})


class FallbackPathTests(PipelineTestCase):
    def test_timeouts_fall_back_quickly(self) -> None:
        started = time.monotonic()
        with mock.patch("requests.post", side_effect=requests.exceptions.Timeout("slow")) as post:
            result = self.run_pipeline()
        self.assertLess(time.monotonic() - started, 2.0)
        self.assertEqual(post.call_count, 2)
        self.assertEqual(result["mode"], "fallback")
        self.assertEqual(result["modeReason"], "provider_timeout")
        self.assertIn("fallback", [event["stage"] for event in self.events])

    def test_rate_limit_without_regenerate_falls_back(self) -> None:
        with mock.patch("requests.post", return_value=provider_response(429, {"errors": []})):
            result = self.run_pipeline()
        self.assertEqual(result["mode"], "fallback")
        self.assertEqual(result["modeReason"], "provider_http_error")
        self.assertEqual(result["providerStatus"], 429)

    def test_unparseable_text(self) -> None:
        with mock.patch("requests.post", return_value=run_response("Sorry, I can only answer in prose.")):
            result = self.run_pipeline()
        self.assertEqual(result["modeReason"], "provider_parse_error")

    def test_schema_violation(self) -> None:
        payload = _provider_payload()
        payload["investment"]["profiles"] = []
        with mock.patch("requests.post", return_value=run_response(json.dumps(payload))):
            result = self.run_pipeline()
        self.assertEqual(result["modeReason"], "provider_validation_error")

    def test_merge_policy_keeps_valid_sections(self) -> None:
        self.settings.validation_policy = "merge"
        payload = _provider_payload()
        payload["investment"]["profiles"] = []
        with mock.patch("requests.post", return_value=run_response(json.dumps(payload))):
            result = self.run_pipeline()
        self.assertEqual(result["mode"], "ai")
        self.assertEqual(len(result["advice"]["investment"]["profiles"]), 3)
        merged = [event for event in self.events if event["stage"] == "fallback"]
        self.assertEqual(len(merged), 1)
        self.assertEqual(merged[0]["reason"], "provider_validation_error")
        self.assertEqual(merged[0]["detail"], "investment")
        self.assertEqual(merged[0]["ray_id"], "ray-1")

    def test_transport_error_is_unknown(self) -> None:
        with mock.patch("requests.post", side_effect=requests.exceptions.ConnectionError("refused")):
            result = self.run_pipeline()
        self.assertEqual(result["modeReason"], "provider_unknown_error")

    def test_missing_credentials_skip_the_network(self) -> None:
        self.settings.cloudflare_api_token = ""
        with mock.patch("requests.post") as post:
            result = self.run_pipeline()
        post.assert_not_called()
        self.assertEqual(result["modeReason"], "missing_api_key")

    def test_disabled_provider(self) -> None:
        self.settings.provider = "disabled"
        result = self.run_pipeline(provider=None)
        self.assertEqual(result["mode"], "fallback")
        self.assertEqual(result["modeReason"], "provider_disabled")
        self.assertIsNone(result["provider"])


class RegenerateFailureTests(PipelineTestCase):
    def test_rate_limit_is_fatal_on_regenerate(self) -> None:
        limited = provider_response(429, {"errors": [{"code": 3040, "message": "busy"}]}, {"cf-ray": "ray-2"})
        with mock.patch("requests.post", return_value=limited):
            with self.assertRaises(ApiError) as ctx:
                self.run_pipeline(regenerate=True)
        error = ctx.exception
        self.assertEqual(error.status_code, 429)
        self.assertEqual(error.code, "ADVISOR_PROVIDER_RATE_LIMIT")
        self.assertEqual(error.details["retryAfterSec"], 60)
        self.assertEqual(error.details["rayId"], "ray-2")
        self.assertEqual(error.details["providerErrorCode"], "3040")

    def test_invalid_request_is_fatal_on_regenerate(self) -> None:
        with mock.patch("requests.post", return_value=provider_response(400, {"errors": []})):
            with self.assertRaises(ApiError) as ctx:
                self.run_pipeline(regenerate=True)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.code, "ADVISOR_PROVIDER_INVALID_REQUEST")

    def test_unknown_user(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            self.run_pipeline(user_id="ghost")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_invalid_month(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            self.run_pipeline(month="2026-3")
        self.assertEqual(ctx.exception.code, "VALIDATION_ERROR")


class TotalityTests(PipelineTestCase):
    def test_every_mode_and_language_is_schema_valid_on_empty_data(self) -> None:
        providers = {
            "disabled": None,
            "manual": ManualTemplateProvider(),
        }
        for name, provider in providers.items():
            self.settings.provider = name
            for language in ("tr", "en", "ru"):
                result = self.run_pipeline(repository=empty_store(), provider=provider, language=language)
                AdvisorInsight.model_validate(result)
                self.assertEqual(result["language"], language)
                self.assertEqual(result["advice"]["investment"]["emergencyFundStatus"], "ready")

    def test_manual_mode(self) -> None:
        result = self.run_pipeline(provider=ManualTemplateProvider())
        self.assertEqual(result["mode"], "manual")
        self.assertIsNone(result["modeReason"])
        self.assertEqual(result["provider"], "manual")

    def test_emergency_fund_keeps_cents(self) -> None:
        store = empty_store()
        account = store.add_account({"user_id": USER_ID, "name": "Checking", "currency": "TRY"})
        food = store.add_category({"user_id": USER_ID, "name": "Food"})
        for txn_type, category_id, amount in (("income", None, 1001.25), ("expense", food["id"], 100.25)):
            store.add_transaction(
                {
                    "user_id": USER_ID,
                    "account_id": account["id"],
                    "category_id": category_id,
                    "type": txn_type,
                    "amount": amount,
                    "currency": "TRY",
                    "description": "Row",
                    "occurred_at": "2026-03-03T09:00:00Z",
                }
            )
        result = self.run_pipeline(repository=store, provider=ManualTemplateProvider())
        investment = result["advice"]["investment"]
        self.assertEqual(investment["emergencyFundTarget"], 300.75)
        self.assertEqual(investment["emergencyFundCurrent"], 901.0)


class CachingTests(PipelineTestCase):
    def test_second_call_hits_cache(self) -> None:
        cache = InMemoryInsightCache()
        repository = mock.Mock(wraps=self.store)
        provider = mock.Mock(wraps=ManualTemplateProvider())
        first = self.run_pipeline(repository=repository, provider=provider, cache=cache)
        second = self.run_pipeline(repository=repository, provider=provider, cache=cache)
        self.assertEqual(first, second)
        self.assertEqual(provider.generate.call_count, 1)
        self.assertEqual(repository.find_user_preferences.call_count, 1)

    def test_regenerate_skips_read_but_writes(self) -> None:
        cache = InMemoryInsightCache()
        provider = ManualTemplateProvider()
        first = self.run_pipeline(provider=provider, cache=cache)
        regenerated = self.run_pipeline(provider=provider, cache=cache, regenerate=True, variant_nonce="n-1")
        cached = self.run_pipeline(provider=provider, cache=cache)
        self.assertEqual(cached, regenerated)
        self.assertEqual(first["month"], regenerated["month"])

    def test_language_is_part_of_the_key(self) -> None:
        cache = InMemoryInsightCache()
        provider = ManualTemplateProvider()
        english = self.run_pipeline(provider=provider, cache=cache, language="en")
        turkish = self.run_pipeline(provider=provider, cache=cache, language="tr")
        self.assertNotEqual(english["advice"]["summary"], turkish["advice"]["summary"])
        self.assertEqual(len(cache), 2)


if __name__ == "__main__":
    unittest.main()
