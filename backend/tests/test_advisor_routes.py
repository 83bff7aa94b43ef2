from __future__ import annotations

import unittest
from unittest import mock

from fastapi.testclient import TestClient
from jose import jwt

from advisor_fixtures import MONTH, USER_ID, provider_response, seed_store

from mintly_api.config import ADVISOR_RATE_LIMIT_PER_MINUTE, DEFAULT_CLOUDFLARE_MODEL
from mintly_api.main import app
from mintly_api.services.advisor import get_insight_cache
from mintly_api.services.rate_limit import reset_limits

SECRET = "route-test-secret"
BASE_ENV = {
    "APP_ENV": "development",
    "DEV_BYPASS_AUTH": "false",
    "JWT_ACCESS_SECRET": SECRET,
    "ADVISOR_PROVIDER": "manual",
    "ADVISOR_CLOUDFLARE_API_TOKEN": "",
    "ADVISOR_CLOUDFLARE_ACCOUNT_ID": "",
}


def _auth_header(subject: str = USER_ID) -> dict:
    token = jwt.encode({"sub": subject}, SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


class AdvisorRoutesTestCase(unittest.TestCase):
    def setUp(self) -> None:
        reset_limits()
        get_insight_cache().clear()
        self.env = mock.patch.dict("os.environ", BASE_ENV)
        self.env.start()
        self.addCleanup(self.env.stop)
        self.store = seed_store()
        repository = mock.patch("mintly_api.routes.advisor.get_advisor_repository", return_value=self.store)
        repository.start()
        self.addCleanup(repository.stop)
        self.client = TestClient(app)
        self.headers = _auth_header()

    def get_insights(self, **params):
        params.setdefault("month", MONTH)
        params.setdefault("language", "en")
        return self.client.get("/advisor/insights", params=params, headers=self.headers)


class InsightRouteTests(AdvisorRoutesTestCase):
    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_manual_insight(self) -> None:
        response = self.get_insights()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["month"], MONTH)
        self.assertEqual(body["mode"], "manual")
        self.assertEqual(body["provider"], "manual")
        self.assertEqual(body["overview"]["currentMonthExpense"], 3150.0)

    def test_disabled_provider_falls_back(self) -> None:
        with mock.patch.dict("os.environ", {"ADVISOR_PROVIDER": "disabled"}):
            body = self.get_insights(language="tr").json()
        self.assertEqual(body["mode"], "fallback")
        self.assertEqual(body["modeReason"], "provider_disabled")
        self.assertEqual(body["language"], "tr")

    def test_rate_limit(self) -> None:
        for _ in range(ADVISOR_RATE_LIMIT_PER_MINUTE):
            self.assertEqual(self.get_insights().status_code, 200)
        response = self.get_insights()
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["error"]["code"], "RATE_LIMITED")

    def test_regenerate_cooldown(self) -> None:
        first = self.get_insights(regenerate="true")
        self.assertEqual(first.status_code, 200)
        second = self.get_insights(regenerate="true")
        self.assertEqual(second.status_code, 429)
        error = second.json()["error"]
        self.assertEqual(error["code"], "ADVISOR_REGENERATE_COOLDOWN")
        self.assertGreater(error["details"]["retryAfterSec"], 0)

    def test_bad_query_parameters(self) -> None:
        for params in ({"month": "2026-13"}, {"language": "de"}):
            response = self.get_insights(**params)
            self.assertEqual(response.status_code, 400)
            error = response.json()["error"]
            self.assertEqual(error["code"], "VALIDATION_ERROR")
            self.assertTrue(error["details"])


class AuthRouteTests(AdvisorRoutesTestCase):
    def test_missing_token(self) -> None:
        response = self.client.get("/advisor/insights", params={"month": MONTH})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "UNAUTHORIZED")

    def test_wrong_secret(self) -> None:
        token = jwt.encode({"sub": USER_ID}, "other-secret", algorithm="HS256")
        response = self.client.get(
            "/advisor/insights",
            params={"month": MONTH},
            headers={"Authorization": f"Bearer {token}"},
        )
        self.assertEqual(response.status_code, 401)

    def test_dev_bypass_uses_demo_user(self) -> None:
        with mock.patch.dict("os.environ", {"DEV_BYPASS_AUTH": "true"}):
            response = self.client.get("/advisor/insights", params={"month": MONTH})
        # demo-user has no profile in the seeded store
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["message"], "User not found")


class FreeCheckRouteTests(AdvisorRoutesTestCase):
    def test_first_call_of_the_day_is_free(self) -> None:
        first = self.client.post("/advisor/insights/free-check", headers=self.headers).json()
        second = self.client.post("/advisor/insights/free-check", headers=self.headers).json()
        self.assertTrue(first["allowFree"])
        self.assertFalse(second["allowFree"])
        self.assertEqual(first["dayKey"], second["dayKey"])


class ProviderHealthRouteTests(AdvisorRoutesTestCase):
    def test_unconfigured(self) -> None:
        response = self.client.get("/advisor/provider-health", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"ok": False, "modelConfigured": False, "modelExists": False, "latencyMs": None},
        )

    def test_hidden_in_production(self) -> None:
        with mock.patch.dict("os.environ", {"APP_ENV": "production"}):
            response = self.client.get("/advisor/provider-health", headers=self.headers)
        self.assertEqual(response.status_code, 404)

    def test_configured_model_lookup(self) -> None:
        env = {
            "ADVISOR_PROVIDER": "cloudflare",
            "ADVISOR_CLOUDFLARE_API_TOKEN": "token",
            "ADVISOR_CLOUDFLARE_ACCOUNT_ID": "account",
        }
        models = provider_response(200, {"success": True, "result": [{"name": DEFAULT_CLOUDFLARE_MODEL}]})
        with mock.patch.dict("os.environ", env), mock.patch("requests.get", return_value=models):
            response = self.client.get("/advisor/provider-health", headers=self.headers)
        body = response.json()
        self.assertTrue(body["ok"])
        self.assertTrue(body["modelExists"])
        self.assertIsInstance(body["latencyMs"], int)

    def test_provider_failure(self) -> None:
        env = {
            "ADVISOR_PROVIDER": "cloudflare",
            "ADVISOR_CLOUDFLARE_API_TOKEN": "token",
            "ADVISOR_CLOUDFLARE_ACCOUNT_ID": "account",
        }
        failed = provider_response(403, {"success": False, "errors": [{"code": 10000, "message": "denied"}]})
        with mock.patch.dict("os.environ", env), mock.patch("requests.get", return_value=failed):
            response = self.client.get("/advisor/provider-health", headers=self.headers)
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"]["code"], "ADVISOR_PROVIDER_UNAVAILABLE")


if __name__ == "__main__":
    unittest.main()
