from __future__ import annotations

import json
import unittest
from unittest import mock

from advisor_fixtures import USER_ID

from mintly_api.services import repository as repository_module
from mintly_api.services.repository import SupabaseAdvisorRepository, get_advisor_repository
from mintly_api.services.store import store
from mintly_api.services.supabase_rest import SupabaseRestClient, SupabaseRestError


def _rows_response(rows, status: int = 200):
    response = mock.Mock()
    response.status_code = status
    response.text = json.dumps(rows)
    response.json.return_value = rows
    return response


class SupabaseClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = SupabaseRestClient(supabase_url="https://db.example.co/", service_key="service")

    def test_pages_until_a_short_page(self) -> None:
        pages = [_rows_response([{"id": 1}, {"id": 2}]), _rows_response([{"id": 3}])]
        with mock.patch("requests.get", side_effect=pages) as get:
            rows = self.client.fetch_rows("accounts", filters={"user_id": "eq.u"}, page_size=2)

        self.assertEqual([row["id"] for row in rows], [1, 2, 3])
        self.assertEqual(get.call_args_list[0].args[0], "https://db.example.co/rest/v1/accounts")
        second_params = dict(get.call_args_list[1].kwargs["params"])
        self.assertEqual(second_params["offset"], 2)
        self.assertEqual(second_params["user_id"], "eq.u")
        self.assertEqual(get.call_args_list[0].kwargs["headers"]["apikey"], "service")

    def test_http_failure(self) -> None:
        with mock.patch("requests.get", return_value=_rows_response({"message": "boom"}, status=500)):
            with self.assertRaises(SupabaseRestError) as ctx:
                self.client.fetch_rows("accounts")
        self.assertEqual(ctx.exception.status, 500)

    def test_unconfigured_client_refuses_to_read(self) -> None:
        client = SupabaseRestClient(supabase_url="", service_key="")
        self.assertFalse(client.configured)
        with self.assertRaises(SupabaseRestError):
            client.fetch_rows("accounts")


class SupabaseRepositoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = mock.Mock(spec=SupabaseRestClient)
        self.repository = SupabaseAdvisorRepository(self.client)

    def test_user_preferences(self) -> None:
        self.client.fetch_rows.return_value = [{"id": USER_ID, "risk_profile": "low"}]
        self.assertEqual(self.repository.find_user_preferences(USER_ID)["risk_profile"], "low")
        self.client.fetch_rows.return_value = []
        self.assertIsNone(self.repository.find_user_preferences("ghost"))

    def test_balances_net_income_against_expense(self) -> None:
        self.client.fetch_rows.return_value = [
            {"account_id": "a", "type": "income", "amount": "100"},
            {"account_id": "a", "type": "expense", "amount": 30},
            {"account_id": "b", "type": "expense", "amount": 5},
        ]
        balances = {row["account_id"]: row["balance"] for row in self.repository.aggregate_account_balances(USER_ID)}
        self.assertEqual(balances, {"a": 70.0, "b": -5.0})

    def test_categories_skip_empty_id_sets(self) -> None:
        self.assertEqual(self.repository.find_categories(USER_ID, []), [])
        self.client.fetch_rows.assert_not_called()


class RepositorySelectionTests(unittest.TestCase):
    def test_falls_back_to_in_memory_store(self) -> None:
        client = SupabaseRestClient(supabase_url="", service_key="")
        with mock.patch.object(repository_module, "get_supabase_client", return_value=client):
            self.assertIs(get_advisor_repository(), store)

    def test_uses_supabase_when_configured(self) -> None:
        client = SupabaseRestClient(supabase_url="https://db.example.co", service_key="service")
        with mock.patch.object(repository_module, "get_supabase_client", return_value=client):
            self.assertIsInstance(get_advisor_repository(), SupabaseAdvisorRepository)


if __name__ == "__main__":
    unittest.main()
