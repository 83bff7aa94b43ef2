from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
import sys
from unittest import mock

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from mintly_api.config import AdvisorSettings  # noqa: E402
from mintly_api.services.store import InMemoryStore  # noqa: E402

USER_ID = "user-1"
MONTH = "2026-03"
FIXED_NOW = datetime(2026, 3, 20, 12, 0, tzinfo=timezone.utc)


def seed_store(store: InMemoryStore | None = None) -> InMemoryStore:
    """One user with two months of history, a budget, a subscription and a transfer rule."""
    store = store or InMemoryStore()
    store.add_user(USER_ID, base_currency="TRY", savings_target_rate=20, risk_profile="low")
    checking = store.add_account({"user_id": USER_ID, "name": "Checking", "currency": "TRY"})
    savings = store.add_account({"user_id": USER_ID, "name": "Savings", "currency": "TRY"})
    food = store.add_category({"user_id": USER_ID, "name": "Food"})
    transport = store.add_category({"user_id": USER_ID, "name": "Transport"})

    rows = [
        ("income", None, 10000, "Salary", "2026-02-01T09:00:00Z"),
        ("expense", food["id"], 1200, "Market", "2026-02-10T09:00:00Z"),
        ("income", None, 12000, "Salary", "2026-03-01T09:00:00Z"),
        ("expense", food["id"], 1800, "Market", "2026-03-05T09:00:00Z"),
        ("expense", food["id"], 950, "Market", "2026-03-12T09:00:00Z"),
        ("expense", transport["id"], 400, "Metro card", "2026-03-14T09:00:00Z"),
    ]
    for txn_type, category_id, amount, description, occurred_at in rows:
        store.add_transaction(
            {
                "user_id": USER_ID,
                "account_id": checking["id"],
                "category_id": category_id,
                "type": txn_type,
                "amount": amount,
                "currency": "TRY",
                "description": description,
                "occurred_at": occurred_at,
            }
        )

    store.add_budget({"user_id": USER_ID, "category_id": food["id"], "month": MONTH, "limit_amount": 3000})
    store.add_recurring_rule(
        {
            "user_id": USER_ID,
            "kind": "normal",
            "type": "expense",
            "cadence": "monthly",
            "amount": 150,
            "description": "Streaming",
            "category_id": None,
        }
    )
    store.add_recurring_rule(
        {
            "user_id": USER_ID,
            "kind": "transfer",
            "cadence": "weekly",
            "amount": 100,
            "from_account_id": checking["id"],
            "to_account_id": savings["id"],
        }
    )
    return store


def empty_store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_user(USER_ID)
    return store


def make_settings(**overrides) -> AdvisorSettings:
    env = {
        "ADVISOR_PROVIDER": "cloudflare",
        "ADVISOR_CLOUDFLARE_API_TOKEN": "token",
        "ADVISOR_CLOUDFLARE_ACCOUNT_ID": "account",
        "CLOUDFLARE_MAX_ATTEMPTS": "2",
        "ADVISOR_VALIDATION_POLICY": "strict",
    }
    with mock.patch.dict("os.environ", env):
        settings = AdvisorSettings()
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def provider_response(status: int = 200, body=None, headers=None, text: str | None = None):
    response = mock.Mock()
    response.status_code = status
    response.headers = headers or {}
    response.text = text if text is not None else json.dumps(body if body is not None else {})
    response.encoding = "utf-8"
    response.iter_content.return_value = [response.text.encode("utf-8")]
    return response


def run_response(assistant_text: str, status: int = 200):
    return provider_response(status, {"success": True, "result": {"response": assistant_text}}, {"cf-ray": "ray-1"})
