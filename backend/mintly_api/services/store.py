from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List

from mintly_api.services.finance.common import iso_utc, parse_datetime, safe_float


def _is_active(record: Dict[str, Any]) -> bool:
    return not record.get("deleted_at")


@dataclass
class InMemoryStore:
    """Process-local persistence used for tests and for local runs without Supabase."""

    users: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    accounts: List[Dict[str, Any]] = field(default_factory=list)
    categories: List[Dict[str, Any]] = field(default_factory=list)
    transactions: List[Dict[str, Any]] = field(default_factory=list)
    budgets: List[Dict[str, Any]] = field(default_factory=list)
    recurring_rules: List[Dict[str, Any]] = field(default_factory=list)

    def _append(self, bucket: List[Dict[str, Any]], prefix: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        record = {
            "id": f"{prefix}_{len(bucket)+1}",
            "deleted_at": None,
            "created_at": iso_utc(),
            **payload,
        }
        bucket.append(record)
        return record

    def add_user(self, user_id: str, **preferences: Any) -> Dict[str, Any]:
        record = {
            "id": user_id,
            "base_currency": preferences.get("base_currency"),
            "savings_target_rate": preferences.get("savings_target_rate"),
            "risk_profile": preferences.get("risk_profile"),
        }
        self.users[user_id] = record
        return record

    def add_account(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._append(self.accounts, "acc", payload)

    def add_category(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._append(self.categories, "cat", payload)

    def add_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._append(self.transactions, "txn", {"kind": "normal", **payload})

    def add_budget(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._append(self.budgets, "bud", payload)

    def add_recurring_rule(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._append(self.recurring_rules, "rr", {"is_paused": False, **payload})

    def clear(self) -> None:
        self.users.clear()
        for bucket in (self.accounts, self.categories, self.transactions, self.budgets, self.recurring_rules):
            bucket.clear()

    # Queries consumed by the advisor pipeline

    def find_user_preferences(self, user_id: str) -> Dict[str, Any] | None:
        return self.users.get(user_id)

    def find_accounts(self, user_id: str) -> List[Dict[str, Any]]:
        return [item for item in self.accounts if item.get("user_id") == user_id and _is_active(item)]

    def find_transactions(self, user_id: str, start_at: datetime, end_at: datetime) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for item in self.transactions:
            if item.get("user_id") != user_id or not _is_active(item) or item.get("kind") != "normal":
                continue
            occurred = parse_datetime(item.get("occurred_at"))
            if occurred and start_at <= occurred < end_at:
                rows.append(item)
        return rows

    def find_budgets(self, user_id: str, month: str) -> List[Dict[str, Any]]:
        return [
            item
            for item in self.budgets
            if item.get("user_id") == user_id and item.get("month") == month and _is_active(item)
        ]

    def find_recurring_rules(self, user_id: str) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for item in self.recurring_rules:
            if item.get("user_id") != user_id or not _is_active(item) or item.get("is_paused"):
                continue
            kind = item.get("kind")
            if kind == "transfer" or (kind == "normal" and item.get("type") == "expense"):
                rows.append(item)
        return rows

    def find_categories(self, user_id: str, category_ids: Iterable[str]) -> List[Dict[str, Any]]:
        wanted = {str(item) for item in category_ids}
        return [
            item
            for item in self.categories
            if str(item.get("id")) in wanted
            and _is_active(item)
            and item.get("user_id") in {user_id, None}
        ]

    def aggregate_account_balances(self, user_id: str) -> List[Dict[str, Any]]:
        balances: Dict[str, float] = defaultdict(float)
        for item in self.transactions:
            if item.get("user_id") != user_id or not _is_active(item):
                continue
            amount = safe_float(item.get("amount"))
            account_id = str(item.get("account_id") or "")
            if item.get("type") == "income":
                balances[account_id] += amount
            elif item.get("type") == "expense":
                balances[account_id] -= amount
        return [{"account_id": key, "balance": value} for key, value in balances.items()]


store = InMemoryStore()
