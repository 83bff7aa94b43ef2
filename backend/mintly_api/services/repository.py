from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Protocol

from mintly_api.services.finance.common import iso_utc, safe_float
from mintly_api.services.store import store
from mintly_api.services.supabase_rest import SupabaseRestClient, get_supabase_client


class AdvisorRepository(Protocol):
    """Read-only queries the advisor pipeline consumes. Soft-deleted rows are never returned."""

    def find_user_preferences(self, user_id: str) -> Dict[str, Any] | None:
        ...

    def find_accounts(self, user_id: str) -> List[Dict[str, Any]]:
        ...

    def find_transactions(self, user_id: str, start_at: datetime, end_at: datetime) -> List[Dict[str, Any]]:
        ...

    def find_budgets(self, user_id: str, month: str) -> List[Dict[str, Any]]:
        ...

    def find_recurring_rules(self, user_id: str) -> List[Dict[str, Any]]:
        ...

    def find_categories(self, user_id: str, category_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ...

    def aggregate_account_balances(self, user_id: str) -> List[Dict[str, Any]]:
        ...


class SupabaseAdvisorRepository:
    def __init__(self, client: SupabaseRestClient | None = None) -> None:
        self.client = client or get_supabase_client()

    def find_user_preferences(self, user_id: str) -> Dict[str, Any] | None:
        rows = self.client.fetch_rows(
            "users",
            select="id,base_currency,savings_target_rate,risk_profile",
            filters={"id": f"eq.{user_id}"},
            page_size=1,
        )
        return rows[0] if rows else None

    def find_accounts(self, user_id: str) -> List[Dict[str, Any]]:
        return self.client.fetch_rows(
            "accounts",
            select="id,name,currency",
            filters={"user_id": f"eq.{user_id}", "deleted_at": "is.null"},
            order="created_at.asc",
        )

    def find_transactions(self, user_id: str, start_at: datetime, end_at: datetime) -> List[Dict[str, Any]]:
        return self.client.fetch_rows(
            "transactions",
            select="id,account_id,category_id,type,kind,amount,currency,description,occurred_at",
            filters=[
                ("user_id", f"eq.{user_id}"),
                ("deleted_at", "is.null"),
                ("kind", "eq.normal"),
                ("occurred_at", f"gte.{iso_utc(start_at)}"),
                ("occurred_at", f"lt.{iso_utc(end_at)}"),
            ],
            order="occurred_at.asc",
        )

    def find_budgets(self, user_id: str, month: str) -> List[Dict[str, Any]]:
        return self.client.fetch_rows(
            "budgets",
            select="id,category_id,month,limit_amount",
            filters={"user_id": f"eq.{user_id}", "month": f"eq.{month}", "deleted_at": "is.null"},
        )

    def find_recurring_rules(self, user_id: str) -> List[Dict[str, Any]]:
        return self.client.fetch_rows(
            "recurring_rules",
            select=(
                "id,kind,type,cadence,amount,description,category_id,"
                "from_account_id,to_account_id,next_run_at"
            ),
            filters={
                "user_id": f"eq.{user_id}",
                "deleted_at": "is.null",
                "is_paused": "eq.false",
                "or": "(kind.eq.transfer,and(kind.eq.normal,type.eq.expense))",
            },
        )

    def find_categories(self, user_id: str, category_ids: Iterable[str]) -> List[Dict[str, Any]]:
        ids = sorted({str(item) for item in category_ids if item})
        if not ids:
            return []
        return self.client.fetch_rows(
            "categories",
            select="id,user_id,name",
            filters={
                "id": f"in.({','.join(ids)})",
                "deleted_at": "is.null",
                "or": f"(user_id.eq.{user_id},user_id.is.null)",
            },
        )

    def aggregate_account_balances(self, user_id: str) -> List[Dict[str, Any]]:
        rows = self.client.fetch_rows(
            "transactions",
            select="account_id,type,amount",
            filters={"user_id": f"eq.{user_id}", "deleted_at": "is.null"},
        )
        balances: Dict[str, float] = defaultdict(float)
        for row in rows:
            amount = safe_float(row.get("amount"))
            account_id = str(row.get("account_id") or "")
            if row.get("type") == "income":
                balances[account_id] += amount
            elif row.get("type") == "expense":
                balances[account_id] -= amount
        return [{"account_id": key, "balance": value} for key, value in balances.items()]


def get_advisor_repository() -> AdvisorRepository:
    client = get_supabase_client()
    if client.configured:
        return SupabaseAdvisorRepository(client)
    return store
