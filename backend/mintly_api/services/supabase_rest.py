from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

import requests

from mintly_api.config import _get_env

DEFAULT_TIMEOUT_SECONDS = 20
DEFAULT_PAGE_SIZE = 1000

FilterPairs = Sequence[Tuple[str, str]]


class SupabaseRestError(RuntimeError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class SupabaseRestClient:
    """Read-only PostgREST access with the service-role key."""

    def __init__(
        self,
        *,
        supabase_url: str | None = None,
        service_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        url = supabase_url if supabase_url is not None else _get_env("SUPABASE_URL", "")
        key = service_key if service_key is not None else _get_env("SUPABASE_SERVICE_ROLE_KEY", "")
        url = url.strip().rstrip("/")
        self._service_key = key.strip()
        self.rest_url = f"{url}/rest/v1" if url else ""
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.rest_url and self._service_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Accept": "application/json",
        }

    def _read_page(self, table: str, params: List[Tuple[str, Any]]) -> List[Dict[str, Any]]:
        if not self.configured:
            raise SupabaseRestError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set to read advisor data")
        response = requests.get(
            f"{self.rest_url}/{table}",
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise SupabaseRestError(
                f"reading {table} failed with status {response.status_code}: {response.text[:300]}",
                status=response.status_code,
            )
        page = response.json() if response.text else []
        if not isinstance(page, list):
            raise SupabaseRestError(f"{table} did not return a row list", status=response.status_code)
        return page

    def fetch_rows(
        self,
        table: str,
        *,
        select: str = "*",
        filters: Dict[str, str] | FilterPairs | None = None,
        order: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Read every matching row. Pass filters as pairs to put two conditions on one column."""
        conditions = list(filters.items()) if isinstance(filters, dict) else list(filters or [])
        base: List[Tuple[str, Any]] = [("select", select), *conditions]
        if order:
            base.append(("order", order))

        rows: List[Dict[str, Any]] = []
        while True:
            page = self._read_page(table, base + [("limit", page_size), ("offset", len(rows))])
            rows.extend(page)
            if len(page) < page_size:
                return rows


_client: SupabaseRestClient | None = None


def get_supabase_client() -> SupabaseRestClient:
    global _client
    if _client is None:
        timeout = float(_get_env("SUPABASE_TIMEOUT_SEC", str(DEFAULT_TIMEOUT_SECONDS)) or DEFAULT_TIMEOUT_SECONDS)
        _client = SupabaseRestClient(timeout=timeout)
    return _client
