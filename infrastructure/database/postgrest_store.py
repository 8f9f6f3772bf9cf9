"""
PostgREST Store Adapter
=======================

Talks to a hosted Postgres through its PostgREST endpoint (the REST API a
Supabase project exposes under ``/rest/v1``). Satisfies ``RelationalStore``.

Missing tables come back as HTTP 404 or with an "undefined table" error code;
both map to ``SourceNotFoundError``. Timeouts, connection failures and 5xx
responses map to ``StoreUnavailableError`` so discovery can tell them apart.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from app.domain.exceptions import (
    ConfigurationError,
    RepositoryError,
    SourceNotFoundError,
    StoreUnavailableError,
)
from infrastructure.database.sql_safety import require_identifier

logger = logging.getLogger(__name__)

# Postgres "undefined_table" and PostgREST's schema-cache miss.
_MISSING_TABLE_CODES = {"42P01", "PGRST205"}


class PostgrestStore:
    """Relational store backed by a PostgREST HTTP API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not base_url:
            raise ConfigurationError("PostgREST URL is not configured")
        self._rest_url = base_url.rstrip("/")
        if not self._rest_url.endswith("/rest/v1"):
            self._rest_url += "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    # --- Transport -------------------------------------------------------------
    def _request(self, method: str, path: str, *, table: Optional[str] = None, **kwargs: Any) -> requests.Response:
        url = f"{self._rest_url}/{path}"
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.exceptions.Timeout as exc:
            raise StoreUnavailableError(f"PostgREST timeout: {method} {path}") from exc
        except requests.RequestException as exc:
            raise StoreUnavailableError(f"PostgREST unreachable: {exc}") from exc

        if response.ok:
            return response
        if table is not None and self._is_missing_table(response):
            raise SourceNotFoundError(table)
        if response.status_code >= 500:
            raise StoreUnavailableError(
                f"PostgREST {response.status_code} on {method} {path}",
                detail={"body": response.text[:500]},
            )
        raise RepositoryError(
            f"PostgREST {response.status_code} on {method} {path}",
            detail={"body": response.text[:500]},
        )

    @staticmethod
    def _is_missing_table(response: requests.Response) -> bool:
        if response.status_code == 404:
            return True
        try:
            payload = response.json()
        except ValueError:
            return False
        return isinstance(payload, dict) and payload.get("code") in _MISSING_TABLE_CODES

    @staticmethod
    def _filter_params(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
        params: Dict[str, str] = {}
        for key, value in (filters or {}).items():
            require_identifier(key)
            if value is None:
                params[key] = "is.null"
            elif isinstance(value, bool):
                params[key] = f"is.{str(value).lower()}"
            else:
                params[key] = f"eq.{value}"
        return params

    # --- RelationalStore -------------------------------------------------------
    def select_rows(
        self,
        table: str,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        require_identifier(table)
        params = {"select": "*", **self._filter_params(filters)}
        if order_by:
            require_identifier(order_by)
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(int(limit))
        response = self._request("GET", table, table=table, params=params)
        rows = response.json()
        return rows if isinstance(rows, list) else []

    def table_exists(self, table: str) -> bool:
        try:
            self.select_rows(table, limit=0)
        except SourceNotFoundError:
            return False
        return True

    def get_row(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        rows = self.select_rows(table, filters={"id": row_id}, limit=1)
        return rows[0] if rows else None

    def upsert_row(self, table: str, row_id: Any, values: Dict[str, Any]) -> None:
        require_identifier(table)
        self._request(
            "POST",
            table,
            table=table,
            json={**values, "id": row_id},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    def call_procedure(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        require_identifier(name)
        response = self._request("POST", f"rpc/{name}", json=params or {})
        if not response.content:
            return None
        return response.json()
