"""Generic relational-store operations over SQLite.

Implements the query / update / procedure surface that the monitoring
services consume, so the SQLite handler can stand in for the hosted store.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable

from app.domain.exceptions import (
    NotFoundError,
    RepositoryError,
    SourceNotFoundError,
    StoreUnavailableError,
)
from infrastructure.database.sql_safety import (
    build_insert_parts,
    build_set_clause,
    build_where_clause,
    require_identifier,
    safe_columns,
)

logger = logging.getLogger(__name__)

Procedure = Callable[[Any, dict[str, Any]], Any]

# Lock / busy errors are transient; everything else is a real failure.
_TRANSIENT_MARKERS = ("database is locked", "database is busy", "unable to open database")


def _translate_error(exc: sqlite3.Error, table: str | None = None) -> Exception:
    message = str(exc).lower()
    if table is not None and "no such table" in message:
        return SourceNotFoundError(table)
    if any(marker in message for marker in _TRANSIENT_MARKERS):
        return StoreUnavailableError(f"SQLite store unavailable: {exc}")
    return RepositoryError(f"SQLite error: {exc}")


class StoreOperations:
    """Query helpers satisfying ``RelationalStore`` on top of ``get_db()``."""

    _procedures: dict[str, Procedure]

    # --- Procedures -----------------------------------------------------------
    def register_procedure(self, name: str, func: Procedure) -> None:
        """Expose ``func(handler, params)`` through ``call_procedure(name)``."""
        if not hasattr(self, "_procedures"):
            self._procedures = {}
        self._procedures[name] = func

    def call_procedure(self, name: str, params: dict[str, Any] | None = None) -> Any:
        procedures = getattr(self, "_procedures", {})
        func = procedures.get(name)
        if func is None:
            raise NotFoundError(f"Unknown procedure: {name}")
        try:
            return func(self, dict(params or {}))
        except sqlite3.Error as exc:
            raise _translate_error(exc) from exc

    # --- Introspection --------------------------------------------------------
    def table_exists(self, table: str) -> bool:
        require_identifier(table)
        try:
            row = self.get_db().execute(
                "SELECT 1 FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
                (table,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise _translate_error(exc) from exc
        return row is not None

    def table_columns(self, table: str) -> set[str]:
        require_identifier(table)
        try:
            rows = self.get_db().execute(f"PRAGMA table_info({table})").fetchall()
        except sqlite3.Error as exc:
            raise _translate_error(exc, table) from exc
        return {row["name"] for row in rows}

    # --- Reads ----------------------------------------------------------------
    def select_rows(
        self,
        table: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        require_identifier(table)
        sql = f"SELECT * FROM {table}"  # nosec B608
        params: list[Any] = []
        if filters:
            where_sql, params = build_where_clause(filters)
            sql += f" WHERE {where_sql}"
        if order_by:
            require_identifier(order_by)
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        try:
            rows = self.get_db().execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise _translate_error(exc, table) from exc
        return [dict(row) for row in rows]

    def get_row(self, table: str, row_id: Any) -> dict[str, Any] | None:
        rows = self.select_rows(table, filters={"id": row_id}, limit=1)
        return rows[0] if rows else None

    # --- Writes ---------------------------------------------------------------
    def upsert_row(self, table: str, row_id: Any, values: dict[str, Any]) -> None:
        """Insert or update row ``id = row_id``; unknown columns are dropped."""
        allowed = self.table_columns(table) - {"id"}
        cols = safe_columns(values, allowed, context=f"upsert_row:{table}")
        try:
            with self.connection() as db:
                existing = db.execute(f"SELECT 1 FROM {table} WHERE id = ?", (row_id,)).fetchone()  # nosec B608
                if existing and cols:
                    set_sql, params = build_set_clause(cols)
                    db.execute(f"UPDATE {table} SET {set_sql} WHERE id = ?", [*params, row_id])  # nosec B608
                elif not existing:
                    columns_sql, placeholders, params = build_insert_parts({"id": row_id, **cols})
                    db.execute(
                        f"INSERT INTO {table} ({columns_sql}) VALUES ({placeholders})",  # nosec B608
                        params,
                    )
        except sqlite3.Error as exc:
            raise _translate_error(exc, table) from exc
