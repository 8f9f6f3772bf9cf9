from __future__ import annotations

from typing import Any

from app.services.protocols import RelationalStore


class SensorReadingRepository:
    """Facade over the per-sensor ``sensor_<n>`` reading tables."""

    TIMESTAMP_COLUMN = "created_at"

    def __init__(self, backend: RelationalStore) -> None:
        self._backend = backend

    def latest(self, table: str) -> dict[str, Any] | None:
        rows = self.recent(table, limit=1)
        return rows[0] if rows else None

    def recent(self, table: str, *, limit: int) -> list[dict[str, Any]]:
        return self._backend.select_rows(
            table,
            order_by=self.TIMESTAMP_COLUMN,
            descending=True,
            limit=limit,
        )

    def exists(self, table: str) -> bool:
        return self._backend.table_exists(table)

    def list_via_procedure(self) -> Any:
        return self._backend.call_procedure("get_sensor_tables")
