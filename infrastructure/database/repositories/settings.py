from __future__ import annotations

from typing import Any

from app.services.protocols import RelationalStore
from app.utils.time import iso_now


class MonitoringSettingsRepository:
    """Facade over the single-row ``notification_settings`` table."""

    TABLE = "notification_settings"
    ROW_ID = 1

    def __init__(self, backend: RelationalStore) -> None:
        self._backend = backend

    def load(self) -> dict[str, Any] | None:
        return self._backend.get_row(self.TABLE, self.ROW_ID)

    def save(self, values: dict[str, Any]) -> None:
        self._backend.upsert_row(self.TABLE, self.ROW_ID, {**values, "updated_at": iso_now()})
