"""Sensor table helpers: create ``sensor_<n>`` tables and append readings."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

from app.utils.time import utc_now
from infrastructure.database.sql_safety import require_identifier

logger = logging.getLogger(__name__)

SENSOR_TABLE_RE = re.compile(r"^sensor_(\d+)$")


def sensor_table_name(index: int | str) -> str:
    name = index if isinstance(index, str) else f"sensor_{int(index)}"
    if not SENSOR_TABLE_RE.match(name):
        raise ValueError(f"Not a sensor table name: {name!r}")
    return name


class SensorTableOperations:
    """Schema and write helpers for the per-sensor reading tables."""

    def create_sensor_table(self, index: int | str) -> str:
        table = sensor_table_name(index)
        with self.connection() as db:
            db.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    created_at TEXT NOT NULL,
                    temperature REAL,
                    humidity REAL,
                    soil_humidity REAL
                )
                """
            )
            db.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table}(created_at DESC)")
        logger.debug("Ensured sensor table %s", table)
        return table

    def insert_reading(
        self,
        table: str,
        *,
        temperature: float | None = None,
        humidity: float | None = None,
        soil_humidity: float | None = None,
        created_at: datetime | None = None,
    ) -> int | None:
        require_identifier(table)
        stamp = (created_at or utc_now()).isoformat()
        with self.connection() as db:
            cur = db.execute(
                f"INSERT INTO {table} (created_at, temperature, humidity, soil_humidity) VALUES (?, ?, ?, ?)",  # nosec B608
                (stamp, temperature, humidity, soil_humidity),
            )
            return cur.lastrowid

    def list_sensor_tables(self) -> list[str]:
        rows = self.get_db().execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name LIKE 'sensor\\_%' ESCAPE '\\'"
        ).fetchall()
        names = [row["name"] for row in rows if SENSOR_TABLE_RE.match(row["name"])]
        return sorted(names, key=lambda name: int(SENSOR_TABLE_RE.match(name).group(1)))


def get_sensor_tables_procedure(handler: Any, _params: dict[str, Any]) -> list[dict[str, str]]:
    """SQLite rendition of the hosted ``get_sensor_tables`` procedure."""
    return [{"table_name": name} for name in handler.list_sensor_tables()]
