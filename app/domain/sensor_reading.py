"""
Sensor Reading Domain Object
============================

One row sampled from a ``sensor_<n>`` table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.enums import ParameterKind
from app.utils.time import coerce_datetime, utc_now

DEFAULT_STALE_AFTER = timedelta(hours=1)


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class SensorReading:
    """Most recent sample of a sensor source."""

    source_id: str
    timestamp: datetime
    temperature: float | None = None
    humidity: float | None = None
    soil_humidity: float | None = None

    @classmethod
    def from_row(cls, source_id: str, row: dict[str, Any]) -> "SensorReading | None":
        """Build a reading from a store row; ``None`` when it has no usable timestamp."""
        timestamp = coerce_datetime(row.get("created_at") or row.get("timestamp"))
        if timestamp is None:
            return None
        return cls(
            source_id=source_id,
            timestamp=timestamp,
            temperature=_as_float(row.get("temperature")),
            humidity=_as_float(row.get("humidity")),
            soil_humidity=_as_float(row.get("soil_humidity")),
        )

    def value_for(self, kind: ParameterKind) -> float | None:
        if kind is ParameterKind.TEMPERATURE:
            return self.temperature
        if kind is ParameterKind.HUMIDITY:
            return self.humidity
        if kind is ParameterKind.SOIL_HUMIDITY:
            return self.soil_humidity
        return None

    def age(self, now: datetime | None = None) -> timedelta:
        return (now or utc_now()) - self.timestamp

    def is_stale(self, now: datetime | None = None, stale_after: timedelta = DEFAULT_STALE_AFTER) -> bool:
        return self.age(now) > stale_after

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "timestamp": self.timestamp.isoformat(),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "soil_humidity": self.soil_humidity,
        }
