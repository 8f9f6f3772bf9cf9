"""Latest / recent readings of a sensor source."""

from __future__ import annotations

import logging
from typing import List, Optional

from app.domain.exceptions import GrowWatchError, SourceNotFoundError, ValidationError
from app.domain.sensor_reading import SensorReading
from app.services.application.sensor_discovery_service import is_sensor_source
from infrastructure.database.repositories.sensors import SensorReadingRepository

logger = logging.getLogger(__name__)

MAX_RECENT_READINGS = 300


class ReadingFetcher:
    """Reads sensor rows and turns them into ``SensorReading`` objects."""

    def __init__(self, sensor_repo: SensorReadingRepository) -> None:
        self.sensor_repo = sensor_repo

    @staticmethod
    def _check_source(source_id: str) -> None:
        if not is_sensor_source(source_id):
            raise ValidationError(f"Invalid sensor source: {source_id!r}")

    def fetch_latest(self, source_id: str) -> Optional[SensorReading]:
        """Newest reading of ``source_id``; ``None`` when empty or unreadable."""
        self._check_source(source_id)
        try:
            row = self.sensor_repo.latest(source_id)
        except GrowWatchError as e:
            logger.error(f"Error fetching latest reading from {source_id}: {e}")
            return None
        if row is None:
            return None
        reading = SensorReading.from_row(source_id, row)
        if reading is None:
            logger.warning("Latest row of %s has no usable timestamp: %s", source_id, row)
        return reading

    def fetch_recent(self, source_id: str, limit: int = MAX_RECENT_READINGS) -> List[SensorReading]:
        """Newest-first readings, ``limit`` clamped to ``1..300``.

        Unlike ``fetch_latest`` this is only called on operator request, so
        a missing table and store failures propagate.
        """
        self._check_source(source_id)
        limit = max(1, min(MAX_RECENT_READINGS, int(limit)))
        rows = self.sensor_repo.recent(source_id, limit=limit)
        readings = [SensorReading.from_row(source_id, row) for row in rows]
        return [reading for reading in readings if reading is not None]

    def require_latest(self, source_id: str) -> Optional[SensorReading]:
        """Like ``fetch_latest`` but a missing table raises ``SourceNotFoundError``."""
        self._check_source(source_id)
        if not self.sensor_repo.exists(source_id):
            raise SourceNotFoundError(source_id)
        return self.fetch_latest(source_id)
