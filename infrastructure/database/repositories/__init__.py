"""Repository facades exposing typed accessors over a ``RelationalStore``."""

from infrastructure.database.repositories.cycles import CultivationCycleRepository
from infrastructure.database.repositories.sensors import SensorReadingRepository
from infrastructure.database.repositories.settings import MonitoringSettingsRepository

__all__ = [
    "CultivationCycleRepository",
    "MonitoringSettingsRepository",
    "SensorReadingRepository",
]
