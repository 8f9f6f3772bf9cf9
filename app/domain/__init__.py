"""
Domain Value Objects Package
=============================
Contains the value objects shared by the monitoring services.

Value objects are defined only by their attributes; the stage table is
immutable and built once at import.
"""

from .cultivation_cycle import CultivationCycle
from .monitoring_settings import MonitoringSettings, clamp_interval
from .sensor_reading import SensorReading
from .stage_parameters import (
    STAGE_PARAMETERS,
    Band,
    ParameterRange,
    StageParameters,
    get_stage_parameters,
)

__all__ = [
    # Stage table
    "Band",
    "ParameterRange",
    "StageParameters",
    "STAGE_PARAMETERS",
    "get_stage_parameters",
    # Readings
    "SensorReading",
    # Settings
    "MonitoringSettings",
    "clamp_interval",
    # Cycles
    "CultivationCycle",
]
