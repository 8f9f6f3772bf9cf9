"""
Common Enumerations
====================

This module contains common enums used across multiple services.
These are application-wide enums that don't fit in the growth category.
"""

from enum import Enum


class NotificationSeverity(str, Enum):
    """
    Severity of a detected violation.
    Used by: threshold_evaluator, telegram_notifier
    """
    WARNING = "warning"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class ParameterKind(str, Enum):
    """
    Environmental parameters watched per sensor source.

    ``INACTIVE`` is not a measured quantity; it keys the "sensor stopped
    reporting" violation so it dedupes independently of the measurements.
    Used by: threshold_evaluator, notification_deduplicator
    """
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    SOIL_HUMIDITY = "soil_humidity"
    INACTIVE = "inactive"

    @property
    def display_name(self) -> str:
        return _PARAMETER_DISPLAY[self]

    @property
    def unit(self) -> str:
        return _PARAMETER_UNITS[self]

    def __str__(self) -> str:
        return self.value


_PARAMETER_DISPLAY = {
    ParameterKind.TEMPERATURE: "Temperature",
    ParameterKind.HUMIDITY: "Air Humidity",
    ParameterKind.SOIL_HUMIDITY: "Soil Humidity",
    ParameterKind.INACTIVE: "Sensor Activity",
}

_PARAMETER_UNITS = {
    ParameterKind.TEMPERATURE: "°C",
    ParameterKind.HUMIDITY: "%",
    ParameterKind.SOIL_HUMIDITY: "%",
    ParameterKind.INACTIVE: "",
}

MEASURED_PARAMETERS = (
    ParameterKind.TEMPERATURE,
    ParameterKind.HUMIDITY,
    ParameterKind.SOIL_HUMIDITY,
)


class MessageKind(str, Enum):
    """
    Header style for free-form chat messages.
    Used by: telegram_notifier, notifications API
    """
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


class DiscoveryStrategy(str, Enum):
    """
    How sensor sources are enumerated.

    - PROBE: check ``sensor_1``, ``sensor_2``, ... until one is missing
    - DELEGATED: ask the store's ``get_sensor_tables`` procedure
    """
    PROBE = "probe"
    DELEGATED = "delegated"

    def __str__(self) -> str:
        return self.value
