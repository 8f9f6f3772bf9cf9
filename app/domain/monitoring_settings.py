"""
Monitoring Settings Domain Object
=================================

Operator preferences for the periodic environment check. Persisted as a single
row (``id = 1``) of the ``notification_settings`` table.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from app.enums import DEFAULT_STAGE, GrowthStage, ParameterKind, normalize_stage

MIN_INTERVAL_MINUTES = 1
MAX_INTERVAL_MINUTES = 60
DEFAULT_INTERVAL_MINUTES = 10


def clamp_interval(value: Any, default: int = DEFAULT_INTERVAL_MINUTES) -> int:
    """Clamp an interval to ``[1, 60]`` minutes; unparseable input uses ``default``."""
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        minutes = default
    return max(MIN_INTERVAL_MINUTES, min(MAX_INTERVAL_MINUTES, minutes))


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass
class MonitoringSettings:
    """Monitoring preferences plus chat credentials."""

    enabled: bool = False
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    stage: GrowthStage = DEFAULT_STAGE
    monitor_temperature: bool = True
    monitor_humidity: bool = True
    monitor_soil_humidity: bool = True
    notify_inactive: bool = True
    use_active_cycle_stage: bool = False
    bot_token: str = ""
    chat_id: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def enabled_parameters(self) -> set[ParameterKind]:
        """Measured parameters the operator wants checked."""
        enabled = set()
        if self.monitor_temperature:
            enabled.add(ParameterKind.TEMPERATURE)
        if self.monitor_humidity:
            enabled.add(ParameterKind.HUMIDITY)
        if self.monitor_soil_humidity:
            enabled.add(ParameterKind.SOIL_HUMIDITY)
        return enabled

    def merged(self, updates: dict[str, Any]) -> "MonitoringSettings":
        """Return a copy with ``updates`` applied (unknown keys ignored)."""
        known = {key: value for key, value in updates.items() if key in self.__dataclass_fields__}
        if "stage" in known:
            known["stage"] = normalize_stage(known["stage"]) or self.stage
        if "interval_minutes" in known:
            known["interval_minutes"] = clamp_interval(known["interval_minutes"], self.interval_minutes)
        return replace(self, **known)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MonitoringSettings":
        """Create settings from a stored row (``notification_settings`` columns)."""
        return cls(
            enabled=_flag(data.get("enabled"), False),
            interval_minutes=clamp_interval(data.get("interval_minutes")),
            stage=normalize_stage(data.get("etapa_monitoreo")) or DEFAULT_STAGE,
            monitor_temperature=_flag(data.get("monitor_temperature"), True),
            monitor_humidity=_flag(data.get("monitor_humidity"), True),
            monitor_soil_humidity=_flag(data.get("monitor_soil_humidity"), True),
            notify_inactive=_flag(data.get("notify_inactive"), True),
            use_active_cycle_stage=_flag(data.get("use_active_cycle_stage"), False),
            bot_token=data.get("telegram_bot_token") or "",
            chat_id=str(data.get("telegram_chat_id") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for database storage."""
        return {
            "enabled": self.enabled,
            "interval_minutes": self.interval_minutes,
            "etapa_monitoreo": self.stage.value,
            "monitor_temperature": self.monitor_temperature,
            "monitor_humidity": self.monitor_humidity,
            "monitor_soil_humidity": self.monitor_soil_humidity,
            "notify_inactive": self.notify_inactive,
            "use_active_cycle_stage": self.use_active_cycle_stage,
            "telegram_bot_token": self.bot_token,
            "telegram_chat_id": self.chat_id,
        }

    def to_public_dict(self, *, locked_fields: frozenset[str] = frozenset()) -> dict[str, Any]:
        """API view: the bot token is never echoed back.

        ``locked_fields`` names the credentials supplied by the environment.
        """
        return {
            "enabled": self.enabled,
            "interval_minutes": self.interval_minutes,
            "stage": self.stage.value,
            "monitor_temperature": self.monitor_temperature,
            "monitor_humidity": self.monitor_humidity,
            "monitor_soil_humidity": self.monitor_soil_humidity,
            "notify_inactive": self.notify_inactive,
            "use_active_cycle_stage": self.use_active_cycle_stage,
            "chat_id": self.chat_id,
            "bot_token_configured": bool(self.bot_token),
            "bot_token_locked": "bot_token" in locked_fields,
            "chat_id_locked": "chat_id" in locked_fields,
            "credentials_locked": bool(locked_fields),
        }
