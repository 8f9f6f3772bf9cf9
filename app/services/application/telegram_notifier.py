"""
Telegram Notifier
=================

Formats alert messages and posts them to the Telegram bot API.

Credentials are resolved at send time through ``settings_provider`` so that an
operator changing them takes effect on the next alert. Sending never raises:
every failure is logged and reported as ``False``.
"""

from __future__ import annotations

import html
import logging
from datetime import datetime
from typing import Callable, Optional

import requests

from app.domain.monitoring_settings import MonitoringSettings
from app.domain.stage_parameters import Band
from app.enums import GrowthStage, MessageKind, NotificationSeverity, ParameterKind
from app.services.application.threshold_evaluator import Violation
from app.utils.time import convert_utc_to_local, format_datetime, utc_now

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT_SECONDS = 5.0

SEVERITY_ICONS = {
    NotificationSeverity.CRITICAL: "🔴",
    NotificationSeverity.WARNING: "🟠",
}

MESSAGE_KIND_ICONS = {
    MessageKind.INFO: "ℹ️",
    MessageKind.SUCCESS: "✅",
    MessageKind.WARNING: "⚠️",
    MessageKind.ERROR: "🚨",
}


def _stamp(moment: Optional[datetime] = None) -> str:
    return format_datetime(convert_utc_to_local(moment or utc_now()), "%Y-%m-%d %H:%M:%S")


def _sensor_label(source_id: str) -> str:
    return "Sensor " + source_id.replace("sensor_", "")


def _band_text(band: Band, unit: str) -> str:
    return f"{band.min:g}{unit} - {band.max:g}{unit}"


def format_violation(
    source_id: str,
    violation: Violation,
    stage: Optional[GrowthStage] = None,
    now: Optional[datetime] = None,
) -> str:
    """Markdown alert for one out-of-range parameter."""
    kind = violation.parameter
    icon = SEVERITY_ICONS.get(violation.severity, "🟠")
    unit = kind.unit
    lines = [
        f"{icon} *{kind.display_name.upper()} ALERT* {icon}",
        "",
        f"*{_sensor_label(source_id)}*",
        f"{kind.display_name}: *{violation.value:.1f}{unit}* ({violation.direction})",
    ]
    if violation.band is not None:
        lines.append(f"Acceptable range: {_band_text(violation.band, unit)}")
    if violation.optimal is not None and violation.optimal != violation.band:
        lines.append(f"Optimal range: {_band_text(violation.optimal, unit)}")
    lines.append(f"Severity: {violation.severity.value.upper()}")
    if stage is not None:
        lines.append(f"Stage: {stage.value}")
    lines.extend(["", f"_{_stamp(now)}_"])
    return "\n".join(lines)


def format_inactive(
    source_id: str,
    last_reading_at: datetime,
    now: Optional[datetime] = None,
    stale_after_minutes: int = 60,
) -> str:
    """Markdown alert for a sensor that stopped reporting."""
    now = now or utc_now()
    silent_minutes = max(0, int((now - last_reading_at).total_seconds() // 60))
    hours, minutes = divmod(silent_minutes, 60)
    return (
        "⚠️ *ALERT: SENSOR INACTIVE* ⚠️\n\n"
        f"*{_sensor_label(source_id)}* has not sent data for more than {stale_after_minutes} minutes.\n\n"
        f"Last reading: {_stamp(last_reading_at)}\n"
        f"Inactive for: {hours} h {minutes} min"
    )


class TelegramNotifier:
    """Posts messages to ``<base>/bot<token>/sendMessage``."""

    def __init__(
        self,
        settings_provider: Callable[[], MonitoringSettings],
        *,
        api_base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings_provider = settings_provider
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def notify(self, message: str, parse_mode: str = "Markdown") -> bool:
        """Send ``message``; returns ``False`` on any failure."""
        try:
            settings = self._settings_provider()
        except Exception as e:
            logger.error(f"Could not resolve Telegram credentials: {e}")
            return False

        if not settings.has_credentials:
            logger.error("Telegram credentials missing; message not sent")
            return False

        url = f"{self.api_base_url}/bot{settings.bot_token}/sendMessage"
        payload = {"chat_id": settings.chat_id, "text": message, "parse_mode": parse_mode}
        try:
            response = self._session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error("Telegram API timed out after %.1fs", self.timeout)
            return False
        except requests.RequestException as e:
            logger.error(f"Telegram API request failed: {type(e).__name__}")
            return False

        if not 200 <= response.status_code < 300:
            logger.error("Telegram API error %d: %s", response.status_code, response.text[:500])
            return False

        logger.info("Telegram message sent (%d chars)", len(message))
        return True

    def send_test_message(self) -> bool:
        message = (
            "🧪 *TEST MESSAGE* 🧪\n\n"
            "Monitoring system operational.\n"
            "Alerts will be sent when readings leave the configured ranges.\n\n"
            f"_Date and time: {_stamp()}_"
        )
        return self.notify(message)

    def send_typed_message(self, message: str, kind: MessageKind | str = MessageKind.INFO) -> bool:
        """HTML message with an ``info/success/warning/error`` header."""
        try:
            kind = MessageKind(str(kind).lower())
        except ValueError:
            kind = MessageKind.INFO
        text = f"{MESSAGE_KIND_ICONS[kind]} <b>{kind.value.upper()}</b>\n\n{html.escape(message)}"
        return self.notify(text, parse_mode="HTML")

    def send_violation(
        self,
        source_id: str,
        violation: Violation,
        stage: Optional[GrowthStage] = None,
        last_reading_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
        stale_after_minutes: int = 60,
    ) -> bool:
        if violation.parameter is ParameterKind.INACTIVE and last_reading_at is not None:
            message = format_inactive(source_id, last_reading_at, now, stale_after_minutes)
        else:
            message = format_violation(source_id, violation, stage, now)
        return self.notify(message)
