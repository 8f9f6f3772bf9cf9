"""
Monitoring Settings API
=======================

GET  /api/v1/settings/monitoring  - current settings (bot token never echoed)
PUT  /api/v1/settings/monitoring  - partial update

When the Telegram credentials come from the environment they are read-only:
a PUT that tries to change them is rejected with 409.
"""

from __future__ import annotations

import logging

from flask import Response
from pydantic import ValidationError

from app.blueprints.api._common import fail, get_json, get_settings_service, invalid_request, success
from app.blueprints.api.settings import settings_api
from app.schemas.monitoring import MonitoringSettingsUpdate
from app.utils.http import safe_route

logger = logging.getLogger(__name__)


def _settings_payload(service) -> dict:
    settings = service.get_settings()
    data = settings.to_public_dict(locked_fields=service.locked_fields())
    data["effective_stage"] = service.resolve_stage(settings).value
    data["active_cycle"] = service.get_active_cycle()
    return data


@settings_api.get("/monitoring")
@safe_route("Failed to get monitoring settings")
def get_monitoring_settings() -> Response:
    return success(_settings_payload(get_settings_service()))


@settings_api.put("/monitoring")
@safe_route("Failed to save monitoring settings")
def update_monitoring_settings() -> Response:
    """
    Update monitoring settings.

    Request Body (all fields optional):
        {
            "enabled": true,
            "interval_minutes": 15,
            "stage": "Floración",
            "monitor_temperature": true,
            "monitor_humidity": true,
            "monitor_soil_humidity": false,
            "notify_inactive": true,
            "use_active_cycle_stage": false,
            "bot_token": "123:abc",
            "chat_id": "-100123"
        }
    """
    try:
        payload = MonitoringSettingsUpdate.model_validate(get_json())
    except ValidationError as ve:
        return invalid_request(ve)

    service = get_settings_service()
    updates = payload.to_updates()
    locked = sorted(service.locked_fields().intersection(updates))
    if locked:
        return fail(
            "Telegram credentials are managed by the server environment", 409, details={"locked_fields": locked}
        )

    service.update_settings(updates)
    logger.info("Monitoring settings updated: %s", sorted(k for k in updates if k != "bot_token"))
    return success(_settings_payload(service), message="Settings saved")
