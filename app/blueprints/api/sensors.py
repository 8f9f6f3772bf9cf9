"""Sensor Sources API
=====================

Routes:
    GET  /api/v1/sensors/tables                 - discovered sensor sources
    GET  /api/v1/sensors/<source_id>/latest     - newest reading plus its evaluation
    GET  /api/v1/sensors/<source_id>/readings   - newest-first history (?limit=, max 300)
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, request

from app.blueprints.api._common import fail, get_container, success
from app.domain.stage_parameters import get_stage_parameters
from app.services.application.reading_fetcher import MAX_RECENT_READINGS
from app.utils.http import safe_route

logger = logging.getLogger(__name__)

sensors_api = Blueprint("sensors_api", __name__)


@sensors_api.get("/tables")
@safe_route("Failed to list sensor tables")
def list_sensor_tables() -> Response:
    container = get_container()
    tables = container.discovery_service.discover_sensor_sources()
    return success({"tables": tables, "strategy": container.discovery_service.strategy.value})


@sensors_api.get("/<source_id>/latest")
@safe_route("Failed to get latest reading")
def get_latest_reading(source_id: str) -> Response:
    container = get_container()
    reading = container.reading_fetcher.require_latest(source_id)
    if reading is None:
        return success({"source_id": source_id, "reading": None, "violations": []}, message="No readings yet")

    evaluator = container.threshold_evaluator
    now = evaluator.clock()
    settings = container.settings_service.get_settings()
    stage = container.settings_service.resolve_stage(settings)
    violations = evaluator.evaluate(reading, get_stage_parameters(stage), settings.enabled_parameters(), now)
    return success(
        {
            "source_id": source_id,
            "reading": reading.to_dict(),
            "stage": stage.value,
            "stale": reading.is_stale(now, evaluator.stale_after),
            "violations": [v.to_dict() for v in violations],
        }
    )


@sensors_api.get("/<source_id>/readings")
@safe_route("Failed to get readings")
def get_readings(source_id: str) -> Response:
    limit = request.args.get("limit", default=MAX_RECENT_READINGS, type=int)
    if limit is None or limit < 1:
        return fail("limit must be a positive integer", 400)

    readings = get_container().reading_fetcher.fetch_recent(source_id, limit=limit)
    return success(
        {
            "source_id": source_id,
            "count": len(readings),
            "readings": [r.to_dict() for r in readings],
        }
    )
