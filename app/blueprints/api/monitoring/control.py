"""
Monitoring Control API
======================

Routes:
    POST /api/v1/monitoring/register    - start (or restart) periodic checks
    POST /api/v1/monitoring/unregister  - stop periodic checks
    GET  /api/v1/monitoring/status      - scheduler state and last summary
    POST /api/v1/monitoring/check       - run one check cycle now
"""

from __future__ import annotations

import logging

from flask import Response
from pydantic import ValidationError

from app.blueprints.api._common import get_container, get_json, get_scheduler, invalid_request, success
from app.blueprints.api.monitoring import monitoring_api
from app.schemas.monitoring import MonitoringRegisterRequest
from app.utils.http import safe_route

logger = logging.getLogger(__name__)


@monitoring_api.post("/register")
@safe_route("Failed to start monitoring")
def register_monitoring() -> Response:
    """
    Start monitoring; body ``{"interval_minutes": 5}`` (optional).

    The first check runs before the response is returned.
    """
    try:
        payload = MonitoringRegisterRequest.model_validate(get_json())
    except ValidationError as ve:
        return invalid_request(ve)

    scheduler = get_scheduler()
    started = scheduler.start_monitoring(payload.interval_minutes)
    status = scheduler.get_status()
    logger.info("Monitoring registered via API (interval=%s)", status["interval_minutes"])
    return success(
        {"started": started, "interval_minutes": status["interval_minutes"], "status": status},
        message=f"Monitoring started every {status['interval_minutes']} minute(s)",
    )


@monitoring_api.post("/unregister")
@safe_route("Failed to stop monitoring")
def unregister_monitoring() -> Response:
    scheduler = get_scheduler()
    scheduler.stop_monitoring()
    return success({"active": scheduler.is_active()}, message="Monitoring stopped")


@monitoring_api.get("/status")
@safe_route("Failed to get monitoring status")
def monitoring_status() -> Response:
    container = get_container()
    status = container.scheduler.get_status()
    status["notification_state"] = container.deduplicator.snapshot()
    return success(status)


@monitoring_api.post("/check")
@safe_route("Failed to run environment check")
def run_check() -> Response:
    summary = get_scheduler().check_now()
    return success(summary.to_dict())
