"""
External cron hook.

``GET /api/v1/cron/check-environment?key=...`` lets an outside scheduler
trigger a check cycle. The key must match ``GROWWATCH_CRON_API_KEY``; when no
key is configured the endpoint is disabled.
"""

from __future__ import annotations

import hmac
import logging

from flask import Response, request

from app.blueprints.api._common import fail, get_container, success
from app.blueprints.api.monitoring import cron_api
from app.utils.http import safe_route

logger = logging.getLogger(__name__)


@cron_api.get("/check-environment")
@safe_route("Failed to run environment check")
def cron_check_environment() -> Response:
    container = get_container()
    expected = container.config.cron_api_key
    provided = request.args.get("key") or request.headers.get("X-Cron-Key", "")

    if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Rejected cron call from %s", request.remote_addr)
        return fail("Unauthorized", 401)

    summary = container.scheduler.check_now()
    return success(summary.to_dict(), message="Environment check completed")
