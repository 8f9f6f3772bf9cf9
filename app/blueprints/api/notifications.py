"""Telegram Notifications API
=============================

Routes:
    POST /api/v1/notifications/telegram/test  - send the canned test message
    POST /api/v1/notifications/telegram       - send {"message", "type"}
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response
from pydantic import ValidationError

from app.blueprints.api._common import fail, get_json, get_notifier, invalid_request, success
from app.schemas.monitoring import TelegramMessageRequest
from app.utils.http import safe_route

logger = logging.getLogger(__name__)

notifications_api = Blueprint("notifications_api", __name__)


@notifications_api.post("/telegram/test")
@safe_route("Failed to send test message")
def send_test_message() -> Response:
    if not get_notifier().send_test_message():
        return fail("Test message could not be delivered; check the Telegram credentials", 502)
    return success({"sent": True}, message="Test message sent")


@notifications_api.post("/telegram")
@safe_route("Failed to send notification")
def send_notification() -> Response:
    try:
        payload = TelegramMessageRequest.model_validate(get_json())
    except ValidationError as ve:
        return invalid_request(ve)

    if not get_notifier().send_typed_message(payload.message, payload.type):
        return fail("Notification could not be delivered", 502)
    return success({"sent": True, "type": payload.type.value})
