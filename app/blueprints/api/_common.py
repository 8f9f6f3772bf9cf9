"""
Helpers shared by the API blueprints: container lookup, lenient JSON
parsing and the envelope shortcuts.

Usage:
    from app.blueprints.api._common import get_container, get_json, success, fail
"""
from __future__ import annotations

import logging

from flask import current_app, request
from pydantic import ValidationError as PydanticValidationError

from app.utils.http import error_response, success_response

logger = logging.getLogger("api._common")


def get_container():
    """ServiceContainer stored on the app; ``RuntimeError`` if create_app did not set one."""
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_json() -> dict:
    """Request body as a dict; missing or non-object bodies give ``{}``."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    return error_response(message, status, details=details)


def invalid_request(exc: PydanticValidationError):
    """400 response listing the schema errors of a rejected payload."""
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    return fail("Invalid request", 400, details={"errors": errors})


def _require(name: str):
    service = getattr(get_container(), name, None)
    if service is None:
        raise RuntimeError(f"{name} not available")
    return service


def get_scheduler():
    return _require("scheduler")


def get_settings_service():
    return _require("settings_service")


def get_notifier():
    return _require("notifier")
