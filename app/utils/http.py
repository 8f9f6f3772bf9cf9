"""JSON envelope helpers shared by every API blueprint.

Every response has the shape ``{"ok": bool, "data": ..., "error": ...}``.
Server-side failures are answered with a canned message per status code;
the real exception only goes to the log.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from app.utils.time import iso_now

_log = logging.getLogger(__name__)

_STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    401: "Authentication required",
    404: "Resource not found",
    409: "Conflict",
    500: "An internal error occurred",
    502: "Upstream service error",
    503: "Service temporarily unavailable",
}


def success_response(data: dict | list | None = None, status: int = 200, *, message: str | None = None) -> Response:
    body: dict[str, Any] = {"ok": True, "data": data, "error": None}
    if message is not None:
        body["message"] = message
    response = jsonify(body)
    response.status_code = status
    return response


def error_response(message: str, status: int = 500, *, details: dict | None = None) -> Response:
    """Failure envelope; ``details`` is merged into ``error`` and echoed at top level."""
    error: dict[str, Any] = {"message": message, "timestamp": iso_now(), **(details or {})}
    body: dict[str, Any] = {"ok": False, "data": None, "error": error, "message": message}
    if details:
        body["details"] = details
    response = jsonify(body)
    response.status_code = status
    return response


def safe_error(exc: BaseException, status: int = 500, *, context: str = "") -> Response:
    """Log ``exc`` with its traceback and answer with the canned message for ``status``."""
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    return error_response(_STATUS_MESSAGES.get(status, _STATUS_MESSAGES[500]), status)


def safe_route(error_message: str = "An internal error occurred", *, error_status: int = 500) -> Callable:
    """Route decorator mapping exceptions to JSON errors.

    ``GrowWatchError`` subclasses answer with their own ``http_status``; 4xx
    errors carry the exception text, 5xx errors the canned message. Anything
    else becomes ``error_status``.

    Usage::

        @sensors_api.get("/<source_id>/latest")
        @safe_route("Failed to get latest reading")
        def get_latest_reading(source_id):
            ...
    """
    from app.domain.exceptions import GrowWatchError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except GrowWatchError as exc:
                if exc.http_status >= 500:
                    return safe_error(exc, exc.http_status, context=error_message)
                return error_response(str(exc) or error_message, exc.http_status)
            except Exception as exc:
                return safe_error(exc, error_status, context=error_message)

        return wrapper

    return decorator
