from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from datetime import datetime
from typing import Any, Callable, Optional

import requests
from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.monitoring import cron_api, monitoring_api
from app.blueprints.api.notifications import notifications_api
from app.blueprints.api.sensors import sensors_api
from app.blueprints.api.settings import settings_api
from app.blueprints.api.stages import stages_api
from app.config import load_config, setup_logging
from app.services.protocols import RelationalStore
from app.utils.time import utc_now


def create_app(
    config_overrides: dict[str, Any] | None = None,
    *,
    bootstrap_runtime: bool = True,
    store: Optional[RelationalStore] = None,
    http_session: Optional[requests.Session] = None,
    clock: Callable[[], datetime] = utc_now,
    install_signal_handlers: bool = True,
) -> Flask:
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            setattr(config, key if hasattr(config, key) else key.lower(), value)

    # Configure logging early so container startup is visible in the terminal and growwatch.log.
    setup_logging(debug=config.DEBUG)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.config["MAX_CONTENT_LENGTH"] = 64 * 1024

    from app.services.container import ServiceContainer

    container = ServiceContainer.build(config, store=store, http_session=http_session, clock=clock)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    # Register atexit (covers normal interpreter exit)
    atexit.register(_graceful_shutdown, "atexit")

    # Register OS signal handlers (SIGINT=Ctrl-C, SIGTERM=container/systemd stop)
    if install_signal_handlers:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # Global JSON error handler: catches any unhandled exception on /api/
    # routes and returns a generic message instead of leaking stack traces.
    # Domain exceptions carry their own ``http_status`` so the handler can
    # map GrowWatchError subclasses to the right status code.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            raise exc
        from app.domain.exceptions import GrowWatchError
        from app.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, GrowWatchError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            # 4xx: surface the message; it was written for the caller.
            return error_response(str(exc) or "Request failed", status)

        return safe_error(exc, 500, context="unhandled")

    @flask_app.errorhandler(413)
    def _handle_too_large(_exc):
        from app.utils.http import error_response

        return error_response("Request payload too large", 413)

    # ── API version prefix ──────────────────────────────────────────
    V1 = "/api/v1"

    flask_app.register_blueprint(monitoring_api, url_prefix=f"{V1}/monitoring")
    flask_app.register_blueprint(cron_api, url_prefix=f"{V1}/cron")
    flask_app.register_blueprint(sensors_api, url_prefix=f"{V1}/sensors")
    flask_app.register_blueprint(settings_api, url_prefix=f"{V1}/settings")
    flask_app.register_blueprint(notifications_api, url_prefix=f"{V1}/notifications")
    flask_app.register_blueprint(stages_api, url_prefix=f"{V1}/stages")

    for bp_name in flask_app.blueprints:
        logging.info(f" Registered blueprint: {bp_name}")

    if bootstrap_runtime:
        container.start_background()
    else:
        logging.info("Skipping monitoring bootstrap (bootstrap_runtime=False)")

    logger = logging.getLogger(__name__)
    logger.info("GrowWatch application initialized successfully.")

    return flask_app


__all__ = ["create_app"]
