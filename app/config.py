"""
Configuration for GrowWatch
===========================
Main application runtime settings: store backend, discovery, alert policy,
chat API and scheduling. Every field is read from the environment.
Setups the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


def _env_str_multi(names: tuple[str, ...], default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("GROWWATCH_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("GROWWATCH_SECRET_KEY", "GrowWatchDevSecretKey"))
    DEBUG: bool = field(default_factory=lambda: _env_bool("GROWWATCH_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("GROWWATCH_LOG_LEVEL", "INFO"))

    # Relational store
    # Backend: "sqlite" (local file) or "postgrest" (hosted Postgres REST API)
    store_backend: str = field(default_factory=lambda: os.getenv("GROWWATCH_STORE_BACKEND", "sqlite"))
    database_path: str = field(default_factory=lambda: os.getenv("GROWWATCH_DATABASE_PATH", "database/growwatch.db"))
    postgrest_url: str = field(
        default_factory=lambda: _env_str_multi(("GROWWATCH_POSTGREST_URL", "SUPABASE_URL"))
    )
    postgrest_key: str = field(
        default_factory=lambda: _env_str_multi(("GROWWATCH_POSTGREST_KEY", "SUPABASE_SERVICE_KEY"))
    )
    store_timeout_seconds: float = field(default_factory=lambda: _env_float("GROWWATCH_STORE_TIMEOUT", 10.0))

    # Sensor discovery
    discovery_strategy: str = field(default_factory=lambda: os.getenv("GROWWATCH_DISCOVERY_STRATEGY", "probe"))
    max_probe_sources: int = field(default_factory=lambda: _env_int("GROWWATCH_MAX_PROBE_SOURCES", 50))

    # Alert policy
    stale_after_minutes: int = field(default_factory=lambda: _env_int("GROWWATCH_STALE_AFTER_MINUTES", 60))
    notify_cooldown_minutes: int = field(default_factory=lambda: _env_int("GROWWATCH_NOTIFY_COOLDOWN_MINUTES", 15))
    notify_value_delta: float = field(default_factory=lambda: _env_float("GROWWATCH_NOTIFY_VALUE_DELTA", 2.0))

    # Telegram
    telegram_api_base_url: str = field(
        default_factory=lambda: os.getenv("GROWWATCH_TELEGRAM_API_URL", "https://api.telegram.org")
    )
    telegram_timeout_seconds: float = field(default_factory=lambda: _env_float("GROWWATCH_TELEGRAM_TIMEOUT", 5.0))
    telegram_bot_token: str = field(default_factory=lambda: os.getenv("TELEGRAM_BOT_TOKEN", ""))
    telegram_chat_id: str = field(default_factory=lambda: os.getenv("TELEGRAM_CHAT_ID", ""))

    # Scheduling
    default_interval_minutes: int = field(default_factory=lambda: _env_int("GROWWATCH_DEFAULT_INTERVAL_MINUTES", 10))
    cron_api_key: str = field(default_factory=lambda: _env_str_multi(("GROWWATCH_CRON_API_KEY", "CRON_API_KEY")))
    bootstrap_monitoring: bool = field(default_factory=lambda: _env_bool("GROWWATCH_BOOTSTRAP_MONITORING", True))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="GrowWatchDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.store_backend not in {"sqlite", "postgrest"}:
            raise ValueError(f"GROWWATCH_STORE_BACKEND must be 'sqlite' or 'postgrest', got {self.store_backend!r}")
        if self.discovery_strategy not in {"probe", "delegated"}:
            raise ValueError(
                f"GROWWATCH_DISCOVERY_STRATEGY must be 'probe' or 'delegated', got {self.discovery_strategy!r}"
            )
        if self.store_backend == "postgrest" and not self.postgrest_url:
            raise ValueError("GROWWATCH_POSTGREST_URL is required when the store backend is 'postgrest'.")

        # SECURITY: Fail fast if using default secret key in production
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set GROWWATCH_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DATABASE_PATH": self.database_path,
            "DEBUG": self.DEBUG,
            "JSON_AS_ASCII": False,
        }


def setup_logging(debug: bool = False) -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Keep existing handlers but avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "growwatch_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "growwatch_file" for h in root.handlers)
    added_handler = False

    # Console handler (force UTF-8; alert messages carry emoji)
    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "growwatch_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    # File handler
    if not has_file:
        os.makedirs("logs", exist_ok=True)
        file_handler = RotatingFileHandler(
            "logs/growwatch.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "growwatch_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {"growwatch_console", "growwatch_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    if _env_bool("GROWWATCH_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    # urllib3 logs every Telegram / PostgREST connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()
