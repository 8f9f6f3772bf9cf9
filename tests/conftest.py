"""
Shared test fixtures for the GrowWatch test suite.

Provides:
- File-backed SQLite database with the settings / cycle tables created
- Helpers for creating ``sensor_<n>`` tables and seeding readings
- A controllable clock shared by the deduplicator and the scheduler
- A mocked ``requests.Session`` standing in for the Telegram API
- Flask app / client fixtures with background monitoring disabled

Usage:
    def test_example(db_handler, seed_sensor, clock):
        seed_sensor(1, temperature=24.0, humidity=55.0, soil_humidity=45.0)
        ...
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from infrastructure.database.repositories.cycles import CultivationCycleRepository
from infrastructure.database.repositories.sensors import SensorReadingRepository
from infrastructure.database.repositories.settings import MonitoringSettingsRepository

# ---------------------------------------------------------------------------
# Database & Repositories
# ---------------------------------------------------------------------------
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)


FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when a test says so."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_response(status_code: int = 200, payload: Any = None, text: str = "") -> MagicMock:
    """Minimal stand-in for ``requests.Response``."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text
    response.content = b"" if payload is None else b"{}"
    response.json.return_value = payload
    return response


# ========================== Clock / HTTP Fixtures ==========================


@pytest.fixture()
def clock():
    """Fake UTC clock fixed at ``FIXED_NOW``."""
    return FakeClock()


@pytest.fixture()
def telegram_session():
    """Mock session whose ``post`` answers 200 OK."""
    session = MagicMock()
    session.post.return_value = make_response(200, {"ok": True})
    return session


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler(tmp_path):
    """File-backed SQLite database with all tables created.

    A file is used instead of ``:memory:`` because connections are per
    thread and the scheduler worker must see the same data.
    """
    handler = SQLiteDatabaseHandler(str(tmp_path / "growwatch_test.db"))
    handler.create_tables()
    yield handler
    handler.close_db()


@pytest.fixture()
def seed_sensor(db_handler, clock):
    """Factory: create ``sensor_<index>`` and insert one reading ``age`` old."""

    def _seed(
        index: int,
        *,
        temperature: Optional[float] = 24.0,
        humidity: Optional[float] = 55.0,
        soil_humidity: Optional[float] = 45.0,
        age: timedelta = timedelta(minutes=1),
    ) -> str:
        table = db_handler.create_sensor_table(index)
        db_handler.insert_reading(
            table,
            temperature=temperature,
            humidity=humidity,
            soil_humidity=soil_humidity,
            created_at=clock() - age,
        )
        return table

    return _seed


# ========================== Repository Fixtures ============================


@pytest.fixture()
def sensor_repo(db_handler):
    """SensorReadingRepository backed by the test DB."""
    return SensorReadingRepository(db_handler)


@pytest.fixture()
def settings_repo(db_handler):
    """MonitoringSettingsRepository backed by the test DB."""
    return MonitoringSettingsRepository(db_handler)


@pytest.fixture()
def cycle_repo(db_handler):
    """CultivationCycleRepository backed by the test DB."""
    return CultivationCycleRepository(db_handler)


# ========================== Service Factory Fixtures =======================


@pytest.fixture()
def settings_service(settings_repo, cycle_repo):
    """MonitoringSettingsService with stored credentials allowed."""
    from app.services.application.monitoring_settings_service import MonitoringSettingsService

    return MonitoringSettingsService(settings_repo, cycle_repo=cycle_repo)


@pytest.fixture()
def notifier(settings_service, telegram_session):
    """TelegramNotifier posting through the mocked session."""
    from app.services.application.telegram_notifier import TelegramNotifier

    settings_service.update_settings({"bot_token": "123:abc", "chat_id": "-100"})
    return TelegramNotifier(settings_service.get_settings, session=telegram_session)


@pytest.fixture()
def scheduler(sensor_repo, settings_service, notifier, clock):
    """MonitoringScheduler over the test DB; one "minute" lasts 50 ms."""
    from app.services.application.notification_deduplicator import NotificationDeduplicator
    from app.services.application.reading_fetcher import ReadingFetcher
    from app.services.application.sensor_discovery_service import SensorDiscoveryService
    from app.services.application.threshold_evaluator import ThresholdEvaluator
    from app.workers.monitoring_scheduler import MonitoringScheduler

    sched = MonitoringScheduler(
        discovery=SensorDiscoveryService(sensor_repo),
        fetcher=ReadingFetcher(sensor_repo),
        evaluator=ThresholdEvaluator(clock=clock),
        deduplicator=NotificationDeduplicator(clock=clock),
        notifier=notifier,
        settings_service=settings_service,
        clock=clock,
        minute_seconds=0.05,
    )
    yield sched
    sched.shutdown(wait=True)


# ========================== Flask Fixtures =================================


@pytest.fixture()
def app(tmp_path, monkeypatch, db_handler, telegram_session, clock):
    """Application wired to the test DB and the mocked Telegram session."""
    from app import create_app

    for name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "GROWWATCH_CRON_API_KEY", "CRON_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GROWWATCH_SECRET_KEY", "test-secret")

    flask_app = create_app(
        {
            "database_path": str(tmp_path / "growwatch_test.db"),
            "bootstrap_monitoring": False,
            "cron_api_key": "cron-secret",
        },
        bootstrap_runtime=False,
        store=db_handler,
        http_session=telegram_session,
        clock=clock,
        install_signal_handlers=False,
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.config["CONTAINER"].scheduler.shutdown(wait=True)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.config["CONTAINER"]
