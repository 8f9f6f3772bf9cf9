import pytest

from app.config import AppConfig
from app.services.container import ServiceContainer
from infrastructure.database.postgrest_store import PostgrestStore
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "GROWWATCH_ENV",
        "GROWWATCH_SECRET_KEY",
        "GROWWATCH_STORE_BACKEND",
        "GROWWATCH_POSTGREST_URL",
        "SUPABASE_URL",
        "GROWWATCH_DISCOVERY_STRATEGY",
        "GROWWATCH_CRON_API_KEY",
        "CRON_API_KEY",
        "TELEGRAM_BOT_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = AppConfig()
    assert config.store_backend == "sqlite"
    assert config.discovery_strategy == "probe"
    assert config.default_interval_minutes == 10
    assert config.stale_after_minutes == 60
    assert config.notify_cooldown_minutes == 15
    assert config.notify_value_delta == 2.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.example.co")
    monkeypatch.setenv("GROWWATCH_STORE_BACKEND", "postgrest")
    monkeypatch.setenv("CRON_API_KEY", "k")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "t")
    config = AppConfig()
    assert config.postgrest_url == "https://project.example.co"
    assert config.cron_api_key == "k"
    assert config.telegram_bot_token == "t"


def test_rejects_unknown_backend(monkeypatch):
    monkeypatch.setenv("GROWWATCH_STORE_BACKEND", "mysql")
    with pytest.raises(ValueError):
        AppConfig()


def test_rejects_unknown_discovery_strategy(monkeypatch):
    monkeypatch.setenv("GROWWATCH_DISCOVERY_STRATEGY", "guess")
    with pytest.raises(ValueError):
        AppConfig()


def test_postgrest_backend_needs_url(monkeypatch):
    monkeypatch.setenv("GROWWATCH_STORE_BACKEND", "postgrest")
    with pytest.raises(ValueError):
        AppConfig()


def test_production_refuses_default_secret(monkeypatch):
    monkeypatch.setenv("GROWWATCH_ENV", "production")
    with pytest.raises(RuntimeError):
        AppConfig()


def test_container_builds_sqlite_store(tmp_path):
    config = AppConfig(database_path=str(tmp_path / "db" / "growwatch.db"))
    container = ServiceContainer.build(config)
    try:
        assert isinstance(container.store, SQLiteDatabaseHandler)
        assert container.store.table_exists("notification_settings")
        assert container.scheduler.get_status()["interval_minutes"] == 10
    finally:
        container.shutdown()


def test_container_builds_postgrest_store(monkeypatch):
    monkeypatch.setenv("GROWWATCH_STORE_BACKEND", "postgrest")
    monkeypatch.setenv("GROWWATCH_POSTGREST_URL", "https://project.example.co")
    container = ServiceContainer.build(AppConfig())
    assert isinstance(container.store, PostgrestStore)
    container.shutdown()


def test_start_background_respects_flag(tmp_path):
    config = AppConfig(database_path=str(tmp_path / "growwatch.db"), bootstrap_monitoring=False)
    container = ServiceContainer.build(config)
    container.settings_service.update_settings({"enabled": True})
    container.start_background()
    assert not container.scheduler.is_active()
    container.shutdown()
