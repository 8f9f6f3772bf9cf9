from datetime import datetime, timedelta, timezone

import pytest

from app.domain.cultivation_cycle import CultivationCycle
from app.domain.monitoring_settings import MonitoringSettings, clamp_interval
from app.domain.sensor_reading import SensorReading
from app.enums import GrowthStage, ParameterKind

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value,expected",
    [(0, 1), (-5, 1), (1, 1), (30, 30), (60, 60), (90, 60), ("15", 15), (None, 10), ("abc", 10)],
)
def test_clamp_interval(value, expected):
    assert clamp_interval(value) == expected


def test_settings_defaults():
    settings = MonitoringSettings()
    assert settings.enabled is False
    assert settings.interval_minutes == 10
    assert settings.stage is GrowthStage.VEGETATIVE
    assert settings.enabled_parameters() == {
        ParameterKind.TEMPERATURE,
        ParameterKind.HUMIDITY,
        ParameterKind.SOIL_HUMIDITY,
    }
    assert not settings.has_credentials


def test_settings_merged_normalizes_and_ignores_unknown_keys():
    merged = MonitoringSettings().merged(
        {"stage": "Floración", "interval_minutes": 500, "monitor_humidity": False, "bogus": 1}
    )
    assert merged.stage is GrowthStage.FLOWERING
    assert merged.interval_minutes == 60
    assert ParameterKind.HUMIDITY not in merged.enabled_parameters()
    assert not hasattr(merged, "bogus")


def test_settings_merged_keeps_stage_for_unknown_name():
    merged = MonitoringSettings(stage=GrowthStage.HARVEST).merged({"stage": "Fruiting"})
    assert merged.stage is GrowthStage.HARVEST


def test_settings_from_stored_row():
    settings = MonitoringSettings.from_dict(
        {
            "enabled": 1,
            "interval_minutes": 5,
            "etapa_monitoreo": "Germinación",
            "monitor_temperature": 0,
            "notify_inactive": "false",
            "telegram_bot_token": "tok",
            "telegram_chat_id": -100123,
        }
    )
    assert settings.enabled is True
    assert settings.interval_minutes == 5
    assert settings.stage is GrowthStage.GERMINATION
    assert settings.monitor_temperature is False
    assert settings.notify_inactive is False
    assert settings.chat_id == "-100123"
    assert settings.has_credentials


def test_public_dict_never_contains_token():
    data = MonitoringSettings(bot_token="secret-token", chat_id="1").to_public_dict(locked_fields=frozenset({"bot_token"}))
    assert "secret-token" not in data.values()
    assert data["bot_token_configured"] is True
    assert data["credentials_locked"] is True
    assert data["bot_token_locked"] is True
    assert data["chat_id_locked"] is False


def test_reading_from_row_parses_timestamp_and_values():
    reading = SensorReading.from_row(
        "sensor_1",
        {"created_at": "2026-03-01T11:30:00Z", "temperature": "25.5", "humidity": None, "soil_humidity": True},
    )
    assert reading.timestamp == datetime(2026, 3, 1, 11, 30, tzinfo=timezone.utc)
    assert reading.temperature == 25.5
    assert reading.humidity is None
    assert reading.soil_humidity is None
    assert reading.value_for(ParameterKind.TEMPERATURE) == 25.5


def test_reading_without_timestamp_is_dropped():
    assert SensorReading.from_row("sensor_1", {"temperature": 20.0}) is None
    assert SensorReading.from_row("sensor_1", {"created_at": "yesterday"}) is None


def test_reading_nan_is_treated_as_missing():
    reading = SensorReading.from_row("sensor_1", {"timestamp": NOW.isoformat(), "temperature": float("nan")})
    assert reading.temperature is None


def test_reading_staleness_boundary():
    reading = SensorReading("sensor_1", NOW - timedelta(hours=1))
    assert not reading.is_stale(NOW)
    assert reading.is_stale(NOW + timedelta(seconds=1))


def test_cycle_from_row():
    cycle = CultivationCycle.from_dict(
        {
            "id_ciclo": 3,
            "fecha_inicio": "2026-02-01T00:00:00",
            "fecha_fin": None,
            "tipo_planta": "Tomato",
            "numero_plantas": "12",
            "etapa_actual": "Floración",
        }
    )
    assert cycle.is_active
    assert cycle.stage is GrowthStage.FLOWERING
    assert cycle.plant_count == 12
    assert cycle.to_dict()["stage"] == "Flowering"


def test_cycle_with_unknown_stage():
    cycle = CultivationCycle.from_dict({"id_ciclo": 1, "etapa_actual": "Fruiting"})
    assert cycle.stage is None
    assert cycle.to_dict()["stage"] == "Fruiting"
