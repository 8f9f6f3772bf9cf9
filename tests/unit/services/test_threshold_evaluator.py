from datetime import datetime, timedelta, timezone

import pytest

from app.domain.sensor_reading import SensorReading
from app.domain.stage_parameters import get_stage_parameters
from app.enums import GrowthStage, NotificationSeverity, ParameterKind
from app.services.application.threshold_evaluator import ThresholdEvaluator, classify_severity, evaluate

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
VEGETATIVE = get_stage_parameters(GrowthStage.VEGETATIVE)


def _reading(age_minutes=1, **values):
    base = {"temperature": 25.0, "humidity": 55.0, "soil_humidity": 45.0}
    base.update(values)
    return SensorReading("sensor_1", NOW - timedelta(minutes=age_minutes), **base)


def test_in_range_reading_has_no_violations():
    assert evaluate(_reading(), VEGETATIVE, now=NOW) == []


def test_mild_temperature_overshoot_is_warning():
    violations = evaluate(_reading(temperature=30.0), VEGETATIVE, now=NOW)
    assert len(violations) == 1
    violation = violations[0]
    assert violation.parameter is ParameterKind.TEMPERATURE
    assert violation.severity is NotificationSeverity.WARNING
    assert violation.direction == "high"
    assert violation.band.min == 22.0 and violation.band.max == 28.0


def test_large_temperature_overshoot_is_critical():
    violations = evaluate(_reading(temperature=35.0), VEGETATIVE, now=NOW)
    assert [v.severity for v in violations] == [NotificationSeverity.CRITICAL]


def test_overshoot_equal_to_margin_stays_warning():
    violations = evaluate(_reading(temperature=33.0), VEGETATIVE, now=NOW)
    assert violations[0].severity is NotificationSeverity.WARNING


@pytest.mark.parametrize("temperature", [22.0, 28.0])
def test_band_edges_are_in_range(temperature):
    assert evaluate(_reading(temperature=temperature), VEGETATIVE, now=NOW) == []


def test_low_values_on_every_parameter():
    violations = evaluate(_reading(temperature=10.0, humidity=35.0, soil_humidity=10.0), VEGETATIVE, now=NOW)
    by_kind = {v.parameter: v for v in violations}
    assert set(by_kind) == {ParameterKind.TEMPERATURE, ParameterKind.HUMIDITY, ParameterKind.SOIL_HUMIDITY}
    assert by_kind[ParameterKind.TEMPERATURE].severity is NotificationSeverity.CRITICAL
    assert by_kind[ParameterKind.HUMIDITY].severity is NotificationSeverity.WARNING
    assert by_kind[ParameterKind.SOIL_HUMIDITY].severity is NotificationSeverity.CRITICAL
    assert all(v.direction == "low" for v in violations)


def test_stale_reading_reports_only_inactive():
    violations = evaluate(_reading(age_minutes=90, temperature=40.0), VEGETATIVE, now=NOW)
    assert len(violations) == 1
    assert violations[0].parameter is ParameterKind.INACTIVE
    assert violations[0].severity is NotificationSeverity.CRITICAL
    assert violations[0].age_minutes == pytest.approx(90.0)


def test_missing_value_is_skipped():
    violations = evaluate(_reading(temperature=None, humidity=90.0), VEGETATIVE, now=NOW)
    assert [v.parameter for v in violations] == [ParameterKind.HUMIDITY]


def test_disabled_parameters_are_not_checked():
    violations = evaluate(
        _reading(temperature=40.0, humidity=90.0),
        VEGETATIVE,
        {ParameterKind.HUMIDITY},
        now=NOW,
    )
    assert [v.parameter for v in violations] == [ParameterKind.HUMIDITY]


def test_unknown_stage_yields_nothing_but_still_detects_inactivity():
    assert evaluate(_reading(temperature=40.0), None, now=NOW) == []
    inactive = evaluate(_reading(age_minutes=120), None, now=NOW)
    assert [v.parameter for v in inactive] == [ParameterKind.INACTIVE]


def test_evaluation_is_deterministic():
    reading = _reading(temperature=31.0, soil_humidity=70.0)
    assert evaluate(reading, VEGETATIVE, now=NOW) == evaluate(reading, VEGETATIVE, now=NOW)


def test_evaluator_uses_its_clock_and_stale_after():
    evaluator = ThresholdEvaluator(stale_after=timedelta(minutes=10), clock=lambda: NOW)
    violations = evaluator.evaluate(_reading(age_minutes=15), VEGETATIVE)
    assert [v.parameter for v in violations] == [ParameterKind.INACTIVE]


def test_classify_severity_margins():
    assert classify_severity(ParameterKind.HUMIDITY, 10.0) is NotificationSeverity.WARNING
    assert classify_severity(ParameterKind.HUMIDITY, 10.5) is NotificationSeverity.CRITICAL
    assert classify_severity(ParameterKind.SOIL_HUMIDITY, 15.0) is NotificationSeverity.WARNING
    assert classify_severity(ParameterKind.SOIL_HUMIDITY, 15.1) is NotificationSeverity.CRITICAL
