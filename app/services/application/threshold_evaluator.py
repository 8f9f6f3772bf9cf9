"""
Threshold Evaluator
===================

Compares a sensor reading against the stage parameter table and reports every
parameter outside its acceptable band.

Severity uses fixed absolute margins per parameter: an overshoot strictly
greater than the margin is CRITICAL, anything smaller is a WARNING. Values on
the band edge are in range.

A reading older than ``stale_after`` is reported as a single INACTIVE
violation; its values are not trusted, so no parameter checks run.

Evaluation is pure: the same inputs and ``now`` always give the same result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Callable, Iterable, List, Mapping, Optional

from app.domain.sensor_reading import DEFAULT_STALE_AFTER, SensorReading
from app.domain.stage_parameters import Band, StageParameters
from app.enums import MEASURED_PARAMETERS, NotificationSeverity, ParameterKind
from app.utils.time import utc_now

logger = logging.getLogger(__name__)

SEVERITY_MARGINS: Mapping[ParameterKind, float] = MappingProxyType(
    {
        ParameterKind.TEMPERATURE: 5.0,
        ParameterKind.HUMIDITY: 10.0,
        ParameterKind.SOIL_HUMIDITY: 15.0,
    }
)


@dataclass(frozen=True)
class Violation:
    """One parameter outside its band (or the sensor gone silent)."""

    parameter: ParameterKind
    severity: NotificationSeverity
    value: Optional[float] = None
    band: Optional[Band] = None
    optimal: Optional[Band] = None
    direction: Optional[str] = None  # "low" | "high"
    age_minutes: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameter": self.parameter.value,
            "severity": self.severity.value,
            "value": self.value,
            "band": self.band.to_dict() if self.band else None,
            "optimal": self.optimal.to_dict() if self.optimal else None,
            "direction": self.direction,
            "age_minutes": self.age_minutes,
        }


def classify_severity(kind: ParameterKind, overshoot: float) -> NotificationSeverity:
    margin = SEVERITY_MARGINS.get(kind, 0.0)
    return NotificationSeverity.CRITICAL if overshoot > margin else NotificationSeverity.WARNING


def evaluate(
    reading: SensorReading,
    stage_parameters: Optional[StageParameters],
    enabled_parameters: Iterable[ParameterKind] = MEASURED_PARAMETERS,
    now: Optional[datetime] = None,
    *,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
) -> List[Violation]:
    """Return the violations of ``reading``; an empty list means all clear."""
    now = now or utc_now()
    if reading.is_stale(now, stale_after):
        age = reading.age(now)
        return [
            Violation(
                parameter=ParameterKind.INACTIVE,
                severity=NotificationSeverity.CRITICAL,
                age_minutes=round(age.total_seconds() / 60.0, 1),
            )
        ]

    if stage_parameters is None:
        logger.warning("No stage parameters for %s; skipping threshold checks", reading.source_id)
        return []

    enabled = set(enabled_parameters)
    violations: List[Violation] = []
    for kind in MEASURED_PARAMETERS:
        if kind not in enabled:
            continue
        value = reading.value_for(kind)
        if value is None or math.isnan(value):
            continue
        ranges = stage_parameters.for_parameter(kind)
        band = ranges.acceptable
        if band.contains(value):
            continue
        violations.append(
            Violation(
                parameter=kind,
                severity=classify_severity(kind, band.overshoot(value)),
                value=value,
                band=band,
                optimal=ranges.optimal,
                direction="low" if value < band.min else "high",
            )
        )
    return violations


class ThresholdEvaluator:
    """Holds the stale-after policy and the clock so callers only pass the reading."""

    def __init__(
        self,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.stale_after = stale_after
        self.clock = clock

    def evaluate(
        self,
        reading: SensorReading,
        stage_parameters: Optional[StageParameters],
        enabled_parameters: Iterable[ParameterKind] = MEASURED_PARAMETERS,
        now: Optional[datetime] = None,
    ) -> List[Violation]:
        return evaluate(
            reading,
            stage_parameters,
            enabled_parameters,
            now or self.clock(),
            stale_after=self.stale_after,
        )
