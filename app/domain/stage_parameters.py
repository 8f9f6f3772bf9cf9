"""
Stage Parameter Table
=====================

Reference environmental ranges for each growth stage. Every parameter has an
*acceptable* band (readings outside it raise an alert) and an *optimal* band
shown to operators alongside alerts.

Germination, Vegetative and Flowering carry the single recommended range
growers record per stage, so their optimal band is the acceptable band.
Harvest has no recorded range; its bands, including the narrower optimal
one, are GrowWatch defaults.

- soil_humidity: substrate water content (percent)
- humidity: relative air humidity (percent)
- temperature: ambient temperature (degrees Celsius)

The table is immutable and built once at import time.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from app.enums import GrowthStage, ParameterKind, normalize_stage


@dataclass(frozen=True)
class Band:
    """Inclusive ``[min, max]`` range."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"Band min {self.min} exceeds max {self.max}")

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def overshoot(self, value: float) -> float:
        """Distance from the violated edge; 0.0 when in range."""
        if value < self.min:
            return self.min - value
        if value > self.max:
            return value - self.max
        return 0.0

    def to_dict(self) -> dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class ParameterRange:
    """Acceptable band plus the optimal band nested inside it."""

    acceptable: Band
    optimal: Band

    def __post_init__(self) -> None:
        if not (self.acceptable.min <= self.optimal.min and self.optimal.max <= self.acceptable.max):
            raise ValueError("Optimal band must lie within the acceptable band")

    def to_dict(self) -> dict[str, Any]:
        return {"acceptable": self.acceptable.to_dict(), "optimal": self.optimal.to_dict()}


@dataclass(frozen=True)
class StageParameters:
    """Ranges for the three measured parameters of one stage."""

    stage: GrowthStage
    temperature: ParameterRange
    humidity: ParameterRange
    soil_humidity: ParameterRange

    def for_parameter(self, kind: ParameterKind) -> ParameterRange | None:
        if kind is ParameterKind.TEMPERATURE:
            return self.temperature
        if kind is ParameterKind.HUMIDITY:
            return self.humidity
        if kind is ParameterKind.SOIL_HUMIDITY:
            return self.soil_humidity
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.value,
            "temperature": self.temperature.to_dict(),
            "humidity": self.humidity.to_dict(),
            "soil_humidity": self.soil_humidity.to_dict(),
        }


def _range(acceptable: tuple[float, float], optimal: tuple[float, float] | None = None) -> ParameterRange:
    band = Band(*acceptable)
    return ParameterRange(acceptable=band, optimal=Band(*optimal) if optimal else band)


STAGE_PARAMETERS: Mapping[GrowthStage, StageParameters] = MappingProxyType(
    {
        GrowthStage.GERMINATION: StageParameters(
            stage=GrowthStage.GERMINATION,
            temperature=_range((20.0, 28.0)),
            humidity=_range((70.0, 80.0)),
            soil_humidity=_range((70.0, 90.0)),
        ),
        GrowthStage.VEGETATIVE: StageParameters(
            stage=GrowthStage.VEGETATIVE,
            temperature=_range((22.0, 28.0)),
            humidity=_range((40.0, 70.0)),
            soil_humidity=_range((30.0, 60.0)),
        ),
        GrowthStage.FLOWERING: StageParameters(
            stage=GrowthStage.FLOWERING,
            temperature=_range((18.0, 26.0)),
            humidity=_range((40.0, 50.0)),
            soil_humidity=_range((40.0, 50.0)),
        ),
        GrowthStage.HARVEST: StageParameters(
            stage=GrowthStage.HARVEST,
            temperature=_range((18.0, 24.0), (19.0, 22.0)),
            humidity=_range((40.0, 55.0), (45.0, 50.0)),
            soil_humidity=_range((30.0, 50.0), (35.0, 45.0)),
        ),
    }
)


def get_stage_parameters(stage: str | GrowthStage | None) -> StageParameters | None:
    """Look up the parameter set for a stage, accepting any known spelling.

    Returns ``None`` for unknown stages; callers treat that as "nothing to
    evaluate" rather than an error.
    """
    canonical = normalize_stage(stage)
    if canonical is None:
        return None
    return STAGE_PARAMETERS.get(canonical)
