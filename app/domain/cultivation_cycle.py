"""
Cultivation Cycle Domain Object
===============================

A grow cycle recorded by an operator. The active cycle is the most recently
started one that has not ended yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.enums import GrowthStage, normalize_stage
from app.utils.time import coerce_datetime


@dataclass
class CultivationCycle:
    """Row of the ``ciclos_cultivo`` table."""

    cycle_id: int
    owner_id: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    plant_type: str | None = None
    plant_count: int | None = None
    stage_raw: str | None = None

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    @property
    def stage(self) -> GrowthStage | None:
        """Canonical stage, or ``None`` when the stored spelling is unknown."""
        return normalize_stage(self.stage_raw)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CultivationCycle":
        """Create a cycle from a store row (original Spanish column names)."""
        plant_count = data.get("numero_plantas")
        return cls(
            cycle_id=int(data.get("id_ciclo") or 0),
            owner_id=data.get("owner_id"),
            started_at=coerce_datetime(data.get("fecha_inicio")),
            ended_at=coerce_datetime(data.get("fecha_fin")),
            plant_type=data.get("tipo_planta"),
            plant_count=int(plant_count) if plant_count is not None else None,
            stage_raw=data.get("etapa_actual"),
        )

    def to_dict(self) -> dict[str, Any]:
        stage = self.stage
        return {
            "cycle_id": self.cycle_id,
            "owner_id": self.owner_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "plant_type": self.plant_type,
            "plant_count": self.plant_count,
            "stage": stage.value if stage else self.stage_raw,
        }
