"""Cultivation cycle writes (``ciclos_cultivo``)."""

from __future__ import annotations

from datetime import datetime

from app.utils.time import utc_now


class CycleOperations:
    """Create and close cultivation cycles."""

    def insert_cycle(
        self,
        *,
        stage: str,
        plant_type: str | None = None,
        plant_count: int | None = None,
        owner_id: str | None = None,
        started_at: datetime | None = None,
    ) -> int | None:
        with self.connection() as db:
            cur = db.execute(
                """
                INSERT INTO ciclos_cultivo (owner_id, fecha_inicio, tipo_planta, numero_plantas, etapa_actual)
                VALUES (?, ?, ?, ?, ?)
                """,
                (owner_id, (started_at or utc_now()).isoformat(), plant_type, plant_count, stage),
            )
            return cur.lastrowid

    def end_cycle(self, cycle_id: int, ended_at: datetime | None = None) -> None:
        with self.connection() as db:
            db.execute(
                "UPDATE ciclos_cultivo SET fecha_fin = ? WHERE id_ciclo = ?",
                ((ended_at or utc_now()).isoformat(), cycle_id),
            )
