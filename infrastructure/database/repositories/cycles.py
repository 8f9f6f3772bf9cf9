from __future__ import annotations

from app.domain.cultivation_cycle import CultivationCycle
from app.services.protocols import RelationalStore


class CultivationCycleRepository:
    """Read access to ``ciclos_cultivo``."""

    TABLE = "ciclos_cultivo"

    def __init__(self, backend: RelationalStore) -> None:
        self._backend = backend

    def get_active(self) -> CultivationCycle | None:
        """Most recently started cycle that has not ended."""
        rows = self._backend.select_rows(
            self.TABLE,
            filters={"fecha_fin": None},
            order_by="fecha_inicio",
            descending=True,
            limit=1,
        )
        return CultivationCycle.from_dict(rows[0]) if rows else None
