"""
Growth-related Enumerations
============================

Canonical growth stages and the single normalization function used at every
ingestion boundary (settings payloads, stored rows, cultivation cycles).
"""

from __future__ import annotations

import unicodedata
from enum import Enum


class GrowthStage(str, Enum):
    """Growth stages of a cultivation cycle"""

    GERMINATION = "Germination"
    VEGETATIVE = "Vegetative"
    FLOWERING = "Flowering"
    HARVEST = "Harvest"

    def __str__(self):
        return self.value


DEFAULT_STAGE = GrowthStage.VEGETATIVE

# Keys are accent-free lowercase spellings; see normalize_stage().
_STAGE_ALIASES: dict[str, GrowthStage] = {
    "germination": GrowthStage.GERMINATION,
    "germinacion": GrowthStage.GERMINATION,
    "seedling": GrowthStage.GERMINATION,
    "plantula": GrowthStage.GERMINATION,
    "vegetative": GrowthStage.VEGETATIVE,
    "vegetativa": GrowthStage.VEGETATIVE,
    "vegetativo": GrowthStage.VEGETATIVE,
    "flowering": GrowthStage.FLOWERING,
    "floracion": GrowthStage.FLOWERING,
    "bloom": GrowthStage.FLOWERING,
    "harvest": GrowthStage.HARVEST,
    "cosecha": GrowthStage.HARVEST,
    "drying": GrowthStage.HARVEST,
    "secado": GrowthStage.HARVEST,
}


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip().lower()


def normalize_stage(value: str | GrowthStage | None) -> GrowthStage | None:
    """Map any known stage spelling to its canonical :class:`GrowthStage`.

    ``"Floración"``, ``"Floracion"`` and ``"flowering"`` all map to
    ``GrowthStage.FLOWERING``. Unknown or empty values return ``None`` so the
    caller decides on the fallback.
    """
    if value is None:
        return None
    if isinstance(value, GrowthStage):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    return _STAGE_ALIASES.get(_fold(value))
