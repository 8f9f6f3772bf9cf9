"""Sensor source discovery.

Sensor readings live in one table per device (``sensor_1``, ``sensor_2``, ...).
Which tables exist is decided at runtime, either by probing consecutive
indices or by asking the store's ``get_sensor_tables`` procedure.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List, Optional

from app.domain.exceptions import GrowWatchError, StoreUnavailableError
from app.enums import DiscoveryStrategy
from infrastructure.database.repositories.sensors import SensorReadingRepository

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = ("sensor_1", "sensor_2", "sensor_3")
DEFAULT_MAX_PROBE_SOURCES = 50

_SOURCE_RE = re.compile(r"^sensor_(\d+)$")


def is_sensor_source(name: Any) -> bool:
    return isinstance(name, str) and bool(_SOURCE_RE.match(name))


def _source_index(name: str) -> int:
    return int(_SOURCE_RE.match(name).group(1))


def sort_sources(names: Iterable[str]) -> List[str]:
    """Deduplicate and sort by numeric suffix (``sensor_2`` before ``sensor_10``)."""
    return sorted({name for name in names if is_sensor_source(name)}, key=_source_index)


def extract_table_names(result: Any) -> List[str]:
    """Pull sensor table names out of a procedure result of any common shape.

    Accepts a list of strings, a list of objects carrying ``table_name`` (or
    any string value starting with ``sensor_``), or a mapping keyed by table
    name.
    """
    names: List[str] = []
    if isinstance(result, dict):
        if "table_name" in result:
            result = [result]
        else:
            names.extend(key for key in result if isinstance(key, str))
            result = []
    if isinstance(result, (list, tuple)):
        for item in result:
            if isinstance(item, str):
                names.append(item)
            elif isinstance(item, dict):
                table_name = item.get("table_name")
                if isinstance(table_name, str):
                    names.append(table_name)
                    continue
                names.extend(v for v in item.values() if isinstance(v, str) and v.startswith("sensor_"))
    return sort_sources(names)


class SensorDiscoveryService:
    """Enumerate the sensor sources currently present in the store."""

    def __init__(
        self,
        sensor_repo: SensorReadingRepository,
        *,
        strategy: DiscoveryStrategy | str = DiscoveryStrategy.PROBE,
        max_probe_sources: int = DEFAULT_MAX_PROBE_SOURCES,
    ) -> None:
        self.sensor_repo = sensor_repo
        self.strategy = DiscoveryStrategy(strategy)
        self.max_probe_sources = max(1, int(max_probe_sources))

    def discover_sensor_sources(self) -> List[str]:
        """Return discovered source ids; never raises, never returns empty."""
        try:
            if self.strategy is DiscoveryStrategy.DELEGATED:
                sources = self._discover_delegated()
            else:
                sources = self._discover_probe()
        except Exception as e:
            logger.error(f"Sensor discovery failed ({self.strategy}): {e}", exc_info=True)
            sources = []

        if not sources:
            logger.warning("No sensor sources discovered; falling back to %s", ", ".join(DEFAULT_SOURCES))
            return list(DEFAULT_SOURCES)

        logger.debug("Discovered sensor sources: %s", sources)
        return sources

    def _discover_probe(self) -> List[str]:
        found: List[str] = []
        for index in range(1, self.max_probe_sources + 1):
            table = f"sensor_{index}"
            try:
                exists = self.sensor_repo.exists(table)
            except StoreUnavailableError as e:
                logger.warning(f"Probe of {table} interrupted by a store failure, keeping {found}: {e}")
                break
            except Exception as e:
                logger.error(f"Probe of {table} failed, keeping {found}: {e}")
                break
            if not exists:
                break
            found.append(table)
        else:
            logger.warning("Probe stopped at the cap of %d sources", self.max_probe_sources)
        return found

    def _discover_delegated(self) -> List[str]:
        try:
            result: Optional[Any] = self.sensor_repo.list_via_procedure()
        except GrowWatchError as e:
            logger.warning(f"get_sensor_tables procedure failed: {e}")
            return []
        return extract_table_names(result)
