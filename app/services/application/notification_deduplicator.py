"""Cooldown-based suppression of repeated alerts.

Keyed by ``(source_id, parameter)``. A new alert for a key is suppressed when
it arrives inside the cooldown window *and* its value is close to the last
alerted value; a large jump in value is always let through.

State is per process. Several processes watching the same sensors keep
independent state and may each send the same alert.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from app.enums import ParameterKind
from app.utils.time import utc_now

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(minutes=15)
DEFAULT_VALUE_DELTA = 2.0


@dataclass
class NotificationState:
    last_sent_at: datetime
    last_value: Optional[float]


class NotificationDeduplicator:
    """Thread-safe cooldown tracker."""

    def __init__(
        self,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        value_delta: float = DEFAULT_VALUE_DELTA,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.cooldown = cooldown
        self.value_delta = value_delta
        self._clock = clock
        self._lock = threading.Lock()
        self._state: Dict[Tuple[str, str], NotificationState] = {}

    def should_notify(self, source_id: str, kind: ParameterKind | str, value: Optional[float] = None) -> bool:
        """Return ``True`` if an alert should go out now, recording it if so."""
        key = (source_id, str(kind))
        now = self._clock()
        with self._lock:
            previous = self._state.get(key)
            if previous is not None and self._suppressed(previous, now, value):
                logger.debug("Suppressed repeat alert for %s/%s (value=%s)", source_id, key[1], value)
                return False
            self._state[key] = NotificationState(last_sent_at=now, last_value=value)
            return True

    def _suppressed(self, previous: NotificationState, now: datetime, value: Optional[float]) -> bool:
        if now - previous.last_sent_at >= self.cooldown:
            return False
        if value is None or previous.last_value is None:
            # Inactivity alerts carry no value; the cooldown alone decides.
            return True
        return abs(value - previous.last_value) < self.value_delta

    def reset(self, source_id: Optional[str] = None) -> None:
        """Forget state for one source, or for every source."""
        with self._lock:
            if source_id is None:
                self._state.clear()
            else:
                for key in [k for k in self._state if k[0] == source_id]:
                    del self._state[key]

    def snapshot(self) -> list[dict[str, Any]]:
        with self._lock:
            items = list(self._state.items())
        return [
            {
                "source_id": source_id,
                "parameter": parameter,
                "last_sent_at": state.last_sent_at.isoformat(),
                "last_value": state.last_value,
            }
            for (source_id, parameter), state in sorted(items)
        ]
