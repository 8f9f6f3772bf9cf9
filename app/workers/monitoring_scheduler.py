"""
Periodic environment monitoring.

Owns the one repeating timer that drives the check cycle:
discovery -> fetch latest reading -> evaluate -> dedupe -> notify.

Design Principles:
- Single timer thread waiting on a ``threading.Event`` (cancellable at once)
- Single-worker executor: ticks and manual checks never overlap
- A tick that fires while the previous one is still running is skipped
- One failing sensor never aborts the rest of the cycle
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

from app.domain.monitoring_settings import DEFAULT_INTERVAL_MINUTES, MonitoringSettings, clamp_interval
from app.domain.stage_parameters import StageParameters, get_stage_parameters
from app.enums import GrowthStage, ParameterKind
from app.utils.time import utc_now

if TYPE_CHECKING:
    from app.services.application.monitoring_settings_service import MonitoringSettingsService
    from app.services.application.notification_deduplicator import NotificationDeduplicator
    from app.services.application.reading_fetcher import ReadingFetcher
    from app.services.application.sensor_discovery_service import SensorDiscoveryService
    from app.services.application.telegram_notifier import TelegramNotifier
    from app.services.application.threshold_evaluator import ThresholdEvaluator

logger = logging.getLogger(__name__)

_HISTORY_SIZE = 20


@dataclass
class CheckSummary:
    """Outcome of one check cycle."""

    started_at: datetime
    completed_at: Optional[datetime] = None
    stage: Optional[str] = None
    sources: list[str] = field(default_factory=list)
    sources_checked: int = 0
    sources_without_data: int = 0
    violations: int = 0
    notifications_sent: int = 0
    suppressed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": round(self.duration_seconds, 3),
            "stage": self.stage,
            "sources": list(self.sources),
            "sources_checked": self.sources_checked,
            "sources_without_data": self.sources_without_data,
            "violations": self.violations,
            "notifications_sent": self.notifications_sent,
            "suppressed": self.suppressed,
            "errors": list(self.errors),
        }


class MonitoringScheduler:
    """Start/stop control over the periodic check cycle.

    ``minute_seconds`` scales the timer (60 in production); tests shrink it
    to drive several ticks quickly.
    """

    def __init__(
        self,
        *,
        discovery: "SensorDiscoveryService",
        fetcher: "ReadingFetcher",
        evaluator: "ThresholdEvaluator",
        deduplicator: "NotificationDeduplicator",
        notifier: "TelegramNotifier",
        settings_service: "MonitoringSettingsService",
        default_interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        clock: Callable[[], datetime] = utc_now,
        minute_seconds: float = 60.0,
    ) -> None:
        self.discovery = discovery
        self.fetcher = fetcher
        self.evaluator = evaluator
        self.deduplicator = deduplicator
        self.notifier = notifier
        self.settings_service = settings_service
        self._clock = clock
        self._minute_seconds = minute_seconds

        self._control_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None
        self._timer_thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None
        self._pending: Future | None = None

        self._active = False
        self._interval_minutes = clamp_interval(default_interval_minutes)
        self._last_run_at: datetime | None = None
        self._last_error: str | None = None
        self._last_summary: CheckSummary | None = None
        self._history: deque[CheckSummary] = deque(maxlen=_HISTORY_SIZE)
        self._skipped_ticks = 0

    # ==================== Control ====================

    def start_monitoring(self, interval_minutes: Any = None) -> bool:
        """(Re)start monitoring: one immediate check, then every ``interval`` minutes."""
        interval = clamp_interval(interval_minutes, self._interval_minutes)
        with self._control_lock:
            self._cancel_timer()
            self._interval_minutes = interval
            logger.info("Starting environment monitoring every %d minute(s)", interval)

            try:
                self._submit(self.run_check_cycle).result()
            except Exception as e:
                logger.error(f"Initial check cycle failed: {e}", exc_info=True)

            self._arm_timer(interval)
            self._active = True

        self.settings_service.update_settings({"enabled": True, "interval_minutes": interval})
        return True

    def stop_monitoring(self) -> bool:
        """Stop the timer; an in-flight check finishes. Safe to call repeatedly."""
        with self._control_lock:
            was_active = self._active
            self._cancel_timer()
            self._active = False

        if was_active:
            logger.info("Environment monitoring stopped")
        else:
            logger.debug("stop_monitoring called while already stopped")
        self.settings_service.update_settings({"enabled": False})
        return True

    def is_active(self) -> bool:
        return self._active

    def check_now(self, timeout: float | None = None) -> CheckSummary:
        """Run one check cycle on the worker, queued behind any running tick."""
        return self._submit(self.run_check_cycle).result(timeout=timeout)

    def bootstrap(self) -> bool:
        """Resume monitoring after a restart if the stored settings say so."""
        try:
            settings = self.settings_service.get_settings()
        except Exception as e:
            logger.error(f"Could not read monitoring settings at startup: {e}")
            return False
        if not settings.enabled:
            logger.info("Environment monitoring disabled in settings; not starting")
            return False
        return self.start_monitoring(settings.interval_minutes)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the timer and release the worker without touching stored settings."""
        with self._control_lock:
            self._cancel_timer()
            self._active = False
            if self._executor:
                self._executor.shutdown(wait=wait)
                self._executor = None

    # ==================== Timer ====================

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="MonitoringCheck")
        return self._executor

    def _submit(self, func: Callable[[], CheckSummary]) -> Future:
        with self._state_lock:
            return self._submit_locked(func)

    def _submit_locked(self, func: Callable[[], CheckSummary]) -> Future:
        """Caller holds ``_state_lock``."""
        future = self._ensure_executor().submit(func)
        self._pending = future
        return future

    def _arm_timer(self, interval_minutes: int) -> None:
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._timer_thread = threading.Thread(
            target=self._timer_loop,
            args=(stop_event, interval_minutes * self._minute_seconds),
            daemon=True,
            name="MonitoringTimer",
        )
        self._timer_thread.start()

    def _cancel_timer(self) -> None:
        if self._stop_event is not None:
            # Under the state lock so a tick cannot submit once this returns.
            with self._state_lock:
                self._stop_event.set()
        thread = self._timer_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._stop_event = None
        self._timer_thread = None

    def _timer_loop(self, stop_event: threading.Event, interval_seconds: float) -> None:
        logger.debug("Monitoring timer armed (%.1fs)", interval_seconds)
        while not stop_event.wait(interval_seconds):
            self._tick(stop_event)
        logger.debug("Monitoring timer released")

    def _tick(self, stop_event: threading.Event | None = None) -> None:
        with self._state_lock:
            # A stop can land between the timer wait and this point.
            if stop_event is not None and stop_event.is_set():
                logger.debug("Monitoring stopped; dropping tick")
                return
            if self._pending is not None and not self._pending.done():
                self._skipped_ticks += 1
                logger.debug("Previous check still running; skipping tick")
                return
            try:
                self._submit_locked(self.run_check_cycle)
            except RuntimeError as e:
                # Executor shut down between the wait and the submit.
                logger.warning(f"Could not schedule check cycle: {e}")

    # ==================== Check cycle ====================

    def run_check_cycle(self) -> CheckSummary:
        """One full pass over every discovered sensor source."""
        summary = CheckSummary(started_at=self._clock())
        try:
            settings = self.settings_service.get_settings()
            stage = self.settings_service.resolve_stage(settings)
            summary.stage = stage.value
            parameters = get_stage_parameters(stage)
            summary.sources = self.discovery.discover_sensor_sources()
            logger.info("Checking %d sensor source(s) against stage %s", len(summary.sources), stage.value)

            for source_id in summary.sources:
                try:
                    self._check_source(source_id, settings, stage, parameters, summary)
                except Exception as e:
                    logger.error(f"Error checking {source_id}: {e}", exc_info=True)
                    summary.errors.append(f"{source_id}: {e}")
        except Exception as e:
            logger.error(f"Check cycle aborted: {e}", exc_info=True)
            summary.errors.append(str(e))

        summary.completed_at = self._clock()
        with self._state_lock:
            self._last_run_at = summary.completed_at
            self._last_summary = summary
            self._last_error = summary.errors[-1] if summary.errors else None
            self._history.append(summary)

        logger.info(
            "Check cycle done: %d source(s), %d violation(s), %d alert(s) sent, %d suppressed",
            summary.sources_checked,
            summary.violations,
            summary.notifications_sent,
            summary.suppressed,
        )
        return summary

    def _check_source(
        self,
        source_id: str,
        settings: MonitoringSettings,
        stage: GrowthStage,
        parameters: Optional[StageParameters],
        summary: CheckSummary,
    ) -> None:
        summary.sources_checked += 1
        reading = self.fetcher.fetch_latest(source_id)
        if reading is None:
            summary.sources_without_data += 1
            logger.debug("No data for %s", source_id)
            return

        now = self._clock()
        violations = self.evaluator.evaluate(reading, parameters, settings.enabled_parameters(), now)
        stale_minutes = int(self.evaluator.stale_after.total_seconds() // 60)
        for violation in violations:
            summary.violations += 1
            if violation.parameter is ParameterKind.INACTIVE and not settings.notify_inactive:
                continue
            if not self.deduplicator.should_notify(source_id, violation.parameter, violation.value):
                summary.suppressed += 1
                continue
            sent = self.notifier.send_violation(
                source_id,
                violation,
                stage=stage,
                last_reading_at=reading.timestamp,
                now=now,
                stale_after_minutes=stale_minutes,
            )
            if sent:
                summary.notifications_sent += 1
            else:
                summary.errors.append(f"{source_id}/{violation.parameter.value}: delivery failed")

    # ==================== Status ====================

    def get_status(self) -> dict[str, Any]:
        with self._state_lock:
            pending = self._pending is not None and not self._pending.done()
            return {
                "active": self._active,
                "interval_minutes": self._interval_minutes,
                "check_in_progress": pending,
                "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
                "last_error": self._last_error,
                "last_summary": self._last_summary.to_dict() if self._last_summary else None,
                "skipped_ticks": self._skipped_ticks,
                "recent_runs": [run.to_dict() for run in reversed(self._history)],
            }
