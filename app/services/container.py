from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import requests

from app.config import AppConfig
from app.services.application.monitoring_settings_service import MonitoringSettingsService
from app.services.application.notification_deduplicator import NotificationDeduplicator
from app.services.application.reading_fetcher import ReadingFetcher
from app.services.application.sensor_discovery_service import SensorDiscoveryService
from app.services.application.telegram_notifier import TelegramNotifier
from app.services.application.threshold_evaluator import ThresholdEvaluator
from app.services.container_builder import ContainerBuilder
from app.services.protocols import RelationalStore
from app.utils.time import utc_now
from app.workers.monitoring_scheduler import MonitoringScheduler
from infrastructure.database.repositories.cycles import CultivationCycleRepository
from infrastructure.database.repositories.sensors import SensorReadingRepository
from infrastructure.database.repositories.settings import MonitoringSettingsRepository

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    store: RelationalStore
    sensor_repo: SensorReadingRepository
    settings_repo: MonitoringSettingsRepository
    cycle_repo: CultivationCycleRepository
    settings_service: MonitoringSettingsService
    discovery_service: SensorDiscoveryService
    reading_fetcher: ReadingFetcher
    threshold_evaluator: ThresholdEvaluator
    deduplicator: NotificationDeduplicator
    notifier: TelegramNotifier
    scheduler: MonitoringScheduler

    @classmethod
    def build(
        cls,
        config: AppConfig,
        *,
        store: Optional[RelationalStore] = None,
        http_session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            store: Pre-built relational store (tests); built from config otherwise
            http_session: requests session used for the chat API
            clock: Time source shared by the deduplicator and the scheduler
        """
        logger.info("Building ServiceContainer using ContainerBuilder...")
        builder = ContainerBuilder(config, store=store, http_session=http_session, clock=clock)
        container = cls(**builder.build())
        logger.info("ServiceContainer built successfully.")
        return container

    def start_background(self) -> None:
        """Resume monitoring if the stored settings ask for it."""
        if not self.config.bootstrap_monitoring:
            logger.info("Monitoring bootstrap disabled by configuration")
            return
        try:
            self.scheduler.bootstrap()
        except Exception as e:
            logger.error(f"Failed to resume monitoring at startup: {e}", exc_info=True)

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        try:
            self.scheduler.shutdown(wait=False)
            logger.info("✓ MonitoringScheduler stopped")
        except Exception as e:
            logger.warning(f"Failed to stop MonitoringScheduler: {e}")

        close_db = getattr(self.store, "close_db", None)
        if close_db is not None:
            close_db()
        logger.info("ServiceContainer shutdown complete.")
