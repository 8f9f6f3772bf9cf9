"""
Container Builder
=================

Extracts service container construction logic from ServiceContainer.build().

Each build_*() method focuses on one subsystem, making it easier to understand
and to swap pieces out in tests.

Architecture:
- ContainerBuilder: Orchestrates the construction of all services
- build_infrastructure(): relational store and repositories
- build_monitoring(): discovery, evaluation, dedupe, notifier, scheduler
- ServiceContainer.build(): Delegates to ContainerBuilder.build()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import requests

from app.config import AppConfig
from app.services.application.monitoring_settings_service import MonitoringSettingsService
from app.services.application.notification_deduplicator import NotificationDeduplicator
from app.services.application.reading_fetcher import ReadingFetcher
from app.services.application.sensor_discovery_service import SensorDiscoveryService
from app.services.application.telegram_notifier import TelegramNotifier
from app.services.application.threshold_evaluator import ThresholdEvaluator
from app.services.protocols import RelationalStore
from app.utils.time import utc_now
from app.workers.monitoring_scheduler import MonitoringScheduler
from infrastructure.database.postgrest_store import PostgrestStore
from infrastructure.database.repositories.cycles import CultivationCycleRepository
from infrastructure.database.repositories.sensors import SensorReadingRepository
from infrastructure.database.repositories.settings import MonitoringSettingsRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger(__name__)


@dataclass
class InfrastructureComponents:
    """Infrastructure layer components (store and repositories)."""

    store: RelationalStore
    sensor_repo: SensorReadingRepository
    settings_repo: MonitoringSettingsRepository
    cycle_repo: CultivationCycleRepository


@dataclass
class MonitoringComponents:
    """Monitoring pipeline components."""

    settings_service: MonitoringSettingsService
    discovery_service: SensorDiscoveryService
    reading_fetcher: ReadingFetcher
    threshold_evaluator: ThresholdEvaluator
    deduplicator: NotificationDeduplicator
    notifier: TelegramNotifier
    scheduler: MonitoringScheduler


class ContainerBuilder:
    """
    Builder for ServiceContainer.

    ``store``, ``http_session`` and ``clock`` may be injected; otherwise they
    are derived from the configuration.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        store: Optional[RelationalStore] = None,
        http_session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize builder with configuration."""
        self.config = config
        self._store = store
        self._http_session = http_session
        self._clock = clock

    def build_store(self) -> RelationalStore:
        if self._store is not None:
            return self._store

        if self.config.store_backend == "postgrest":
            logger.info("Using PostgREST store at %s", self.config.postgrest_url)
            return PostgrestStore(
                self.config.postgrest_url,
                self.config.postgrest_key,
                timeout=self.config.store_timeout_seconds,
            )

        database = SQLiteDatabaseHandler(self.config.database_path)
        database.init_app(None)
        return database

    def build_infrastructure(self) -> InfrastructureComponents:
        """
        Build infrastructure layer (store, repositories).

        Returns:
            InfrastructureComponents with all infrastructure services
        """
        logger.info("Building infrastructure components...")
        store = self.build_store()
        return InfrastructureComponents(
            store=store,
            sensor_repo=SensorReadingRepository(store),
            settings_repo=MonitoringSettingsRepository(store),
            cycle_repo=CultivationCycleRepository(store),
        )

    def build_monitoring(self, infra: InfrastructureComponents) -> MonitoringComponents:
        """Build the monitoring pipeline on top of the infrastructure."""
        logger.info("Building monitoring components...")
        config = self.config

        settings_service = MonitoringSettingsService(
            infra.settings_repo,
            cycle_repo=infra.cycle_repo,
            env_bot_token=config.telegram_bot_token,
            env_chat_id=config.telegram_chat_id,
        )
        discovery_service = SensorDiscoveryService(
            infra.sensor_repo,
            strategy=config.discovery_strategy,
            max_probe_sources=config.max_probe_sources,
        )
        reading_fetcher = ReadingFetcher(infra.sensor_repo)
        threshold_evaluator = ThresholdEvaluator(
            stale_after=timedelta(minutes=config.stale_after_minutes),
            clock=self._clock,
        )
        deduplicator = NotificationDeduplicator(
            cooldown=timedelta(minutes=config.notify_cooldown_minutes),
            value_delta=config.notify_value_delta,
            clock=self._clock,
        )
        notifier = TelegramNotifier(
            settings_service.get_settings,
            api_base_url=config.telegram_api_base_url,
            timeout=config.telegram_timeout_seconds,
            session=self._http_session,
        )
        scheduler = MonitoringScheduler(
            discovery=discovery_service,
            fetcher=reading_fetcher,
            evaluator=threshold_evaluator,
            deduplicator=deduplicator,
            notifier=notifier,
            settings_service=settings_service,
            default_interval_minutes=config.default_interval_minutes,
            clock=self._clock,
        )
        return MonitoringComponents(
            settings_service=settings_service,
            discovery_service=discovery_service,
            reading_fetcher=reading_fetcher,
            threshold_evaluator=threshold_evaluator,
            deduplicator=deduplicator,
            notifier=notifier,
            scheduler=scheduler,
        )

    def build(self) -> dict[str, Any]:
        """
        Build the complete service container.

        Returns:
            Dictionary with all components for ServiceContainer construction
        """
        logger.info("Building ServiceContainer with ContainerBuilder...")
        infra = self.build_infrastructure()
        monitoring = self.build_monitoring(infra)
        return {
            "config": self.config,
            "store": infra.store,
            "sensor_repo": infra.sensor_repo,
            "settings_repo": infra.settings_repo,
            "cycle_repo": infra.cycle_repo,
            "settings_service": monitoring.settings_service,
            "discovery_service": monitoring.discovery_service,
            "reading_fetcher": monitoring.reading_fetcher,
            "threshold_evaluator": monitoring.threshold_evaluator,
            "deduplicator": monitoring.deduplicator,
            "notifier": monitoring.notifier,
            "scheduler": monitoring.scheduler,
        }
