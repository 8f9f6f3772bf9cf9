from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Dict, Optional

from app.domain.exceptions import GrowWatchError
from app.domain.monitoring_settings import MonitoringSettings
from app.enums import GrowthStage
from infrastructure.database.repositories.cycles import CultivationCycleRepository
from infrastructure.database.repositories.settings import MonitoringSettingsRepository

logger = logging.getLogger(__name__)

# Settings field -> stored column
_CREDENTIAL_COLUMNS = {"bot_token": "telegram_bot_token", "chat_id": "telegram_chat_id"}


class MonitoringSettingsService:
    """
    Layered resolver for the monitoring settings.

    Resolution order (later wins):
        1. built-in defaults
        2. the stored ``notification_settings`` row
        3. environment overrides for the Telegram credentials

    The last resolved value is kept in memory, so a store outage degrades to
    the previous settings instead of failing the check cycle.
    """

    def __init__(
        self,
        repository: MonitoringSettingsRepository,
        *,
        cycle_repo: Optional[CultivationCycleRepository] = None,
        env_bot_token: Optional[str] = None,
        env_chat_id: Optional[str] = None,
        defaults: Optional[MonitoringSettings] = None,
    ) -> None:
        self.repository = repository
        self.cycle_repo = cycle_repo
        self._env_bot_token = env_bot_token or ""
        self._env_chat_id = env_chat_id or ""
        self._lock = threading.Lock()
        self._memory = self._apply_env(defaults or MonitoringSettings())

    def locked_fields(self) -> frozenset[str]:
        """Credential fields owned by the environment; each one is locked on its own."""
        locked = set()
        if self._env_bot_token:
            locked.add("bot_token")
        if self._env_chat_id:
            locked.add("chat_id")
        return frozenset(locked)

    def credentials_locked(self) -> bool:
        """True when the environment owns at least one Telegram credential."""
        return bool(self.locked_fields())

    def _apply_env(self, settings: MonitoringSettings) -> MonitoringSettings:
        overrides: Dict[str, Any] = {}
        if self._env_bot_token:
            overrides["bot_token"] = self._env_bot_token
        if self._env_chat_id:
            overrides["chat_id"] = self._env_chat_id
        return replace(settings, **overrides) if overrides else settings

    def get_settings(self) -> MonitoringSettings:
        try:
            row = self.repository.load()
        except GrowWatchError as e:
            logger.warning(f"Settings store unavailable, using in-memory settings: {e}")
            row = None

        with self._lock:
            if row:
                self._memory = self._apply_env(MonitoringSettings.from_dict(row))
            return replace(self._memory)

    def update_settings(self, updates: Dict[str, Any]) -> bool:
        """Merge ``updates`` into the current settings and persist them.

        Memory is always updated; a store failure is logged and the change
        lives on in memory until the store recovers.
        """
        updates = dict(updates)
        locked = self.locked_fields()
        if locked:
            dropped = [field for field in sorted(locked) if updates.pop(field, None) is not None]
            if dropped:
                logger.info("Ignoring %s: credentials come from the environment", ", ".join(dropped))

        current = self.get_settings()
        with self._lock:
            merged = self._apply_env(current.merged(updates))
            self._memory = merged

        values = merged.to_dict()
        # Never copy environment secrets into the store.
        for field in locked:
            values.pop(_CREDENTIAL_COLUMNS[field], None)
        try:
            self.repository.save(values)
        except GrowWatchError as e:
            logger.warning(f"Failed to persist monitoring settings, kept in memory: {e}")
        return True

    def resolve_stage(self, settings: Optional[MonitoringSettings] = None) -> GrowthStage:
        """Stage to evaluate against: the active cycle's if so configured."""
        settings = settings or self.get_settings()
        if settings.use_active_cycle_stage and self.cycle_repo is not None:
            try:
                cycle = self.cycle_repo.get_active()
            except GrowWatchError as e:
                logger.warning(f"Could not read the active cultivation cycle: {e}")
                cycle = None
            if cycle is not None and cycle.stage is not None:
                return cycle.stage
            if cycle is not None:
                logger.warning("Active cycle %s has unknown stage %r", cycle.cycle_id, cycle.stage_raw)
        return settings.stage

    def get_active_cycle(self) -> Optional[Dict[str, Any]]:
        if self.cycle_repo is None:
            return None
        try:
            cycle = self.cycle_repo.get_active()
        except GrowWatchError as e:
            logger.warning(f"Could not read the active cultivation cycle: {e}")
            return None
        return cycle.to_dict() if cycle else None
