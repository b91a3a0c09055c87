# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Global settings (default zone, week start, clock format).
"""

from datetime import datetime, timezone
from typing import Any

from oncall_rotations.core.logging import get_logger
from oncall_rotations.models.domain import GlobalSettings
from oncall_rotations.repositories.global_settings_repository import GlobalSettingsRepository
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.services.zoned_time import load_zone

logger = get_logger(__name__)


class GlobalSettingsService:
    def __init__(self, settings_repo: GlobalSettingsRepository, history_repo: HistoryRepository) -> None:
        self._settings = settings_repo
        self._history = history_repo

    def get_settings(self) -> GlobalSettings:
        return self._settings.get()

    def update_settings(self, changes: dict[str, Any], actor: str = "system") -> GlobalSettings:
        """Partial update. Raises InvalidTemplate for an unknown zone."""
        current = self._settings.get()
        changes = {k: v for k, v in changes.items() if v is not None}
        if "default_time_zone" in changes:
            load_zone(changes["default_time_zone"])
        if not changes:
            return current

        changes["updated_at"] = datetime.now(timezone.utc)
        updated = self._settings.save(current.model_copy(update=changes))
        self._history.record_event(
            "settings_updated",
            None,
            {k: v for k, v in changes.items() if k != "updated_at"},
            actor=actor,
        )
        logger.info("Settings updated: fields=%s", sorted(k for k in changes if k != "updated_at"))
        return updated
