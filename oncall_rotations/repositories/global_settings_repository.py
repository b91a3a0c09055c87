# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Global settings, a single record.
Until something is saved, reads fall back to the environment defaults.
"""

import threading
from typing import Optional

from oncall_rotations.core.config import settings
from oncall_rotations.models.domain import GlobalSettings


class GlobalSettingsRepository:
    """In-memory holder for the one GlobalSettings record."""

    def __init__(self) -> None:
        self._current: Optional[GlobalSettings] = None
        self._lock = threading.Lock()

    def get(self) -> GlobalSettings:
        current = self._current
        if current is None:
            return GlobalSettings(default_time_zone=settings.DEFAULT_TIME_ZONE)
        return current

    def save(self, value: GlobalSettings) -> GlobalSettings:
        with self._lock:
            self._current = value
        return value

    def clear(self) -> None:
        with self._lock:
            self._current = None
