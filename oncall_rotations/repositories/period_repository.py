# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Period data access.
Pure CRUD plus the two storage guarantees the core relies on:
per-period write serialization (with a timeout) and natural-key
lookup so that re-submitting a proposed period is a no-op.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from oncall_rotations.core.errors import DownstreamUnavailable
from oncall_rotations.models.domain import Period


class PeriodRepository:
    """In-memory period storage with row-level write locks."""

    def __init__(self) -> None:
        self._store: dict[str, Period] = {}
        self._guard = threading.RLock()
        self._row_locks: dict[str, threading.Lock] = {}

    # ── Read ──

    def get(self, period_id: str) -> Optional[Period]:
        return self._store.get(period_id)

    def get_all(self, rotation_id: Optional[str] = None) -> list[Period]:
        periods = list(self._store.values())
        if rotation_id is not None:
            periods = [p for p in periods if p.rotation_id == rotation_id]
        return sorted(periods, key=lambda p: (p.start_utc, p.period_id))

    def find_overlapping(
        self,
        start: datetime,
        end: datetime,
        rotation_id: Optional[str] = None,
    ) -> list[Period]:
        """Periods whose [start, end) intersects [start, end)."""
        return [p for p in self.get_all(rotation_id) if p.overlaps(start, end)]

    def find_by_natural_key(
        self, rotation_id: str, start: datetime, end: datetime, name: str
    ) -> Optional[Period]:
        key = (rotation_id, start, end, name)
        for period in self._store.values():
            if period.natural_key == key:
                return period
        return None

    def count(self, is_locked: Optional[bool] = None) -> int:
        if is_locked is None:
            return len(self._store)
        return sum(1 for p in self._store.values() if p.is_locked == is_locked)

    # ── Write ──

    def insert(self, period: Period, timeout: float = -1) -> tuple[Period, bool]:
        """Store a new period unless one with the same natural key exists.

        Returns (stored_period, created).
        """
        if not self._guard.acquire(timeout=timeout):
            raise DownstreamUnavailable(
                f"Timed out after {timeout:.1f}s waiting to insert period '{period.name}'"
            )
        try:
            existing = self.find_by_natural_key(*period.natural_key)
            if existing is not None:
                return existing, False
            self._store[period.period_id] = period
            return period, True
        finally:
            self._guard.release()

    def save(self, period: Period) -> Period:
        """Replace a stored period, bumping its version."""
        with self._guard:
            current = self._store.get(period.period_id)
            version = current.version + 1 if current is not None else period.version
            stored = period.model_copy(update={"version": version})
            self._store[stored.period_id] = stored
            return stored

    def delete(self, period_id: str) -> Optional[Period]:
        with self._guard:
            self._row_locks.pop(period_id, None)
            return self._store.pop(period_id, None)

    @contextmanager
    def row_lock(self, period_id: str, timeout: float) -> Iterator[None]:
        """Serialize writers of a single period; give up after `timeout` seconds."""
        with self._guard:
            if period_id not in self._store:
                lock = None
            else:
                lock = self._row_locks.setdefault(period_id, threading.Lock())
        if lock is None:
            # Nothing to serialize; the caller's lookup reports the miss.
            yield
            return
        if not lock.acquire(timeout=timeout):
            raise DownstreamUnavailable(
                f"Timed out after {timeout:.1f}s waiting for write lock on period '{period_id}'"
            )
        try:
            yield
        finally:
            lock.release()

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._guard:
            self._store.clear()
            self._row_locks.clear()
