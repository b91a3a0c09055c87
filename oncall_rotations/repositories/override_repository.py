# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Override data access.
Manages the in-memory store of overrides and hands out the
monotonically increasing creation sequence used for tie-breaks.
"""

import itertools
import threading
from datetime import datetime
from typing import Optional

from oncall_rotations.models.domain import Override, Period


class OverrideRepository:
    """In-memory override storage."""

    def __init__(self) -> None:
        self._store: dict[str, Override] = {}
        self._lock = threading.RLock()
        self._sequence = itertools.count(1)

    # ── Read ──

    def get(self, override_id: str) -> Optional[Override]:
        return self._store.get(override_id)

    def get_all(self) -> list[Override]:
        return sorted(self._store.values(), key=lambda o: o.sequence)

    def find(
        self,
        rotation_id: Optional[str] = None,
        period_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Override]:
        result = self.get_all()
        if rotation_id is not None:
            result = [o for o in result if o.rotation_id == rotation_id]
        if period_id is not None:
            result = [o for o in result if o.period_id == period_id]
        if start is not None and end is not None:
            result = [o for o in result if o.overlaps(start, end)]
        return result

    def find_applicable(self, period: Period) -> list[Override]:
        """Overrides scoped to this period or its rotation that intersect it,
        oldest first."""
        return [
            o for o in self.get_all()
            if (o.period_id == period.period_id or o.rotation_id == period.rotation_id)
            and o.overlaps(period.start_utc, period.end_utc)
        ]

    def exists(self, override_id: str) -> bool:
        return override_id in self._store

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def next_sequence(self) -> int:
        with self._lock:
            return next(self._sequence)

    def save(self, override: Override) -> Override:
        with self._lock:
            self._store[override.override_id] = override
        return override

    def delete(self, override_id: str) -> Optional[Override]:
        with self._lock:
            return self._store.pop(override_id, None)

    def delete_by_period(self, period_id: str) -> int:
        with self._lock:
            doomed = [k for k, o in self._store.items() if o.period_id == period_id]
            for key in doomed:
                del self._store[key]
        return len(doomed)

    def delete_by_rotation(self, rotation_id: str) -> int:
        """Remove rotation-scoped overrides only."""
        with self._lock:
            doomed = [k for k, o in self._store.items() if o.rotation_id == rotation_id]
            for key in doomed:
                del self._store[key]
        return len(doomed)

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._sequence = itertools.count(1)
