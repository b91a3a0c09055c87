# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Assignment data access.
Keyed by (period_id, role), which enforces one assignment per role.
"""

import threading
from typing import Optional

from oncall_rotations.models.domain import Assignment


class AssignmentRepository:
    """In-memory assignment storage."""

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], Assignment] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def get(self, period_id: str, role: str) -> Optional[Assignment]:
        return self._store.get((period_id, role))

    def get_for_period(self, period_id: str) -> list[Assignment]:
        return [
            a for (pid, _), a in sorted(self._store.items()) if pid == period_id
        ]

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def save(self, assignment: Assignment) -> Assignment:
        with self._lock:
            self._store[(assignment.period_id, assignment.role)] = assignment
        return assignment

    def delete(self, period_id: str, role: str) -> Optional[Assignment]:
        with self._lock:
            return self._store.pop((period_id, role), None)

    def delete_by_period(self, period_id: str) -> int:
        with self._lock:
            doomed = [k for k in self._store if k[0] == period_id]
            for key in doomed:
                del self._store[key]
        return len(doomed)

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
