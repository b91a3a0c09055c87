# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Incident data access.
"""

import threading
from typing import Optional

from oncall_rotations.models.domain import Incident


class IncidentRepository:
    """In-memory incident storage."""

    def __init__(self) -> None:
        self._store: dict[str, Incident] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def get(self, incident_id: str) -> Optional[Incident]:
        return self._store.get(incident_id)

    def get_all(
        self,
        rotation_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Incident]:
        result = list(self._store.values())
        if rotation_id is not None:
            result = [i for i in result if i.rotation_id == rotation_id]
        if status is not None:
            result = [i for i in result if i.status == status]
        return sorted(result, key=lambda i: i.created_at, reverse=True)

    def count_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for incident in self._store.values():
            counts[incident.status] = counts.get(incident.status, 0) + 1
        return counts

    # ── Write ──

    def save(self, incident: Incident) -> Incident:
        with self._lock:
            self._store[incident.incident_id] = incident
        return incident

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
