# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Period template data access.
"""

import threading
from typing import Optional

from oncall_rotations.models.domain import PeriodTemplate


class TemplateRepository:
    """In-memory period template storage."""

    def __init__(self) -> None:
        self._store: dict[str, PeriodTemplate] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def get(self, template_id: str) -> Optional[PeriodTemplate]:
        return self._store.get(template_id)

    def get_for_rotation(
        self, rotation_id: str, is_active: Optional[bool] = None
    ) -> list[PeriodTemplate]:
        templates = [t for t in self._store.values() if t.rotation_id == rotation_id]
        if is_active is not None:
            templates = [t for t in templates if t.is_active == is_active]
        return sorted(
            templates, key=lambda t: (t.day_of_week, t.start_time, t.template_id)
        )

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def save(self, template: PeriodTemplate) -> PeriodTemplate:
        with self._lock:
            self._store[template.template_id] = template
        return template

    def delete(self, template_id: str) -> Optional[PeriodTemplate]:
        with self._lock:
            return self._store.pop(template_id, None)

    def delete_by_rotation(self, rotation_id: str) -> int:
        with self._lock:
            doomed = [k for k, t in self._store.items() if t.rotation_id == rotation_id]
            for key in doomed:
                del self._store[key]
        return len(doomed)

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
