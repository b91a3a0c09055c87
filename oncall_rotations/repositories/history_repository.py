# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Audit history.
Bounded, append-only record of every scheduling mutation and who made it.
"""

import threading
import uuid
from collections import Counter, deque
from datetime import datetime, timezone
from typing import Any, Optional

from oncall_rotations.core.config import settings


class HistoryRepository:
    """In-memory audit log; the oldest entries fall off past MAX_HISTORY_SIZE."""

    def __init__(self, max_size: Optional[int] = None) -> None:
        self._events: deque[dict[str, Any]] = deque(maxlen=max_size or settings.MAX_HISTORY_SIZE)
        self._by_type: Counter[str] = Counter()
        self._lock = threading.Lock()

    # ── Read ──

    def get_all(
        self,
        rotation_id: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Matching events, oldest first, at most the `limit` most recent."""
        with self._lock:
            snapshot = list(self._events)
        matches = [
            e for e in snapshot
            if (rotation_id is None or e["rotation_id"] == rotation_id)
            and (event_type is None or e["event_type"] == event_type)
            and (actor is None or e["actor"] == actor)
        ]
        return matches[-(limit or settings.DEFAULT_HISTORY_LIMIT):]

    def count(self) -> int:
        return len(self._events)

    def count_by_type(self) -> dict[str, int]:
        with self._lock:
            return dict(self._by_type)

    @property
    def events(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._events)

    # ── Write ──

    def record_event(
        self,
        event_type: str,
        rotation_id: Optional[str],
        details: dict[str, Any],
        actor: str = "system",
    ) -> dict[str, Any]:
        event: dict[str, Any] = {
            "event_id": str(uuid.uuid4()),
            "event_type": event_type,
            "rotation_id": rotation_id,
            "actor": actor,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details,
        }
        with self._lock:
            if len(self._events) == self._events.maxlen:
                evicted = self._events[0]["event_type"]
                self._by_type[evicted] -= 1
                if not self._by_type[evicted]:
                    del self._by_type[evicted]
            self._events.append(event)
            self._by_type[event_type] += 1
        return event

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._by_type.clear()
