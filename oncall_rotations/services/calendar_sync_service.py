# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Calendar sync orchestration — select periods for a window, push
them, and record returned calendar references.
"""

from datetime import datetime
from typing import Any

from oncall_rotations.core.config import settings
from oncall_rotations.core.errors import NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import CALENDAR_SYNC_ITEMS
from oncall_rotations.models.domain import to_utc
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.period_repository import PeriodRepository
from oncall_rotations.repositories.rotation_repository import RotationRepository
from oncall_rotations.services.calendar_sync_client import CalendarSyncClient
from oncall_rotations.services.period_service import PeriodService
from oncall_rotations.services.template_expander import check_window

logger = get_logger(__name__)


class CalendarSyncService:
    """Pushes a rotation's periods to the external calendar."""

    def __init__(
        self,
        rotation_repo: RotationRepository,
        period_repo: PeriodRepository,
        history_repo: HistoryRepository,
        period_service: PeriodService,
        client: CalendarSyncClient,
    ) -> None:
        self._rotations = rotation_repo
        self._periods = period_repo
        self._history = history_repo
        self._period_service = period_service
        self._client = client

    def sync(
        self,
        rotation_id: str,
        window_start: datetime,
        window_end: datetime,
        actor: str = "system",
    ) -> dict[str, Any]:
        """Raises NotFound / InvalidRange / DownstreamUnavailable."""
        if not self._rotations.exists(rotation_id):
            raise NotFound("Rotation", rotation_id)
        window_start, window_end = to_utc(window_start), to_utc(window_end)
        check_window(window_start, window_end)

        periods = self._periods.find_overlapping(window_start, window_end, rotation_id)
        if not settings.CALENDAR_SYNC_URL:
            logger.info("Calendar sync skipped: CALENDAR_SYNC_URL unset")
            results = [
                {"period_id": p.period_id, "status": "skipped", "calendar_event_id": p.calendar_event_id}
                for p in periods
            ]
        else:
            returned = self._client.push(rotation_id, periods) if periods else {}
            results = []
            for period in periods:
                item = returned.get(period.period_id)
                if item is None:
                    results.append({"period_id": period.period_id, "status": "failed",
                                    "error": "no result returned"})
                    continue
                status = item.get("status", "failed")
                event_id = item.get("calendar_event_id")
                if status == "synced" and event_id:
                    self._period_service.set_calendar_event_id(period.period_id, event_id)
                results.append({
                    "period_id": period.period_id,
                    "status": status,
                    "calendar_event_id": event_id,
                    "error": item.get("error"),
                })

        summary: dict[str, int] = {}
        for result in results:
            CALENDAR_SYNC_ITEMS.labels(status=result["status"]).inc()
            summary[result["status"]] = summary.get(result["status"], 0) + 1
        self._history.record_event(
            "calendar_synced",
            rotation_id,
            {"window_start": window_start.isoformat(), "window_end": window_end.isoformat(), **summary},
            actor=actor,
        )
        logger.info("Calendar sync: rotation=%s, results=%s", rotation_id, summary)
        return {"rotation_id": rotation_id, "summary": summary, "results": results}
