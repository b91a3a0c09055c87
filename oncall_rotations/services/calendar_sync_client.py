# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Calendar sync client — pushes periods to the external calendar
collaborator with a bounded timeout.

Wire contract:
    POST {CALENDAR_SYNC_URL}
      {"rotation_id": ..., "periods": [{period_id, name, start_utc, end_utc,
                                         calendar_event_id}, ...]}
    2xx → {"results": [{"period_id", "status": "synced"|"failed",
                        "calendar_event_id"?, "error"?}, ...]}
"""

from typing import Any

import httpx

from oncall_rotations.core.config import settings
from oncall_rotations.core.errors import DownstreamUnavailable
from oncall_rotations.core.logging import get_logger
from oncall_rotations.models.domain import Period

logger = get_logger(__name__)


class CalendarSyncClient:
    """Synchronous HTTP client for the calendar collaborator."""

    def push(self, rotation_id: str, periods: list[Period]) -> dict[str, dict[str, Any]]:
        """
        Return period_id -> result. Raises DownstreamUnavailable on timeout,
        transport error, non-2xx status or an unreadable body.
        """
        payload = {
            "rotation_id": rotation_id,
            "periods": [
                p.model_dump(
                    mode="json",
                    include={"period_id", "name", "start_utc", "end_utc", "calendar_event_id"},
                )
                for p in periods
            ],
        }
        try:
            with httpx.Client(timeout=settings.CALENDAR_SYNC_TIMEOUT) as client:
                resp = client.post(settings.CALENDAR_SYNC_URL, json=payload)
        except httpx.TimeoutException as exc:
            raise DownstreamUnavailable(f"Calendar sync timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise DownstreamUnavailable(f"Calendar sync unreachable: {exc}") from exc

        if resp.status_code >= 300:
            raise DownstreamUnavailable(
                f"Calendar sync returned HTTP {resp.status_code}"
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise DownstreamUnavailable("Calendar sync returned a non-JSON body") from exc
        results = body.get("results", []) if isinstance(body, dict) else None
        if not isinstance(results, list):
            raise DownstreamUnavailable("Calendar sync returned an unexpected body")
        return {
            item["period_id"]: item
            for item in results
            if isinstance(item, dict) and "period_id" in item
        }
