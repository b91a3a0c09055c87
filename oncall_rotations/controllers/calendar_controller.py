# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: External calendar sync.
"""

from fastapi import APIRouter, Depends

from oncall_rotations.core.auth import Caller, require_admin
from oncall_rotations.core.dependencies import get_calendar_sync_service
from oncall_rotations.schemas.rotations import CalendarSyncRequest
from oncall_rotations.services.calendar_sync_service import CalendarSyncService

router = APIRouter(prefix="/api/v1", tags=["Calendar"])


@router.post("/calendar/sync")
def sync_calendar(
    payload: CalendarSyncRequest,
    caller: Caller = Depends(require_admin),
    service: CalendarSyncService = Depends(get_calendar_sync_service),
):
    """Push a rotation's periods in the window to the external calendar."""
    return service.sync(payload.rotation_id, payload.start_utc, payload.end_utc, actor=caller.actor)
