# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Effective schedule and routing lookups.
Read-only HTTP layer over EffectiveScheduleBuilder / IncidentRouter.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from oncall_rotations.core.dependencies import get_incident_router, get_schedule_builder
from oncall_rotations.models.domain import EffectiveRow, to_utc
from oncall_rotations.schemas.rotations import RouteResponse
from oncall_rotations.services.effective_schedule import EffectiveScheduleBuilder
from oncall_rotations.services.incident_router import IncidentRouter

router = APIRouter(prefix="/api/v1", tags=["Schedule"])


@router.get("/effective_schedule", response_model=list[EffectiveRow])
def get_effective_schedule(
    start_utc: datetime = Query(..., description="Window start (ISO-8601 UTC)"),
    end_utc: datetime = Query(..., description="Window end, exclusive"),
    rotation_id: Optional[str] = None,
    user_id: Optional[str] = Query(default=None, description="Only rows where this user is on call"),
    builder: EffectiveScheduleBuilder = Depends(get_schedule_builder),
):
    """Override-applied rows for every period overlapping the window."""
    return builder.build(rotation_id, to_utc(start_utc), to_utc(end_utc), user_id=user_id)


@router.get("/rotations/{rotation_id}/route", response_model=RouteResponse)
def route(
    rotation_id: str,
    at: Optional[datetime] = Query(default=None, description="Instant to route at; default now"),
    incident_router: IncidentRouter = Depends(get_incident_router),
):
    """Who would receive an incident for this rotation at `at`."""
    instant = to_utc(at) if at is not None else datetime.now(timezone.utc)
    row = incident_router.covering_row(rotation_id, instant)
    return RouteResponse(
        rotation_id=rotation_id,
        at=instant,
        user_id=row.primary_user_id if row else None,
        period_id=row.period_id if row else None,
        overridden=row.overridden if row else False,
    )
