# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Periods and their assignments.
Thin HTTP layer — delegates ALL logic to PeriodService / AssignmentService.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response

from oncall_rotations.core.auth import Caller, require_admin
from oncall_rotations.core.dependencies import (
    get_assignment_service,
    get_period_service,
    get_schedule_builder,
)
from oncall_rotations.models.domain import Assignment, EffectiveRow, Period, PeriodWrite, Role
from oncall_rotations.schemas.rotations import (
    AssignmentSetRequest,
    PeriodCreateRequest,
    PeriodResponse,
    PeriodUpdateRequest,
)
from oncall_rotations.services.assignment_service import AssignmentService
from oncall_rotations.services.effective_schedule import EffectiveScheduleBuilder
from oncall_rotations.services.period_service import PeriodService

router = APIRouter(prefix="/api/v1", tags=["Periods"])


def _to_response(write: PeriodWrite) -> PeriodResponse:
    return PeriodResponse(
        **write.period.model_dump(), overlapping_period_ids=write.overlapping_period_ids
    )


@router.get("/periods", response_model=list[Period])
def list_periods(
    rotation_id: Optional[str] = None,
    start_utc: Optional[datetime] = None,
    end_utc: Optional[datetime] = None,
    service: PeriodService = Depends(get_period_service),
):
    return service.list_periods(rotation_id=rotation_id, start=start_utc, end=end_utc)


@router.post("/periods", status_code=201, response_model=PeriodResponse)
def create_period(
    payload: PeriodCreateRequest,
    response: Response,
    caller: Caller = Depends(require_admin),
    service: PeriodService = Depends(get_period_service),
):
    """Create a period; an identical existing period is returned with 200."""
    write = service.create_period(
        rotation_id=payload.rotation_id,
        name=payload.name,
        start=payload.start_utc,
        end=payload.end_utc,
        is_locked=payload.is_locked,
        actor=caller.actor,
    )
    if not write.created:
        response.status_code = 200
    return _to_response(write)


@router.get("/periods/{period_id}", response_model=Period)
def get_period(period_id: str, service: PeriodService = Depends(get_period_service)):
    return service.get_period(period_id)


@router.patch("/periods/{period_id}", response_model=PeriodResponse)
def update_period(
    period_id: str,
    payload: PeriodUpdateRequest,
    caller: Caller = Depends(require_admin),
    service: PeriodService = Depends(get_period_service),
):
    """Rename, move/resize, lock or unlock. Moving a locked period → 409."""
    return _to_response(
        service.update_period(
            period_id,
            name=payload.name,
            start=payload.start_utc,
            end=payload.end_utc,
            is_locked=payload.is_locked,
            actor=caller.actor,
        )
    )


@router.delete("/periods/{period_id}")
def delete_period(
    period_id: str,
    caller: Caller = Depends(require_admin),
    service: PeriodService = Depends(get_period_service),
):
    return service.delete_period(period_id, actor=caller.actor)


# ── Assignments ──

@router.get("/periods/{period_id}/assignments", response_model=list[Assignment])
def list_assignments(
    period_id: str, service: AssignmentService = Depends(get_assignment_service)
):
    return service.list_assignments(period_id)


@router.get("/periods/{period_id}/resolved")
def resolve_assignments(
    period_id: str, service: AssignmentService = Depends(get_assignment_service)
):
    """Primary/secondary after rotation defaults, before overrides."""
    return service.resolve(period_id)


@router.post("/periods/{period_id}/assignments", response_model=Assignment)
def set_assignment(
    period_id: str,
    payload: AssignmentSetRequest,
    caller: Caller = Depends(require_admin),
    service: AssignmentService = Depends(get_assignment_service),
):
    return service.set_assignment(period_id, payload.role, payload.user_id, actor=caller.actor)


@router.delete("/periods/{period_id}/assignments/{role}")
def clear_assignment(
    period_id: str,
    role: Role,
    caller: Caller = Depends(require_admin),
    service: AssignmentService = Depends(get_assignment_service),
):
    return service.clear_assignment(period_id, role, actor=caller.actor)


@router.get("/periods/{period_id}/effective", response_model=EffectiveRow)
def get_effective_row(
    period_id: str,
    service: PeriodService = Depends(get_period_service),
    builder: EffectiveScheduleBuilder = Depends(get_schedule_builder),
):
    """The override-applied responders for one period."""
    return builder.row_for(service.get_period(period_id))
