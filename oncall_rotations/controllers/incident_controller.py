# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Incident endpoints.
Thin HTTP layer — delegates ALL logic to IncidentService.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends

from oncall_rotations.core.auth import Caller, get_caller
from oncall_rotations.core.dependencies import get_incident_service
from oncall_rotations.models.domain import Incident
from oncall_rotations.schemas.rotations import IncidentCreateRequest
from oncall_rotations.services.incident_service import IncidentService

router = APIRouter(prefix="/api/v1", tags=["Incidents"])


@router.get("/incidents", response_model=list[Incident])
def list_incidents(
    rotation_id: Optional[str] = None,
    status: Optional[Literal["open", "resolved"]] = None,
    service: IncidentService = Depends(get_incident_service),
):
    return service.list_incidents(rotation_id=rotation_id, status=status)


@router.post("/incidents", status_code=201, response_model=Incident)
def create_incident(
    payload: IncidentCreateRequest,
    caller: Caller = Depends(get_caller),
    service: IncidentService = Depends(get_incident_service),
):
    """Open an incident; unassigned incidents go to the current primary."""
    return service.create_incident(
        title=payload.title,
        rotation_id=payload.rotation_id,
        assigned_user_id=payload.assigned_user_id,
        actor=caller.actor,
    )


@router.get("/incidents/{incident_id}", response_model=Incident)
def get_incident(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    return service.get_incident(incident_id)


@router.post("/incidents/{incident_id}/resolve", response_model=Incident)
def resolve_incident(
    incident_id: str,
    caller: Caller = Depends(get_caller),
    service: IncidentService = Depends(get_incident_service),
):
    return service.resolve_incident(incident_id, actor=caller.actor)
