# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Override endpoints.
Thin HTTP layer — delegates ALL logic to OverrideService.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from oncall_rotations.core.auth import Caller, require_admin
from oncall_rotations.core.dependencies import get_override_service
from oncall_rotations.models.domain import Override
from oncall_rotations.schemas.rotations import OverrideCreateRequest
from oncall_rotations.services.override_service import OverrideService

router = APIRouter(prefix="/api/v1", tags=["Overrides"])


@router.get("/overrides", response_model=list[Override])
def list_overrides(
    rotation_id: Optional[str] = None,
    period_id: Optional[str] = None,
    start_utc: Optional[datetime] = None,
    end_utc: Optional[datetime] = None,
    service: OverrideService = Depends(get_override_service),
):
    return service.list_overrides(
        rotation_id=rotation_id, period_id=period_id, start=start_utc, end=end_utc
    )


@router.post("/overrides", status_code=201, response_model=Override)
def create_override(
    payload: OverrideCreateRequest,
    caller: Caller = Depends(require_admin),
    service: OverrideService = Depends(get_override_service),
):
    """Substitute one user for another within a window."""
    return service.create_override(
        original_user_id=payload.original_user_id,
        replacement_user_id=payload.replacement_user_id,
        start=payload.start_utc,
        end=payload.end_utc,
        period_id=payload.period_id,
        rotation_id=payload.rotation_id,
        reason=payload.reason,
        actor=caller.actor,
    )


@router.get("/overrides/{override_id}", response_model=Override)
def get_override(override_id: str, service: OverrideService = Depends(get_override_service)):
    return service.get_override(override_id)


@router.delete("/overrides/{override_id}")
def delete_override(
    override_id: str,
    caller: Caller = Depends(require_admin),
    service: OverrideService = Depends(get_override_service),
):
    return service.delete_override(override_id, actor=caller.actor)
