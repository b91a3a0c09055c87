# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Global settings endpoints.
"""

from fastapi import APIRouter, Depends

from oncall_rotations.core.auth import Caller, require_admin
from oncall_rotations.core.dependencies import get_global_settings_service
from oncall_rotations.models.domain import GlobalSettings
from oncall_rotations.schemas.rotations import SettingsUpdateRequest
from oncall_rotations.services.global_settings_service import GlobalSettingsService

router = APIRouter(prefix="/api/v1", tags=["Settings"])


@router.get("/settings", response_model=GlobalSettings)
def get_settings(service: GlobalSettingsService = Depends(get_global_settings_service)):
    return service.get_settings()


@router.patch("/settings", response_model=GlobalSettings)
def update_settings(
    payload: SettingsUpdateRequest,
    caller: Caller = Depends(require_admin),
    service: GlobalSettingsService = Depends(get_global_settings_service),
):
    return service.update_settings(payload.model_dump(exclude_unset=True), actor=caller.actor)
