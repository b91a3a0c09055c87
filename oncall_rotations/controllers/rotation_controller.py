# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Rotations, rosters, templates and period generation.
Thin HTTP layer — delegates ALL logic to the rotation, template and
expansion services.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from oncall_rotations.core.auth import Caller, require_admin
from oncall_rotations.core.dependencies import (
    get_expansion_service,
    get_rotation_service,
    get_template_service,
)
from oncall_rotations.models.domain import ExpansionReport, PeriodTemplate, Rotation, RotationMember
from oncall_rotations.schemas.rotations import (
    GeneratePeriodsRequest,
    MemberCreateRequest,
    RotationCreateRequest,
    RotationUpdateRequest,
    TemplateCreateRequest,
    TemplatesExpansionRequest,
    TemplateUpdateRequest,
)
from oncall_rotations.services.expansion_service import ExpansionService
from oncall_rotations.services.rotation_service import RotationService
from oncall_rotations.services.template_service import TemplateService

router = APIRouter(prefix="/api/v1", tags=["Rotations"])


# ── Rotations ──

@router.get("/rotations", response_model=list[Rotation])
def list_rotations(
    is_active: Optional[bool] = None,
    service: RotationService = Depends(get_rotation_service),
):
    return service.list_rotations(is_active=is_active)


@router.post("/rotations", status_code=201, response_model=Rotation)
def create_rotation(
    payload: RotationCreateRequest,
    caller: Caller = Depends(require_admin),
    service: RotationService = Depends(get_rotation_service),
):
    return service.create_rotation(actor=caller.actor, **payload.model_dump())


@router.get("/rotations/{rotation_id}", response_model=Rotation)
def get_rotation(rotation_id: str, service: RotationService = Depends(get_rotation_service)):
    return service.get_rotation(rotation_id)


@router.patch("/rotations/{rotation_id}", response_model=Rotation)
def update_rotation(
    rotation_id: str,
    payload: RotationUpdateRequest,
    caller: Caller = Depends(require_admin),
    service: RotationService = Depends(get_rotation_service),
):
    return service.update_rotation(
        rotation_id, payload.model_dump(exclude_unset=True), actor=caller.actor
    )


@router.delete("/rotations/{rotation_id}")
def delete_rotation(
    rotation_id: str,
    caller: Caller = Depends(require_admin),
    service: RotationService = Depends(get_rotation_service),
):
    return service.delete_rotation(rotation_id, actor=caller.actor)


# ── Roster ──

@router.get("/rotations/{rotation_id}/members", response_model=list[RotationMember])
def list_members(rotation_id: str, service: RotationService = Depends(get_rotation_service)):
    return service.list_members(rotation_id)


@router.post("/rotations/{rotation_id}/members", status_code=201, response_model=RotationMember)
def add_member(
    rotation_id: str,
    payload: MemberCreateRequest,
    caller: Caller = Depends(require_admin),
    service: RotationService = Depends(get_rotation_service),
):
    return service.add_member(rotation_id, actor=caller.actor, **payload.model_dump())


@router.delete("/rotations/{rotation_id}/members/{rotation_member_id}")
def remove_member(
    rotation_id: str,
    rotation_member_id: str,
    caller: Caller = Depends(require_admin),
    service: RotationService = Depends(get_rotation_service),
):
    return service.remove_member(rotation_id, rotation_member_id, actor=caller.actor)


# ── Templates ──

@router.get("/rotations/{rotation_id}/templates", response_model=list[PeriodTemplate])
def list_templates(
    rotation_id: str,
    is_active: Optional[bool] = None,
    service: TemplateService = Depends(get_template_service),
):
    return service.list_templates(rotation_id, is_active=is_active)


@router.post("/rotations/{rotation_id}/templates", status_code=201, response_model=PeriodTemplate)
def create_template(
    rotation_id: str,
    payload: TemplateCreateRequest,
    caller: Caller = Depends(require_admin),
    service: TemplateService = Depends(get_template_service),
):
    return service.create_template(rotation_id, actor=caller.actor, **payload.model_dump())


@router.patch("/templates/{template_id}", response_model=PeriodTemplate)
def update_template(
    template_id: str,
    payload: TemplateUpdateRequest,
    caller: Caller = Depends(require_admin),
    service: TemplateService = Depends(get_template_service),
):
    return service.update_template(
        template_id, payload.model_dump(exclude_unset=True), actor=caller.actor
    )


@router.delete("/templates/{template_id}")
def delete_template(
    template_id: str,
    caller: Caller = Depends(require_admin),
    service: TemplateService = Depends(get_template_service),
):
    return service.delete_template(template_id, actor=caller.actor)


# ── Generation ──

@router.post(
    "/rotations/{rotation_id}/generate_periods_from_templates",
    response_model=ExpansionReport,
)
def generate_periods_from_templates(
    rotation_id: str,
    payload: TemplatesExpansionRequest,
    caller: Caller = Depends(require_admin),
    service: ExpansionService = Depends(get_expansion_service),
):
    """Expand weekday templates over a UTC window and persist the result."""
    inline = (
        [t.model_dump() for t in payload.inline_templates]
        if payload.inline_templates
        else None
    )
    return service.expand_templates(
        rotation_id,
        payload.start_utc,
        payload.end_utc,
        name_template=payload.name_template,
        template_ids=payload.template_ids,
        inline_templates=inline,
        actor=caller.actor,
    )


@router.post("/rotations/{rotation_id}/generate_periods", response_model=ExpansionReport)
def generate_periods(
    rotation_id: str,
    payload: GeneratePeriodsRequest,
    caller: Caller = Depends(require_admin),
    service: ExpansionService = Depends(get_expansion_service),
):
    """Back-to-back periods of the rotation's length over a UTC window."""
    return service.generate_periods(
        rotation_id,
        payload.start_utc,
        payload.end_utc,
        name_template=payload.name_template,
        actor=caller.actor,
    )
