# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: User directory endpoints.
Thin HTTP layer — delegates ALL logic to UserService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from oncall_rotations.core.auth import Caller, require_admin
from oncall_rotations.core.dependencies import get_user_service
from oncall_rotations.models.domain import User
from oncall_rotations.schemas.rotations import UserCreateRequest, UserUpdateRequest
from oncall_rotations.services.user_service import UserService

router = APIRouter(prefix="/api/v1", tags=["Users"])


@router.get("/users", response_model=list[User])
def list_users(
    is_active: Optional[bool] = None,
    q: Optional[str] = Query(default=None, max_length=255, description="Search name, email or UPN"),
    service: UserService = Depends(get_user_service),
):
    return service.list_users(is_active=is_active, q=q)


@router.post("/users", status_code=201, response_model=User)
def create_user(
    payload: UserCreateRequest,
    caller: Caller = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.create_user(actor=caller.actor, **payload.model_dump())


@router.get("/users/{user_id}", response_model=User)
def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return service.get_user(user_id)


@router.patch("/users/{user_id}", response_model=User)
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    caller: Caller = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.update_user(user_id, payload.model_dump(exclude_unset=True), actor=caller.actor)


@router.post("/users/{user_id}/activate", response_model=User)
def activate_user(
    user_id: str,
    caller: Caller = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.set_active(user_id, True, actor=caller.actor)


@router.post("/users/{user_id}/deactivate", response_model=User)
def deactivate_user(
    user_id: str,
    caller: Caller = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.set_active(user_id, False, actor=caller.actor)
