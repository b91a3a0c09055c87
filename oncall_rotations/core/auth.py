# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Caller claims — identity is resolved upstream and forwarded as headers.
Evaluated once per request and passed explicitly; never held globally.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from pydantic import BaseModel

from oncall_rotations.core.config import settings

_TRUTHY = {"1", "true", "yes"}


class Caller(BaseModel):
    """Claims of the identity making the current request."""
    user_id: Optional[str] = None
    is_admin: bool = False

    @property
    def actor(self) -> str:
        return self.user_id or "anonymous"


def get_caller(request: Request) -> Caller:
    user_id = request.headers.get(settings.AUTH_USER_HEADER) or None
    is_admin = request.headers.get(settings.AUTH_ADMIN_HEADER, "").lower() in _TRUTHY
    if settings.DEV_BYPASS_AUTH and user_id is None:
        return Caller(user_id="dev", is_admin=True)
    return Caller(user_id=user_id, is_admin=is_admin)


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    """Reject callers whose claims do not carry the admin capability."""
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Administrator privileges required")
    return caller
