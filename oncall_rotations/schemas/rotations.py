# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
Instants are ISO-8601 UTC; template times are HH:mm in the rotation's zone.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from oncall_rotations.models.domain import Period, Role, UTCDateTime


# ── User Schemas ──

class UserCreateRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    upn: Optional[str] = None
    time_zone: Optional[str] = None
    is_active: bool = True


class UserUpdateRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+$")
    upn: Optional[str] = None
    time_zone: Optional[str] = None


# ── Settings Schemas ──

class SettingsUpdateRequest(BaseModel):
    default_time_zone: Optional[str] = Field(default=None, min_length=1, description="IANA zone key")
    week_start: Optional[int] = Field(default=None, ge=0, le=6, description="0=Sunday")
    use_24h: Optional[bool] = None


# ── Rotation Schemas ──

class RotationCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, description="IANA zone key")
    period_length_days: int = Field(default=7, ge=1, le=366)
    start_date_utc: Optional[UTCDateTime] = None
    is_active: bool = True
    default_primary_user_id: Optional[str] = None
    default_secondary_user_id: Optional[str] = None


class RotationUpdateRequest(BaseModel):
    """Partial update; send null to clear description or a default user."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    time_zone: Optional[str] = None
    period_length_days: Optional[int] = Field(default=None, ge=1, le=366)
    start_date_utc: Optional[UTCDateTime] = None
    is_active: Optional[bool] = None
    default_primary_user_id: Optional[str] = None
    default_secondary_user_id: Optional[str] = None


class MemberCreateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    sort_order: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True


# ── Template Schemas ──

class TemplateCreateRequest(BaseModel):
    day_of_week: int = Field(..., description="0=Monday .. 6=Sunday")
    start_time: str = Field(..., description="HH:mm")
    end_time: str = Field(..., description="HH:mm")
    name: Optional[str] = None
    is_active: bool = True


class TemplateUpdateRequest(BaseModel):
    day_of_week: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    name: Optional[str] = None
    is_active: Optional[bool] = None


class TemplatesExpansionRequest(BaseModel):
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    name_template: Optional[str] = Field(
        default=None, description="e.g. '{name} {start:%Y-%m-%d}'"
    )
    template_ids: Optional[list[str]] = None
    inline_templates: Optional[list[TemplateCreateRequest]] = None


class GeneratePeriodsRequest(BaseModel):
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    name_template: Optional[str] = None


# ── Period Schemas ──

class PeriodCreateRequest(BaseModel):
    rotation_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    is_locked: bool = False


class PeriodUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_utc: Optional[UTCDateTime] = None
    end_utc: Optional[UTCDateTime] = None
    is_locked: Optional[bool] = None


class PeriodResponse(Period):
    overlapping_period_ids: list[str] = Field(default_factory=list)


class AssignmentSetRequest(BaseModel):
    role: Role
    user_id: str = Field(..., min_length=1)


# ── Override Schemas ──

class OverrideCreateRequest(BaseModel):
    period_id: Optional[str] = None
    rotation_id: Optional[str] = None
    original_user_id: str = Field(..., min_length=1)
    replacement_user_id: str = Field(..., min_length=1)
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    reason: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _single_scope(self) -> "OverrideCreateRequest":
        if (self.period_id is None) == (self.rotation_id is None):
            raise ValueError("exactly one of period_id or rotation_id is required")
        return self


# ── Incident Schemas ──

class IncidentCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    rotation_id: str = Field(..., min_length=1)
    assigned_user_id: Optional[str] = None


class RouteResponse(BaseModel):
    rotation_id: str
    at: UTCDateTime
    user_id: Optional[str] = None
    period_id: Optional[str] = None
    overridden: bool = False


# ── Calendar Schemas ──

class CalendarSyncRequest(BaseModel):
    rotation_id: str = Field(..., min_length=1)
    start_utc: UTCDateTime
    end_utc: UTCDateTime


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    request_id: Optional[str] = None
