# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.
All instants are timezone-aware UTC; naive input is read as UTC.
"""

from datetime import datetime, time, timezone
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_serializer

Role = Literal["primary", "secondary"]
ROLES: tuple[str, ...] = ("primary", "secondary")


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(to_utc)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    user_id: str
    display_name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1, max_length=255)
    upn: Optional[str] = None
    time_zone: Optional[str] = None
    is_active: bool = True


class GlobalSettings(BaseModel):
    """Display defaults shared by every rotation. week_start uses 0=Sunday."""
    default_time_zone: str
    week_start: int = Field(default=0, ge=0, le=6)
    use_24h: bool = False
    updated_at: Optional[UTCDateTime] = None


class Rotation(BaseModel):
    """A named on-call responsibility group."""
    rotation_id: str
    name: str
    description: Optional[str] = None
    time_zone: str
    period_length_days: int = Field(default=7, ge=1)
    start_date_utc: UTCDateTime
    is_active: bool = True
    default_primary_user_id: Optional[str] = None
    default_secondary_user_id: Optional[str] = None
    created_at: UTCDateTime = Field(default_factory=utcnow)
    updated_at: Optional[UTCDateTime] = None


class RotationMember(BaseModel):
    """Roster entry. Advisory only: assignments are not checked against it."""
    rotation_member_id: str
    rotation_id: str
    user_id: str
    sort_order: int = 0
    is_active: bool = True


class PeriodTemplate(BaseModel):
    """Weekly recurrence: one weekday, one local time-of-day window."""
    template_id: str
    rotation_id: str
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: time
    end_time: time
    name: Optional[str] = None
    is_active: bool = True

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")


class Period(BaseModel):
    period_id: str
    rotation_id: str
    name: str
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    is_locked: bool = False
    calendar_event_id: Optional[str] = None
    version: int = 1
    created_at: UTCDateTime = Field(default_factory=utcnow)

    @property
    def natural_key(self) -> tuple[str, datetime, datetime, str]:
        return (self.rotation_id, self.start_utc, self.end_utc, self.name)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_utc < end and self.end_utc > start


class Assignment(BaseModel):
    assignment_id: str
    period_id: str
    user_id: str
    role: Role


class Override(BaseModel):
    """Substitution of one user for another, scoped to a period or a rotation."""
    override_id: str
    period_id: Optional[str] = None
    rotation_id: Optional[str] = None
    original_user_id: str
    replacement_user_id: str
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    reason: Optional[str] = None
    sequence: int = 0
    created_at: UTCDateTime = Field(default_factory=utcnow)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start_utc < end and self.end_utc > start


class EffectiveRow(BaseModel):
    """Derived, never persisted: who answers for one period after overrides."""
    period_id: str
    rotation_id: str
    period_name: Optional[str] = None
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    primary_user_id: Optional[str] = None
    secondary_user_id: Optional[str] = None
    overridden: bool = False
    notes: Optional[str] = None


class Incident(BaseModel):
    incident_id: str
    title: str
    rotation_id: str
    assigned_user_id: Optional[str] = None
    routed: bool = False
    status: Literal["open", "resolved"] = "open"
    created_at: UTCDateTime = Field(default_factory=utcnow)
    resolved_at: Optional[UTCDateTime] = None


class ProposedPeriod(BaseModel):
    """A period produced by expansion, not yet persisted."""
    rotation_id: str
    name: str
    start_utc: UTCDateTime
    end_utc: UTCDateTime
    template_id: Optional[str] = None


class PeriodWrite(BaseModel):
    """Outcome of a period create/update."""
    period: Period
    created: bool = True
    overlapping_period_ids: list[str] = Field(default_factory=list)


class ExpansionFailure(BaseModel):
    proposal: ProposedPeriod
    error: str
    retryable: bool = False


class ExpansionReport(BaseModel):
    """Per-period outcome of persisting an expansion."""
    created: list[Period] = Field(default_factory=list)
    existing: list[Period] = Field(default_factory=list)
    failed: list[ExpansionFailure] = Field(default_factory=list)
