# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.
"""

from oncall_rotations.repositories.assignment_repository import AssignmentRepository
from oncall_rotations.repositories.global_settings_repository import GlobalSettingsRepository
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.incident_repository import IncidentRepository
from oncall_rotations.repositories.override_repository import OverrideRepository
from oncall_rotations.repositories.period_repository import PeriodRepository
from oncall_rotations.repositories.rotation_repository import RosterRepository, RotationRepository
from oncall_rotations.repositories.template_repository import TemplateRepository
from oncall_rotations.repositories.user_repository import UserRepository
from oncall_rotations.services.assignment_service import AssignmentService
from oncall_rotations.services.calendar_sync_client import CalendarSyncClient
from oncall_rotations.services.calendar_sync_service import CalendarSyncService
from oncall_rotations.services.effective_schedule import EffectiveScheduleBuilder
from oncall_rotations.services.event_client import IncidentEventClient
from oncall_rotations.services.expansion_service import ExpansionService
from oncall_rotations.services.global_settings_service import GlobalSettingsService
from oncall_rotations.services.incident_router import IncidentRouter
from oncall_rotations.services.incident_service import IncidentService
from oncall_rotations.services.override_service import OverrideService
from oncall_rotations.services.period_service import PeriodService
from oncall_rotations.services.rotation_service import RotationService
from oncall_rotations.services.template_service import TemplateService
from oncall_rotations.services.user_service import UserService

# ── Singleton repository instances (in-memory stores) ──
_user_repo = UserRepository()
_rotation_repo = RotationRepository()
_roster_repo = RosterRepository()
_template_repo = TemplateRepository()
_period_repo = PeriodRepository()
_assignment_repo = AssignmentRepository()
_override_repo = OverrideRepository()
_incident_repo = IncidentRepository()
_history_repo = HistoryRepository()
_settings_repo = GlobalSettingsRepository()

# ── Outbound collaborators ──
_calendar_client = CalendarSyncClient()
_event_client = IncidentEventClient()

# ── Service instances (with injected dependencies) ──
_user_service = UserService(user_repo=_user_repo, history_repo=_history_repo)
_global_settings_service = GlobalSettingsService(settings_repo=_settings_repo, history_repo=_history_repo)
_period_service = PeriodService(
    rotation_repo=_rotation_repo,
    period_repo=_period_repo,
    assignment_repo=_assignment_repo,
    override_repo=_override_repo,
    history_repo=_history_repo,
)
_rotation_service = RotationService(
    rotation_repo=_rotation_repo,
    roster_repo=_roster_repo,
    template_repo=_template_repo,
    period_repo=_period_repo,
    override_repo=_override_repo,
    user_repo=_user_repo,
    history_repo=_history_repo,
    period_service=_period_service,
    settings_repo=_settings_repo,
)
_template_service = TemplateService(
    template_repo=_template_repo,
    rotation_repo=_rotation_repo,
    history_repo=_history_repo,
)
_expansion_service = ExpansionService(
    rotation_repo=_rotation_repo,
    template_repo=_template_repo,
    history_repo=_history_repo,
    period_service=_period_service,
)
_assignment_service = AssignmentService(
    assignment_repo=_assignment_repo,
    period_repo=_period_repo,
    rotation_repo=_rotation_repo,
    roster_repo=_roster_repo,
    user_repo=_user_repo,
    history_repo=_history_repo,
)
_override_service = OverrideService(
    override_repo=_override_repo,
    period_repo=_period_repo,
    rotation_repo=_rotation_repo,
    user_repo=_user_repo,
    history_repo=_history_repo,
)
_schedule_builder = EffectiveScheduleBuilder(
    rotation_repo=_rotation_repo,
    period_repo=_period_repo,
    assignment_repo=_assignment_repo,
    override_repo=_override_repo,
)
_incident_router = IncidentRouter(_schedule_builder)
_incident_service = IncidentService(
    incident_repo=_incident_repo,
    rotation_repo=_rotation_repo,
    user_repo=_user_repo,
    history_repo=_history_repo,
    router=_incident_router,
    event_client=_event_client,
)
_calendar_sync_service = CalendarSyncService(
    rotation_repo=_rotation_repo,
    period_repo=_period_repo,
    history_repo=_history_repo,
    period_service=_period_service,
    client=_calendar_client,
)

ALL_REPOSITORIES = (
    _user_repo, _rotation_repo, _roster_repo, _template_repo, _period_repo,
    _assignment_repo, _override_repo, _incident_repo, _history_repo, _settings_repo,
)


# ── FastAPI dependency functions ──
def get_user_service() -> UserService:
    return _user_service


def get_global_settings_service() -> GlobalSettingsService:
    return _global_settings_service


def get_rotation_service() -> RotationService:
    return _rotation_service


def get_template_service() -> TemplateService:
    return _template_service


def get_period_service() -> PeriodService:
    return _period_service


def get_expansion_service() -> ExpansionService:
    return _expansion_service


def get_assignment_service() -> AssignmentService:
    return _assignment_service


def get_override_service() -> OverrideService:
    return _override_service


def get_schedule_builder() -> EffectiveScheduleBuilder:
    return _schedule_builder


def get_incident_router() -> IncidentRouter:
    return _incident_router


def get_incident_service() -> IncidentService:
    return _incident_service


def get_calendar_sync_service() -> CalendarSyncService:
    return _calendar_sync_service


def get_rotation_repo() -> RotationRepository:
    return _rotation_repo


def get_period_repo() -> PeriodRepository:
    return _period_repo


def get_history_repo() -> HistoryRepository:
    return _history_repo


def reset_state() -> None:
    """Empty every in-memory store (tests, re-seeding)."""
    for repo in ALL_REPOSITORIES:
        repo.clear()
