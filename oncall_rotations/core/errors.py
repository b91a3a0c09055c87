# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Error taxonomy for the scheduling core.
Services raise these; main.py maps them to HTTP responses.
"""


class SchedulingError(Exception):
    """Base class for every error the core reports to its callers."""

    code: str = "scheduling_error"
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRange(SchedulingError):
    """start >= end on a period, override or query window."""

    code = "invalid_range"
    status_code = 400


class InvalidTemplate(SchedulingError):
    """Malformed time-of-day, weekday, time zone or name pattern."""

    code = "invalid_template"
    status_code = 422


class PeriodLocked(SchedulingError):
    code = "period_locked"
    status_code = 409

    def __init__(self, period_id: str) -> None:
        super().__init__(
            f"Period '{period_id}' is locked; unlock it before changing its boundaries"
        )
        self.period_id = period_id


class NotFound(SchedulingError):
    code = "not_found"
    status_code = 404

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} '{identifier}' not found")
        self.kind = kind
        self.identifier = identifier


class DuplicateEntity(SchedulingError):
    code = "duplicate"
    status_code = 409


class ExpansionCancelled(SchedulingError):
    """Caller cancelled an expansion before anything was persisted."""

    code = "expansion_cancelled"
    status_code = 409


class DownstreamUnavailable(SchedulingError):
    """Storage or sync collaborator failed or timed out. Safe to retry."""

    code = "downstream_unavailable"
    status_code = 503
    retryable = True


class InvalidOverride(SchedulingError):
    """Override scope or users are inconsistent."""

    code = "invalid_override"
    status_code = 422
