# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Effective schedule — periods + assignments + overrides flattened
into one row per period.

Rules:
  * every period overlapping the window yields its own row, overlapping
    periods of one rotation are NOT deduplicated;
  * row boundaries are the period's own, never clipped to the window;
  * an override replaces a role only when its original user is the
    role's resolved (pre-override) user; when several match one role,
    the most recently created override wins;
  * rows are ordered by (start, rotation id, period id).
"""

from datetime import datetime
from typing import Iterable, Optional

from oncall_rotations.core.errors import NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import EFFECTIVE_BUILDS
from oncall_rotations.models.domain import EffectiveRow, Override, Period
from oncall_rotations.repositories.assignment_repository import AssignmentRepository
from oncall_rotations.repositories.override_repository import OverrideRepository
from oncall_rotations.repositories.period_repository import PeriodRepository
from oncall_rotations.repositories.rotation_repository import RotationRepository
from oncall_rotations.services.assignment_resolver import resolve_assignments
from oncall_rotations.services.template_expander import check_window

logger = get_logger(__name__)


def _describe(role: str, override: Override, period: Period) -> str:
    note = f"{role}: {override.original_user_id} -> {override.replacement_user_id}"
    if override.start_utc > period.start_utc or override.end_utc < period.end_utc:
        note += (
            f" from {override.start_utc.isoformat()}"
            f" until {override.end_utc.isoformat()}"
        )
    if override.reason:
        note += f" ({override.reason})"
    return note


def merge_overrides(
    period: Period,
    base: dict[str, Optional[str]],
    overrides: Iterable[Override],
) -> EffectiveRow:
    """Apply intersecting overrides to a period's resolved responders."""
    resolved = dict(base)
    notes: list[str] = []
    candidates = list(overrides)
    for role in ("primary", "secondary"):
        current = base.get(role)
        if current is None:
            continue
        matching = [o for o in candidates if o.original_user_id == current]
        if not matching:
            continue
        winner = max(matching, key=lambda o: o.sequence)
        resolved[role] = winner.replacement_user_id
        notes.append(_describe(role, winner, period))

    return EffectiveRow(
        period_id=period.period_id,
        rotation_id=period.rotation_id,
        period_name=period.name,
        start_utc=period.start_utc,
        end_utc=period.end_utc,
        primary_user_id=resolved.get("primary"),
        secondary_user_id=resolved.get("secondary"),
        overridden=bool(notes),
        notes="; ".join(notes) or None,
    )


class EffectiveScheduleBuilder:
    """Read-only view over a snapshot of periods, assignments and overrides."""

    def __init__(
        self,
        rotation_repo: RotationRepository,
        period_repo: PeriodRepository,
        assignment_repo: AssignmentRepository,
        override_repo: OverrideRepository,
    ) -> None:
        self._rotations = rotation_repo
        self._periods = period_repo
        self._assignments = assignment_repo
        self._overrides = override_repo

    def row_for(self, period: Period) -> EffectiveRow:
        rotation = self._rotations.get(period.rotation_id)
        base = resolve_assignments(
            self._assignments.get_for_period(period.period_id), rotation
        )
        return merge_overrides(period, base, self._overrides.find_applicable(period))

    def build(
        self,
        rotation_id: Optional[str],
        window_start: datetime,
        window_end: datetime,
        user_id: Optional[str] = None,
    ) -> list[EffectiveRow]:
        """Effective rows for every period overlapping the window.

        `rotation_id=None` spans all rotations. `user_id` keeps only rows
        where that user ends up primary or secondary.
        """
        check_window(window_start, window_end)
        if rotation_id is not None and not self._rotations.exists(rotation_id):
            raise NotFound("Rotation", rotation_id)

        EFFECTIVE_BUILDS.inc()
        rows = [
            self.row_for(period)
            for period in self._periods.find_overlapping(
                window_start, window_end, rotation_id
            )
        ]
        if user_id is not None:
            rows = [
                r for r in rows
                if user_id in (r.primary_user_id, r.secondary_user_id)
            ]
        rows.sort(key=lambda r: (r.start_utc, r.rotation_id, r.period_id))
        logger.debug(
            "Effective schedule built: rotation=%s, rows=%d", rotation_id, len(rows)
        )
        return rows
