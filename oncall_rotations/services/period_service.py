# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Period store and lock guard.
The single authority allowed to create, move, resize or delete a period.
Every check runs before the write; a rejected edit leaves the stored
period exactly as it was.
"""

import uuid
from datetime import datetime
from typing import Iterable, Optional

from oncall_rotations.core.config import settings
from oncall_rotations.core.errors import InvalidRange, NotFound, PeriodLocked, SchedulingError
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import (
    PERIODS_CREATED,
    PERIOD_LOCK_REJECTIONS,
    PERIOD_OVERLAPS,
)
from oncall_rotations.models.domain import (
    ExpansionFailure,
    ExpansionReport,
    Period,
    PeriodWrite,
    ProposedPeriod,
    to_utc,
)
from oncall_rotations.repositories.assignment_repository import AssignmentRepository
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.override_repository import OverrideRepository
from oncall_rotations.repositories.period_repository import PeriodRepository
from oncall_rotations.repositories.rotation_repository import RotationRepository

logger = get_logger(__name__)


def _check_range(start: datetime, end: datetime) -> None:
    if start >= end:
        raise InvalidRange(
            f"Period start {start.isoformat()} must be before end {end.isoformat()}"
        )


class PeriodService:
    """Business logic for coverage periods."""

    def __init__(
        self,
        rotation_repo: RotationRepository,
        period_repo: PeriodRepository,
        assignment_repo: AssignmentRepository,
        override_repo: OverrideRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self._rotations = rotation_repo
        self._periods = period_repo
        self._assignments = assignment_repo
        self._overrides = override_repo
        self._history = history_repo

    # ── Queries ──

    def get_period(self, period_id: str) -> Period:
        period = self._periods.get(period_id)
        if period is None:
            raise NotFound("Period", period_id)
        return period

    def list_periods(
        self,
        rotation_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Period]:
        if start is not None and end is not None:
            _check_range(to_utc(start), to_utc(end))
            return self._periods.find_overlapping(to_utc(start), to_utc(end), rotation_id)
        return self._periods.get_all(rotation_id)

    def find_overlaps(self, period: Period) -> list[str]:
        """Ids of other periods in the same rotation that intersect `period`."""
        return [
            p.period_id
            for p in self._periods.find_overlapping(
                period.start_utc, period.end_utc, period.rotation_id
            )
            if p.period_id != period.period_id
        ]

    # ── Commands ──

    def create_period(
        self,
        rotation_id: str,
        name: str,
        start: datetime,
        end: datetime,
        is_locked: bool = False,
        actor: str = "system",
        source: str = "manual",
    ) -> PeriodWrite:
        """
        Create a period. Re-submitting the same (rotation, start, end, name)
        returns the stored period with `created=False` instead of a duplicate.
        Raises NotFound / InvalidRange / DownstreamUnavailable.
        """
        if not self._rotations.exists(rotation_id):
            raise NotFound("Rotation", rotation_id)
        start, end = to_utc(start), to_utc(end)
        _check_range(start, end)

        candidate = Period(
            period_id=str(uuid.uuid4()),
            rotation_id=rotation_id,
            name=name,
            start_utc=start,
            end_utc=end,
            is_locked=is_locked,
        )
        period, created = self._periods.insert(candidate, timeout=settings.STORAGE_TIMEOUT)
        if not created:
            logger.info(
                "Period already exists: rotation=%s, period=%s, name=%s",
                rotation_id, period.period_id, name,
            )
            return PeriodWrite(period=period, created=False)

        PERIODS_CREATED.labels(source=source).inc()
        self._history.record_event(
            "period_created",
            rotation_id,
            {
                "period_id": period.period_id,
                "name": name,
                "start_utc": start.isoformat(),
                "end_utc": end.isoformat(),
                "source": source,
            },
            actor=actor,
        )
        logger.info(
            "Period created: rotation=%s, period=%s, start=%s, end=%s",
            rotation_id, period.period_id, start.isoformat(), end.isoformat(),
        )
        return PeriodWrite(period=period, overlapping_period_ids=self._flag_overlaps(period, actor))

    def update_period(
        self,
        period_id: str,
        name: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        is_locked: Optional[bool] = None,
        actor: str = "system",
    ) -> PeriodWrite:
        """
        Partial update. Changing start/end of a locked period raises
        PeriodLocked, judged against the lock state *before* this call,
        so unlock-and-move needs two calls. Renames and lock toggles are
        always allowed.
        """
        with self._periods.row_lock(period_id, settings.STORAGE_TIMEOUT):
            period = self.get_period(period_id)
            new_start = to_utc(start) if start is not None else period.start_utc
            new_end = to_utc(end) if end is not None else period.end_utc
            moving = new_start != period.start_utc or new_end != period.end_utc

            if moving and period.is_locked:
                PERIOD_LOCK_REJECTIONS.inc()
                logger.warning(
                    "Rejected boundary change on locked period=%s by %s", period_id, actor
                )
                raise PeriodLocked(period_id)
            _check_range(new_start, new_end)

            changes: dict = {}
            if moving:
                changes["start_utc"] = new_start
                changes["end_utc"] = new_end
            if name is not None and name != period.name:
                changes["name"] = name
            if is_locked is not None and is_locked != period.is_locked:
                changes["is_locked"] = is_locked
            if not changes:
                return PeriodWrite(period=period, created=False)

            saved = self._periods.save(period.model_copy(update=changes))

        self._history.record_event(
            "period_updated",
            saved.rotation_id,
            {
                "period_id": period_id,
                "changes": {
                    k: (v.isoformat() if isinstance(v, datetime) else v)
                    for k, v in changes.items()
                },
            },
            actor=actor,
        )
        logger.info("Period updated: period=%s, fields=%s", period_id, sorted(changes))
        overlaps = self._flag_overlaps(saved, actor) if moving else self.find_overlaps(saved)
        return PeriodWrite(period=saved, created=False, overlapping_period_ids=overlaps)

    def move_period(
        self, period_id: str, new_start: datetime, new_end: datetime, actor: str = "system"
    ) -> PeriodWrite:
        return self.update_period(period_id, start=new_start, end=new_end, actor=actor)

    def rename_period(self, period_id: str, name: str, actor: str = "system") -> PeriodWrite:
        return self.update_period(period_id, name=name, actor=actor)

    def lock_period(self, period_id: str, actor: str = "system") -> PeriodWrite:
        return self.update_period(period_id, is_locked=True, actor=actor)

    def unlock_period(self, period_id: str, actor: str = "system") -> PeriodWrite:
        return self.update_period(period_id, is_locked=False, actor=actor)

    def set_calendar_event_id(self, period_id: str, calendar_event_id: str) -> Period:
        """Record the external calendar reference; allowed while locked."""
        with self._periods.row_lock(period_id, settings.STORAGE_TIMEOUT):
            period = self.get_period(period_id)
            if period.calendar_event_id == calendar_event_id:
                return period
            return self._periods.save(
                period.model_copy(update={"calendar_event_id": calendar_event_id})
            )

    def delete_period(self, period_id: str, actor: str = "system") -> dict[str, str]:
        """Delete a period with its assignments and period-scoped overrides.
        Rotation-scoped overrides are left alone."""
        with self._periods.row_lock(period_id, settings.STORAGE_TIMEOUT):
            period = self.get_period(period_id)
            assignments_removed = self._assignments.delete_by_period(period_id)
            overrides_removed = self._overrides.delete_by_period(period_id)
            self._periods.delete(period_id)

        self._history.record_event(
            "period_deleted",
            period.rotation_id,
            {
                "period_id": period_id,
                "assignments_removed": assignments_removed,
                "overrides_removed": overrides_removed,
            },
            actor=actor,
        )
        logger.info(
            "Period deleted: period=%s, assignments=%d, overrides=%d",
            period_id, assignments_removed, overrides_removed,
        )
        return {"status": "deleted", "period_id": period_id}

    def persist_proposals(
        self,
        proposals: Iterable[ProposedPeriod],
        actor: str = "system",
        source: str = "expansion",
    ) -> ExpansionReport:
        """
        Create each proposed period independently. Natural-key matches are
        reported as `existing`; a failure on one proposal is reported and
        does not stop the rest, so the caller learns exactly what stuck.
        """
        report = ExpansionReport()
        for proposal in proposals:
            try:
                write = self.create_period(
                    rotation_id=proposal.rotation_id,
                    name=proposal.name,
                    start=proposal.start_utc,
                    end=proposal.end_utc,
                    actor=actor,
                    source=source,
                )
            except SchedulingError as exc:
                logger.warning(
                    "Proposed period not persisted: rotation=%s, start=%s, error=%s",
                    proposal.rotation_id, proposal.start_utc.isoformat(), exc.message,
                )
                report.failed.append(
                    ExpansionFailure(proposal=proposal, error=exc.message, retryable=exc.retryable)
                )
                continue
            if write.created:
                report.created.append(write.period)
            else:
                report.existing.append(write.period)
        return report

    # ── Internal ──

    def _flag_overlaps(self, period: Period, actor: str) -> list[str]:
        """Overlap is permitted but surfaced for review, never silently assumed."""
        overlaps = self.find_overlaps(period)
        if overlaps:
            PERIOD_OVERLAPS.inc()
            self._history.record_event(
                "period_overlap_detected",
                period.rotation_id,
                {"period_id": period.period_id, "overlapping_period_ids": overlaps},
                actor=actor,
            )
            logger.warning(
                "Period %s overlaps %d period(s) in rotation=%s",
                period.period_id, len(overlaps), period.rotation_id,
            )
        return overlaps
