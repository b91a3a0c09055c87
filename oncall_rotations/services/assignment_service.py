# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Explicit per-period assignments and their resolution.
"""

import uuid
from typing import Optional

from oncall_rotations.core.errors import NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.models.domain import Assignment, Period
from oncall_rotations.repositories.assignment_repository import AssignmentRepository
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.period_repository import PeriodRepository
from oncall_rotations.repositories.rotation_repository import RosterRepository, RotationRepository
from oncall_rotations.repositories.user_repository import UserRepository
from oncall_rotations.services.assignment_resolver import resolve_assignments

logger = get_logger(__name__)


class AssignmentService:
    """Business logic for primary/secondary assignments."""

    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        period_repo: PeriodRepository,
        rotation_repo: RotationRepository,
        roster_repo: RosterRepository,
        user_repo: UserRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self._assignments = assignment_repo
        self._periods = period_repo
        self._rotations = rotation_repo
        self._roster = roster_repo
        self._users = user_repo
        self._history = history_repo

    def _require_period(self, period_id: str) -> Period:
        period = self._periods.get(period_id)
        if period is None:
            raise NotFound("Period", period_id)
        return period

    def list_assignments(self, period_id: str) -> list[Assignment]:
        self._require_period(period_id)
        return self._assignments.get_for_period(period_id)

    def resolve(self, period_id: str) -> dict[str, Optional[str]]:
        period = self._require_period(period_id)
        return resolve_assignments(
            self._assignments.get_for_period(period_id),
            self._rotations.get(period.rotation_id),
        )

    def set_assignment(
        self, period_id: str, role: str, user_id: str, actor: str = "system"
    ) -> Assignment:
        """
        Upsert the assignment for (period, role). The user must exist; roster
        membership is NOT enforced, only logged when missing.
        """
        period = self._require_period(period_id)
        if not self._users.exists(user_id):
            raise NotFound("User", user_id)

        member = self._roster.find(period.rotation_id, user_id)
        if member is None or not member.is_active:
            logger.info(
                "Assigning non-member: rotation=%s, period=%s, user=%s",
                period.rotation_id, period_id, user_id,
            )

        existing = self._assignments.get(period_id, role)
        assignment = self._assignments.save(
            Assignment(
                assignment_id=existing.assignment_id if existing else str(uuid.uuid4()),
                period_id=period_id,
                user_id=user_id,
                role=role,
            )
        )
        self._history.record_event(
            "assignment_set",
            period.rotation_id,
            {
                "period_id": period_id,
                "role": role,
                "user_id": user_id,
                "previous_user_id": existing.user_id if existing else None,
            },
            actor=actor,
        )
        logger.info("Assignment set: period=%s, role=%s, user=%s", period_id, role, user_id)
        return assignment

    def clear_assignment(self, period_id: str, role: str, actor: str = "system") -> dict[str, str]:
        """Drop the explicit assignment so the role falls back to the rotation default."""
        period = self._require_period(period_id)
        removed = self._assignments.delete(period_id, role)
        if removed is None:
            raise NotFound("Assignment", f"{period_id}/{role}")
        self._history.record_event(
            "assignment_cleared",
            period.rotation_id,
            {"period_id": period_id, "role": role, "user_id": removed.user_id},
            actor=actor,
        )
        logger.info("Assignment cleared: period=%s, role=%s", period_id, role)
        return {"status": "cleared", "period_id": period_id, "role": role}
