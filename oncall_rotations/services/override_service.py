# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Overrides — temporary substitution of one user for another.
Overrides are immutable once created; replace by delete + create.
"""

import uuid
from datetime import datetime
from typing import Optional

from oncall_rotations.core.errors import InvalidOverride, InvalidRange, NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import OVERRIDES_ACTIVE, OVERRIDES_CREATED
from oncall_rotations.models.domain import Override, to_utc
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.override_repository import OverrideRepository
from oncall_rotations.repositories.period_repository import PeriodRepository
from oncall_rotations.repositories.rotation_repository import RotationRepository
from oncall_rotations.repositories.user_repository import UserRepository

logger = get_logger(__name__)


class OverrideService:
    """Business logic for overrides."""

    def __init__(
        self,
        override_repo: OverrideRepository,
        period_repo: PeriodRepository,
        rotation_repo: RotationRepository,
        user_repo: UserRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self._overrides = override_repo
        self._periods = period_repo
        self._rotations = rotation_repo
        self._users = user_repo
        self._history = history_repo

    # ── Commands ──

    def create_override(
        self,
        original_user_id: str,
        replacement_user_id: str,
        start: datetime,
        end: datetime,
        period_id: Optional[str] = None,
        rotation_id: Optional[str] = None,
        reason: Optional[str] = None,
        actor: str = "system",
    ) -> Override:
        """Raises InvalidOverride / InvalidRange / NotFound."""
        if (period_id is None) == (rotation_id is None):
            raise InvalidOverride("Exactly one of period_id or rotation_id must be given")
        if original_user_id == replacement_user_id:
            raise InvalidOverride("Replacement user must differ from the original user")
        start, end = to_utc(start), to_utc(end)
        if start >= end:
            raise InvalidRange(
                f"Override start {start.isoformat()} must be before end {end.isoformat()}"
            )

        if period_id is not None:
            period = self._periods.get(period_id)
            if period is None:
                raise NotFound("Period", period_id)
            audit_rotation = period.rotation_id
        else:
            if not self._rotations.exists(rotation_id):
                raise NotFound("Rotation", rotation_id)
            audit_rotation = rotation_id
        for user_id in (original_user_id, replacement_user_id):
            if not self._users.exists(user_id):
                raise NotFound("User", user_id)

        override = self._overrides.save(
            Override(
                override_id=str(uuid.uuid4()),
                period_id=period_id,
                rotation_id=rotation_id,
                original_user_id=original_user_id,
                replacement_user_id=replacement_user_id,
                start_utc=start,
                end_utc=end,
                reason=reason,
                sequence=self._overrides.next_sequence(),
            )
        )
        scope = "period" if period_id else "rotation"
        OVERRIDES_CREATED.labels(scope=scope).inc()
        OVERRIDES_ACTIVE.set(self._overrides.count())
        self._history.record_event(
            "override_created",
            audit_rotation,
            {
                "override_id": override.override_id,
                "scope": scope,
                "original_user_id": original_user_id,
                "replacement_user_id": replacement_user_id,
                "start_utc": start.isoformat(),
                "end_utc": end.isoformat(),
                "reason": reason,
            },
            actor=actor,
        )
        logger.info(
            "Override created: scope=%s, %s -> %s, start=%s, end=%s",
            scope, original_user_id, replacement_user_id, start.isoformat(), end.isoformat(),
        )
        return override

    def delete_override(self, override_id: str, actor: str = "system") -> dict[str, str]:
        override = self._overrides.delete(override_id)
        if override is None:
            raise NotFound("Override", override_id)
        OVERRIDES_ACTIVE.set(self._overrides.count())
        rotation_id = override.rotation_id
        if rotation_id is None:
            period = self._periods.get(override.period_id)
            rotation_id = period.rotation_id if period else None
        self._history.record_event(
            "override_deleted", rotation_id, {"override_id": override_id}, actor=actor
        )
        logger.info("Override deleted: override=%s", override_id)
        return {"status": "deleted", "override_id": override_id}

    # ── Queries ──

    def get_override(self, override_id: str) -> Override:
        override = self._overrides.get(override_id)
        if override is None:
            raise NotFound("Override", override_id)
        return override

    def list_overrides(
        self,
        rotation_id: Optional[str] = None,
        period_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Override]:
        """
        `rotation_id` matches rotation-scoped overrides and those scoped to
        any period of that rotation.
        """
        if start is not None and end is not None:
            start, end = to_utc(start), to_utc(end)
            if start >= end:
                raise InvalidRange("Query window start must be before end")
        else:
            start = end = None
        overrides = self._overrides.find(period_id=period_id, start=start, end=end)
        if rotation_id is not None:
            overrides = [
                o for o in overrides
                if o.rotation_id == rotation_id
                or (o.period_id is not None and self._period_rotation(o.period_id) == rotation_id)
            ]
        return overrides

    def _period_rotation(self, period_id: str) -> Optional[str]:
        period = self._periods.get(period_id)
        return period.rotation_id if period else None
