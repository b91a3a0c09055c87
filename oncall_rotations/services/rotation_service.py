# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation management — CRUD, roster and cascading delete.
Coordinates repository writes with metrics, history, and validation.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from oncall_rotations.core.errors import DuplicateEntity, NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import ACTIVE_ROTATIONS, OVERRIDES_ACTIVE
from oncall_rotations.models.domain import Rotation, RotationMember, to_utc
from oncall_rotations.repositories.global_settings_repository import GlobalSettingsRepository
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.override_repository import OverrideRepository
from oncall_rotations.repositories.period_repository import PeriodRepository
from oncall_rotations.repositories.rotation_repository import RosterRepository, RotationRepository
from oncall_rotations.repositories.template_repository import TemplateRepository
from oncall_rotations.repositories.user_repository import UserRepository
from oncall_rotations.services.period_service import PeriodService
from oncall_rotations.services.zoned_time import load_zone

logger = get_logger(__name__)


class RotationService:
    """Business logic for rotations and their rosters."""

    def __init__(
        self,
        rotation_repo: RotationRepository,
        roster_repo: RosterRepository,
        template_repo: TemplateRepository,
        period_repo: PeriodRepository,
        override_repo: OverrideRepository,
        user_repo: UserRepository,
        history_repo: HistoryRepository,
        period_service: PeriodService,
        settings_repo: GlobalSettingsRepository,
    ) -> None:
        self._rotations = rotation_repo
        self._roster = roster_repo
        self._templates = template_repo
        self._periods = period_repo
        self._overrides = override_repo
        self._users = user_repo
        self._history = history_repo
        self._period_service = period_service
        self._settings = settings_repo

    # ── Queries ──

    def get_rotation(self, rotation_id: str) -> Rotation:
        rotation = self._rotations.get(rotation_id)
        if rotation is None:
            raise NotFound("Rotation", rotation_id)
        return rotation

    def list_rotations(self, is_active: Optional[bool] = None) -> list[Rotation]:
        return self._rotations.get_all(is_active=is_active)

    # ── Commands ──

    def create_rotation(
        self,
        name: str,
        time_zone: Optional[str] = None,
        period_length_days: int = 7,
        start_date_utc: Optional[datetime] = None,
        description: Optional[str] = None,
        is_active: bool = True,
        default_primary_user_id: Optional[str] = None,
        default_secondary_user_id: Optional[str] = None,
        rotation_id: Optional[str] = None,
        actor: str = "system",
    ) -> Rotation:
        """
        Without a zone, the stored global default applies.
        Raises InvalidTemplate (bad zone), NotFound (unknown default user).
        """
        zone = time_zone or self._settings.get().default_time_zone
        load_zone(zone)
        self._check_defaults(default_primary_user_id, default_secondary_user_id)
        if rotation_id and self._rotations.exists(rotation_id):
            raise DuplicateEntity(f"Rotation '{rotation_id}' already exists")

        rotation = self._rotations.save(
            Rotation(
                rotation_id=rotation_id or str(uuid.uuid4()),
                name=name,
                description=description,
                time_zone=zone,
                period_length_days=period_length_days,
                start_date_utc=to_utc(start_date_utc or datetime.now(timezone.utc)),
                is_active=is_active,
                default_primary_user_id=default_primary_user_id,
                default_secondary_user_id=default_secondary_user_id,
            )
        )
        ACTIVE_ROTATIONS.set(self._rotations.count(is_active=True))
        self._history.record_event(
            "rotation_created",
            rotation.rotation_id,
            {"name": name, "time_zone": zone, "period_length_days": period_length_days},
            actor=actor,
        )
        logger.info("Rotation created: rotation=%s, name=%s", rotation.rotation_id, name)
        return rotation

    def update_rotation(
        self, rotation_id: str, changes: dict[str, Any], actor: str = "system"
    ) -> Rotation:
        """Partial update. Keys present with value None clear nullable fields."""
        rotation = self.get_rotation(rotation_id)
        nullable = {"description", "default_primary_user_id", "default_secondary_user_id"}
        changes = {k: v for k, v in changes.items() if v is not None or k in nullable}

        if changes.get("time_zone"):
            load_zone(changes["time_zone"])
        elif "time_zone" in changes:
            del changes["time_zone"]
        if "start_date_utc" in changes:
            changes["start_date_utc"] = to_utc(changes["start_date_utc"])
        self._check_defaults(
            changes.get("default_primary_user_id"),
            changes.get("default_secondary_user_id"),
        )
        if not changes:
            return rotation

        changes["updated_at"] = datetime.now(timezone.utc)
        updated = self._rotations.save(rotation.model_copy(update=changes))
        ACTIVE_ROTATIONS.set(self._rotations.count(is_active=True))
        self._history.record_event(
            "rotation_updated",
            rotation_id,
            {"fields": sorted(k for k in changes if k != "updated_at")},
            actor=actor,
        )
        logger.info("Rotation updated: rotation=%s, fields=%s", rotation_id, sorted(changes))
        return updated

    def delete_rotation(self, rotation_id: str, actor: str = "system") -> dict[str, Any]:
        """Delete a rotation with its templates, periods, overrides and roster."""
        self.get_rotation(rotation_id)

        periods = self._periods.get_all(rotation_id)
        for period in periods:
            self._period_service.delete_period(period.period_id, actor=actor)
        templates_removed = self._templates.delete_by_rotation(rotation_id)
        overrides_removed = self._overrides.delete_by_rotation(rotation_id)
        members_removed = self._roster.delete_by_rotation(rotation_id)
        self._rotations.delete(rotation_id)

        ACTIVE_ROTATIONS.set(self._rotations.count(is_active=True))
        OVERRIDES_ACTIVE.set(self._overrides.count())
        self._history.record_event(
            "rotation_deleted",
            rotation_id,
            {
                "periods_removed": len(periods),
                "templates_removed": templates_removed,
                "overrides_removed": overrides_removed,
                "members_removed": members_removed,
            },
            actor=actor,
        )
        logger.info("Rotation deleted: rotation=%s", rotation_id)
        return {"status": "deleted", "rotation_id": rotation_id}

    # ── Roster ──

    def list_members(self, rotation_id: str) -> list[RotationMember]:
        self.get_rotation(rotation_id)
        return self._roster.get_for_rotation(rotation_id)

    def add_member(
        self,
        rotation_id: str,
        user_id: str,
        sort_order: Optional[int] = None,
        is_active: bool = True,
        actor: str = "system",
    ) -> RotationMember:
        """Add (or re-activate) a roster entry. Membership is advisory."""
        self.get_rotation(rotation_id)
        if not self._users.exists(user_id):
            raise NotFound("User", user_id)

        existing = self._roster.find(rotation_id, user_id)
        if sort_order is None:
            current = self._roster.get_for_rotation(rotation_id)
            sort_order = existing.sort_order if existing else len(current)
        member = RotationMember(
            rotation_member_id=existing.rotation_member_id if existing else str(uuid.uuid4()),
            rotation_id=rotation_id,
            user_id=user_id,
            sort_order=sort_order,
            is_active=is_active,
        )
        self._roster.save(member)
        self._history.record_event(
            "member_added", rotation_id, {"user_id": user_id, "sort_order": sort_order}, actor=actor
        )
        logger.info("Roster member saved: rotation=%s, user=%s", rotation_id, user_id)
        return member

    def remove_member(self, rotation_id: str, rotation_member_id: str, actor: str = "system") -> dict[str, str]:
        member = self._roster.get(rotation_member_id)
        if member is None or member.rotation_id != rotation_id:
            raise NotFound("RotationMember", rotation_member_id)
        self._roster.delete(rotation_member_id)
        self._history.record_event(
            "member_removed", rotation_id, {"user_id": member.user_id}, actor=actor
        )
        logger.info("Roster member removed: rotation=%s, user=%s", rotation_id, member.user_id)
        return {"status": "removed", "rotation_member_id": rotation_member_id}

    # ── Internal ──

    def _check_defaults(self, *user_ids: Optional[str]) -> None:
        for user_id in user_ids:
            if user_id is not None and not self._users.exists(user_id):
                raise NotFound("User", user_id)

    # ── Stats helpers ──

    def get_stats(self) -> dict[str, Any]:
        """Aggregated operational statistics."""
        return {
            "total_rotations": self._rotations.count(),
            "active_rotations": self._rotations.count(is_active=True),
            "total_templates": self._templates.count(),
            "total_periods": self._periods.count(),
            "locked_periods": self._periods.count(is_locked=True),
            "total_overrides": self._overrides.count(),
            "total_users": self._users.count(),
            "total_history_events": self._history.count(),
            "event_types": self._history.count_by_type(),
        }
