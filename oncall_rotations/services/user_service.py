# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: User directory — the people rotations point at.
"""

import uuid
from typing import Any, Optional

from oncall_rotations.core.errors import DuplicateEntity, NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.models.domain import User
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.user_repository import UserRepository
from oncall_rotations.services.zoned_time import load_zone

logger = get_logger(__name__)


class UserService:
    """Business logic for users."""

    def __init__(self, user_repo: UserRepository, history_repo: HistoryRepository) -> None:
        self._users = user_repo
        self._history = history_repo

    # ── Queries ──

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFound("User", user_id)
        return user

    def list_users(self, is_active: Optional[bool] = None, q: Optional[str] = None) -> list[User]:
        """`q` is a case-insensitive substring of display name, email or UPN."""
        return self._users.get_all(is_active=is_active, q=q)

    # ── Commands ──

    def create_user(
        self,
        display_name: str,
        email: str,
        upn: Optional[str] = None,
        time_zone: Optional[str] = None,
        is_active: bool = True,
        user_id: Optional[str] = None,
        actor: str = "system",
    ) -> User:
        """Raises DuplicateEntity if the email (or explicit id) is taken."""
        if self._users.get_by_email(email) is not None:
            raise DuplicateEntity(f"A user with email '{email}' already exists")
        if user_id and self._users.exists(user_id):
            raise DuplicateEntity(f"User '{user_id}' already exists")
        if time_zone:
            load_zone(time_zone)

        user = self._users.save(
            User(
                user_id=user_id or str(uuid.uuid4()),
                display_name=display_name,
                email=email.strip(),
                upn=upn,
                time_zone=time_zone,
                is_active=is_active,
            )
        )
        self._history.record_event(
            "user_created", None, {"user_id": user.user_id, "email": user.email}, actor=actor
        )
        logger.info("User created: user=%s", user.user_id)
        return user

    def update_user(self, user_id: str, changes: dict[str, Any], actor: str = "system") -> User:
        user = self.get_user(user_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        email = changes.get("email")
        if email:
            other = self._users.get_by_email(email)
            if other is not None and other.user_id != user_id:
                raise DuplicateEntity(f"A user with email '{email}' already exists")
        if changes.get("time_zone"):
            load_zone(changes["time_zone"])
        if not changes:
            return user

        updated = self._users.save(user.model_copy(update=changes))
        self._history.record_event(
            "user_updated", None, {"user_id": user_id, "fields": sorted(changes)}, actor=actor
        )
        logger.info("User updated: user=%s, fields=%s", user_id, sorted(changes))
        return updated

    def set_active(self, user_id: str, is_active: bool, actor: str = "system") -> User:
        user = self.get_user(user_id)
        if user.is_active == is_active:
            return user
        updated = self._users.save(user.model_copy(update={"is_active": is_active}))
        event = "user_activated" if is_active else "user_deactivated"
        self._history.record_event(event, None, {"user_id": user_id}, actor=actor)
        logger.info("User %s: user=%s", event.split("_")[1], user_id)
        return updated

    def require_exists(self, user_id: str) -> None:
        if not self._users.exists(user_id):
            raise NotFound("User", user_id)
