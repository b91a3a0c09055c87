# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: User data access.
NO business rules here — pure CRUD.
"""

import threading
from typing import Optional

from oncall_rotations.models.domain import User


class UserRepository:
    """In-memory user storage."""

    def __init__(self) -> None:
        self._store: dict[str, User] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def get(self, user_id: str) -> Optional[User]:
        return self._store.get(user_id)

    def get_all(self, is_active: Optional[bool] = None, q: Optional[str] = None) -> list[User]:
        users = list(self._store.values())
        if is_active is not None:
            users = [u for u in users if u.is_active == is_active]
        needle = (q or "").strip().lower()
        if needle:
            users = [
                u for u in users
                if any(needle in (field or "").lower() for field in (u.display_name, u.email, u.upn))
            ]
        return sorted(users, key=lambda u: u.display_name.lower())

    def get_by_email(self, email: str) -> Optional[User]:
        needle = email.strip().lower()
        for user in self._store.values():
            if user.email.lower() == needle:
                return user
        return None

    def exists(self, user_id: str) -> bool:
        return user_id in self._store

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def save(self, user: User) -> User:
        with self._lock:
            self._store[user.user_id] = user
        return user

    def delete(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._store.pop(user_id, None)

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
