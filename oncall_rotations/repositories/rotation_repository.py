# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Rotation and roster data access.
Encapsulates all read/write operations on the rotations in-memory store.
NO business rules here — pure CRUD.
"""

import threading
from typing import Optional

from oncall_rotations.models.domain import Rotation, RotationMember


class RotationRepository:
    """In-memory rotation storage."""

    def __init__(self) -> None:
        self._store: dict[str, Rotation] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def get(self, rotation_id: str) -> Optional[Rotation]:
        return self._store.get(rotation_id)

    def get_all(self, is_active: Optional[bool] = None) -> list[Rotation]:
        rotations = list(self._store.values())
        if is_active is not None:
            rotations = [r for r in rotations if r.is_active == is_active]
        return sorted(rotations, key=lambda r: (r.name.lower(), r.rotation_id))

    def exists(self, rotation_id: str) -> bool:
        return rotation_id in self._store

    def count(self, is_active: Optional[bool] = None) -> int:
        if is_active is None:
            return len(self._store)
        return sum(1 for r in self._store.values() if r.is_active == is_active)

    def referencing_user(self, user_id: str) -> list[Rotation]:
        return [
            r for r in self._store.values()
            if user_id in (r.default_primary_user_id, r.default_secondary_user_id)
        ]

    # ── Write ──

    def save(self, rotation: Rotation) -> Rotation:
        with self._lock:
            self._store[rotation.rotation_id] = rotation
        return rotation

    def delete(self, rotation_id: str) -> Optional[Rotation]:
        with self._lock:
            return self._store.pop(rotation_id, None)

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class RosterRepository:
    """In-memory rotation membership storage."""

    def __init__(self) -> None:
        self._store: dict[str, RotationMember] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def get(self, rotation_member_id: str) -> Optional[RotationMember]:
        return self._store.get(rotation_member_id)

    def get_for_rotation(self, rotation_id: str) -> list[RotationMember]:
        members = [m for m in self._store.values() if m.rotation_id == rotation_id]
        return sorted(members, key=lambda m: (m.sort_order, m.rotation_member_id))

    def find(self, rotation_id: str, user_id: str) -> Optional[RotationMember]:
        for member in self._store.values():
            if member.rotation_id == rotation_id and member.user_id == user_id:
                return member
        return None

    # ── Write ──

    def save(self, member: RotationMember) -> RotationMember:
        with self._lock:
            self._store[member.rotation_member_id] = member
        return member

    def delete(self, rotation_member_id: str) -> Optional[RotationMember]:
        with self._lock:
            return self._store.pop(rotation_member_id, None)

    def delete_by_rotation(self, rotation_id: str) -> int:
        with self._lock:
            doomed = [k for k, m in self._store.items() if m.rotation_id == rotation_id]
            for key in doomed:
                del self._store[key]
        return len(doomed)

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
