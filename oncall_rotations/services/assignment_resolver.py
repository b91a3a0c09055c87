# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Assignment resolution — pure computation, no side effects.
"""

from typing import Iterable, Optional

from oncall_rotations.models.domain import Assignment, Rotation


def resolve_assignments(
    assignments: Iterable[Assignment],
    rotation: Optional[Rotation],
) -> dict[str, Optional[str]]:
    """
    Return {"primary": user_id | None, "secondary": user_id | None}.

    An explicit assignment wins for the role it covers; a role without
    one inherits the rotation default. Neither ⇒ None (unassigned), which
    is a valid state, not an error.
    """
    explicit = {a.role: a.user_id for a in assignments}
    defaults = {
        "primary": rotation.default_primary_user_id if rotation else None,
        "secondary": rotation.default_secondary_user_id if rotation else None,
    }
    return {
        role: explicit.get(role, defaults[role])
        for role in ("primary", "secondary")
    }
