# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Seed data so the service is usable immediately after start-up.
"""

from datetime import datetime, timezone

from oncall_rotations.core.logging import get_logger
from oncall_rotations.services.rotation_service import RotationService
from oncall_rotations.services.template_service import TemplateService
from oncall_rotations.services.user_service import UserService

logger = get_logger(__name__)

DEFAULT_USERS = [
    {"user_id": "alice", "display_name": "Alice Martin", "email": "alice@company.com"},
    {"user_id": "bob", "display_name": "Bob Dupont", "email": "bob@company.com"},
    {"user_id": "carol", "display_name": "Carol Chen", "email": "carol@company.com"},
    {"user_id": "david", "display_name": "David Kumar", "email": "david@company.com"},
]

DEFAULT_ROTATIONS = [
    {
        "rotation_id": "platform-engineering",
        "name": "Platform Engineering",
        "time_zone": "America/Chicago",
        "period_length_days": 7,
        "default_primary_user_id": "alice",
        "default_secondary_user_id": "carol",
        "members": ["alice", "bob", "carol"],
        # Business hours, Monday to Friday.
        "templates": [(day, "09:00", "17:00") for day in range(5)],
    },
    {
        "rotation_id": "backend",
        "name": "Backend",
        "time_zone": "Europe/Paris",
        "period_length_days": 7,
        "default_primary_user_id": "david",
        "default_secondary_user_id": "bob",
        "members": ["david", "bob"],
        "templates": [],
    },
]


def seed_defaults(
    user_service: UserService,
    rotation_service: RotationService,
    template_service: TemplateService,
) -> None:
    """Create default users, rotations, rosters and templates."""
    for user in DEFAULT_USERS:
        user_service.create_user(actor="seed", **user)

    anchor = datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc)
    for entry in DEFAULT_ROTATIONS:
        rotation_service.create_rotation(
            rotation_id=entry["rotation_id"],
            name=entry["name"],
            time_zone=entry["time_zone"],
            period_length_days=entry["period_length_days"],
            start_date_utc=anchor,
            default_primary_user_id=entry["default_primary_user_id"],
            default_secondary_user_id=entry["default_secondary_user_id"],
            actor="seed",
        )
        for user_id in entry["members"]:
            rotation_service.add_member(entry["rotation_id"], user_id, actor="seed")
        for day, start, end in entry["templates"]:
            template_service.create_template(
                entry["rotation_id"], day, start, end, name="Business Hours", actor="seed"
            )
    logger.info(
        "Seeded %d users and %d rotations", len(DEFAULT_USERS), len(DEFAULT_ROTATIONS)
    )
