# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Incidents — creation with on-call routing, resolution, listing.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from oncall_rotations.core.errors import NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.models.domain import Incident
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.incident_repository import IncidentRepository
from oncall_rotations.repositories.rotation_repository import RotationRepository
from oncall_rotations.repositories.user_repository import UserRepository
from oncall_rotations.services.event_client import IncidentEventClient
from oncall_rotations.services.incident_router import IncidentRouter

logger = get_logger(__name__)


class IncidentService:
    """Business logic for incidents."""

    def __init__(
        self,
        incident_repo: IncidentRepository,
        rotation_repo: RotationRepository,
        user_repo: UserRepository,
        history_repo: HistoryRepository,
        router: IncidentRouter,
        event_client: IncidentEventClient,
    ) -> None:
        self._incidents = incident_repo
        self._rotations = rotation_repo
        self._users = user_repo
        self._history = history_repo
        self._router = router
        self._events = event_client

    def create_incident(
        self,
        title: str,
        rotation_id: str,
        assigned_user_id: Optional[str] = None,
        actor: str = "system",
    ) -> Incident:
        """Explicit assignee wins; otherwise route to whoever is primary now."""
        if not self._rotations.exists(rotation_id):
            raise NotFound("Rotation", rotation_id)
        if assigned_user_id is not None and not self._users.exists(assigned_user_id):
            raise NotFound("User", assigned_user_id)

        now = datetime.now(timezone.utc)
        routed = assigned_user_id is None
        if routed:
            assigned_user_id = self._router.route(rotation_id, now)

        incident = self._incidents.save(
            Incident(
                incident_id=str(uuid.uuid4()),
                title=title,
                rotation_id=rotation_id,
                assigned_user_id=assigned_user_id,
                routed=routed,
                created_at=now,
            )
        )
        self._history.record_event(
            "incident_created",
            rotation_id,
            {
                "incident_id": incident.incident_id,
                "assigned_user_id": assigned_user_id,
                "routed": routed,
            },
            actor=actor,
        )
        logger.info(
            "Incident created: incident=%s, rotation=%s, assigned=%s, routed=%s",
            incident.incident_id, rotation_id, assigned_user_id, routed,
        )
        self._events.publish("incident.created", incident)
        return incident

    def resolve_incident(self, incident_id: str, actor: str = "system") -> Incident:
        """Resolving twice is a no-op."""
        incident = self.get_incident(incident_id)
        if incident.status == "resolved":
            return incident
        resolved = self._incidents.save(
            incident.model_copy(
                update={"status": "resolved", "resolved_at": datetime.now(timezone.utc)}
            )
        )
        self._history.record_event(
            "incident_resolved", incident.rotation_id, {"incident_id": incident_id}, actor=actor
        )
        logger.info("Incident resolved: incident=%s", incident_id)
        self._events.publish("incident.resolved", resolved)
        return resolved

    def get_incident(self, incident_id: str) -> Incident:
        incident = self._incidents.get(incident_id)
        if incident is None:
            raise NotFound("Incident", incident_id)
        return incident

    def list_incidents(
        self, rotation_id: Optional[str] = None, status: Optional[str] = None
    ) -> list[Incident]:
        return self._incidents.get_all(rotation_id=rotation_id, status=status)

    def count_by_status(self) -> dict[str, int]:
        return self._incidents.count_by_status()
