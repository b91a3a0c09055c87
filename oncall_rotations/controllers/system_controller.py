# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics, identity,
audit history and stats.
Routes only; everything else lives in services and repositories.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from oncall_rotations.core.auth import Caller, get_caller
from oncall_rotations.core.config import settings
from oncall_rotations.core.dependencies import (
    get_history_repo,
    get_incident_service,
    get_period_repo,
    get_rotation_repo,
    get_rotation_service,
)
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.services.incident_service import IncidentService
from oncall_rotations.services.rotation_service import RotationService

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe with store sizes."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "rotations_count": get_rotation_repo().count(),
        "periods_count": get_period_repo().count(),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe — are rotations loaded?"""
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "rotations_loaded": get_rotation_repo().count() > 0,
    }


@router.get("/metrics")
def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/whoami")
def whoami(caller: Caller = Depends(get_caller)):
    """Echo the claims forwarded by the identity collaborator."""
    return caller.model_dump()


@router.get("/api/v1/history", tags=["History"])
def get_history(
    rotation_id: Optional[str] = None,
    event_type: Optional[str] = None,
    actor: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, description="Max results"),
    history_repo: HistoryRepository = Depends(get_history_repo),
):
    """Audit log for all scheduling events."""
    return history_repo.get_all(
        rotation_id=rotation_id, event_type=event_type, limit=limit, actor=actor
    )


@router.get("/api/v1/stats", tags=["History"])
def get_stats(
    service: RotationService = Depends(get_rotation_service),
    incident_service: IncidentService = Depends(get_incident_service),
):
    """Aggregated operational statistics."""
    stats = service.get_stats()
    stats["incidents_by_status"] = incident_service.count_by_status()
    return stats
