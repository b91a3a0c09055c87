# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Incident event client — hands "incident created/resolved" events
to the webhook delivery collaborator. Delivery and retries are its job.
"""

import httpx

from oncall_rotations.core.config import settings
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import EVENTS_SENT
from oncall_rotations.models.domain import Incident

logger = get_logger(__name__)


class IncidentEventClient:
    """Fire-and-forget event publisher."""

    def publish(self, event_type: str, incident: Incident) -> bool:
        """Send one event. Failures are logged but never raised."""
        if not settings.EVENTS_WEBHOOK_URL:
            logger.info(
                "[NO SINK] %s for incident %s (EVENTS_WEBHOOK_URL unset)",
                event_type, incident.incident_id,
            )
            return False
        try:
            with httpx.Client(timeout=settings.EVENTS_TIMEOUT) as client:
                resp = client.post(
                    settings.EVENTS_WEBHOOK_URL,
                    json={
                        "event_type": event_type,
                        "incident": incident.model_dump(mode="json"),
                    },
                )
            if resp.status_code >= 300:
                logger.warning(
                    "Event rejected: type=%s, incident=%s, status=%d",
                    event_type, incident.incident_id, resp.status_code,
                )
                return False
            EVENTS_SENT.labels(event_type=event_type).inc()
            logger.info(
                "Event delivered: type=%s, incident=%s, status=%d",
                event_type, incident.incident_id, resp.status_code,
            )
            return True
        except httpx.HTTPError as exc:
            logger.warning("Event delivery failed: type=%s, error=%s", event_type, exc)
            return False
