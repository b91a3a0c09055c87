# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Incident routing — who answers a new incident at a given instant.
"""

from datetime import datetime, timedelta
from typing import Optional

from oncall_rotations.core.config import settings
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import INCIDENTS_ROUTED
from oncall_rotations.models.domain import EffectiveRow, to_utc
from oncall_rotations.services.effective_schedule import EffectiveScheduleBuilder

logger = get_logger(__name__)


class IncidentRouter:
    """Picks the responsible user from the effective schedule."""

    def __init__(self, builder: EffectiveScheduleBuilder) -> None:
        self._builder = builder

    def covering_row(self, rotation_id: str, at_instant: datetime) -> Optional[EffectiveRow]:
        """
        The effective row in force at `at_instant`.
        Under overlap the most recently started period wins; equal starts
        fall back to the larger period id so the choice is stable.
        """
        at_instant = to_utc(at_instant)
        epsilon = timedelta(seconds=settings.ROUTING_EPSILON_SECONDS)
        rows = self._builder.build(rotation_id, at_instant - epsilon, at_instant + epsilon)
        covering = [r for r in rows if r.start_utc <= at_instant < r.end_utc]
        if not covering:
            return None
        return max(covering, key=lambda r: (r.start_utc, r.period_id))

    def route(self, rotation_id: str, at_instant: datetime) -> Optional[str]:
        """Resolved primary user id, or None when nobody is on call."""
        row = self.covering_row(rotation_id, at_instant)
        if row is None:
            INCIDENTS_ROUTED.labels(outcome="no_period").inc()
            logger.info("No period covers rotation=%s at %s", rotation_id, at_instant)
            return None
        outcome = "assigned" if row.primary_user_id else "unassigned"
        INCIDENTS_ROUTED.labels(outcome=outcome).inc()
        logger.info(
            "Routed rotation=%s at %s to user=%s via period=%s",
            rotation_id, at_instant, row.primary_user_id, row.period_id,
        )
        return row.primary_user_id
