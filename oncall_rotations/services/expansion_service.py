# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Expansion orchestration — compute proposals, then persist them.
Proposals are fully computed before the first write, so a cancelled
expansion writes nothing.
"""

import threading
from datetime import datetime, timedelta
from typing import Any, Optional

from oncall_rotations.core.config import settings
from oncall_rotations.core.errors import InvalidRange, NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import EXPANSIONS_TOTAL
from oncall_rotations.models.domain import ExpansionReport, PeriodTemplate, to_utc
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.rotation_repository import RotationRepository
from oncall_rotations.repositories.template_repository import TemplateRepository
from oncall_rotations.services.period_service import PeriodService
from oncall_rotations.services.template_expander import (
    check_window,
    expand_date_ranges,
    expand_templates,
)
from oncall_rotations.services.template_service import build_template

logger = get_logger(__name__)


class ExpansionService:
    """Turns templates or the rotation cadence into stored periods."""

    def __init__(
        self,
        rotation_repo: RotationRepository,
        template_repo: TemplateRepository,
        history_repo: HistoryRepository,
        period_service: PeriodService,
    ) -> None:
        self._rotations = rotation_repo
        self._templates = template_repo
        self._history = history_repo
        self._period_service = period_service

    def expand_templates(
        self,
        rotation_id: str,
        window_start: datetime,
        window_end: datetime,
        name_template: Optional[str] = None,
        template_ids: Optional[list[str]] = None,
        inline_templates: Optional[list[dict[str, Any]]] = None,
        actor: str = "system",
        cancel: Optional[threading.Event] = None,
    ) -> ExpansionReport:
        """
        Expand stored templates (all of the rotation's, or just
        `template_ids`) plus any ad-hoc `inline_templates` over the window.
        Raises NotFound / InvalidRange / InvalidTemplate / ExpansionCancelled.
        """
        rotation = self._require_rotation(rotation_id)
        window_start, window_end = self._check_window(window_start, window_end)

        templates: list[PeriodTemplate] = []
        if template_ids:
            for template_id in template_ids:
                template = self._templates.get(template_id)
                if template is None or template.rotation_id != rotation_id:
                    raise NotFound("PeriodTemplate", template_id)
                templates.append(template)
        elif not inline_templates:
            templates = self._templates.get_for_rotation(rotation_id)
        for index, raw in enumerate(inline_templates or []):
            templates.append(
                build_template(rotation_id, template_id=f"inline-{index:03d}", **raw)
            )

        proposals = list(
            expand_templates(
                rotation,
                templates,
                window_start,
                window_end,
                name_template or settings.DEFAULT_NAME_TEMPLATE,
                default_name=settings.DEFAULT_PERIOD_NAME,
                cancel=cancel,
            )
        )
        return self._persist("templates", rotation_id, proposals, window_start, window_end, actor)

    def generate_periods(
        self,
        rotation_id: str,
        window_start: datetime,
        window_end: datetime,
        name_template: Optional[str] = None,
        actor: str = "system",
        cancel: Optional[threading.Event] = None,
    ) -> ExpansionReport:
        """Back-to-back periods of the rotation's length, from its anchor."""
        rotation = self._require_rotation(rotation_id)
        window_start, window_end = self._check_window(window_start, window_end)
        proposals = list(
            expand_date_ranges(
                rotation,
                window_start,
                window_end,
                name_template or settings.DEFAULT_NAME_TEMPLATE,
                default_name=settings.DEFAULT_PERIOD_NAME,
                cancel=cancel,
            )
        )
        return self._persist("date_range", rotation_id, proposals, window_start, window_end, actor)

    # ── Internal ──

    def _require_rotation(self, rotation_id: str):
        rotation = self._rotations.get(rotation_id)
        if rotation is None:
            raise NotFound("Rotation", rotation_id)
        return rotation

    @staticmethod
    def _check_window(window_start: datetime, window_end: datetime) -> tuple[datetime, datetime]:
        window_start, window_end = to_utc(window_start), to_utc(window_end)
        check_window(window_start, window_end)
        if window_end - window_start > timedelta(days=settings.MAX_EXPANSION_DAYS):
            raise InvalidRange(
                f"Expansion window exceeds {settings.MAX_EXPANSION_DAYS} days"
            )
        return window_start, window_end

    def _persist(self, kind, rotation_id, proposals, window_start, window_end, actor) -> ExpansionReport:
        EXPANSIONS_TOTAL.labels(kind=kind).inc()
        report = self._period_service.persist_proposals(proposals, actor=actor, source=kind)
        self._history.record_event(
            "periods_expanded",
            rotation_id,
            {
                "kind": kind,
                "window_start": window_start.isoformat(),
                "window_end": window_end.isoformat(),
                "created": len(report.created),
                "existing": len(report.existing),
                "failed": len(report.failed),
            },
            actor=actor,
        )
        logger.info(
            "Expansion done: rotation=%s, kind=%s, created=%d, existing=%d, failed=%d",
            rotation_id, kind, len(report.created), len(report.existing), len(report.failed),
        )
        return report
