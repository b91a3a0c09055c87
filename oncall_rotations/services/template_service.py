# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Period template CRUD.
"""

import uuid
from typing import Any, Optional

from oncall_rotations.core.errors import NotFound
from oncall_rotations.core.logging import get_logger
from oncall_rotations.models.domain import PeriodTemplate
from oncall_rotations.repositories.history_repository import HistoryRepository
from oncall_rotations.repositories.rotation_repository import RotationRepository
from oncall_rotations.repositories.template_repository import TemplateRepository
from oncall_rotations.services.template_expander import parse_time_of_day, validate_template

logger = get_logger(__name__)


def build_template(
    rotation_id: str,
    day_of_week: int,
    start_time: str,
    end_time: str,
    name: Optional[str] = None,
    is_active: bool = True,
    template_id: Optional[str] = None,
) -> PeriodTemplate:
    """Validate raw `HH:mm` fields and build a template. Raises InvalidTemplate."""
    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    validate_template(day_of_week, start, end)
    return PeriodTemplate(
        template_id=template_id or str(uuid.uuid4()),
        rotation_id=rotation_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        name=name,
        is_active=is_active,
    )


class TemplateService:
    """Business logic for weekday templates."""

    def __init__(
        self,
        template_repo: TemplateRepository,
        rotation_repo: RotationRepository,
        history_repo: HistoryRepository,
    ) -> None:
        self._templates = template_repo
        self._rotations = rotation_repo
        self._history = history_repo

    def get_template(self, template_id: str) -> PeriodTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise NotFound("PeriodTemplate", template_id)
        return template

    def list_templates(self, rotation_id: str, is_active: Optional[bool] = None) -> list[PeriodTemplate]:
        if not self._rotations.exists(rotation_id):
            raise NotFound("Rotation", rotation_id)
        return self._templates.get_for_rotation(rotation_id, is_active=is_active)

    def create_template(
        self,
        rotation_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        name: Optional[str] = None,
        is_active: bool = True,
        actor: str = "system",
    ) -> PeriodTemplate:
        if not self._rotations.exists(rotation_id):
            raise NotFound("Rotation", rotation_id)
        template = self._templates.save(
            build_template(rotation_id, day_of_week, start_time, end_time, name, is_active)
        )
        self._history.record_event(
            "template_created",
            rotation_id,
            {
                "template_id": template.template_id,
                "day_of_week": day_of_week,
                "start_time": start_time,
                "end_time": end_time,
            },
            actor=actor,
        )
        logger.info(
            "Template created: rotation=%s, template=%s, day=%d",
            rotation_id, template.template_id, day_of_week,
        )
        return template

    def update_template(self, template_id: str, changes: dict[str, Any], actor: str = "system") -> PeriodTemplate:
        template = self.get_template(template_id)
        merged = {
            "day_of_week": template.day_of_week,
            "start_time": template.start_time.strftime("%H:%M"),
            "end_time": template.end_time.strftime("%H:%M"),
            "name": template.name,
            "is_active": template.is_active,
        }
        merged.update({k: v for k, v in changes.items() if v is not None or k == "name"})
        updated = self._templates.save(
            build_template(template.rotation_id, template_id=template_id, **merged)
        )
        self._history.record_event(
            "template_updated",
            template.rotation_id,
            {"template_id": template_id, "fields": sorted(changes)},
            actor=actor,
        )
        logger.info("Template updated: template=%s", template_id)
        return updated

    def delete_template(self, template_id: str, actor: str = "system") -> dict[str, str]:
        template = self.get_template(template_id)
        self._templates.delete(template_id)
        self._history.record_event(
            "template_deleted", template.rotation_id, {"template_id": template_id}, actor=actor
        )
        logger.info("Template deleted: template=%s", template_id)
        return {"status": "deleted", "template_id": template_id}
