# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Template and date-range expansion — pure computation, no I/O.

Expansion only *proposes* periods. Persisting them is a separate,
per-period idempotent step owned by the period service, so abandoning
an expansion part-way never leaves anything half-written.
"""

import re
import threading
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, Optional

from oncall_rotations.core.errors import ExpansionCancelled, InvalidRange, InvalidTemplate
from oncall_rotations.models.domain import PeriodTemplate, ProposedPeriod, Rotation
from oncall_rotations.services.zoned_time import load_zone, localize

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_time_of_day(value: str) -> time:
    """Parse an `HH:mm` string (24h clock)."""
    match = _HHMM.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise InvalidTemplate(f"Invalid time of day '{value}', expected HH:mm")
    return time(int(match.group(1)), int(match.group(2)))


def validate_template(day_of_week: int, start_time: time, end_time: time) -> None:
    if not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
        raise InvalidTemplate(
            f"day_of_week must be 0 (Monday) .. 6 (Sunday), got {day_of_week!r}"
        )
    if start_time >= end_time:
        raise InvalidTemplate(
            f"start_time {start_time:%H:%M} must be before end_time {end_time:%H:%M}; "
            "templates cannot cross midnight"
        )


def render_name(
    pattern: str,
    local_start: datetime,
    local_end: datetime,
    name: str,
    rotation: str,
) -> str:
    """Fill a name pattern such as '{name} {start:%Y-%m-%d}'."""
    try:
        rendered = pattern.format(
            start=local_start, end=local_end, name=name, rotation=rotation
        )
    except (KeyError, IndexError, ValueError, AttributeError, TypeError) as exc:
        raise InvalidTemplate(f"Invalid name template '{pattern}': {exc}") from exc
    return rendered.strip() or name


def check_window(window_start: datetime, window_end: datetime) -> None:
    if window_start >= window_end:
        raise InvalidRange(
            f"Window start {window_start.isoformat()} must be before end {window_end.isoformat()}"
        )


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise ExpansionCancelled("Expansion cancelled by caller")


def _local_dates(first: date, last: date) -> Iterator[date]:
    day = first
    while day <= last:
        yield day
        day += timedelta(days=1)


def expand_templates(
    rotation: Rotation,
    templates: Iterable[PeriodTemplate],
    window_start: datetime,
    window_end: datetime,
    name_template: str,
    default_name: str = "On-Call",
    cancel: Optional[threading.Event] = None,
) -> Iterator[ProposedPeriod]:
    """
    Yield one proposed period per (active template, matching local date)
    whose UTC span intersects [window_start, window_end).

    Output is ascending by start, ties broken by template id. Dates are
    walked in the rotation's zone, one day of margin on either side, so
    a window shorter than a day still sees every date it touches.
    """
    check_window(window_start, window_end)
    tz = load_zone(rotation.time_zone)
    active = [t for t in templates if t.is_active]
    if not active:
        return

    by_weekday: dict[int, list[PeriodTemplate]] = {}
    for template in active:
        validate_template(template.day_of_week, template.start_time, template.end_time)
        by_weekday.setdefault(template.day_of_week, []).append(template)

    first = window_start.astimezone(tz).date() - timedelta(days=1)
    last = window_end.astimezone(tz).date() + timedelta(days=1)

    for local_date in _local_dates(first, last):
        _check_cancel(cancel)
        batch: list[tuple[datetime, str, ProposedPeriod]] = []
        for template in by_weekday.get(local_date.weekday(), []):
            local_start = datetime.combine(local_date, template.start_time)
            local_end = datetime.combine(local_date, template.end_time)
            start_utc = localize(local_start, tz)
            end_utc = localize(local_end, tz)
            if end_utc <= window_start or start_utc >= window_end:
                continue
            if start_utc >= end_utc:
                # Both ends collapsed into the same DST gap.
                continue
            label = template.name or default_name
            proposal = ProposedPeriod(
                rotation_id=rotation.rotation_id,
                name=render_name(name_template, local_start, local_end, label, rotation.name),
                start_utc=start_utc,
                end_utc=end_utc,
                template_id=template.template_id,
            )
            batch.append((start_utc, template.template_id, proposal))
        for _, _, proposal in sorted(batch, key=lambda item: (item[0], item[1])):
            yield proposal


def expand_date_ranges(
    rotation: Rotation,
    window_start: datetime,
    window_end: datetime,
    name_template: str,
    default_name: str = "On-Call",
    cancel: Optional[threading.Event] = None,
) -> Iterator[ProposedPeriod]:
    """
    Yield back-to-back periods of `period_length_days` starting at the
    rotation anchor. Days are added on the local wall clock, so handover
    stays at the same local time across DST changes.
    """
    check_window(window_start, window_end)
    tz = load_zone(rotation.time_zone)
    anchor_local = rotation.start_date_utc.astimezone(tz).replace(tzinfo=None)
    length = timedelta(days=rotation.period_length_days)

    elapsed_days = (window_start - rotation.start_date_utc).total_seconds() / 86400
    index = max(0, int(elapsed_days // rotation.period_length_days) - 1)

    while True:
        _check_cancel(cancel)
        local_start = anchor_local + index * length
        local_end = local_start + length
        start_utc = localize(local_start, tz)
        end_utc = localize(local_end, tz)
        if start_utc >= window_end:
            return
        if end_utc > window_start:
            yield ProposedPeriod(
                rotation_id=rotation.rotation_id,
                name=render_name(name_template, local_start, local_end, default_name, rotation.name),
                start_utc=start_utc,
                end_utc=end_utc,
            )
        index += 1
