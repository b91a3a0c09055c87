# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Wall-clock to UTC conversion — pure computation, no side effects.

Daylight-saving policy for local times that do not map to exactly one
instant:
    gap (spring forward)  → the first valid instant after the gap
    overlap (fall back)   → the earlier of the two UTC instants
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from oncall_rotations.core.errors import InvalidTemplate

# Widest gap on record is a skipped calendar day.
_MAX_GAP = timedelta(days=2)
_STEP = timedelta(minutes=1)


def load_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone key, raising InvalidTemplate if unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTemplate(f"Unknown IANA time zone '{name}'") from exc


def is_nonexistent(local: datetime, tz: ZoneInfo) -> bool:
    """True if the naive wall-clock time falls inside a spring-forward gap."""
    aware = local.replace(tzinfo=tz, fold=0)
    round_trip = aware.astimezone(timezone.utc).astimezone(tz).replace(tzinfo=None)
    return round_trip != local


def localize(local: datetime, tz: ZoneInfo) -> datetime:
    """Convert a naive wall-clock time in `tz` to an aware UTC instant."""
    candidate = local.replace(tzinfo=None)
    if is_nonexistent(candidate, tz):
        candidate = candidate.replace(second=0, microsecond=0)
        limit = candidate + _MAX_GAP
        while is_nonexistent(candidate, tz):
            candidate += _STEP
            if candidate > limit:
                raise InvalidTemplate(
                    f"Local time {local.isoformat()} cannot be resolved in {tz.key}"
                )
    # fold=0 selects the first occurrence, i.e. the earlier instant.
    return candidate.replace(tzinfo=tz, fold=0).astimezone(timezone.utc)


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    return instant.astimezone(tz)
