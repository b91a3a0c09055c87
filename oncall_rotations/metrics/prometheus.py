# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "rotations_requests_total",
    "Total HTTP requests to the rotation service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "rotations_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "rotations_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
PERIODS_CREATED = Counter(
    "rotations_periods_created_total",
    "Total coverage periods created",
    ["source"],
)
PERIOD_LOCK_REJECTIONS = Counter(
    "rotations_period_lock_rejections_total",
    "Boundary edits rejected because the period is locked",
)
PERIOD_OVERLAPS = Counter(
    "rotations_period_overlaps_total",
    "Period writes that left two periods of one rotation overlapping",
)
EXPANSIONS_TOTAL = Counter(
    "rotations_expansions_total",
    "Template or date-range expansions run",
    ["kind"],
)
OVERRIDES_CREATED = Counter(
    "rotations_overrides_created_total",
    "Total overrides created",
    ["scope"],
)
EFFECTIVE_BUILDS = Counter(
    "rotations_effective_schedule_builds_total",
    "Effective schedule computations",
)
INCIDENTS_ROUTED = Counter(
    "rotations_incidents_routed_total",
    "Incident routing outcomes",
    ["outcome"],
)
CALENDAR_SYNC_ITEMS = Counter(
    "rotations_calendar_sync_items_total",
    "Periods pushed to the external calendar",
    ["status"],
)
EVENTS_SENT = Counter(
    "rotations_events_sent_total",
    "Incident events handed to the delivery collaborator",
    ["event_type"],
)
ACTIVE_ROTATIONS = Gauge(
    "rotations_active",
    "Number of active rotations",
)
OVERRIDES_ACTIVE = Gauge(
    "rotations_overrides",
    "Number of stored overrides",
)
