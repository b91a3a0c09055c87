# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
HTTP Middleware — request ID propagation and Prometheus metrics.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from oncall_rotations.core.logging import get_logger
from oncall_rotations.metrics.prometheus import REQUEST_COUNT, REQUEST_LATENCY, HTTP_ERRORS

logger = get_logger(__name__)

# Path segments kept verbatim in metric labels; anything else is an id.
KNOWN_SEGMENTS: frozenset[str] = frozenset({
    "api", "v1", "users", "rotations", "members", "templates", "periods",
    "assignments", "resolved", "overrides", "effective_schedule", "route",
    "incidents", "resolve", "calendar", "sync", "generate_periods",
    "generate_periods_from_templates", "activate", "deactivate", "history",
    "stats", "whoami", "primary", "secondary", "effective", "settings",
})

SKIP_PATHS: tuple[str, ...] = (
    "/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc",
)


def normalize_path(path: str) -> str:
    """Collapse ids so `/api/v1/periods/abc` becomes `/api/v1/periods/{param}`."""
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts:
        return "/"
    return "/" + "/".join(p if p in KNOWN_SEGMENTS else "{param}" for p in parts)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate or generate X-Request-ID for distributed tracing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Track request count, latency, and error rate via Prometheus."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if request.url.path in SKIP_PATHS:
            return response

        endpoint = normalize_path(request.url.path)
        status = str(response.status_code)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(elapsed)
        if response.status_code >= 400:
            HTTP_ERRORS.labels(method=request.method, endpoint=endpoint, status=status).inc()
            logger.debug(
                "%s %s -> %s", request.method, endpoint, status,
                extra={"request_id": getattr(request.state, "request_id", None)},
            )
        return response
