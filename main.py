# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
On-Call Rotations Service
=========================
Rotations, weekday templates, periods with lock semantics, role
assignments, overrides, the effective schedule and incident routing.

All instants are UTC; templates are wall-clock times in the rotation's
IANA time zone.

Port: 8003
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oncall_rotations.controllers import (
    calendar_controller,
    incident_controller,
    override_controller,
    period_controller,
    rotation_controller,
    schedule_controller,
    settings_controller,
    system_controller,
    user_controller,
)
from oncall_rotations.core.config import settings
from oncall_rotations.core.dependencies import (
    get_rotation_repo,
    get_rotation_service,
    get_template_service,
    get_user_service,
)
from oncall_rotations.core.errors import SchedulingError
from oncall_rotations.core.logging import get_logger
from oncall_rotations.middleware import MetricsMiddleware, RequestIDMiddleware
from oncall_rotations.schemas.rotations import ErrorResponse
from oncall_rotations.services.seed import seed_defaults

logger = get_logger("main")


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Seed default rotations on an empty store."""
    if settings.SEED_DEFAULT_ROTATIONS and get_rotation_repo().count() == 0:
        seed_defaults(get_user_service(), get_rotation_service(), get_template_service())
    logger.info(
        "Service started: %s v%s on port %d",
        settings.SERVICE_NAME, settings.SERVICE_VERSION, settings.SERVICE_PORT,
    )
    yield
    logger.info("Service shutting down")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="On-Call Rotations Service",
    description="Rotation templates, periods, overrides and incident routing.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    responses={
        422: {"model": ErrorResponse, "description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


# ── Exception handlers ───────────────────────────────────────────────────
@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    req_id = getattr(request.state, "request_id", None)
    logger.warning(
        "Request rejected: %s (%s)", exc.message, exc.code, extra={"request_id": req_id}
    )
    content = {"error": exc.code, "detail": exc.message, "request_id": req_id}
    if exc.retryable:
        content["retryable"] = True
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


# ── Routers ──────────────────────────────────────────────────────────────
app.include_router(system_controller.router)
app.include_router(user_controller.router)
app.include_router(rotation_controller.router)
app.include_router(period_controller.router)
app.include_router(override_controller.router)
app.include_router(schedule_controller.router)
app.include_router(incident_controller.router)
app.include_router(calendar_controller.router)
app.include_router(settings_controller.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.SERVICE_PORT)
