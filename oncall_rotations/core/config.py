# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "oncall-rotations")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8003"))

    # ── Outbound collaborators ──
    CALENDAR_SYNC_URL: str = os.getenv("CALENDAR_SYNC_URL", "")
    CALENDAR_SYNC_TIMEOUT: float = float(os.getenv("CALENDAR_SYNC_TIMEOUT", "5.0"))
    EVENTS_WEBHOOK_URL: str = os.getenv("EVENTS_WEBHOOK_URL", "")
    EVENTS_TIMEOUT: float = float(os.getenv("EVENTS_TIMEOUT", "3.0"))

    # ── Scheduling ──
    DEFAULT_TIME_ZONE: str = os.getenv("DEFAULT_TIME_ZONE", "America/Chicago")
    DEFAULT_NAME_TEMPLATE: str = os.getenv(
        "DEFAULT_NAME_TEMPLATE", "{name} {start:%Y-%m-%d}"
    )
    DEFAULT_PERIOD_NAME: str = os.getenv("DEFAULT_PERIOD_NAME", "On-Call")
    MAX_EXPANSION_DAYS: int = int(os.getenv("MAX_EXPANSION_DAYS", "366"))
    ROUTING_EPSILON_SECONDS: float = float(os.getenv("ROUTING_EPSILON_SECONDS", "1"))
    STORAGE_TIMEOUT: float = float(os.getenv("STORAGE_TIMEOUT", "2.0"))

    # ── Audit log ──
    DEFAULT_HISTORY_LIMIT: int = int(os.getenv("DEFAULT_HISTORY_LIMIT", "100"))
    MAX_HISTORY_SIZE: int = int(os.getenv("MAX_HISTORY_SIZE", "10000"))

    # ── Identity (claims forwarded by the gateway) ──
    AUTH_USER_HEADER: str = os.getenv("AUTH_USER_HEADER", "X-User-Id")
    AUTH_ADMIN_HEADER: str = os.getenv("AUTH_ADMIN_HEADER", "X-User-Is-Admin")
    DEV_BYPASS_AUTH: bool = os.getenv("DEV_BYPASS_AUTH", "false").lower() == "true"

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SEED_DEFAULT_ROTATIONS: bool = (
        os.getenv("SEED_DEFAULT_ROTATIONS", "true").lower() == "true"
    )


settings = Settings()
