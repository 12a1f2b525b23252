from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SessionSettings(BaseModel):
    """Session lifetime and health thresholds."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    expiry_hours: float = Field(
        default=24.0,
        gt=0,
        validation_alias="SESSION_EXPIRY_HOURS",
        description="Idle time after which a session is considered expired",
    )
    cleanup_interval_min: float = Field(
        default=60.0,
        gt=0,
        validation_alias="SESSION_CLEANUP_INTERVAL_MIN",
        description="Interval between background sweeps of expired sessions",
    )
    max_duration_min: float = Field(
        default=30.0,
        gt=0,
        validation_alias="SESSION_MAX_DURATION_MIN",
        description="Session age reported as a health issue",
    )
    restart_error_threshold: int = Field(
        default=3,
        ge=0,
        validation_alias="SESSION_RESTART_ERROR_THRESHOLD",
        description="Error count above which a restart is recommended",
    )
