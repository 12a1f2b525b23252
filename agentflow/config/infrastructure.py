from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DatabaseConfig(BaseModel):
    """Session database location and operation limits."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    db_path: str = Field(default="/data/agentflow.db", validation_alias="DB_PATH")
    operation_timeout: float = Field(
        default=30.0,
        validation_alias="DB_OPERATION_TIMEOUT",
        description="Database operation timeout in seconds",
    )
