from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ToolSettings(BaseModel):
    """Tool execution limits, timeouts and integration credentials."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    default_timeout_sec: float = Field(
        default=30.0,
        validation_alias="TOOL_DEFAULT_TIMEOUT_SEC",
        description="Timeout applied to tools without a category or tool override",
    )
    default_retries: int = Field(
        default=3,
        validation_alias="TOOL_DEFAULT_RETRIES",
        description="Retry attempts applied to tools without an override",
    )
    max_parallel: int = Field(
        default=3,
        validation_alias="TOOL_MAX_PARALLEL",
        description="Maximum number of tool calls running at once in a batch",
    )
    cache_ttl_sec: float = Field(
        default=600.0,
        validation_alias="TOOL_CACHE_TTL_SEC",
        description="Lifetime of cached tool results (10 minutes)",
    )
    retry_base_delay_sec: float = Field(
        default=1.0,
        validation_alias="TOOL_RETRY_BASE_DELAY_SEC",
        description="Base delay for exponential retry backoff",
    )
    max_retry_delay_sec: float = Field(
        default=5.0,
        validation_alias="TOOL_MAX_RETRY_DELAY_SEC",
        description="Upper bound on a single retry backoff delay",
    )
    http_timeout_sec: float = Field(
        default=20.0,
        validation_alias="TOOL_HTTP_TIMEOUT_SEC",
        description="Timeout for outbound HTTP requests made by tools",
    )
    max_response_bytes: int = Field(
        default=5 * 1024 * 1024,
        validation_alias="TOOL_MAX_RESPONSE_BYTES",
        description="Maximum size of a fetched web page",
    )
    max_file_bytes: int = Field(
        default=10 * 1024 * 1024,
        validation_alias="TOOL_MAX_FILE_BYTES",
        description="Maximum size of an uploaded document",
    )
    github_token: str | None = Field(default=None, validation_alias="GITHUB_TOKEN")
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias="GITHUB_API_URL"
    )

    @field_validator("max_parallel", "default_retries", mode="before")
    @classmethod
    def _validate_positive_int(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > 100:
            msg = f"{info.field_name.replace('_', ' ')} must be between 1 and 100"
            raise ValueError(msg)
        return parsed

    @field_validator(
        "default_timeout_sec",
        "cache_ttl_sec",
        "retry_base_delay_sec",
        "max_retry_delay_sec",
        "http_timeout_sec",
        mode="before",
    )
    @classmethod
    def _validate_non_negative_float(cls, value: Any, info: ValidationInfo) -> float:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = float(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a number"
            raise ValueError(msg) from exc
        if parsed < 0:
            msg = f"{info.field_name.replace('_', ' ')} must not be negative"
            raise ValueError(msg)
        return parsed

    @field_validator("github_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, value: Any) -> str | None:
        if value in (None, ""):
            return None
        return str(value).strip() or None
