from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .infrastructure import DatabaseConfig
from .sessions import SessionSettings
from .tools import ToolSettings

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_truncate_length: int = Field(default=1000, validation_alias="LOG_TRUNCATE_LENGTH")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        log_level = str(value or "INFO").upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_levels:
            msg = f"Invalid log level: {value}. Must be one of {valid_levels}"
            raise ValueError(msg)
        return log_level

    @field_validator("log_file", mode="before")
    @classmethod
    def _blank_log_file_is_none(cls, value: Any) -> str | None:
        if value in (None, ""):
            return None
        return str(value)


@dataclass(frozen=True)
class AppConfig:
    runtime: RuntimeConfig
    tools: ToolSettings
    sessions: SessionSettings
    database: DatabaseConfig


class Settings(BaseSettings):
    """Application settings loaded automatically from environment variables.

    Nested models are populated by matching validation_alias on each field.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    tools: ToolSettings = Field(default_factory=ToolSettings)
    sessions: SessionSettings = Field(default_factory=SessionSettings)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @classmethod
    def _resolve_env_value(cls, data: dict[str, Any], field: Any) -> Any | None:
        """Resolve environment variable value for a field using its aliases."""
        aliases: list[str] = []
        alias = field.validation_alias
        if isinstance(alias, AliasChoices):
            aliases.extend(choice for choice in alias.choices if isinstance(choice, str))
        elif isinstance(alias, str):
            aliases.append(alias)
        if field.alias:
            aliases.append(field.alias)

        for name in aliases:
            if name in data:
                return data[name]
        return None

    @classmethod
    def from_sources(cls, overrides: dict[str, Any] | None = None) -> Settings:
        """Build settings from os.environ with constructor overrides taking precedence."""
        data = dict(overrides or {})
        merged_source = {**os.environ, **data}

        for field_name, field_info in cls.model_fields.items():
            annotation = field_info.annotation
            if not isinstance(annotation, type) or not issubclass(annotation, BaseModel):
                continue

            nested_data: dict[str, Any] = {}
            for nested_field_name, nested_field in annotation.model_fields.items():
                env_value = cls._resolve_env_value(merged_source, nested_field)
                if env_value is not None:
                    nested_data[nested_field_name] = env_value

            if nested_data:
                if field_name in data and isinstance(data[field_name], dict):
                    data[field_name] = {**nested_data, **data[field_name]}
                else:
                    data[field_name] = nested_data

        return cls(**data)

    def as_app_config(self) -> AppConfig:
        return AppConfig(
            runtime=self.runtime,
            tools=self.tools,
            sessions=self.sessions,
            database=self.database,
        )


def load_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """Load application configuration from environment variables.

    Sources, in increasing precedence:
    1. Environment variables
    2. ``overrides`` (flat env-style names such as ``{"TOOL_MAX_PARALLEL": 5}``)

    Returns:
        Immutable AppConfig instance with all configuration sections.

    Raises:
        RuntimeError: If configuration validation fails.
    """
    try:
        settings = Settings.from_sources(overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc

    logger.debug(
        "config_loaded",
        extra={
            "log_level": settings.runtime.log_level,
            "tool_max_parallel": settings.tools.max_parallel,
            "session_expiry_hours": settings.sessions.expiry_hours,
        },
    )
    return settings.as_app_config()
