"""Tool definitions, configuration and execution results."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolCategory(str, Enum):
    GITHUB = "github"
    WEB_SCRAPING = "web_scraping"
    DOCUMENT = "document"
    SOCIAL = "social"
    UTILITY = "utility"


class ToolErrorType(str, Enum):
    """Closed set of tool failure kinds."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    UNKNOWN = "unknown"


class DataQuality(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PropertySchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    description: str = ""
    enum: tuple[str, ...] | None = None
    default: Any = None


class InputSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "object"
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    required: tuple[str, ...] = ()


class ToolMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = "1.0.0"
    author: str = "agentflow"
    tags: tuple[str, ...] = ()
    estimated_time_ms: int | None = None


class ToolDefinition(BaseModel):
    """Immutable description of a tool; looked up by ``name``."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    category: ToolCategory
    priority: int = Field(default=5, ge=0, le=10)
    input_schema: InputSchema = Field(default_factory=InputSchema)
    metadata: ToolMetadata = Field(default_factory=ToolMetadata)


class ToolConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=30.0, gt=0, description="Seconds before the call is abandoned")
    retries: int = Field(default=3, ge=1, le=10)
    parallel: bool = True
    cache: bool = False


class ToolCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    params: dict[str, Any] = Field(default_factory=dict)


class ToolSuggestion(BaseModel):
    name: str
    params: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str = ""
    score: float = 0.0

    def to_call(self) -> ToolCall:
        return ToolCall(name=self.name, params=self.params)


class ResultMetadata(BaseModel):
    extracted_at: str
    data_quality: DataQuality
    attempts: int = 1
    cached: bool = False


class ToolExecutionResult(BaseModel):
    tool_name: str
    success: bool
    data: Any = None
    error: str | None = None
    error_type: ToolErrorType | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    execution_time: int = Field(default=0, ge=0, description="Milliseconds")
    metadata: ResultMetadata
    suggestions: list[str] = Field(default_factory=list)
