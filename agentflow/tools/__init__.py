from __future__ import annotations

from .builtins import build_default_executors, create_default_registry
from .errors import classify_error
from .executor import ToolExecutor, assess_data_quality
from .models import (
    DataQuality,
    ToolCall,
    ToolCategory,
    ToolConfig,
    ToolDefinition,
    ToolErrorType,
    ToolExecutionResult,
    ToolSuggestion,
)
from .registry import ToolRegistry
from .selector import ToolSelector, analyze_input
from .service import HttpToolService, ToolService
from .validation import validate_tool_params

__all__ = [
    "DataQuality",
    "HttpToolService",
    "ToolCall",
    "ToolCategory",
    "ToolConfig",
    "ToolDefinition",
    "ToolErrorType",
    "ToolExecutionResult",
    "ToolExecutor",
    "ToolRegistry",
    "ToolSelector",
    "ToolService",
    "ToolSuggestion",
    "analyze_input",
    "assess_data_quality",
    "build_default_executors",
    "classify_error",
    "create_default_registry",
    "validate_tool_params",
]
