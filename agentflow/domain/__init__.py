from __future__ import annotations

from .exceptions import (
    AgentNotFoundError,
    DomainException,
    InvalidStageError,
    ResourceNotFoundError,
    SessionNotFoundError,
    StorageError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolPermissionError,
    ToolTimeoutError,
    ToolValidationError,
)

__all__ = [
    "AgentNotFoundError",
    "DomainException",
    "InvalidStageError",
    "ResourceNotFoundError",
    "SessionNotFoundError",
    "StorageError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolPermissionError",
    "ToolTimeoutError",
    "ToolValidationError",
]
