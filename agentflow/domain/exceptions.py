"""Domain-specific exceptions.

These exceptions represent orchestration rule violations and tool failures.
The tool executor converts tool failures into results; the orchestrator
converts everything else into a terminal error fragment.
"""

from __future__ import annotations

from typing import Any


class DomainException(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AgentNotFoundError(DomainException):
    """Raised when no agent is registered under a name."""

    pass


class InvalidStageError(DomainException):
    """Raised when a stage label is not part of the canonical sequence."""

    pass


class SessionNotFoundError(DomainException):
    """Raised when a session id cannot be resolved."""

    pass


class ToolNotFoundError(DomainException):
    """Raised when a tool name has no registered definition or executor."""

    pass


class ToolValidationError(DomainException):
    """Raised when tool parameters do not satisfy the tool's input schema."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message, {"errors": list(errors or [])})
        self.errors = list(errors or [])


class ToolTimeoutError(DomainException):
    """Raised when a tool does not finish within its configured timeout."""

    pass


class ToolExecutionError(DomainException):
    """Raised by tool integrations for failures without a more specific type."""

    pass


class ToolPermissionError(DomainException):
    """Raised when an integration rejects access (missing credentials, private data)."""

    pass


class ResourceNotFoundError(DomainException):
    """Raised when an external resource (profile, page, repository) does not exist."""

    pass


class StorageError(DomainException):
    """Raised by session stores when persistence fails."""

    pass
