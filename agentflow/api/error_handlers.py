"""Exception handlers translating domain errors into JSON responses."""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response

from agentflow.api.models import ErrorDetail, error_response
from agentflow.domain.exceptions import (
    AgentNotFoundError,
    DomainException,
    InvalidStageError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[type[DomainException], tuple[int, str]] = {
    SessionNotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    InvalidStageError: (status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
    AgentNotFoundError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "CONFIGURATION_ERROR"),
}


async def domain_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle domain exceptions raised by the orchestrator."""
    if not isinstance(exc, DomainException):
        raise exc

    correlation_id = getattr(request.state, "correlation_id", None)
    status_code, code = status.HTTP_500_INTERNAL_SERVER_ERROR, "PROCESSING_ERROR"
    for exc_type, mapped in _STATUS_CODES.items():
        if isinstance(exc, exc_type):
            status_code, code = mapped
            break

    logger.error(
        f"API error: {code} - {exc.message}",
        extra={
            "correlation_id": correlation_id,
            "error_code": code,
            "status_code": status_code,
            "path": request.url.path,
        },
    )
    detail = ErrorDetail(code=code, message=exc.message, details=exc.details or None)
    return JSONResponse(
        status_code=status_code, content=error_response(detail, correlation_id=correlation_id)
    )


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    """Last-resort handler for unexpected errors."""
    correlation_id = getattr(request.state, "correlation_id", None)
    logger.exception(
        "unhandled_api_error",
        extra={"correlation_id": correlation_id, "path": request.url.path},
    )
    detail = ErrorDetail(code="INTERNAL_ERROR", message="An unexpected error occurred")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(detail, correlation_id=correlation_id),
    )
