"""Classification of tool failures into :class:`ToolErrorType`.

Every exception a tool can raise maps to exactly one error type: exception
classes are checked first, then the message is matched against keyword
groups in a fixed order, and anything left over is ``unknown``.
"""

from __future__ import annotations

import asyncio

import httpx

from agentflow.core.http_utils import ResponseSizeError
from agentflow.domain.exceptions import (
    ResourceNotFoundError,
    ToolNotFoundError,
    ToolPermissionError,
    ToolTimeoutError,
    ToolValidationError,
)
from agentflow.tools.models import ToolErrorType

# Ordered: the first group whose keyword appears in the message wins.
_MESSAGE_PATTERNS: tuple[tuple[ToolErrorType, tuple[str, ...]], ...] = (
    (ToolErrorType.TIMEOUT, ("timeout", "timed out", "etimedout")),
    (
        ToolErrorType.NETWORK,
        (
            "network",
            "econnrefused",
            "econnreset",
            "enotfound",
            "connection",
            "dns",
            "unreachable",
            "fetch failed",
        ),
    ),
    (
        ToolErrorType.PERMISSION,
        ("permission", "forbidden", "unauthorized", "access denied", "rate limit", "401", "403"),
    ),
    (ToolErrorType.NOT_FOUND, ("not found", "404", "no such", "does not exist")),
    (ToolErrorType.INVALID_INPUT, ("invalid", "malformed", "missing required", "unsupported")),
)

_STATUS_TYPES: dict[int, ToolErrorType] = {
    400: ToolErrorType.INVALID_INPUT,
    401: ToolErrorType.PERMISSION,
    403: ToolErrorType.PERMISSION,
    404: ToolErrorType.NOT_FOUND,
    408: ToolErrorType.TIMEOUT,
    410: ToolErrorType.NOT_FOUND,
    422: ToolErrorType.INVALID_INPUT,
    429: ToolErrorType.PERMISSION,
    504: ToolErrorType.TIMEOUT,
}

ERROR_SUGGESTIONS: dict[ToolErrorType, tuple[str, ...]] = {
    ToolErrorType.TIMEOUT: ("Check your network connection", "Try again in a moment"),
    ToolErrorType.NETWORK: ("Check your network connection", "Make sure the URL is reachable"),
    ToolErrorType.PERMISSION: (
        "Check that the resource is publicly accessible",
        "Try sharing the information another way, e.g. upload a document",
    ),
    ToolErrorType.NOT_FOUND: (
        "Confirm that the link or resource exists",
        "Check the URL for typos",
    ),
    ToolErrorType.INVALID_INPUT: (
        "Check the format of the provided parameters",
        "Refer to the tool description for valid examples",
    ),
    ToolErrorType.UNKNOWN: ("Review the error details", "Try again or provide the data manually"),
}

# Failures that repeat identically on retry.
NON_RETRYABLE_ERRORS = frozenset(
    {ToolErrorType.INVALID_INPUT, ToolErrorType.NOT_FOUND, ToolErrorType.PERMISSION}
)


def _classify_by_type(error: BaseException) -> ToolErrorType | None:
    if isinstance(error, TimeoutError | asyncio.TimeoutError | ToolTimeoutError):
        return ToolErrorType.TIMEOUT
    if isinstance(error, httpx.TimeoutException):
        return ToolErrorType.TIMEOUT
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status in _STATUS_TYPES:
            return _STATUS_TYPES[status]
        return ToolErrorType.NETWORK if status >= 500 else ToolErrorType.UNKNOWN
    if isinstance(error, httpx.TransportError | ConnectionError):
        return ToolErrorType.NETWORK
    if isinstance(error, PermissionError | ToolPermissionError):
        return ToolErrorType.PERMISSION
    if isinstance(error, FileNotFoundError | ResourceNotFoundError | ToolNotFoundError):
        return ToolErrorType.NOT_FOUND
    if isinstance(error, ToolValidationError | ResponseSizeError | ValueError | TypeError):
        return ToolErrorType.INVALID_INPUT
    return None


def classify_message(message: str) -> ToolErrorType:
    lowered = (message or "").lower()
    for error_type, keywords in _MESSAGE_PATTERNS:
        if any(keyword in lowered for keyword in keywords):
            return error_type
    return ToolErrorType.UNKNOWN


def classify_error(error: BaseException | str) -> ToolErrorType:
    """Map an exception (or bare message) onto the closed tool error taxonomy."""
    if isinstance(error, str):
        return classify_message(error)
    return _classify_by_type(error) or classify_message(str(error))


def error_suggestions(error_type: ToolErrorType) -> list[str]:
    return list(ERROR_SUGGESTIONS[error_type])


def is_retryable(error_type: ToolErrorType | None) -> bool:
    return error_type not in NON_RETRYABLE_ERRORS
