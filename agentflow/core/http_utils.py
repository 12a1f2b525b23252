from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


class ResponseSizeError(ValueError):
    """Raised when a response exceeds the maximum allowed size."""

    def __init__(self, message: str, *, actual_size: int | None = None, max_size: int) -> None:
        super().__init__(message)
        self.actual_size = actual_size
        self.max_size = max_size


def validate_response_size(
    response: httpx.Response,
    max_size_bytes: int,
    service_name: str,
) -> None:
    """Reject responses larger than ``max_size_bytes`` before parsing them.

    The Content-Length header is checked first; when it is absent or
    malformed the already-read body length is used instead.

    Raises:
        ResponseSizeError: If the response exceeds ``max_size_bytes``.
    """
    if max_size_bytes <= 0:
        msg = f"max_size_bytes must be a positive integer, got {max_size_bytes}"
        raise ValueError(msg)

    actual_size: int | None = None
    content_length_str = response.headers.get("content-length")
    if content_length_str:
        try:
            actual_size = int(content_length_str)
        except ValueError:
            logger.warning(
                "invalid_content_length_header",
                extra={"service": service_name, "content_length": content_length_str},
            )

    if actual_size is None:
        actual_size = len(response.content)

    if actual_size > max_size_bytes:
        msg = (
            f"{service_name} response size ({actual_size} bytes) "
            f"exceeds limit ({max_size_bytes} bytes)"
        )
        logger.error(
            "response_size_exceeded",
            extra={
                "service": service_name,
                "content_length": actual_size,
                "max_size": max_size_bytes,
                "status_code": response.status_code,
            },
        )
        raise ResponseSizeError(msg, actual_size=actual_size, max_size=max_size_bytes)

