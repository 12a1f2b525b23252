"""Request bodies and the response envelope of the HTTP surface."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from agentflow.core.time_utils import utc_now


class ChatStreamRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=128)
    message: str = Field(default="", max_length=20000)


class InteractRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=128)
    interaction_type: str = Field(min_length=1, max_length=64)
    data: dict[str, Any] = Field(default_factory=dict)


class ResetRequest(BaseModel):
    stage: str = Field(min_length=1, max_length=64)


class ResponseMeta(BaseModel):
    timestamp: str
    correlation_id: str | None = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


def build_meta(correlation_id: str | None = None) -> ResponseMeta:
    return ResponseMeta(timestamp=utc_now().isoformat(), correlation_id=correlation_id)


def success_response(
    data: BaseModel | dict[str, Any], *, correlation_id: str | None = None
) -> dict[str, Any]:
    """Helper to build a standardized success response."""
    payload = data.model_dump(mode="json") if isinstance(data, BaseModel) else data
    return {
        "success": True,
        "data": payload,
        "meta": build_meta(correlation_id).model_dump(),
    }


def error_response(detail: ErrorDetail, *, correlation_id: str | None = None) -> dict[str, Any]:
    """Helper to build a standardized error response."""
    return {
        "success": False,
        "error": detail.model_dump(exclude_none=True),
        "meta": build_meta(correlation_id).model_dump(),
    }
