"""Wire protocol for streamed agent responses.

A response stream is a sequence of :class:`StreamableResponse` fragments,
each framed as a server-sent event (``data: <json>\\n\\n``) and terminated
by ``data: [DONE]\\n\\n``.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from agentflow.core.time_utils import utc_now
from agentflow.sessions.models import Personalization, UserIntent  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

STREAM_SENTINEL = "[DONE]"


class ImmediateDisplay(BaseModel):
    reply: str
    thinking: str | None = None
    agent_name: str | None = None
    timestamp: str | None = None


class ElementOption(BaseModel):
    value: str
    label: str
    description: str | None = None


class ElementValidation(BaseModel):
    pattern: str | None = None
    message: str | None = None
    min: float | None = None
    max: float | None = None


class InteractionElement(BaseModel):
    id: str
    type: Literal["button", "input", "select", "textarea", "checkbox"]
    label: str
    value: Any = None
    options: list[ElementOption] | None = None
    placeholder: str | None = None
    required: bool | None = None
    validation: ElementValidation | None = None


class Interaction(BaseModel):
    type: Literal["choice", "input", "form", "confirmation"]
    title: str | None = None
    description: str | None = None
    elements: list[InteractionElement] = Field(default_factory=list)
    required: bool | None = None


class SystemState(BaseModel):
    progress: int | None = None
    current_stage: str | None = None
    intent: str
    done: bool = False
    next_agent: str | None = None
    metadata: dict[str, Any] | None = None


class SessionContext(BaseModel):
    session_id: str
    user_id: str | None = None
    collected_data: dict[str, Any] | None = None
    user_intent: UserIntent | None = None
    personalization: Personalization | None = None


class StreamableResponse(BaseModel):
    """One fragment of an agent's streamed output."""

    model_config = ConfigDict(extra="forbid")

    immediate_display: ImmediateDisplay | None = None
    interaction: Interaction | None = None
    system_state: SystemState | None = None
    session_context: SessionContext | None = None

    @property
    def is_done(self) -> bool:
        return bool(self.system_state and self.system_state.done)

    @property
    def is_advance(self) -> bool:
        return (
            self.system_state is not None
            and self.system_state.done
            and self.system_state.intent == "advance"
        )

    @property
    def reply(self) -> str:
        return self.immediate_display.reply if self.immediate_display else ""

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def make_response(
    reply: str,
    *,
    agent_name: str | None = None,
    intent: str = "processing",
    done: bool = False,
    thinking: str | None = None,
    progress: int | None = None,
    current_stage: str | None = None,
    next_agent: str | None = None,
    interaction: Interaction | None = None,
    metadata: dict[str, Any] | None = None,
) -> StreamableResponse:
    """Build a fragment with a timestamped display block and a system state."""
    return StreamableResponse(
        immediate_display=ImmediateDisplay(
            reply=reply,
            thinking=thinking,
            agent_name=agent_name,
            timestamp=utc_now().isoformat(),
        ),
        interaction=interaction,
        system_state=SystemState(
            progress=progress,
            current_stage=current_stage,
            intent=intent,
            done=done,
            next_agent=next_agent,
            metadata=metadata,
        ),
    )


def encode_sse(payload: StreamableResponse | dict[str, Any] | str) -> str:
    """Frame one payload as a server-sent event."""
    if isinstance(payload, StreamableResponse):
        data = json.dumps(payload.to_payload(), ensure_ascii=False)
    elif isinstance(payload, dict):
        data = json.dumps(payload, ensure_ascii=False, default=str)
    else:
        data = payload
    return f"data: {data}\n\n"


def error_fragment(
    message: str, error_type: str = "unknown", **metadata: Any
) -> StreamableResponse:
    return make_response(
        message,
        intent="error",
        done=True,
        metadata={"error": message, "error_type": error_type, **metadata},
    )


async def encode_stream(fragments: AsyncIterator[StreamableResponse]) -> AsyncIterator[str]:
    """Convert a fragment stream into SSE frames ending with the sentinel.

    An exception raised by the upstream iterator is reported as a terminal
    error fragment; the sentinel is emitted either way.
    """
    try:
        async for fragment in fragments:
            yield encode_sse(fragment)
    except Exception as exc:
        logger.exception("stream_encoding_failed", extra={"error": str(exc)})
        yield encode_sse(
            error_fragment(
                "Something went wrong while processing your request. Please try again.",
                error_type=type(exc).__name__,
            )
        )
    yield encode_sse(STREAM_SENTINEL)


def decode_sse(frames: str) -> list[StreamableResponse | str]:
    """Parse SSE text back into fragments; the sentinel is returned as a string."""
    items: list[StreamableResponse | str] = []
    for block in frames.split("\n\n"):
        block = block.strip()
        if not block.startswith("data:"):
            continue
        data = block[len("data:") :].strip()
        if data == STREAM_SENTINEL:
            items.append(STREAM_SENTINEL)
        else:
            items.append(StreamableResponse.model_validate_json(data))
    return items
