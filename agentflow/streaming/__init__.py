from __future__ import annotations

from .protocol import (
    STREAM_SENTINEL,
    ImmediateDisplay,
    Interaction,
    InteractionElement,
    SessionContext,
    StreamableResponse,
    SystemState,
    decode_sse,
    encode_sse,
    encode_stream,
    error_fragment,
    make_response,
)

__all__ = [
    "STREAM_SENTINEL",
    "ImmediateDisplay",
    "Interaction",
    "InteractionElement",
    "SessionContext",
    "StreamableResponse",
    "SystemState",
    "decode_sse",
    "encode_sse",
    "encode_stream",
    "error_fragment",
    "make_response",
]
