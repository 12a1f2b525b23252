"""Tests for the streamed response wire format."""

import json

import pytest
from pydantic import ValidationError

from agentflow.streaming.protocol import (
    STREAM_SENTINEL,
    StreamableResponse,
    decode_sse,
    encode_sse,
    encode_stream,
    error_fragment,
    make_response,
)


async def _fragments(*items, fail_with=None):
    for item in items:
        yield item
    if fail_with is not None:
        raise fail_with


class TestFragments:
    def test_make_response_fills_display_and_state(self):
        fragment = make_response(
            "Hello",
            agent_name="WelcomeAgent",
            intent="advance",
            done=True,
            progress=10,
            current_stage="welcome",
            next_agent="info_collection",
        )

        assert fragment.reply == "Hello"
        assert fragment.immediate_display.timestamp
        assert fragment.is_done
        assert fragment.is_advance
        assert fragment.system_state.next_agent == "info_collection"

    def test_done_without_advance_intent_is_not_advance(self):
        fragment = make_response("Need more", intent="awaiting_input", done=True)

        assert fragment.is_done
        assert not fragment.is_advance

    def test_payload_omits_unset_blocks(self):
        payload = make_response("Hi").to_payload()

        assert "interaction" not in payload
        assert "session_context" not in payload
        assert payload["system_state"]["intent"] == "processing"

    def test_unknown_top_level_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            StreamableResponse.model_validate({"unexpected": True})

    def test_error_fragment_is_terminal(self):
        fragment = error_fragment("boom", error_type="ToolTimeoutError", session_id="s1")

        assert fragment.is_done
        assert fragment.system_state.intent == "error"
        assert fragment.system_state.metadata == {
            "error": "boom",
            "error_type": "ToolTimeoutError",
            "session_id": "s1",
        }


class TestSseFraming:
    def test_encode_sse_frames_json(self):
        frame = encode_sse(make_response("Hi"))

        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: ") :])["immediate_display"]["reply"] == "Hi"

    def test_encode_sse_passes_sentinel_through(self):
        assert encode_sse(STREAM_SENTINEL) == "data: [DONE]\n\n"

    @pytest.mark.asyncio
    async def test_stream_ends_with_sentinel(self):
        frames = [
            frame
            async for frame in encode_stream(_fragments(make_response("a"), make_response("b")))
        ]

        assert len(frames) == 3
        assert frames[-1] == "data: [DONE]\n\n"
        decoded = decode_sse("".join(frames))
        assert [item.reply for item in decoded[:2]] == ["a", "b"]
        assert decoded[2] == STREAM_SENTINEL

    @pytest.mark.asyncio
    async def test_upstream_failure_becomes_error_fragment(self):
        frames = [
            frame
            async for frame in encode_stream(
                _fragments(make_response("partial"), fail_with=RuntimeError("kaput"))
            )
        ]

        decoded = decode_sse("".join(frames))
        assert decoded[0].reply == "partial"
        assert decoded[1].system_state.intent == "error"
        assert decoded[1].system_state.metadata["error_type"] == "RuntimeError"
        assert decoded[-1] == STREAM_SENTINEL

    def test_decode_ignores_non_data_lines(self):
        frames = ": keep-alive\n\n" + encode_sse(make_response("x")) + encode_sse(STREAM_SENTINEL)

        decoded = decode_sse(frames)

        assert len(decoded) == 2
        assert decoded[0].reply == "x"
