"""HTTP endpoints exposing the orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from agentflow.api.models import ChatStreamRequest, InteractRequest, ResetRequest, success_response
from agentflow.domain.exceptions import SessionNotFoundError
from agentflow.streaming.protocol import encode_stream

if TYPE_CHECKING:
    from agentflow.agents.orchestrator import AgentOrchestrator

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _not_found(session_id: str) -> SessionNotFoundError:
    return SessionNotFoundError(f"Session {session_id} not found", {"session_id": session_id})


def create_router(orchestrator: AgentOrchestrator) -> APIRouter:
    router = APIRouter()

    @router.post("/chat/stream")
    async def chat_stream(body: ChatStreamRequest) -> StreamingResponse:
        """Stream the agents' response as server-sent events ending with ``[DONE]``."""
        fragments = orchestrator.process_input(body.session_id, body.message)
        return StreamingResponse(
            encode_stream(fragments), media_type="text/event-stream", headers=SSE_HEADERS
        )

    @router.post("/chat/interact")
    async def chat_interact(body: InteractRequest, request: Request) -> dict:
        result = await orchestrator.handle_interaction(
            body.session_id, body.interaction_type, body.data
        )
        return success_response(
            {
                "action": result.action,
                "summary": result.summary,
                "data": result.data,
                "next_agent": result.next_agent,
                "error": result.error,
            },
            correlation_id=getattr(request.state, "correlation_id", None),
        )

    @router.get("/sessions/{session_id}/status")
    async def session_status(session_id: str, request: Request) -> dict:
        status_data = await orchestrator.get_session_status(session_id)
        if status_data is None:
            raise _not_found(session_id)
        return success_response(
            status_data, correlation_id=getattr(request.state, "correlation_id", None)
        )

    @router.get("/sessions/{session_id}/health")
    async def session_health(session_id: str, request: Request) -> dict:
        health = await orchestrator.get_session_health(session_id)
        if health is None:
            raise _not_found(session_id)
        return success_response(
            health, correlation_id=getattr(request.state, "correlation_id", None)
        )

    @router.post("/sessions/{session_id}/reset")
    async def reset_session(session_id: str, body: ResetRequest, request: Request) -> dict:
        if not await orchestrator.reset_session_to_stage(session_id, body.stage):
            raise _not_found(session_id)
        status_data = await orchestrator.get_session_status(session_id)
        return success_response(
            status_data or {}, correlation_id=getattr(request.state, "correlation_id", None)
        )

    return router
