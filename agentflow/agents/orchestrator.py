"""Orchestrator driving sessions through the stage agents.

One request runs the current stage's agent and relays its fragments. When an
agent finishes with ``intent == 'advance'`` the session moves to the next
stage and that agent runs in the same stream, until an agent parks the
session or the last stage completes.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any

from agentflow.agents.base_agent import InteractionResult
from agentflow.agents.mappings import COMPLETED_PROGRESS, AgentMappingRegistry
from agentflow.core.time_utils import utc_now
from agentflow.domain.exceptions import AgentNotFoundError, SessionNotFoundError
from agentflow.sessions.models import AgentFlowRecord, new_id
from agentflow.streaming.protocol import make_response

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable
    from datetime import datetime

    from agentflow.agents.base_agent import StageAgent
    from agentflow.sessions.health import RecoveryRecommendation, SessionHealth
    from agentflow.sessions.manager import SessionManager
    from agentflow.sessions.models import Session
    from agentflow.streaming.protocol import StreamableResponse

logger = logging.getLogger(__name__)

SYSTEM_AGENT = "system"
ERROR_REPLY = "Sorry, something went wrong while processing your request: {error}"


class AgentOrchestrator:
    def __init__(
        self,
        session_manager: SessionManager,
        agents: Iterable[StageAgent],
        mappings: AgentMappingRegistry | None = None,
    ) -> None:
        self.sessions = session_manager
        self.mappings = mappings or session_manager.mappings or AgentMappingRegistry()
        self.agents: dict[str, StageAgent] = {agent.name: agent for agent in agents}
        logger.info("orchestrator_initialized", extra={"agents": list(self.agents)})

    def get_agent(self, agent_name: str) -> StageAgent:
        agent = self.agents.get(agent_name)
        if agent is None:
            msg = f"Agent {agent_name} not found"
            raise AgentNotFoundError(msg, {"agent": agent_name})
        return agent

    def current_agent_name(self, session: Session) -> str:
        stage = self.mappings.resolve_stage(session.current_stage)
        return self.mappings.get_agent_from_stage(stage)

    async def _load_copy(self, session_id: str) -> Session:
        stored = await self.sessions.get_session(session_id)
        if stored is None:
            msg = f"Session {session_id} not found"
            raise SessionNotFoundError(msg, {"session_id": session_id})
        return stored.model_copy(deep=True)

    async def _checkpoint(self, session: Session) -> None:
        # The working copy keeps changing after a checkpoint; the manager gets a snapshot.
        await self.sessions.save_session(session.model_copy(deep=True))

    def _normalize_stage(self, session: Session) -> None:
        stage = self.mappings.resolve_stage(session.current_stage)
        if stage != session.current_stage:
            logger.info(
                "stored_stage_normalized",
                extra={"session_id": session.id, "from": session.current_stage, "to": stage},
            )
            session.metadata.progress.current_stage = stage

    def _transition(self, session: Session, next_agent: str) -> None:
        progress = session.metadata.progress
        stage = self.mappings.get_stage_from_agent(next_agent)
        logger.info(
            "stage_transition",
            extra={"session_id": session.id, "from": progress.current_stage, "to": stage},
        )
        progress.current_stage = stage
        progress.percentage = self.mappings.calculate_progress(stage)
        session.metadata.metrics.agent_transitions += 1

    def _mark_completed(self, session: Session) -> None:
        session.status = "completed"
        session.metadata.progress.percentage = COMPLETED_PROGRESS
        logger.info("session_completed", extra={"session_id": session.id})

    def _wants_advance(self, fragment: StreamableResponse) -> bool:
        if not fragment.is_advance:
            return False
        state = fragment.system_state
        metadata = (state.metadata if state else None) or {}
        return metadata.get("completion_status", "ready") == "ready"

    async def _complete_stage(
        self,
        session: Session,
        agent_name: str,
        started: datetime,
        fragment: StreamableResponse,
    ) -> str | None:
        """Record a finished agent run and advance when asked to.

        Shared by the streaming and interaction paths. Returns the agent that
        should run next, or ``None`` when the session stays or is complete.
        """
        advance = self._wants_advance(fragment)
        self.sessions.record_agent_completion(
            session, agent_name, started, output=fragment.to_payload(), stage_completed=advance
        )
        if fragment.reply:
            intent = fragment.system_state.intent if fragment.system_state else None
            self.sessions.record_conversation_entry(
                session,
                "agent_response",
                fragment.reply,
                agent=self.mappings.standardize_agent_name(agent_name),
                metadata={"intent": intent},
            )

        next_agent: str | None = None
        if advance:
            if self.mappings.should_continue_to_next_agent(agent_name):
                next_agent = self.mappings.get_next_agent(agent_name)
            if next_agent is None:
                self._mark_completed(session)
            else:
                self._transition(session, next_agent)
        await self._checkpoint(session)
        return next_agent

    async def process_input(
        self, session_id: str, user_input: str
    ) -> AsyncIterator[StreamableResponse]:
        """Stream the response to one user message.

        Errors end the stream with a single fragment whose intent is
        ``error``; the session is persisted without advancing.
        """
        session: Session | None = None
        agent_name: str | None = None
        started = utc_now()
        try:
            stored = await self.sessions.get_or_create_session(session_id)
            session = stored.model_copy(deep=True)
            self._normalize_stage(session)
            self.sessions.record_conversation_entry(session, "user_message", user_input)

            agent_name = self.current_agent_name(session)
            agent_input = user_input
            visited: set[str] = set()
            while agent_name is not None:
                if agent_name in visited:
                    logger.warning(
                        "agent_loop_detected", extra={"session_id": session.id, "agent": agent_name}
                    )
                    break
                visited.add(agent_name)
                agent = self.get_agent(agent_name)
                started = utc_now()
                logger.info(
                    "agent_started",
                    extra={
                        "session_id": session.id,
                        "agent": agent_name,
                        "stage": session.current_stage,
                    },
                )

                terminal: StreamableResponse | None = None
                async with contextlib.aclosing(agent.process(agent_input, session)) as fragments:
                    async for fragment in fragments:
                        yield fragment
                        if fragment.is_done:
                            terminal = fragment
                            break

                if terminal is None:
                    logger.warning(
                        "agent_finished_without_done",
                        extra={"session_id": session.id, "agent": agent_name},
                    )
                    await self._checkpoint(session)
                    return

                agent_name = await self._complete_stage(session, agent_name, started, terminal)
                agent_input = ""
        except Exception as exc:
            logger.exception(
                "orchestrator_stream_failed",
                extra={"session_id": session_id, "agent": agent_name, "error": str(exc)},
            )
            yield await self._fail(session, session_id, agent_name, started, exc, user_input)

    async def _fail(
        self,
        session: Session | None,
        session_id: str,
        agent_name: str | None,
        started: datetime,
        exc: Exception,
        user_input: Any,
    ) -> StreamableResponse:
        error_type = type(exc).__name__
        message = getattr(exc, "message", None) or str(exc) or error_type
        metadata: dict[str, Any] = {
            "error": message,
            "error_type": error_type,
            "session_id": session_id,
        }
        if session is None:
            return make_response(
                ERROR_REPLY.format(error=message),
                agent_name=SYSTEM_AGENT,
                intent="error",
                done=True,
                metadata=metadata,
            )

        self.sessions.record_agent_failure(
            session, agent_name or SYSTEM_AGENT, started, exc, user_input=user_input
        )
        recommendation = self.sessions.get_recovery_recommendation(session, exc)
        metadata["recovery"] = recommendation.model_dump()
        await self._checkpoint(session)
        return make_response(
            ERROR_REPLY.format(error=message),
            agent_name=SYSTEM_AGENT,
            intent="error",
            done=True,
            progress=session.metadata.progress.percentage,
            current_stage=session.current_stage,
            metadata=metadata,
        )

    async def handle_interaction(
        self, session_id: str, interaction_type: str, data: dict[str, Any] | None = None
    ) -> InteractionResult:
        """Delegate a structured interaction to the current stage's agent.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = await self._load_copy(session_id)
        self._normalize_stage(session)
        data = dict(data or {})
        agent_name = self.current_agent_name(session)
        started = utc_now()
        try:
            agent = self.get_agent(agent_name)
            result = await agent.handle_interaction(interaction_type, data, session)
            session.metadata.metrics.user_interactions += 1
            self.sessions.record_conversation_entry(
                session,
                "user_message",
                f"[{interaction_type}]",
                user_interaction={"type": interaction_type, "data": data},
            )
            logger.info(
                "interaction_handled",
                extra={
                    "session_id": session_id,
                    "agent": agent_name,
                    "interaction_type": interaction_type,
                    "action": result.action,
                },
            )
            if result.action == "advance":
                fragment = agent.advance(
                    result.summary or "", session, metadata={"interaction": interaction_type}
                )
                result.next_agent = await self._complete_stage(
                    session, agent_name, started, fragment
                )
            else:
                await self._checkpoint(session)
            return result
        except Exception as exc:
            logger.exception(
                "interaction_failed",
                extra={"session_id": session_id, "agent": agent_name, "error": str(exc)},
            )
            self.sessions.record_agent_failure(
                session, agent_name, started, exc, user_input={"interaction": interaction_type}
            )
            await self._checkpoint(session)
            return InteractionResult(action="error", error=str(exc))

    async def advance_stage(self, session_id: str) -> str | None:
        """Force the session to the next stage; returns the new agent or ``None``."""
        session = await self._load_copy(session_id)
        self._normalize_stage(session)
        agent_name = self.current_agent_name(session)
        progress = session.metadata.progress
        if progress.current_stage not in progress.completed_stages:
            progress.completed_stages.append(progress.current_stage)
        next_agent = self.mappings.get_next_agent(agent_name)
        if next_agent is None:
            self._mark_completed(session)
        else:
            self._transition(session, next_agent)
        await self._checkpoint(session)
        return next_agent

    async def reset_session_to_stage(self, session_id: str, stage: str) -> bool:
        """Move the session back to ``stage``.

        Completed stages are truncated to those preceding ``stage`` and a
        ``system`` flow record documents the reset. Returns False when the
        session does not exist.

        Raises:
            InvalidStageError: If ``stage`` is not a known stage label
        """
        target = self.mappings.normalize_stage(stage)
        stored = await self.sessions.get_session(session_id)
        if stored is None:
            return False
        session = stored.model_copy(deep=True)
        progress = session.metadata.progress
        previous = progress.current_stage

        canonical = self.mappings.get_canonical_stages()
        preceding = set(canonical[: canonical.index(target)])
        progress.completed_stages = [s for s in progress.completed_stages if s in preceding]
        progress.current_stage = target
        progress.percentage = self.mappings.calculate_progress(target)
        if session.status == "completed":
            session.status = "active"

        now = utc_now()
        reply = f"Session reset to the {target} stage"
        record = AgentFlowRecord(
            id=f"reset_{int(now.timestamp() * 1000)}_{new_id('run')[-6:]}",
            agent=SYSTEM_AGENT,
            start_time=now,
            input={"action": "reset_to_stage", "stage": target},
        )
        record.finish(
            "completed",
            end_time=now,
            output=make_response(
                reply,
                agent_name=SYSTEM_AGENT,
                intent="reset",
                done=True,
                progress=progress.percentage,
                current_stage=target,
                metadata={"reset_action": True, "previous_stage": previous},
            ).to_payload(),
        )
        session.add_flow_record(record)
        await self._checkpoint(session)
        logger.info(
            "session_reset",
            extra={"session_id": session_id, "from": previous, "to": target},
        )
        return True

    async def get_session_status(self, session_id: str) -> dict[str, Any] | None:
        session = await self.sessions.get_session(session_id)
        if session is None:
            return None
        progress = session.metadata.progress
        return {
            "session_id": session.id,
            "current_stage": progress.current_stage,
            "current_agent": self.current_agent_name(session),
            "completed_stages": list(progress.completed_stages),
            "overall_progress": progress.percentage,
            "status": session.status,
            "created_at": session.metadata.created_at.isoformat(),
            "last_active": session.metadata.last_active.isoformat(),
        }

    async def get_session_health(self, session_id: str) -> SessionHealth | None:
        session = await self.sessions.get_session(session_id)
        if session is None:
            return None
        return self.sessions.get_session_health(session)

    async def get_recovery_recommendation(
        self, session_id: str, error: BaseException | str
    ) -> RecoveryRecommendation | None:
        session = await self.sessions.get_session(session_id)
        if session is None:
            return None
        return self.sessions.get_recovery_recommendation(session, error)
