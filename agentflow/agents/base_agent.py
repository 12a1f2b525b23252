"""Base class shared by the stage agents."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from agentflow.agents.mappings import AgentMappingRegistry
from agentflow.streaming.protocol import Interaction, StreamableResponse, make_response

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agentflow.sessions.models import Session

logger = logging.getLogger(__name__)

InteractionAction = Literal["advance", "continue", "error"]

ADVANCE_INTENT = "advance"
AWAITING_INPUT_INTENT = "awaiting_input"


@dataclass
class InteractionResult:
    """Outcome of a structured user interaction.

    Attributes:
        action: ``advance`` completes the stage, ``continue`` keeps it open
        summary: Human-readable description of what changed
        data: Fields the agent accepted from the interaction
        next_agent: Successor agent when the orchestrator advanced the session
        error: Error message when ``action`` is ``error``
    """

    action: InteractionAction
    summary: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    next_agent: str | None = None
    error: str | None = None


class StageAgent(ABC):
    """One stage of the pipeline.

    ``process`` streams fragments for a user input. The stage is finished by a
    fragment with ``system_state.done``; ``intent == 'advance'`` additionally
    asks the orchestrator to move to the next stage. Agents mutate the session
    they are given and never persist it themselves.
    """

    name: str = "agent"

    def __init__(self, mappings: AgentMappingRegistry | None = None) -> None:
        self.mappings = mappings or AgentMappingRegistry()
        self.logger = logger

    @property
    def display_name(self) -> str:
        return self.mappings.standardize_agent_name(self.name)

    @property
    def stage(self) -> str:
        return self.mappings.get_stage_from_agent(self.name)

    @abstractmethod
    def process(self, user_input: str, session: Session) -> AsyncIterator[StreamableResponse]:
        """Stream the agent's response to ``user_input``."""

    async def handle_interaction(
        self, interaction_type: str, data: dict[str, Any], session: Session
    ) -> InteractionResult:
        """Apply a structured interaction; agents without forms keep the stage open."""
        self.log_info(
            "interaction ignored", correlation_id=session.id, interaction_type=interaction_type
        )
        return InteractionResult(action="continue", summary="Nothing to update")

    def respond(
        self,
        reply: str,
        session: Session,
        *,
        intent: str = "processing",
        done: bool = False,
        thinking: str | None = None,
        interaction: Interaction | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> StreamableResponse:
        return make_response(
            reply,
            agent_name=self.display_name,
            intent=intent,
            done=done,
            thinking=thinking,
            progress=self.mappings.calculate_progress(self.stage),
            current_stage=self.stage,
            next_agent=(
                self.mappings.get_next_agent(self.name) if intent == ADVANCE_INTENT else None
            ),
            interaction=interaction,
            metadata=metadata,
        )

    def thinking(self, message: str, session: Session) -> StreamableResponse:
        return self.respond("", session, intent="thinking", thinking=message)

    def advance(
        self, reply: str, session: Session, metadata: dict[str, Any] | None = None
    ) -> StreamableResponse:
        return self.respond(reply, session, intent=ADVANCE_INTENT, done=True, metadata=metadata)

    def await_input(
        self,
        reply: str,
        session: Session,
        interaction: Interaction | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> StreamableResponse:
        """Terminal fragment that parks the session at this stage."""
        return self.respond(
            reply,
            session,
            intent=AWAITING_INPUT_INTENT,
            done=True,
            interaction=interaction,
            metadata=metadata,
        )

    def log_info(self, message: str, correlation_id: str | None = None, **kwargs: Any) -> None:
        """Log an info message with correlation ID."""
        self.logger.info(
            f"[{self.display_name}] {message}",
            extra={"correlation_id": correlation_id or "unknown", **kwargs},
        )

    def log_warning(self, message: str, correlation_id: str | None = None, **kwargs: Any) -> None:
        """Log a warning with correlation ID."""
        self.logger.warning(
            f"[{self.display_name}] {message}",
            extra={"correlation_id": correlation_id or "unknown", **kwargs},
        )

    def log_error(self, message: str, correlation_id: str | None = None, **kwargs: Any) -> None:
        """Log an error with correlation ID."""
        self.logger.error(
            f"[{self.display_name}] {message}",
            extra={"correlation_id": correlation_id or "unknown", **kwargs},
        )
