"""Static agent/stage tables and lookups over them."""

from __future__ import annotations

import logging

from agentflow.domain.exceptions import InvalidStageError

logger = logging.getLogger(__name__)

LEGACY_START_STAGE = "start"

AGENT_TO_STAGE: dict[str, str] = {
    "welcome": "welcome",
    "info_collection": "info_collection",
    "prompt_output": "page_design",
    "coding": "code_generation",
}

STAGE_TO_AGENT: dict[str, str] = {
    LEGACY_START_STAGE: "welcome",
    "welcome": "welcome",
    "info_collection": "info_collection",
    "page_design": "prompt_output",
    "code_generation": "coding",
}

AGENT_SEQUENCE: tuple[str, ...] = ("welcome", "info_collection", "prompt_output", "coding")

STAGE_PROGRESS: dict[str, int] = {
    LEGACY_START_STAGE: 0,
    "welcome": 10,
    "info_collection": 40,
    "page_design": 70,
    "code_generation": 90,
}

AGENT_DISPLAY_NAMES: dict[str, str] = {
    "welcome": "WelcomeAgent",
    "info_collection": "InfoCollectionAgent",
    "prompt_output": "PromptOutputAgent",
    "coding": "CodingAgent",
}

COMPLETED_PROGRESS = 100


class AgentMappingRegistry:
    """Lookups between agent names, stage labels, display names and progress.

    Unknown names pass through unchanged, mirroring how stored sessions may
    carry labels from older versions.
    """

    def __init__(
        self,
        agent_to_stage: dict[str, str] | None = None,
        agent_sequence: tuple[str, ...] | None = None,
        stage_progress: dict[str, int] | None = None,
    ) -> None:
        self._agent_to_stage = dict(agent_to_stage or AGENT_TO_STAGE)
        self._stage_to_agent = {stage: agent for agent, stage in self._agent_to_stage.items()}
        self._stage_to_agent.setdefault(LEGACY_START_STAGE, (agent_sequence or AGENT_SEQUENCE)[0])
        self._sequence = tuple(agent_sequence or AGENT_SEQUENCE)
        self._stage_progress = dict(stage_progress or STAGE_PROGRESS)

    def get_stage_from_agent(self, agent_name: str) -> str:
        return self._agent_to_stage.get(agent_name, agent_name)

    def get_agent_from_stage(self, stage_name: str) -> str:
        if stage_name == LEGACY_START_STAGE:
            logger.debug("legacy_start_stage_mapped", extra={"agent": self._sequence[0]})
        return self._stage_to_agent.get(stage_name, stage_name)

    def get_next_agent(self, agent_name: str) -> str | None:
        try:
            index = self._sequence.index(agent_name)
        except ValueError:
            return None
        if index < len(self._sequence) - 1:
            return self._sequence[index + 1]
        return None

    def should_continue_to_next_agent(self, agent_name: str) -> bool:
        return agent_name != self._sequence[-1]

    def calculate_progress(self, stage: str) -> int:
        """Progress percentage for a stage label; agent names are accepted too."""
        if stage not in self._stage_progress:
            stage = self._agent_to_stage.get(stage, stage)
        return self._stage_progress.get(stage, 0)

    def standardize_agent_name(self, agent_name: str) -> str:
        return AGENT_DISPLAY_NAMES.get(agent_name, agent_name)

    def get_agent_sequence(self) -> list[str]:
        return list(self._sequence)

    def get_all_stages(self) -> list[str]:
        return list(self._stage_progress)

    def get_canonical_stages(self) -> list[str]:
        """Stage labels of the agent sequence, in order (no legacy labels)."""
        return [self.get_stage_from_agent(agent) for agent in self._sequence]

    def is_valid_stage(self, stage_name: str) -> bool:
        return stage_name in self._stage_progress

    def is_valid_agent(self, agent_name: str) -> bool:
        return agent_name in self._sequence

    def normalize_stage(self, stage_name: str) -> str:
        """Map legacy labels onto canonical ones; raises for unknown stages."""
        if not self.is_valid_stage(stage_name):
            msg = f"Invalid stage name: {stage_name}"
            raise InvalidStageError(msg, {"stage": stage_name})
        return self.get_stage_from_agent(self.get_agent_from_stage(stage_name))

    def resolve_stage(self, label: str) -> str:
        """Canonical stage for a stored label.

        Agent names resolve to their stage; unknown labels fall back to the
        first stage so older sessions restart instead of failing.
        """
        if self.is_valid_stage(label):
            return self.get_stage_from_agent(self.get_agent_from_stage(label))
        if self.is_valid_agent(label):
            return self.get_stage_from_agent(label)
        first = self.get_stage_from_agent(self._sequence[0])
        logger.warning("unknown_stage_reset_to_first", extra={"stage": label, "to": first})
        return first
