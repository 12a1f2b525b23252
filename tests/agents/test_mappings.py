"""Tests for agent/stage lookups."""

import pytest

from agentflow.agents.mappings import AgentMappingRegistry
from agentflow.domain.exceptions import InvalidStageError


@pytest.fixture
def registry():
    return AgentMappingRegistry()


class TestStageLookups:
    def test_design_agent_maps_to_page_design(self, registry):
        assert registry.get_stage_from_agent("prompt_output") == "page_design"
        assert registry.get_agent_from_stage("page_design") == "prompt_output"

    def test_legacy_start_stage_maps_to_first_agent(self, registry):
        assert registry.get_agent_from_stage("start") == "welcome"

    @pytest.mark.parametrize("agent", ["welcome", "info_collection", "prompt_output", "coding"])
    def test_agent_stage_round_trip(self, registry, agent):
        assert registry.get_agent_from_stage(registry.get_stage_from_agent(agent)) == agent

    def test_unknown_names_pass_through(self, registry):
        assert registry.get_stage_from_agent("reviewer") == "reviewer"
        assert registry.get_agent_from_stage("review") == "review"
        assert registry.standardize_agent_name("reviewer") == "reviewer"


class TestSequence:
    def test_next_agent(self, registry):
        assert registry.get_next_agent("welcome") == "info_collection"
        assert registry.get_next_agent("prompt_output") == "coding"
        assert registry.get_next_agent("coding") is None
        assert registry.get_next_agent("unknown") is None

    def test_should_continue(self, registry):
        assert registry.should_continue_to_next_agent("info_collection") is True
        assert registry.should_continue_to_next_agent("coding") is False

    def test_sequence_and_stages(self, registry):
        assert registry.get_agent_sequence() == [
            "welcome",
            "info_collection",
            "prompt_output",
            "coding",
        ]
        assert registry.get_canonical_stages() == [
            "welcome",
            "info_collection",
            "page_design",
            "code_generation",
        ]
        assert "start" in registry.get_all_stages()
        assert "start" not in registry.get_canonical_stages()

    def test_display_names(self, registry):
        assert registry.standardize_agent_name("welcome") == "WelcomeAgent"
        assert registry.standardize_agent_name("coding") == "CodingAgent"


class TestProgress:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("start", 0),
            ("welcome", 10),
            ("info_collection", 40),
            ("page_design", 70),
            ("prompt_output", 70),
            ("code_generation", 90),
            ("coding", 90),
            ("unknown", 0),
        ],
    )
    def test_calculate_progress(self, registry, name, expected):
        assert registry.calculate_progress(name) == expected


class TestValidation:
    def test_valid_names(self, registry):
        assert registry.is_valid_stage("page_design") is True
        assert registry.is_valid_stage("prompt_output") is False
        assert registry.is_valid_agent("prompt_output") is True

    def test_normalize_stage(self, registry):
        assert registry.normalize_stage("start") == "welcome"
        assert registry.normalize_stage("code_generation") == "code_generation"

    def test_strict_normalize_rejects_unknown_stage(self, registry):
        with pytest.raises(InvalidStageError) as exc_info:
            registry.normalize_stage("deploy")

        assert exc_info.value.details == {"stage": "deploy"}


class TestResolveStage:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("welcome", "welcome"),
            ("start", "welcome"),
            ("page_design", "page_design"),
            ("prompt_output", "page_design"),
            ("coding", "code_generation"),
        ],
    )
    def test_known_labels_and_agent_names(self, registry, label, expected):
        assert registry.resolve_stage(label) == expected

    @pytest.mark.parametrize("label", ["intake", "deploy", ""])
    def test_unknown_label_falls_back_to_first_stage(self, registry, label, caplog):
        with caplog.at_level("WARNING", logger="agentflow.agents.mappings"):
            assert registry.resolve_stage(label) == "welcome"

        assert "unknown_stage_reset_to_first" in caplog.text
