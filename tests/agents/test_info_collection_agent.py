"""Tests for the collection stage agent."""

import pytest
from conftest import collect

from agentflow.agents.info_collection_agent import (
    TOOL_RESULTS_KEY,
    InfoCollectionAgent,
    is_sufficient,
)
from agentflow.sessions.models import CollectedData, Session


@pytest.fixture
def agent(tool_executor, tool_selector, mappings):
    return InfoCollectionAgent(tool_executor, tool_selector, mappings)


def _developer_session():
    session = Session()
    session.personalization.identity.profession = "developer"
    return session


class TestIsSufficient:
    def test_needs_identity_and_substance(self):
        assert is_sufficient(CollectedData()) is False
        assert (
            is_sufficient(CollectedData.model_validate({"personal": {"full_name": "Jane"}}))
            is False
        )
        assert is_sufficient(
            CollectedData.model_validate(
                {"personal": {"full_name": "Jane"}, "professional": {"skills": ["Figma"]}}
            )
        )
        assert is_sufficient(
            CollectedData.model_validate(
                {"personal": {"email": "jane@example.com"}, "projects": [{"id": "p1"}]}
            )
        )


class TestInfoCollectionProcess:
    @pytest.mark.asyncio
    async def test_done_word_advances_without_tools(self, agent, tool_service):
        fragments = await collect(agent.process("done", _developer_session()))

        assert len(fragments) == 1
        assert fragments[0].is_advance
        assert fragments[0].system_state.next_agent == "prompt_output"
        assert tool_service.calls == []

    @pytest.mark.asyncio
    async def test_nothing_to_analyze_asks_for_material(self, agent, tool_service):
        fragments = await collect(agent.process("", _developer_session()))

        final = fragments[-1]
        assert final.system_state.intent == "awaiting_input"
        assert final.system_state.metadata == {"completion_status": "collecting", "tools": []}
        assert "GitHub" in final.reply
        assert [e.id for e in final.interaction.elements] == ["confirm", "add_info", "skip"]
        assert tool_service.calls == []

    @pytest.mark.asyncio
    async def test_github_link_is_analyzed_and_merged(self, agent, tool_service):
        session = _developer_session()

        fragments = await collect(
            agent.process("Here is my GitHub: https://github.com/octocat", session)
        )

        intents = [f.system_state.intent for f in fragments]
        assert intents == ["thinking", "tool_execution", "tool_result", "advance"]
        assert fragments[1].system_state.metadata == {"tools": ["analyze_github"]}
        assert fragments[2].system_state.metadata["success"] is True
        assert [name for name, _ in tool_service.calls] == ["analyze_github"]

        collected = session.collected_data
        assert collected.personal.full_name == "The Octocat"
        assert collected.personal.github == "https://github.com/octocat"
        assert collected.professional.skills == ["Python", "TypeScript"]
        assert [p["id"] for p in collected.projects] == [
            "github:octocat/hello-world",
            "github:octocat/spoon-knife",
        ]
        history = session.generated_content[TOOL_RESULTS_KEY]
        assert history[0]["tool_name"] == "analyze_github"
        assert history[0]["success"] is True

    @pytest.mark.asyncio
    async def test_same_link_twice_does_not_duplicate_projects(self, agent):
        session = _developer_session()

        await collect(agent.process("https://github.com/octocat", session))
        await collect(agent.process("https://github.com/octocat", session))

        assert len(session.collected_data.projects) == 2
        assert len(session.generated_content[TOOL_RESULTS_KEY]) == 2

    @pytest.mark.asyncio
    async def test_failed_tool_keeps_collecting(self, agent):
        session = _developer_session()

        fragments = await collect(agent.process("https://github.com/ghost", session))

        result = fragments[-2]
        assert result.system_state.metadata["success"] is False
        assert result.system_state.metadata["error_type"] == "not_found"
        assert result.system_state.metadata["suggestions"]
        final = fragments[-1]
        assert final.system_state.intent == "awaiting_input"
        assert final.system_state.metadata["completion_status"] == "collecting"
        assert session.collected_data.filled_sections() == []
        assert session.generated_content[TOOL_RESULTS_KEY][0]["error_type"] == "not_found"


class TestInfoCollectionInteraction:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("interaction_type", ["confirm", "skip"])
    async def test_confirm_and_skip_advance(self, agent, interaction_type):
        result = await agent.handle_interaction(interaction_type, {}, Session())

        assert result.action == "advance"
        assert result.summary

    @pytest.mark.asyncio
    async def test_add_info_merges(self, agent):
        session = Session()

        result = await agent.handle_interaction(
            "add_info",
            {"personal": {"full_name": "Jane Doe"}, "professional": {"skills": ["Figma"]}},
            session,
        )

        assert result.action == "continue"
        assert result.data == {"collected_sections": ["personal", "professional"]}
        assert session.collected_data.personal.full_name == "Jane Doe"

    @pytest.mark.asyncio
    async def test_invalid_add_info_is_an_error(self, agent):
        session = Session()

        result = await agent.handle_interaction("add_info", {"projects": "many"}, session)

        assert result.action == "error"
        assert result.error
        assert session.collected_data.filled_sections() == []
