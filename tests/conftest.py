"""Pytest configuration and shared fixtures.

This module provides common fixtures for all tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from agentflow.agents.coding_agent import CodingAgent
from agentflow.agents.info_collection_agent import InfoCollectionAgent
from agentflow.agents.mappings import AgentMappingRegistry
from agentflow.agents.orchestrator import AgentOrchestrator
from agentflow.agents.prompt_output_agent import PromptOutputAgent
from agentflow.agents.welcome_agent import WelcomeAgent
from agentflow.config.sessions import SessionSettings
from agentflow.config.tools import ToolSettings
from agentflow.domain.exceptions import ResourceNotFoundError, ToolPermissionError
from agentflow.sessions.manager import SessionManager
from agentflow.sessions.store import InMemorySessionStore
from agentflow.tools.builtins import create_default_registry
from agentflow.tools.executor import ToolExecutor
from agentflow.tools.selector import ToolSelector

GITHUB_PROFILE = {
    "confidence": 0.9,
    "data": {
        "username": "octocat",
        "name": "The Octocat",
        "bio": "Building tools for developers",
        "location": "San Francisco",
        "blog": "https://octocat.dev",
        "email": "octocat@example.com",
        "profile_url": "https://github.com/octocat",
        "repositories": [
            {
                "name": "hello-world",
                "description": "My first repository",
                "language": "Python",
                "stars": 42,
                "url": "https://github.com/octocat/hello-world",
            },
            {
                "name": "spoon-knife",
                "description": "Fork me",
                "language": "TypeScript",
                "stars": 7,
                "url": "https://github.com/octocat/spoon-knife",
            },
        ],
        "top_languages": ["Python", "TypeScript"],
    },
    "metadata": {"source": "github_api", "owner": "octocat"},
}


class FakeToolService:
    """In-process stand-in for the HTTP integrations."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    async def analyze_github(
        self, username_or_url: str, include_repos: bool = True, repo_limit: int = 10
    ) -> dict[str, Any]:
        self.calls.append(("analyze_github", username_or_url))
        if "ghost" in username_or_url:
            raise ResourceNotFoundError("GitHub resource not found: /users/ghost")
        return {**GITHUB_PROFILE, "data": dict(GITHUB_PROFILE["data"])}

    async def analyze_github_repo(self, repo_url: str) -> dict[str, Any]:
        self.calls.append(("analyze_github_repo", repo_url))
        return {
            "confidence": 0.9,
            "data": {
                "name": "hello-world",
                "full_name": "octocat/hello-world",
                "description": "My first repository",
                "url": repo_url,
                "stars": 42,
                "languages": {"Python": 100.0},
            },
        }

    async def scrape_webpage(
        self, url: str, target_sections: list[str] | None = None
    ) -> dict[str, Any]:
        self.calls.append(("scrape_webpage", url))
        return {
            "confidence": 0.85,
            "data": {
                "url": url,
                "title": "Jane Doe - Product Designer",
                "description": "Portfolio of Jane Doe, designing calm and useful products.",
                "keywords": ["design", "portfolio"],
                "headings": ["About", "Projects"],
                "content": "I design products with Figma and Prototyping.",
                "social_links": {"linkedin": "https://www.linkedin.com/in/janedoe"},
                "emails": ["jane@example.com"],
                "skills": ["Figma", "Prototyping"],
                "website_type": "portfolio",
            },
            "metadata": {"source": "http"},
        }

    async def parse_document(
        self, file_data: str, file_type: str, extract_mode: str = "general"
    ) -> dict[str, Any]:
        self.calls.append(("parse_document", file_type))
        return {
            "confidence": 0.8,
            "data": {
                "full_name": "Jane Doe",
                "emails": ["jane@example.com"],
                "phones": [],
                "skills": ["Python"],
            },
        }

    async def extract_linkedin(self, profile_url: str) -> dict[str, Any]:
        self.calls.append(("extract_linkedin", profile_url))
        raise ToolPermissionError("LinkedIn permission required")


async def collect(stream) -> list[Any]:
    """Drain an async iterator into a list."""
    return [item async for item in stream]


async def no_sleep(_: float) -> None:
    return None


@pytest.fixture
def mappings() -> AgentMappingRegistry:
    return AgentMappingRegistry()


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def session_manager(memory_store, mappings) -> SessionManager:
    return SessionManager(memory_store, SessionSettings(), mappings)


@pytest.fixture
def tool_service() -> FakeToolService:
    return FakeToolService()


@pytest.fixture
def tool_settings() -> ToolSettings:
    return ToolSettings()


@pytest.fixture
def tool_registry(tool_service, tool_settings):
    return create_default_registry(tool_service, tool_settings)


@pytest.fixture
def tool_executor(tool_registry, tool_settings) -> ToolExecutor:
    return ToolExecutor(tool_registry, tool_settings, sleep=no_sleep)


@pytest.fixture
def tool_selector(tool_registry) -> ToolSelector:
    return ToolSelector(tool_registry)


@pytest.fixture
def stage_agents(tool_executor, tool_selector, mappings) -> list:
    return [
        WelcomeAgent(mappings),
        InfoCollectionAgent(tool_executor, tool_selector, mappings),
        PromptOutputAgent(mappings),
        CodingAgent(mappings=mappings),
    ]


@pytest.fixture
def orchestrator(session_manager, stage_agents, mappings) -> AgentOrchestrator:
    return AgentOrchestrator(session_manager, stage_agents, mappings)
