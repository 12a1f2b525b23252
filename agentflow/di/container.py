"""Dependency injection container for wiring components.

This container provides a centralized place to build the tool stack, the
session stack and the orchestrator from one :class:`AppConfig`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentflow.agents.coding_agent import CodingAgent
from agentflow.agents.info_collection_agent import InfoCollectionAgent
from agentflow.agents.mappings import AgentMappingRegistry
from agentflow.agents.orchestrator import AgentOrchestrator
from agentflow.agents.prompt_output_agent import PromptOutputAgent
from agentflow.agents.welcome_agent import WelcomeAgent
from agentflow.config import load_config
from agentflow.sessions.manager import SessionManager
from agentflow.sessions.sqlite_store import SqliteSessionStore
from agentflow.tools.builtins import create_default_registry
from agentflow.tools.executor import ToolExecutor
from agentflow.tools.selector import ToolSelector
from agentflow.tools.service import HttpToolService

if TYPE_CHECKING:
    from agentflow.agents.base_agent import StageAgent
    from agentflow.agents.coding_agent import PageGenerator
    from agentflow.config import AppConfig
    from agentflow.sessions.store import SessionStore
    from agentflow.tools.registry import ToolRegistry
    from agentflow.tools.service import ToolService


class Container:
    """Dependency injection container.

    Components are created lazily on first access and cached, so every
    accessor returns the same instance for the container's lifetime.

    Example:
        ```python
        container = Container(load_config(), session_store=InMemorySessionStore())
        orchestrator = container.orchestrator()
        async for fragment in orchestrator.process_input("session_1", "Hi"):
            ...
        ```
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        session_store: SessionStore | None = None,
        tool_service: ToolService | None = None,
        page_generator: PageGenerator | None = None,
    ) -> None:
        """Initialize the container.

        Args:
            config: Application configuration (loaded from the environment if omitted).
            session_store: Optional store; a SQLite store at ``DB_PATH`` by default.
            tool_service: Optional integration backend; an HTTP service by default.
            page_generator: Optional page renderer for the generation stage.
        """
        self.config = config or load_config()
        self._session_store = session_store
        self._tool_service = tool_service
        self._page_generator = page_generator

        self._mappings: AgentMappingRegistry | None = None
        self._session_manager: SessionManager | None = None
        self._tool_registry: ToolRegistry | None = None
        self._tool_executor: ToolExecutor | None = None
        self._tool_selector: ToolSelector | None = None
        self._orchestrator: AgentOrchestrator | None = None

    def mappings(self) -> AgentMappingRegistry:
        if self._mappings is None:
            self._mappings = AgentMappingRegistry()
        return self._mappings

    def session_store(self) -> SessionStore:
        if self._session_store is None:
            store = SqliteSessionStore(self.config.database)
            store.migrate()
            self._session_store = store
        return self._session_store

    def session_manager(self) -> SessionManager:
        if self._session_manager is None:
            self._session_manager = SessionManager(
                self.session_store(), self.config.sessions, self.mappings()
            )
        return self._session_manager

    def tool_service(self) -> ToolService:
        if self._tool_service is None:
            self._tool_service = HttpToolService(self.config.tools)
        return self._tool_service

    def tool_registry(self) -> ToolRegistry:
        if self._tool_registry is None:
            self._tool_registry = create_default_registry(self.tool_service(), self.config.tools)
        return self._tool_registry

    def tool_executor(self) -> ToolExecutor:
        if self._tool_executor is None:
            self._tool_executor = ToolExecutor(self.tool_registry(), self.config.tools)
        return self._tool_executor

    def tool_selector(self) -> ToolSelector:
        if self._tool_selector is None:
            self._tool_selector = ToolSelector(self.tool_registry())
        return self._tool_selector

    def agents(self) -> list[StageAgent]:
        mappings = self.mappings()
        return [
            WelcomeAgent(mappings),
            InfoCollectionAgent(self.tool_executor(), self.tool_selector(), mappings),
            PromptOutputAgent(mappings),
            CodingAgent(self._page_generator, mappings),
        ]

    def orchestrator(self) -> AgentOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = AgentOrchestrator(
                self.session_manager(), self.agents(), self.mappings()
            )
        return self._orchestrator

    async def aclose(self) -> None:
        """Release network clients and database handles owned by the container."""
        if self._session_manager is not None:
            await self._session_manager.stop_cleanup_task()
        if isinstance(self._tool_service, HttpToolService):
            await self._tool_service.aclose()
        if isinstance(self._session_store, SqliteSessionStore):
            self._session_store.close()
