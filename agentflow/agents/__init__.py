"""Stage agents and the orchestrator that drives them.

- WelcomeAgent: identifies the user's role, goal, style and focus
- InfoCollectionAgent: selects and runs tools to gather profile data
- PromptOutputAgent: turns the profile into a page design brief
- CodingAgent: renders the page files from the brief

The orchestrator runs them in sequence over a persisted session.
"""

from agentflow.agents.base_agent import InteractionResult, StageAgent
from agentflow.agents.coding_agent import CodingAgent, PageGenerator, TemplatePageGenerator
from agentflow.agents.info_collection_agent import InfoCollectionAgent
from agentflow.agents.mappings import AgentMappingRegistry
from agentflow.agents.orchestrator import AgentOrchestrator
from agentflow.agents.prompt_output_agent import PromptOutputAgent
from agentflow.agents.welcome_agent import WelcomeAgent

__all__ = [
    "AgentMappingRegistry",
    "AgentOrchestrator",
    "CodingAgent",
    "InfoCollectionAgent",
    "InteractionResult",
    "PageGenerator",
    "PromptOutputAgent",
    "StageAgent",
    "TemplatePageGenerator",
    "WelcomeAgent",
]
