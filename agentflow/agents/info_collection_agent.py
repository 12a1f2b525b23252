"""Collection stage: turn links and documents into structured profile data.

The agent asks the tool selector which integrations fit the user's message,
runs them through the executor with bounded parallelism and merges what they
return into ``session.collected_data``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from agentflow.agents.base_agent import InteractionResult, StageAgent
from agentflow.sessions.models import CollectedData
from agentflow.streaming.protocol import Interaction, InteractionElement
from agentflow.tools.selector import DEFAULT_CONFIDENCE, analyze_input, usage_suggestions

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from agentflow.agents.mappings import AgentMappingRegistry
    from agentflow.sessions.models import Session
    from agentflow.streaming.protocol import StreamableResponse
    from agentflow.tools.executor import ToolExecutor
    from agentflow.tools.models import ToolExecutionResult, ToolSuggestion
    from agentflow.tools.selector import ToolSelector

TOOL_RESULTS_KEY = "tool_results"
PORTFOLIO_PLATFORMS = frozenset({"behance", "dribbble", "codepen"})

_DONE_RE = re.compile(
    r"^\s*(?:done|continue|skip|next|proceed|that'?s all|no more)\b", re.IGNORECASE
)


def _first(values: Any) -> Any:
    if isinstance(values, list) and values:
        return values[0]
    return None


def _contact_update(data: dict[str, Any]) -> dict[str, Any]:
    update: dict[str, Any] = {
        "personal": {
            "full_name": data.get("full_name"),
            "email": _first(data.get("emails")),
            "phone": _first(data.get("phones")),
            "github": data.get("github"),
            "linkedin": data.get("linkedin"),
            "website": _first(data.get("websites")),
        },
        "professional": {"skills": data.get("skills") or []},
    }
    if data.get("years_experience") is not None:
        update["professional"]["years_experience"] = data["years_experience"]
    return update


def _github_update(data: dict[str, Any]) -> dict[str, Any]:
    projects = [
        {
            "id": f"github:{data.get('username')}/{repo.get('name')}",
            "name": repo.get("name"),
            "description": repo.get("description"),
            "url": repo.get("url"),
            "technologies": [repo["language"]] if repo.get("language") else [],
            "stars": repo.get("stars", 0),
            "source": "github",
        }
        for repo in data.get("repositories", [])
    ]
    return {
        "personal": {
            "full_name": data.get("name"),
            "email": data.get("email"),
            "location": data.get("location"),
            "github": data.get("profile_url"),
            "website": data.get("blog"),
        },
        "professional": {
            "summary": data.get("bio"),
            "skills": data.get("top_languages") or [],
        },
        "projects": projects,
    }


def _github_repo_update(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "projects": [
            {
                "id": f"github:{data.get('full_name')}",
                "name": data.get("name"),
                "description": data.get("description"),
                "url": data.get("url"),
                "technologies": list(data.get("languages") or {}),
                "stars": data.get("stars", 0),
                "source": "github",
            }
        ]
    }


def _webpage_update(data: dict[str, Any]) -> dict[str, Any]:
    links = data.get("social_links") or {}
    return {
        "personal": {
            "website": data.get("url"),
            "email": _first(data.get("emails")),
            "github": links.get("github"),
            "linkedin": links.get("linkedin"),
        },
        "professional": {
            "summary": data.get("description"),
            "skills": data.get("skills") or [],
        },
    }


def _linkedin_update(data: dict[str, Any]) -> dict[str, Any]:
    if "emails" in data or "text" in data:
        return _contact_update(data)
    update: dict[str, Any] = {
        "personal": {
            "full_name": data.get("name") or data.get("full_name"),
            "location": data.get("location"),
            "linkedin": data.get("profile_url"),
        },
        "professional": {
            "current_title": data.get("headline"),
            "summary": data.get("summary"),
            "skills": data.get("skills") or [],
        },
    }
    for section in ("experience", "education", "certifications"):
        items = data.get(section)
        if isinstance(items, list):
            update[section] = [item for item in items if isinstance(item, dict)]
    return update


def _social_update(data: dict[str, Any]) -> dict[str, Any]:
    personal: dict[str, Any] = {}
    if data.get("platform") in PORTFOLIO_PLATFORMS:
        personal["portfolio"] = data.get("profile_url")
    return {
        "personal": personal,
        "professional": {"skills": data.get("skills") or []},
    }


def _social_links_update(data: dict[str, Any]) -> dict[str, Any]:
    links = data.get("social_links") or {}
    return {
        "personal": {
            "email": _first(data.get("emails")),
            "github": links.get("github"),
            "linkedin": links.get("linkedin"),
        }
    }


COLLECTED_DATA_MAPPERS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "analyze_github": _github_update,
    "analyze_github_repo": _github_repo_update,
    "scrape_webpage": _webpage_update,
    "extract_social_links": _social_links_update,
    "parse_document": _contact_update,
    "analyze_pdf_advanced": _contact_update,
    "extract_linkedin": _linkedin_update,
    "analyze_social_media": _social_update,
    "extract_contact_info": _contact_update,
}


def collected_update(result: ToolExecutionResult) -> dict[str, Any]:
    """Translate a successful tool result into a ``CollectedData.merge`` update."""
    if not result.success or not isinstance(result.data, dict):
        return {}
    mapper = COLLECTED_DATA_MAPPERS.get(result.tool_name)
    data = result.data.get("data")
    if mapper is None or not isinstance(data, dict):
        return {}
    return mapper(data)


def is_sufficient(collected: CollectedData) -> bool:
    """Enough to design a page: contact details plus some professional substance."""
    sections = set(collected.filled_sections())
    has_identity = "personal" in sections
    has_substance = bool(
        collected.professional.skills
        or sections & {"experience", "projects", "education", "achievements"}
    )
    return has_identity and has_substance


class InfoCollectionAgent(StageAgent):
    name = "info_collection"

    def __init__(
        self,
        executor: ToolExecutor,
        selector: ToolSelector,
        mappings: AgentMappingRegistry | None = None,
        max_tools: int = 3,
    ) -> None:
        super().__init__(mappings)
        self.executor = executor
        self.selector = selector
        self.max_tools = max_tools

    def plan_calls(self, user_input: str, session: Session) -> list[ToolSuggestion]:
        """Executable suggestions for the input.

        Tools whose resources were detected in the input are preferred; when
        nothing was detected, executable role-based defaults are used.
        """
        role = session.personalization.identity.profession
        suggestions = self.selector.select_tools(user_input, role, self.max_tools)
        executable = [s for s in suggestions if self.selector.is_executable(s)]
        detected = [s for s in executable if s.confidence > DEFAULT_CONFIDENCE]
        return detected or executable

    def _record_results(self, session: Session, results: list[ToolExecutionResult]) -> None:
        history = session.generated_content.setdefault(TOOL_RESULTS_KEY, [])
        for result in results:
            history.append(
                {
                    "tool_name": result.tool_name,
                    "success": result.success,
                    "error_type": result.error_type.value if result.error_type else None,
                    "confidence": result.confidence,
                    "data_quality": result.metadata.data_quality.value,
                    "attempts": result.metadata.attempts,
                    "extracted_at": result.metadata.extracted_at,
                }
            )

    def _follow_up(self) -> Interaction:
        return Interaction(
            type="confirmation",
            title="Anything else to add?",
            description="Share more links or documents, or continue with what we have",
            elements=[
                InteractionElement(id="confirm", type="button", label="Continue"),
                InteractionElement(id="add_info", type="button", label="Add more"),
                InteractionElement(id="skip", type="button", label="Skip"),
            ],
        )

    def _advance_summary(self, session: Session) -> str:
        sections = session.collected_data.filled_sections()
        if not sections:
            return "Moving on with the information provided so far."
        return f"Collected {', '.join(sections)}. Moving on to the page design."

    async def process(self, user_input: str, session: Session) -> AsyncIterator[StreamableResponse]:
        if _DONE_RE.match(user_input or ""):
            yield self.advance(
                self._advance_summary(session),
                session,
                metadata={"collected_sections": session.collected_data.filled_sections()},
            )
            return

        yield self.thinking("Looking for links and documents to analyze...", session)
        role = session.personalization.identity.profession
        calls = self.plan_calls(user_input, session)
        if not calls:
            analysis = analyze_input(user_input, role)
            tips = usage_suggestions(role)
            yield self.await_input(
                f"{analysis.analysis_text}\n" + "\n".join(f"- {tip}" for tip in tips),
                session,
                interaction=self._follow_up(),
                metadata={"completion_status": "collecting", "tools": []},
            )
            return

        tool_names = [call.name for call in calls]
        self.log_info("running tools", correlation_id=session.id, tools=tool_names)
        yield self.respond(
            f"Analyzing with {len(calls)} tool(s): {', '.join(tool_names)}",
            session,
            intent="tool_execution",
            metadata={"tools": tool_names},
        )

        results = await self.executor.execute_batch(
            [call.to_call() for call in calls], with_retry=True
        )
        self._record_results(session, results)

        for result in results:
            if result.success:
                session.collected_data = session.collected_data.merge(collected_update(result))
                yield self.respond(
                    f"{result.tool_name} finished ({result.metadata.data_quality.value} quality)",
                    session,
                    intent="tool_result",
                    metadata={
                        "tool": result.tool_name,
                        "success": True,
                        "confidence": result.confidence,
                        "execution_time": result.execution_time,
                    },
                )
            else:
                self.log_warning(
                    "tool failed",
                    correlation_id=session.id,
                    tool=result.tool_name,
                    error_type=result.error_type.value if result.error_type else None,
                )
                yield self.respond(
                    f"{result.tool_name} failed: {result.error}",
                    session,
                    intent="tool_result",
                    metadata={
                        "tool": result.tool_name,
                        "success": False,
                        "error_type": result.error_type.value if result.error_type else None,
                        "suggestions": result.suggestions,
                    },
                )

        if is_sufficient(session.collected_data):
            yield self.advance(
                self._advance_summary(session),
                session,
                metadata={"collected_sections": session.collected_data.filled_sections()},
            )
            return

        yield self.await_input(
            "Thanks! Share anything else you would like on the page, or continue.",
            session,
            interaction=self._follow_up(),
            metadata={
                "completion_status": "collecting",
                "collected_sections": session.collected_data.filled_sections(),
            },
        )

    async def handle_interaction(
        self, interaction_type: str, data: dict[str, Any], session: Session
    ) -> InteractionResult:
        if interaction_type in ("confirm", "skip"):
            return InteractionResult(action="advance", summary=self._advance_summary(session))
        if interaction_type == "add_info":
            try:
                update = CollectedData.model_validate(data)
            except ValidationError as exc:
                self.log_warning("invalid add_info payload", correlation_id=session.id)
                return InteractionResult(action="error", error=str(exc))
            session.collected_data = session.collected_data.merge(update)
            return InteractionResult(
                action="continue",
                summary="Information added",
                data={"collected_sections": session.collected_data.filled_sections()},
            )
        return await super().handle_interaction(interaction_type, data, session)
