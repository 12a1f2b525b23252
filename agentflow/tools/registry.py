"""Registry of tool definitions, their executors and effective configuration."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agentflow.domain.exceptions import ToolNotFoundError
from agentflow.tools.config import resolve_tool_config, tool_priority_for_role
from agentflow.tools.models import ToolCategory, ToolConfig, ToolDefinition

if TYPE_CHECKING:
    from pydantic import BaseModel

    from agentflow.config.tools import ToolSettings

logger = logging.getLogger(__name__)

ToolExecutorFn = Callable[["BaseModel"], Awaitable[Any]]

MIN_DESCRIPTION_LENGTH = 100


@dataclass
class IntegrityReport:
    valid: bool
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


class ToolRegistry:
    """Holds tool definitions keyed by name, in registration order.

    Registering a name twice replaces the definition in place, so insertion
    order (used as the final tie-breaker during selection) is stable.
    """

    def __init__(self, settings: ToolSettings | None = None) -> None:
        self._settings = settings
        self._tools: dict[str, ToolDefinition] = {}
        self._executors: dict[str, ToolExecutorFn] = {}
        self._configs: dict[str, ToolConfig] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(
        self,
        definition: ToolDefinition,
        executor: ToolExecutorFn | None = None,
        config: ToolConfig | dict[str, Any] | None = None,
    ) -> None:
        if definition.name in self._tools:
            logger.info("tool_definition_replaced", extra={"tool": definition.name})
        self._tools[definition.name] = definition
        self._configs[definition.name] = resolve_tool_config(
            definition.name, definition.category, config, self._settings
        )
        if executor is not None:
            self._executors[definition.name] = executor
        else:
            # Re-registering without an executor unbinds the previous one.
            self._executors.pop(definition.name, None)

    def register_executor(self, name: str, executor: ToolExecutorFn) -> None:
        if name not in self._tools:
            msg = f"Cannot register executor for unknown tool: {name}"
            raise ToolNotFoundError(msg, {"tool": name})
        self._executors[name] = executor

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def get_by_name(self, name: str) -> ToolDefinition:
        definition = self._tools.get(name)
        if definition is None:
            msg = f"Tool not found: {name}"
            raise ToolNotFoundError(msg, {"tool": name})
        return definition

    def get_executor(self, name: str) -> ToolExecutorFn | None:
        return self._executors.get(name)

    def get_config(self, name: str) -> ToolConfig:
        config = self._configs.get(name)
        if config is None:
            msg = f"Tool not found: {name}"
            raise ToolNotFoundError(msg, {"tool": name})
        return config

    def get_all(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def get_by_category(self, category: ToolCategory | str) -> list[ToolDefinition]:
        category = ToolCategory(category)
        tools = [tool for tool in self._tools.values() if tool.category == category]
        return sorted(tools, key=lambda tool: -tool.priority)

    def search(self, query: str) -> list[ToolDefinition]:
        needle = (query or "").strip().lower()
        if not needle:
            return []
        return [
            tool
            for tool in self._tools.values()
            if needle in tool.name.lower()
            or needle in tool.description.lower()
            or needle in tool.category.value
            or any(needle in tag.lower() for tag in tool.metadata.tags)
        ]

    def get_recommended(self, role: str | None, limit: int = 10) -> list[ToolDefinition]:
        """Tools ranked by their own priority plus the role's category preference."""
        ranked = sorted(
            enumerate(self._tools.values()),
            key=lambda item: (
                -(item[1].priority + tool_priority_for_role(item[1].category, role)),
                item[0],
            ),
        )
        return [tool for _, tool in ranked[:limit]]

    def get_stats(self) -> dict[str, Any]:
        by_category: dict[str, int] = {}
        by_version: dict[str, int] = {}
        for tool in self._tools.values():
            by_category[tool.category.value] = by_category.get(tool.category.value, 0) + 1
            by_version[tool.metadata.version] = by_version.get(tool.metadata.version, 0) + 1
        return {
            "total": len(self._tools),
            "by_category": by_category,
            "by_version": by_version,
            "executors_covered": sum(1 for name in self._tools if name in self._executors),
        }

    def validate_integrity(self) -> IntegrityReport:
        issues: list[str] = []
        suggestions: list[str] = []

        for name in self._tools:
            if name not in self._executors:
                issues.append(f"Tool {name} has no executor")
                suggestions.append(f"Register an executor for {name}")

        for tool in self._tools.values():
            if len(tool.description) < MIN_DESCRIPTION_LENGTH:
                issues.append(
                    f"Tool {tool.name} has a short description ({len(tool.description)} chars)"
                )
                suggestions.append(f"Describe when and how to use {tool.name} in more detail")

        for category in ToolCategory:
            if not self.get_by_category(category):
                issues.append(f"Category {category.value} has no tools")
                suggestions.append(f"Consider adding a tool to the {category.value} category")

        return IntegrityReport(valid=not issues, issues=issues, suggestions=suggestions)

    def generate_report(self) -> str:
        stats = self.get_stats()
        integrity = self.validate_integrity()

        lines = [
            "# Tool registry report",
            "",
            "## Statistics",
            f"- Total tools: {stats['total']}",
            f"- Registered executors: {stats['executors_covered']}",
            "",
            "## By category",
        ]
        lines.extend(f"- {category}: {count}" for category, count in stats["by_category"].items())
        lines.extend(["", "## Integrity", f"Status: {'ok' if integrity.valid else 'issues found'}"])
        if integrity.issues:
            lines.extend(["", "### Issues"])
            lines.extend(f"- {issue}" for issue in integrity.issues)
        if integrity.suggestions:
            lines.extend(["", "### Suggestions"])
            lines.extend(f"- {suggestion}" for suggestion in integrity.suggestions)
        return "\n".join(lines) + "\n"
