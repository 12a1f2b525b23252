"""Static tool configuration: per-category and per-tool overrides, role weights."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agentflow.tools.models import ToolCategory, ToolConfig

if TYPE_CHECKING:
    from agentflow.config.tools import ToolSettings

DEFAULT_TOOL_CONFIG = ToolConfig(timeout=30.0, retries=3, parallel=True, cache=False)

CATEGORY_CONFIG_OVERRIDES: dict[ToolCategory, dict[str, Any]] = {
    ToolCategory.GITHUB: {"timeout": 15.0, "cache": True},
    ToolCategory.WEB_SCRAPING: {"timeout": 10.0, "retries": 1},
    ToolCategory.DOCUMENT: {"timeout": 45.0, "parallel": False},
    ToolCategory.SOCIAL: {"timeout": 8.0, "cache": False},
    ToolCategory.UTILITY: {"timeout": 5.0, "parallel": True},
}

TOOL_CONFIG_OVERRIDES: dict[str, dict[str, Any]] = {
    "analyze_github": {"timeout": 15.0, "retries": 2, "parallel": True, "cache": True},
    "scrape_webpage": {"timeout": 10.0, "retries": 1, "parallel": True, "cache": False},
    "parse_document": {"timeout": 45.0, "retries": 2, "parallel": False, "cache": True},
    "extract_linkedin": {"timeout": 5.0, "retries": 1, "parallel": True, "cache": False},
}

ROLE_CATEGORY_PRIORITIES: dict[str, dict[ToolCategory, int]] = {
    "developer": {
        ToolCategory.GITHUB: 10,
        ToolCategory.WEB_SCRAPING: 7,
        ToolCategory.DOCUMENT: 8,
        ToolCategory.SOCIAL: 5,
        ToolCategory.UTILITY: 3,
    },
    "designer": {
        ToolCategory.GITHUB: 4,
        ToolCategory.WEB_SCRAPING: 10,
        ToolCategory.DOCUMENT: 7,
        ToolCategory.SOCIAL: 8,
        ToolCategory.UTILITY: 3,
    },
    "product_manager": {
        ToolCategory.GITHUB: 3,
        ToolCategory.WEB_SCRAPING: 6,
        ToolCategory.DOCUMENT: 9,
        ToolCategory.SOCIAL: 10,
        ToolCategory.UTILITY: 4,
    },
    "ai_engineer": {
        ToolCategory.GITHUB: 10,
        ToolCategory.WEB_SCRAPING: 7,
        ToolCategory.DOCUMENT: 8,
        ToolCategory.SOCIAL: 6,
        ToolCategory.UTILITY: 4,
    },
}

ROLE_ALIASES: dict[str, str] = {
    "engineer": "developer",
    "programmer": "developer",
    "software engineer": "developer",
    "frontend": "developer",
    "backend": "developer",
    "ui designer": "designer",
    "ux designer": "designer",
    "product designer": "designer",
    "pm": "product_manager",
    "product manager": "product_manager",
    "ml engineer": "ai_engineer",
    "ai engineer": "ai_engineer",
    "data scientist": "ai_engineer",
}

DEFAULT_ROLE_PRIORITY = 5


def normalize_role(role: str | None) -> str | None:
    """Map free-form role labels onto the keys of ``ROLE_CATEGORY_PRIORITIES``."""
    if not role:
        return None
    key = role.strip().lower().replace("-", " ")
    if key.replace(" ", "_") in ROLE_CATEGORY_PRIORITIES:
        return key.replace(" ", "_")
    return ROLE_ALIASES.get(key)


def role_weight(category: ToolCategory, role: str | None) -> int:
    """Additive selection weight of ``category`` for ``role``; 0 for unknown roles."""
    normalized = normalize_role(role)
    if normalized is None:
        return 0
    return ROLE_CATEGORY_PRIORITIES[normalized].get(category, 0)


def tool_priority_for_role(category: ToolCategory, role: str | None) -> int:
    """Role preference for a category, falling back to a neutral 5."""
    normalized = normalize_role(role)
    if normalized is None:
        return DEFAULT_ROLE_PRIORITY
    return ROLE_CATEGORY_PRIORITIES[normalized].get(category, DEFAULT_ROLE_PRIORITY)


def resolve_tool_config(
    name: str,
    category: ToolCategory,
    explicit: ToolConfig | dict[str, Any] | None = None,
    settings: ToolSettings | None = None,
) -> ToolConfig:
    """Layer defaults, category overrides, tool overrides and an explicit config."""
    values: dict[str, Any] = DEFAULT_TOOL_CONFIG.model_dump()
    if settings is not None:
        values["timeout"] = settings.default_timeout_sec
        values["retries"] = settings.default_retries
    values.update(CATEGORY_CONFIG_OVERRIDES.get(category, {}))
    values.update(TOOL_CONFIG_OVERRIDES.get(name, {}))
    if isinstance(explicit, ToolConfig):
        values.update(explicit.model_dump(exclude_unset=True))
    elif explicit:
        values.update(explicit)
    return ToolConfig.model_validate(values)
