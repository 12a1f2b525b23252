"""Role- and input-aware tool selection.

Selection is a pure function of the registry contents, the user input and
the role: the same arguments always produce the same suggestions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agentflow.core.url_utils import (
    detect_social_platform,
    extract_all_urls,
    find_github_reference,
    is_github_url,
    is_linkedin_url,
    parse_github_target,
)
from agentflow.tools.config import normalize_role, role_weight
from agentflow.tools.models import ToolCategory, ToolSuggestion

if TYPE_CHECKING:
    from agentflow.tools.models import ToolDefinition
    from agentflow.tools.registry import ToolRegistry

_URL_RE = re.compile(r"https?://", re.IGNORECASE)
_DOCUMENT_EXT_RE = re.compile(r"\.(pdf|docx|doc|txt)\b", re.IGNORECASE)
_DOCUMENT_KEYWORD_RE = re.compile(r"\b(resume|cv|pdf|document|docx)\b", re.IGNORECASE)
_LINKEDIN_RE = re.compile(r"(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/in/[^\s]+", re.IGNORECASE)

GITHUB_CONFIDENCE = 0.95
WEBPAGE_CONFIDENCE = 0.85
LINKEDIN_CONFIDENCE = 0.8
SOCIAL_CONFIDENCE = 0.75
DOCUMENT_CONFIDENCE = 0.7
DEFAULT_CONFIDENCE = 0.6

ROLE_CONFIDENCE_BOOSTS: dict[str, dict[str, float]] = {
    "developer": {"analyze_github": 0.2, "scrape_webpage": 0.1},
    "designer": {"scrape_webpage": 0.2, "analyze_social_media": 0.15},
    "product_manager": {"extract_linkedin": 0.2, "parse_document": 0.1},
}

USAGE_SUGGESTIONS: dict[str, tuple[str, ...]] = {
    "developer": (
        "Share your GitHub username or link so your skills and projects can be analyzed",
        "Share your technical blog or personal website",
        "Upload your resume and the key facts will be extracted",
    ),
    "designer": (
        "Share your portfolio site or Behance/Dribbble link",
        "Upload a PDF of your portfolio",
        "Share your LinkedIn profile to show your career history",
    ),
    "product_manager": (
        "Share your LinkedIn profile link",
        "Share articles or posts you have written about product work",
        "Upload your resume so your product experience can be analyzed",
    ),
}
USAGE_SUGGESTIONS["ai_engineer"] = USAGE_SUGGESTIONS["developer"]
DEFAULT_USAGE_SUGGESTIONS = (
    "Share any personal links (GitHub, LinkedIn, personal website)",
    "Upload your resume or portfolio document",
    "Share online material that shows your professional work",
)


@dataclass
class InputAnalysis:
    detected_resources: list[str] = field(default_factory=list)
    tool_suggestions: list[ToolSuggestion] = field(default_factory=list)
    confidence: float = 0.0
    analysis_text: str = ""


def detect_file_type(text: str) -> str:
    lowered = text.lower()
    for ext in ("pdf", "docx", "xlsx", "pptx", "txt"):
        if f".{ext}" in lowered:
            return ext
    return "pdf"


def _github_url(reference: str) -> str:
    return reference if _URL_RE.match(reference) else f"https://{reference}"


def _linkedin_url(text: str) -> str | None:
    match = _LINKEDIN_RE.search(text)
    if not match:
        return None
    url = match.group(0).rstrip(".,;:!?)")
    return url if _URL_RE.match(url) else f"https://{url}"


def _overall_confidence(suggestions: list[ToolSuggestion]) -> float:
    if not suggestions:
        return 0.0
    average = sum(s.confidence for s in suggestions) / len(suggestions)
    count_bonus = min(len(suggestions) * 0.1, 0.3)
    return round(min(average + count_bonus, 1.0), 4)


def _analysis_text(resources: list[str], suggestions: list[ToolSuggestion]) -> str:
    if not resources:
        return (
            "No analyzable resources detected. Share a GitHub link, a personal website "
            "or upload a document."
        )
    text = f"Detected {len(resources)} resource(s): {', '.join(resources)}."
    if suggestions:
        text += f" {len(suggestions)} tool(s) recommended for analysis."
    return text


def keyword_bonus(tool: ToolDefinition, user_input: str) -> int:
    name = tool.name.lower()
    lowered = user_input.lower()
    bonus = 0
    if "github" in name and "github" in lowered:
        bonus += 10
    if "linkedin" in name and "linkedin" in lowered:
        bonus += 10
    if "webpage" in name and _URL_RE.search(user_input):
        bonus += 8
    if "document" in name and _DOCUMENT_EXT_RE.search(lowered):
        bonus += 8
    return bonus


def analyze_input(user_input: str, role: str | None = None) -> InputAnalysis:
    """Detect resources in the input and propose a parameterized call for each."""
    text = user_input or ""
    lowered = text.lower()
    resources: list[str] = []
    suggestions: list[ToolSuggestion] = []

    github_ref = find_github_reference(text)
    if github_ref:
        resources.append("GitHub")
        suggestions.append(
            ToolSuggestion(
                name="analyze_github",
                params={"username_or_url": github_ref, "include_repos": True},
                confidence=GITHUB_CONFIDENCE,
                reason="GitHub user or repository link detected",
            )
        )

    urls = extract_all_urls(text)
    for url in urls:
        if is_github_url(url) or is_linkedin_url(url) or detect_social_platform(url):
            continue
        resources.append("Web page")
        suggestions.append(
            ToolSuggestion(
                name="scrape_webpage",
                params={"url": url, "target_sections": ["all"]},
                confidence=WEBPAGE_CONFIDENCE,
                reason="Web link detected, possibly a portfolio or blog",
            )
        )

    if "linkedin" in lowered:
        resources.append("LinkedIn")
        profile_url = _linkedin_url(text)
        suggestions.append(
            ToolSuggestion(
                name="extract_linkedin",
                params={"profile_url": profile_url} if profile_url else {},
                confidence=LINKEDIN_CONFIDENCE,
                reason="LinkedIn profile mentioned",
            )
        )

    if _DOCUMENT_KEYWORD_RE.search(text):
        resources.append("Document")
        suggestions.append(
            ToolSuggestion(
                name="parse_document",
                params={"file_type": detect_file_type(text)},
                confidence=DOCUMENT_CONFIDENCE,
                reason="Resume or document mentioned; upload the file to parse it",
            )
        )

    seen_platforms: set[str] = set()
    for url in urls:
        platform = detect_social_platform(url)
        if platform is None or platform in seen_platforms:
            continue
        seen_platforms.add(platform)
        resources.append(platform)
        suggestions.append(
            ToolSuggestion(
                name="analyze_social_media",
                params={"platform_url": url, "platform_type": platform},
                confidence=SOCIAL_CONFIDENCE,
                reason=f"{platform} profile link detected",
            )
        )

    boosts = ROLE_CONFIDENCE_BOOSTS.get(normalize_role(role) or "", {})
    for suggestion in suggestions:
        boost = boosts.get(suggestion.name, 0.0)
        if boost:
            suggestion.confidence = min(round(suggestion.confidence + boost, 4), 1.0)

    suggestions = sorted(suggestions, key=lambda s: -s.confidence)
    return InputAnalysis(
        detected_resources=resources,
        tool_suggestions=suggestions,
        confidence=_overall_confidence(suggestions),
        analysis_text=_analysis_text(resources, suggestions),
    )


def infer_default_params(tool: ToolDefinition, user_input: str) -> dict[str, Any]:
    """Best-effort parameters for a tool the input analysis did not propose."""
    text = user_input or ""
    urls = extract_all_urls(text)
    params: dict[str, Any] = {}

    if tool.name == "analyze_github":
        reference = find_github_reference(text)
        if reference:
            params = {"username_or_url": reference, "include_repos": True}
    elif tool.name == "analyze_github_repo":
        reference = find_github_reference(text)
        if reference:
            owner, repo = parse_github_target(reference)
            if repo:
                params = {"repo_url": _github_url(f"github.com/{owner}/{repo}")}
    elif tool.name == "scrape_webpage" and urls:
        params = {"url": urls[0], "target_sections": ["all"]}
    elif tool.name in ("extract_social_links", "analyze_webpage_seo") and urls:
        params = {"url": urls[0]}
    elif tool.name == "extract_linkedin":
        profile_url = _linkedin_url(text)
        if profile_url:
            params = {"profile_url": profile_url}
    elif tool.name == "analyze_social_media":
        social = [url for url in urls if detect_social_platform(url)]
        if social:
            params = {"platform_url": social[0], "platform_type": detect_social_platform(social[0])}
    elif tool.category == ToolCategory.DOCUMENT:
        params = {"file_type": detect_file_type(text), "extract_mode": "general"}
    elif tool.name == "extract_contact_info":
        params = {"text": text}
    return params


def usage_suggestions(role: str | None) -> list[str]:
    return list(USAGE_SUGGESTIONS.get(normalize_role(role) or "", DEFAULT_USAGE_SUGGESTIONS))


class ToolSelector:
    """Scores registered tools for a piece of user input.

    ``score = priority + role weight + keyword bonus``; ties fall back to the
    tool's own priority and then to registration order.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    def score(self, tool: ToolDefinition, user_input: str, role: str | None = None) -> int:
        return tool.priority + role_weight(tool.category, role) + keyword_bonus(tool, user_input)

    def select_optimal_tools(
        self,
        user_input: str,
        role: str | None = None,
        max_tools: int = 3,
        categories: list[ToolCategory] | None = None,
    ) -> list[tuple[ToolDefinition, int]]:
        candidates = self.registry.get_all()
        if categories:
            allowed = {ToolCategory(category) for category in categories}
            candidates = [tool for tool in candidates if tool.category in allowed]

        scored = [
            (index, tool, self.score(tool, user_input, role))
            for index, tool in enumerate(candidates)
        ]
        scored.sort(key=lambda item: (-item[2], -item[1].priority, item[0]))
        return [(tool, score) for _, tool, score in scored[: max(0, max_tools)]]

    def select_tools(
        self,
        user_input: str,
        role: str | None = None,
        max_tools: int = 3,
        categories: list[ToolCategory] | None = None,
    ) -> list[ToolSuggestion]:
        """Top tools for the input, parameterized from the input analysis."""
        analysis = analyze_input(user_input, role)
        by_name: dict[str, ToolSuggestion] = {}
        for suggestion in analysis.tool_suggestions:
            by_name.setdefault(suggestion.name, suggestion)

        results: list[ToolSuggestion] = []
        for tool, score in self.select_optimal_tools(user_input, role, max_tools, categories):
            detected = by_name.get(tool.name)
            if detected is not None:
                results.append(detected.model_copy(update={"score": float(score)}))
            else:
                results.append(
                    ToolSuggestion(
                        name=tool.name,
                        params=infer_default_params(tool, user_input),
                        confidence=DEFAULT_CONFIDENCE,
                        reason=f"Recommended for the {normalize_role(role) or 'user'} role",
                        score=float(score),
                    )
                )
        return results

    def is_executable(self, suggestion: ToolSuggestion) -> bool:
        """True when every required parameter of the suggested tool is present."""
        tool = self.registry.get(suggestion.name)
        if tool is None:
            return False
        return all(
            suggestion.params.get(name) not in (None, "") for name in tool.input_schema.required
        )
