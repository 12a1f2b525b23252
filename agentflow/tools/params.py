"""Typed parameter models for the built-in tools.

Parameters arrive as loose JSON objects; the executor validates them against
the tool's input schema and then parses them into one of these models, so
integrations only ever see well-typed values.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from agentflow.domain.exceptions import ToolValidationError


class _Params(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class AnalyzeGithubParams(_Params):
    tool: Literal["analyze_github"] = "analyze_github"
    username_or_url: str = Field(min_length=1)
    include_repos: bool = True
    repo_limit: int = Field(default=10, ge=1, le=100)
    analysis_depth: Literal["basic", "detailed", "comprehensive"] = "detailed"


class AnalyzeGithubRepoParams(_Params):
    tool: Literal["analyze_github_repo"] = "analyze_github_repo"
    repo_url: str = Field(min_length=1)
    analysis_type: Literal["overview", "technical", "management", "community"] = "overview"


class ScrapeWebpageParams(_Params):
    tool: Literal["scrape_webpage"] = "scrape_webpage"
    url: str
    target_sections: list[
        Literal["all", "about", "projects", "experience", "skills", "contact"]
    ] = Field(default_factory=lambda: ["all"])
    analysis_depth: Literal["surface", "standard", "deep"] = "standard"
    extract_images: bool = False


class ExtractSocialLinksParams(_Params):
    tool: Literal["extract_social_links"] = "extract_social_links"
    url: str
    platforms: list[str] = Field(default_factory=list)


class AnalyzeWebpageSeoParams(_Params):
    tool: Literal["analyze_webpage_seo"] = "analyze_webpage_seo"
    url: str
    check_mobile: bool = True


class ParseDocumentParams(_Params):
    tool: Literal["parse_document"] = "parse_document"
    file_data: str = Field(min_length=1)
    file_type: Literal["pdf", "docx", "xlsx", "pptx", "txt", "rtf", "md"]
    extract_mode: Literal["resume", "portfolio", "certificate", "general"] = "general"
    language: Literal["auto", "zh", "en"] = "auto"


class AnalyzePdfAdvancedParams(_Params):
    tool: Literal["analyze_pdf_advanced"] = "analyze_pdf_advanced"
    file_data: str = Field(min_length=1)
    extract_images: bool = False
    ocr_enable: bool = False


class ExtractLinkedinParams(_Params):
    tool: Literal["extract_linkedin"] = "extract_linkedin"
    profile_url: str
    data_source: Literal["url_reference", "exported_data", "pdf_resume", "manual_input"] = (
        "url_reference"
    )
    data_file: str | None = None


class AnalyzeSocialMediaParams(_Params):
    tool: Literal["analyze_social_media"] = "analyze_social_media"
    platform_url: str
    platform_type: Literal[
        "behance", "dribbble", "medium", "youtube", "codepen", "devto", "auto_detect"
    ] = "auto_detect"
    analysis_focus: Literal["profile", "content", "influence", "skills"] = "profile"


class ExtractContactInfoParams(_Params):
    tool: Literal["extract_contact_info"] = "extract_contact_info"
    text: str


class GenericToolParams(BaseModel):
    """Parameters of a tool registered without a dedicated model."""

    model_config = ConfigDict(extra="allow", frozen=True)

    tool: str


ToolParams = Annotated[
    AnalyzeGithubParams
    | AnalyzeGithubRepoParams
    | ScrapeWebpageParams
    | ExtractSocialLinksParams
    | AnalyzeWebpageSeoParams
    | ParseDocumentParams
    | AnalyzePdfAdvancedParams
    | ExtractLinkedinParams
    | AnalyzeSocialMediaParams
    | ExtractContactInfoParams,
    Field(discriminator="tool"),
]

_TOOL_PARAMS_ADAPTER: TypeAdapter[Any] = TypeAdapter(ToolParams)

TYPED_TOOLS = frozenset(
    {
        "analyze_github",
        "analyze_github_repo",
        "scrape_webpage",
        "extract_social_links",
        "analyze_webpage_seo",
        "parse_document",
        "analyze_pdf_advanced",
        "extract_linkedin",
        "analyze_social_media",
        "extract_contact_info",
    }
)


def parse_tool_params(name: str, params: dict[str, Any]) -> BaseModel:
    """Parse raw parameters into the tool's typed model.

    Raises:
        ToolValidationError: If the parameters do not fit the model.
    """
    payload = {**params, "tool": name}
    try:
        if name in TYPED_TOOLS:
            return _TOOL_PARAMS_ADAPTER.validate_python(payload)
        return GenericToolParams.model_validate(payload)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'][1:]) or name}: {err['msg']}"
            for err in exc.errors()
        ]
        msg = f"Invalid parameters for {name}"
        raise ToolValidationError(msg, errors) from exc
