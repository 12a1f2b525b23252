"""Executors for the built-in catalog and the default registry factory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from agentflow.core.url_utils import detect_social_platform
from agentflow.tools.catalog import BUILTIN_TOOLS
from agentflow.tools.registry import ToolExecutorFn, ToolRegistry
from agentflow.tools.service import extract_contact_details

if TYPE_CHECKING:
    from agentflow.config.tools import ToolSettings
    from agentflow.tools.params import (
        AnalyzeGithubParams,
        AnalyzeGithubRepoParams,
        AnalyzePdfAdvancedParams,
        AnalyzeSocialMediaParams,
        AnalyzeWebpageSeoParams,
        ExtractContactInfoParams,
        ExtractLinkedinParams,
        ExtractSocialLinksParams,
        ParseDocumentParams,
        ScrapeWebpageParams,
    )
    from agentflow.tools.service import ToolService


def seo_report(page: dict[str, Any], check_mobile: bool = True) -> dict[str, Any]:
    """Score the basic on-page SEO signals of scraped page data (0-100)."""
    title = page.get("title") or ""
    description = page.get("description") or ""
    headings = page.get("headings") or []
    keywords = page.get("keywords") or []

    checks = {
        "has_title": bool(title),
        "title_length_ok": 10 <= len(title) <= 70,
        "has_description": bool(description),
        "description_length_ok": 50 <= len(description) <= 160,
        "has_headings": bool(headings),
        "has_keywords": bool(keywords),
    }
    recommendations = [
        f"Improve: {name.replace('_', ' ')}" for name, passed in checks.items() if not passed
    ]
    if check_mobile:
        recommendations.append("Verify the page renders well on small screens")
    return {
        "score": round(100 * sum(checks.values()) / len(checks)),
        "checks": checks,
        "recommendations": recommendations,
    }


def build_default_executors(service: ToolService) -> dict[str, ToolExecutorFn]:
    """Bind every built-in tool name to a coroutine backed by ``service``."""

    async def analyze_github(params: AnalyzeGithubParams) -> dict[str, Any]:
        repo_limit = params.repo_limit
        if params.analysis_depth == "basic":
            repo_limit = min(5, repo_limit)
        return await service.analyze_github(
            params.username_or_url,
            include_repos=params.include_repos,
            repo_limit=repo_limit,
        )

    async def analyze_github_repo(params: AnalyzeGithubRepoParams) -> dict[str, Any]:
        result = await service.analyze_github_repo(params.repo_url)
        result.setdefault("metadata", {})["analysis_type"] = params.analysis_type
        return result

    async def scrape_webpage(params: ScrapeWebpageParams) -> dict[str, Any]:
        return await service.scrape_webpage(params.url, list(params.target_sections))

    async def extract_social_links(params: ExtractSocialLinksParams) -> dict[str, Any]:
        page = await service.scrape_webpage(params.url)
        links = page["data"].get("social_links", {})
        if params.platforms:
            wanted = {platform.lower() for platform in params.platforms}
            links = {platform: url for platform, url in links.items() if platform in wanted}
        return {
            "confidence": 0.9 if links else 0.5,
            "data": {
                "url": params.url,
                "social_links": links,
                "emails": page["data"].get("emails", []),
            },
            "metadata": {"source": "http"},
        }

    async def analyze_webpage_seo(params: AnalyzeWebpageSeoParams) -> dict[str, Any]:
        page = await service.scrape_webpage(params.url)
        return {
            "confidence": 0.8,
            "data": {"url": params.url, **seo_report(page["data"], params.check_mobile)},
            "metadata": {"source": "http"},
        }

    async def parse_document(params: ParseDocumentParams) -> dict[str, Any]:
        return await service.parse_document(
            params.file_data, params.file_type, extract_mode=params.extract_mode
        )

    async def analyze_pdf_advanced(params: AnalyzePdfAdvancedParams) -> dict[str, Any]:
        result = await service.parse_document(params.file_data, "pdf")
        result.setdefault("metadata", {}).update(
            {"extract_images": params.extract_images, "ocr_enable": params.ocr_enable}
        )
        return result

    async def extract_linkedin(params: ExtractLinkedinParams) -> dict[str, Any]:
        if params.data_source in ("exported_data", "pdf_resume") and params.data_file:
            file_type = "pdf" if params.data_source == "pdf_resume" else "txt"
            return await service.parse_document(params.data_file, file_type, extract_mode="resume")
        return await service.extract_linkedin(params.profile_url)

    async def analyze_social_media(params: AnalyzeSocialMediaParams) -> dict[str, Any]:
        platform = params.platform_type
        if platform == "auto_detect":
            platform = detect_social_platform(params.platform_url) or "unknown"
        page = await service.scrape_webpage(params.platform_url)
        data = page["data"]
        return {
            "confidence": 0.75,
            "data": {
                "platform": platform,
                "profile_url": data.get("url", params.platform_url),
                "display_name": data.get("title"),
                "bio": data.get("description"),
                "highlights": data.get("headings", [])[:10],
                "skills": data.get("skills", []),
                "analysis_focus": params.analysis_focus,
            },
            "metadata": {"source": "http", "platform": platform},
        }

    async def extract_contact_info(params: ExtractContactInfoParams) -> dict[str, Any]:
        details = extract_contact_details(params.text)
        found = any(details[key] for key in ("emails", "phones", "github", "linkedin", "websites"))
        return {"confidence": 0.9 if found else 0.3, "data": details}

    return {
        "analyze_github": analyze_github,
        "analyze_github_repo": analyze_github_repo,
        "scrape_webpage": scrape_webpage,
        "extract_social_links": extract_social_links,
        "analyze_webpage_seo": analyze_webpage_seo,
        "parse_document": parse_document,
        "analyze_pdf_advanced": analyze_pdf_advanced,
        "extract_linkedin": extract_linkedin,
        "analyze_social_media": analyze_social_media,
        "extract_contact_info": extract_contact_info,
    }


def create_default_registry(
    service: ToolService, settings: ToolSettings | None = None
) -> ToolRegistry:
    """Registry holding the whole built-in catalog with executors bound to ``service``."""
    registry = ToolRegistry(settings)
    executors = build_default_executors(service)
    for definition in BUILTIN_TOOLS:
        registry.register(definition, executors.get(definition.name))
    return registry
