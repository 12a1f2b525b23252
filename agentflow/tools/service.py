"""External integrations behind the built-in tools.

:class:`ToolService` is the call/response contract the tool executors
consume; :class:`HttpToolService` implements it over httpx.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from collections import Counter
from typing import Any, Protocol

import httpx

from agentflow.config.tools import ToolSettings
from agentflow.core.html_utils import extract_page_meta, html_to_text
from agentflow.core.http_utils import validate_response_size
from agentflow.core.url_utils import (
    detect_social_platform,
    extract_all_urls,
    is_github_url,
    is_linkedin_url,
    parse_github_target,
    url_domain,
)
from agentflow.domain.exceptions import (
    ResourceNotFoundError,
    ToolExecutionError,
    ToolPermissionError,
)

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"(?<!\w)\+?\d[\d\s().-]{7,}\d(?!\w)")
_YEARS_RE = re.compile(r"(\d{1,2})\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)

KNOWN_SKILLS: tuple[str, ...] = (
    "Python",
    "JavaScript",
    "TypeScript",
    "Java",
    "Go",
    "Rust",
    "C++",
    "C#",
    "Ruby",
    "PHP",
    "Swift",
    "Kotlin",
    "SQL",
    "React",
    "Vue",
    "Angular",
    "Next.js",
    "Node.js",
    "Django",
    "FastAPI",
    "Flask",
    "Spring",
    "Docker",
    "Kubernetes",
    "AWS",
    "GCP",
    "Azure",
    "PostgreSQL",
    "MongoDB",
    "Redis",
    "GraphQL",
    "TensorFlow",
    "PyTorch",
    "Machine Learning",
    "Figma",
    "Sketch",
    "Photoshop",
    "Illustrator",
    "UX Research",
    "Prototyping",
    "Product Strategy",
    "Roadmapping",
    "Agile",
    "Scrum",
)

SOCIAL_LINK_DOMAINS: dict[str, str] = {
    "github.com": "github",
    "linkedin.com": "linkedin",
    "twitter.com": "twitter",
    "x.com": "twitter",
    "instagram.com": "instagram",
    "facebook.com": "facebook",
    "behance.net": "behance",
    "dribbble.com": "dribbble",
    "codepen.io": "codepen",
    "medium.com": "medium",
    "dev.to": "devto",
    "youtube.com": "youtube",
}


def extract_skills(text: str) -> list[str]:
    found: list[str] = []
    for skill in KNOWN_SKILLS:
        pattern = r"(?<![\w+#.])" + re.escape(skill) + r"(?![\w+#])"
        if re.search(pattern, text, re.IGNORECASE):
            found.append(skill)
    return found


def extract_contact_details(text: str) -> dict[str, Any]:
    """Emails, phone numbers and profile links mentioned in free text."""
    text = text or ""
    urls = extract_all_urls(text)
    details: dict[str, Any] = {
        "emails": list(dict.fromkeys(_EMAIL_RE.findall(text))),
        "phones": [p.strip() for p in dict.fromkeys(_PHONE_RE.findall(text))],
        "github": next((u for u in urls if is_github_url(u)), None),
        "linkedin": next((u for u in urls if is_linkedin_url(u)), None),
        "websites": [
            u
            for u in urls
            if not is_github_url(u) and not is_linkedin_url(u) and not detect_social_platform(u)
        ],
        "skills": extract_skills(text),
    }
    years = _YEARS_RE.search(text)
    if years:
        details["years_experience"] = int(years.group(1))
    return details


def social_links(links: list[str]) -> dict[str, str]:
    found: dict[str, str] = {}
    for link in links:
        host = url_domain(link)
        for domain, platform in SOCIAL_LINK_DOMAINS.items():
            if (host == domain or host.endswith(f".{domain}")) and platform not in found:
                found[platform] = link
    return found


class DocumentParser(Protocol):
    """Converts binary documents (PDF, DOCX, ...) to plain text."""

    async def parse(self, content: bytes, file_type: str) -> str: ...


class LinkedInClient(Protocol):
    """Authorized access to LinkedIn profile data."""

    async def fetch_profile(self, profile_url: str) -> dict[str, Any]: ...


class ToolService(Protocol):
    async def analyze_github(
        self, username_or_url: str, include_repos: bool = True, repo_limit: int = 10
    ) -> dict[str, Any]: ...

    async def analyze_github_repo(self, repo_url: str) -> dict[str, Any]: ...

    async def scrape_webpage(
        self, url: str, target_sections: list[str] | None = None
    ) -> dict[str, Any]: ...

    async def parse_document(
        self, file_data: str, file_type: str, extract_mode: str = "general"
    ) -> dict[str, Any]: ...

    async def extract_linkedin(self, profile_url: str) -> dict[str, Any]: ...


class HttpToolService:
    """httpx-backed implementation of :class:`ToolService`."""

    def __init__(
        self,
        settings: ToolSettings | None = None,
        client: httpx.AsyncClient | None = None,
        document_parser: DocumentParser | None = None,
        linkedin_client: LinkedInClient | None = None,
    ) -> None:
        self.settings = settings or ToolSettings()
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.http_timeout_sec,
            follow_redirects=True,
            headers={"User-Agent": "agentflow/0.1 (+profile-builder)"},
        )
        self._owns_client = client is None
        self.document_parser = document_parser
        self.linkedin_client = linkedin_client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpToolService:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _github_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.settings.github_token:
            headers["Authorization"] = f"Bearer {self.settings.github_token}"
        return headers

    async def _github_get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.settings.github_api_url.rstrip('/')}{path}"
        response = await self._client.get(url, params=params, headers=self._github_headers())
        if response.status_code == 404:
            msg = f"GitHub resource not found: {path}"
            raise ResourceNotFoundError(msg, {"path": path})
        if response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0":
            msg = "GitHub API rate limit exceeded"
            raise ToolPermissionError(msg, {"path": path})
        response.raise_for_status()
        return response.json()

    async def analyze_github(
        self, username_or_url: str, include_repos: bool = True, repo_limit: int = 10
    ) -> dict[str, Any]:
        owner, _ = parse_github_target(username_or_url)
        profile = await self._github_get(f"/users/{owner}")

        repositories: list[dict[str, Any]] = []
        languages: Counter[str] = Counter()
        if include_repos:
            repos = await self._github_get(
                f"/users/{owner}/repos", params={"per_page": 100, "sort": "updated"}
            )
            own = [repo for repo in repos if not repo.get("fork")]
            for repo in own:
                if repo.get("language"):
                    languages[repo["language"]] += 1
            own.sort(key=lambda repo: repo.get("stargazers_count", 0), reverse=True)
            repositories = [
                {
                    "name": repo.get("name"),
                    "description": repo.get("description") or "",
                    "language": repo.get("language"),
                    "stars": repo.get("stargazers_count", 0),
                    "forks": repo.get("forks_count", 0),
                    "url": repo.get("html_url"),
                    "topics": repo.get("topics") or [],
                    "updated_at": repo.get("updated_at"),
                }
                for repo in own[:repo_limit]
            ]

        logger.info(
            "github_profile_analyzed",
            extra={"owner": owner, "repositories": len(repositories)},
        )
        return {
            "confidence": 0.9,
            "data": {
                "username": profile.get("login", owner),
                "name": profile.get("name"),
                "bio": profile.get("bio"),
                "company": profile.get("company"),
                "location": profile.get("location"),
                "blog": profile.get("blog") or None,
                "email": profile.get("email"),
                "avatar_url": profile.get("avatar_url"),
                "profile_url": profile.get("html_url") or f"https://github.com/{owner}",
                "followers": profile.get("followers", 0),
                "following": profile.get("following", 0),
                "public_repos": profile.get("public_repos", 0),
                "repositories": repositories,
                "languages": dict(languages.most_common()),
                "top_languages": [name for name, _ in languages.most_common(5)],
            },
            "metadata": {"source": "github_api", "owner": owner},
        }

    async def analyze_github_repo(self, repo_url: str) -> dict[str, Any]:
        owner, repo = parse_github_target(repo_url)
        if not repo:
            msg = f"Invalid repository URL, expected github.com/<owner>/<repo>: {repo_url}"
            raise ValueError(msg)
        details = await self._github_get(f"/repos/{owner}/{repo}")
        languages = await self._github_get(f"/repos/{owner}/{repo}/languages")
        total = sum(languages.values()) or 1
        return {
            "confidence": 0.9,
            "data": {
                "name": details.get("name", repo),
                "full_name": details.get("full_name", f"{owner}/{repo}"),
                "description": details.get("description") or "",
                "url": details.get("html_url"),
                "homepage": details.get("homepage") or None,
                "stars": details.get("stargazers_count", 0),
                "forks": details.get("forks_count", 0),
                "open_issues": details.get("open_issues_count", 0),
                "topics": details.get("topics") or [],
                "primary_language": details.get("language"),
                "languages": {
                    name: round(100 * size / total, 1) for name, size in languages.items()
                },
            },
            "metadata": {"source": "github_api", "repository": f"{owner}/{repo}"},
        }

    async def scrape_webpage(
        self, url: str, target_sections: list[str] | None = None
    ) -> dict[str, Any]:
        response = await self._client.get(url)
        response.raise_for_status()
        validate_response_size(response, self.settings.max_response_bytes, "webpage")
        content_type = response.headers.get("content-type", "")
        if content_type and "html" not in content_type and "text" not in content_type:
            msg = f"Unsupported content type for page extraction: {content_type}"
            raise ToolExecutionError(msg, {"url": url})

        html = response.text
        meta = extract_page_meta(html, base_url=str(response.url))
        text = html_to_text(html)
        sections = [s for s in (target_sections or ["all"]) if s != "all"]
        headings = meta["headings"]
        if sections:
            headings = [h for h in headings if any(s in h.lower() for s in sections)]

        contact = extract_contact_details(text)
        return {
            "confidence": 0.85 if text else 0.5,
            "data": {
                "url": str(response.url),
                "title": meta["title"],
                "description": meta["description"],
                "keywords": meta["keywords"],
                "headings": headings,
                "content": text[:20000],
                "social_links": social_links(meta["links"]),
                "emails": contact["emails"],
                "skills": contact["skills"],
                "website_type": _website_type(str(response.url), meta, text),
            },
            "metadata": {"source": "http", "status_code": response.status_code},
        }

    async def parse_document(
        self, file_data: str, file_type: str, extract_mode: str = "general"
    ) -> dict[str, Any]:
        try:
            content = base64.b64decode(file_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = "Invalid document data: expected base64-encoded content"
            raise ValueError(msg) from exc
        if len(content) > self.settings.max_file_bytes:
            msg = f"Invalid document: {len(content)} bytes exceeds the upload limit"
            raise ValueError(msg)

        if file_type in ("txt", "md"):
            text = content.decode("utf-8", errors="replace")
        elif self.document_parser is not None:
            text = await self.document_parser.parse(content, file_type)
        else:
            msg = f"Unsupported document type without a configured parser: {file_type}"
            raise ToolExecutionError(msg, {"file_type": file_type})

        contact = extract_contact_details(text)
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return {
            "confidence": 0.8 if contact["emails"] or contact["skills"] else 0.6,
            "data": {
                "document_type": extract_mode,
                "full_name": lines[0] if lines and len(lines[0]) <= 60 else None,
                "text": text[:20000],
                **contact,
            },
            "metadata": {"source": "document", "file_type": file_type, "bytes": len(content)},
        }

    async def extract_linkedin(self, profile_url: str) -> dict[str, Any]:
        if self.linkedin_client is None:
            msg = (
                "LinkedIn permission required: no authorized profile client is configured. "
                "Export your profile as PDF and upload it instead."
            )
            raise ToolPermissionError(msg, {"profile_url": profile_url})
        profile = await self.linkedin_client.fetch_profile(profile_url)
        return {
            "confidence": 0.85,
            "data": profile,
            "metadata": {"source": "linkedin", "profile_url": profile_url},
        }


def _website_type(url: str, meta: dict[str, Any], text: str) -> str:
    haystack = " ".join(
        [url.lower(), str(meta.get("title", "")).lower(), text[:2000].lower()]
    )
    if "portfolio" in haystack or "case study" in haystack:
        return "portfolio"
    if "blog" in haystack or "/posts" in haystack:
        return "blog"
    if "resume" in haystack or "curriculum vitae" in haystack:
        return "resume"
    return "personal"
