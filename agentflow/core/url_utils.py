from __future__ import annotations

import re
from urllib.parse import urlparse

_URL_FINDALL_PATTERN = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
_GITHUB_TARGET_PATTERN = re.compile(
    r"github\.com/([A-Za-z0-9](?:[A-Za-z0-9-]{0,38}))(?:/([A-Za-z0-9_.-]+))?", re.IGNORECASE
)
_DANGEROUS_SCHEMES = ("javascript", "data", "vbscript", "file")
_TRAILING_PUNCTUATION = ".,;:!?)]"

SOCIAL_PLATFORM_DOMAINS: dict[str, str] = {
    "behance.net": "behance",
    "dribbble.com": "dribbble",
    "medium.com": "medium",
    "dev.to": "devto",
    "codepen.io": "codepen",
    "youtube.com": "youtube",
    "youtu.be": "youtube",
}

# Domains whose pages are fetched without further confirmation.
TRUSTED_DOMAINS = ("github.com", "linkedin.com", "behance.net", "dribbble.com", "medium.com")


def _validate_url_input(url: str) -> None:
    """Raise ValueError for empty, oversized or script-bearing URLs."""
    if not url or not isinstance(url, str):
        msg = "URL cannot be empty"
        raise ValueError(msg)
    if len(url) > 2048:
        msg = "URL too long"
        raise ValueError(msg)
    url_lower = url.lower()
    for dangerous_scheme in _DANGEROUS_SCHEMES:
        if url_lower.startswith(f"{dangerous_scheme}:"):
            msg = f"URL scheme '{dangerous_scheme}' is not allowed"
            raise ValueError(msg)
    if any(ord(char) < 32 for char in url):
        msg = "URL contains control characters"
        raise ValueError(msg)


def is_valid_http_url(url: str) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    try:
        _validate_url_input(url)
    except ValueError:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_all_urls(text: str) -> list[str]:
    """Extract distinct http(s) URLs from free text, preserving order."""
    if not text or not isinstance(text, str):
        return []

    seen: set[str] = set()
    urls: list[str] = []
    for raw in _URL_FINDALL_PATTERN.findall(text):
        url = raw.rstrip(_TRAILING_PUNCTUATION)
        if url in seen or not is_valid_http_url(url):
            continue
        seen.add(url)
        urls.append(url)
    return urls


def url_domain(url: str) -> str:
    """Lower-cased host without a leading ``www.``."""
    host = (urlparse(url).hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def domain_matches(url: str, domain: str) -> bool:
    host = url_domain(url)
    return host == domain or host.endswith(f".{domain}")


def is_github_url(url: str) -> bool:
    return domain_matches(url, "github.com")


def is_linkedin_url(url: str) -> bool:
    return domain_matches(url, "linkedin.com")


def detect_social_platform(url: str) -> str | None:
    """Map a URL to a known portfolio/social platform name."""
    for domain, platform in SOCIAL_PLATFORM_DOMAINS.items():
        if domain_matches(url, domain):
            return platform
    return None


def find_github_reference(text: str) -> str | None:
    """Return the first ``github.com/<owner>[/<repo>]`` reference in text."""
    match = _GITHUB_TARGET_PATTERN.search(text or "")
    return match.group(0) if match else None


def parse_github_target(value: str) -> tuple[str, str | None]:
    """Split a GitHub URL, ``github.com/...`` reference or bare username.

    Returns:
        ``(owner, repo)`` where ``repo`` is None for profile references.

    Raises:
        ValueError: If no owner can be extracted.
    """
    value = (value or "").strip()
    match = _GITHUB_TARGET_PATTERN.search(value)
    if match:
        repo = match.group(2)
        if repo and repo.endswith(".git"):
            repo = repo[:-4]
        return match.group(1), repo or None
    candidate = value.lstrip("@").strip("/")
    if re.fullmatch(r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})", candidate):
        return candidate, None
    msg = f"Not a GitHub username or URL: {value!r}"
    raise ValueError(msg)
