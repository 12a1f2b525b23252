"""Built-in tool definitions."""

from __future__ import annotations

from agentflow.tools.models import (
    InputSchema,
    PropertySchema,
    ToolCategory,
    ToolDefinition,
    ToolMetadata,
)

ANALYZE_GITHUB = ToolDefinition(
    name="analyze_github",
    category=ToolCategory.GITHUB,
    priority=10,
    description=(
        "Analyze a GitHub user profile and its public repositories. Use it when the user "
        "shares a GitHub username or link; it returns profile details, follower counts, "
        "the most starred repositories and a language breakdown that feeds the skills "
        "and projects sections."
    ),
    input_schema=InputSchema(
        properties={
            "username_or_url": PropertySchema(
                type="string", description="GitHub username or profile URL"
            ),
            "include_repos": PropertySchema(
                type="boolean", description="Fetch repository details", default=True
            ),
            "repo_limit": PropertySchema(
                type="number", description="Maximum repositories to analyze", default=10
            ),
            "analysis_depth": PropertySchema(
                type="string",
                description="How much repository detail to collect",
                enum=("basic", "detailed", "comprehensive"),
                default="detailed",
            ),
        },
        required=("username_or_url",),
    ),
    metadata=ToolMetadata(
        version="2.0.0",
        tags=("github", "developer", "analysis", "open-source"),
        estimated_time_ms=8000,
    ),
)

ANALYZE_GITHUB_REPO = ToolDefinition(
    name="analyze_github_repo",
    category=ToolCategory.GITHUB,
    priority=8,
    description=(
        "Analyze a single GitHub repository in depth: description, topics, stars, forks, "
        "primary language and language mix. Use it when the user points at one project "
        "they want highlighted rather than their whole profile."
    ),
    input_schema=InputSchema(
        properties={
            "repo_url": PropertySchema(type="string", description="Repository URL"),
            "analysis_type": PropertySchema(
                type="string",
                description="Focus of the analysis",
                enum=("overview", "technical", "management", "community"),
                default="overview",
            ),
        },
        required=("repo_url",),
    ),
    metadata=ToolMetadata(
        version="1.2.0", tags=("github", "repository", "project"), estimated_time_ms=5000
    ),
)

SCRAPE_WEBPAGE = ToolDefinition(
    name="scrape_webpage",
    category=ToolCategory.WEB_SCRAPING,
    priority=9,
    description=(
        "Fetch a personal website, portfolio or blog page and extract its readable text, "
        "title, description, headings and outbound social links. Use it for any link that "
        "is not a GitHub or LinkedIn profile."
    ),
    input_schema=InputSchema(
        properties={
            "url": PropertySchema(type="string", description="Full page URL with scheme"),
            "target_sections": PropertySchema(
                type="array",
                description="Sections to focus on",
                enum=("all", "about", "projects", "experience", "skills", "contact"),
                default=("all",),
            ),
            "analysis_depth": PropertySchema(
                type="string",
                description="Extraction depth",
                enum=("surface", "standard", "deep"),
                default="standard",
            ),
            "extract_images": PropertySchema(
                type="boolean", description="Collect notable images", default=False
            ),
        },
        required=("url",),
    ),
    metadata=ToolMetadata(
        version="2.1.0",
        tags=("web-scraping", "content-analysis", "portfolio", "blog"),
        estimated_time_ms=6000,
    ),
)

EXTRACT_SOCIAL_LINKS = ToolDefinition(
    name="extract_social_links",
    category=ToolCategory.WEB_SCRAPING,
    priority=6,
    description=(
        "Collect the social and professional profile links (GitHub, LinkedIn, Behance, "
        "Dribbble, Medium, X and others) published on a web page, usually in its header, "
        "footer or contact section."
    ),
    input_schema=InputSchema(
        properties={
            "url": PropertySchema(type="string", description="Page URL to inspect"),
            "platforms": PropertySchema(
                type="array", description="Restrict results to these platforms"
            ),
        },
        required=("url",),
    ),
    metadata=ToolMetadata(
        version="1.5.0",
        tags=("social-media", "contact-extraction", "networking"),
        estimated_time_ms=3000,
    ),
)

ANALYZE_WEBPAGE_SEO = ToolDefinition(
    name="analyze_webpage_seo",
    category=ToolCategory.WEB_SCRAPING,
    priority=5,
    description=(
        "Evaluate the search-engine basics of a page: title and description presence, "
        "heading structure and keyword coverage. Useful to judge the professionalism of "
        "an existing personal site."
    ),
    input_schema=InputSchema(
        properties={
            "url": PropertySchema(type="string", description="Page URL to evaluate"),
            "check_mobile": PropertySchema(
                type="boolean", description="Include viewport checks", default=True
            ),
        },
        required=("url",),
    ),
    metadata=ToolMetadata(version="1.0.0", tags=("seo", "web"), estimated_time_ms=4000),
)

PARSE_DOCUMENT = ToolDefinition(
    name="parse_document",
    category=ToolCategory.DOCUMENT,
    priority=8,
    description=(
        "Parse an uploaded resume, portfolio or certificate document (base64 encoded) and "
        "extract contact details, skills, experience and education into structured data "
        "for the profile."
    ),
    input_schema=InputSchema(
        properties={
            "file_data": PropertySchema(type="string", description="Base64 document content"),
            "file_type": PropertySchema(
                type="string",
                description="Document format",
                enum=("pdf", "docx", "xlsx", "pptx", "txt", "rtf", "md"),
            ),
            "extract_mode": PropertySchema(
                type="string",
                description="Kind of document",
                enum=("resume", "portfolio", "certificate", "general"),
                default="general",
            ),
            "language": PropertySchema(
                type="string", description="Document language", enum=("auto", "zh", "en")
            ),
        },
        required=("file_data", "file_type"),
    ),
    metadata=ToolMetadata(
        version="1.3.0", tags=("document", "resume", "parsing"), estimated_time_ms=10000
    ),
)

ANALYZE_PDF_ADVANCED = ToolDefinition(
    name="analyze_pdf_advanced",
    category=ToolCategory.DOCUMENT,
    priority=7,
    description=(
        "Deep analysis of complex PDF documents such as multi-page portfolios, papers and "
        "certificates, optionally with image extraction and OCR for scanned pages."
    ),
    input_schema=InputSchema(
        properties={
            "file_data": PropertySchema(type="string", description="Base64 PDF content"),
            "extract_images": PropertySchema(type="boolean", description="Extract images"),
            "ocr_enable": PropertySchema(type="boolean", description="Run OCR on scans"),
        },
        required=("file_data",),
    ),
    metadata=ToolMetadata(version="1.0.0", tags=("document", "pdf"), estimated_time_ms=15000),
)

EXTRACT_LINKEDIN = ToolDefinition(
    name="extract_linkedin",
    category=ToolCategory.SOCIAL,
    priority=9,
    description=(
        "Extract professional history from a LinkedIn profile: headline, positions, "
        "education, skills and languages. Requires a configured profile client; without "
        "one the user is asked for an exported profile or resume instead."
    ),
    input_schema=InputSchema(
        properties={
            "profile_url": PropertySchema(
                type="string", description="Profile URL such as https://linkedin.com/in/name"
            ),
            "data_source": PropertySchema(
                type="string",
                description="Where the profile data comes from",
                enum=("url_reference", "exported_data", "pdf_resume", "manual_input"),
                default="url_reference",
            ),
            "data_file": PropertySchema(
                type="string", description="Base64 export when data_source needs one"
            ),
        },
        required=("profile_url",),
    ),
    metadata=ToolMetadata(
        version="2.1.0", tags=("linkedin", "career", "social"), estimated_time_ms=5000
    ),
)

ANALYZE_SOCIAL_MEDIA = ToolDefinition(
    name="analyze_social_media",
    category=ToolCategory.SOCIAL,
    priority=7,
    description=(
        "Analyze a creative or content platform profile (Behance, Dribbble, Medium, dev.to, "
        "CodePen, YouTube) to surface showcased work, publications and audience signals."
    ),
    input_schema=InputSchema(
        properties={
            "platform_url": PropertySchema(type="string", description="Profile URL"),
            "platform_type": PropertySchema(
                type="string",
                description="Platform of the profile",
                enum=(
                    "behance",
                    "dribbble",
                    "medium",
                    "youtube",
                    "codepen",
                    "devto",
                    "auto_detect",
                ),
                default="auto_detect",
            ),
            "analysis_focus": PropertySchema(
                type="string",
                description="What to focus on",
                enum=("profile", "content", "influence", "skills"),
                default="profile",
            ),
        },
        required=("platform_url",),
    ),
    metadata=ToolMetadata(
        version="1.4.0", tags=("social-media", "portfolio", "creative"), estimated_time_ms=6000
    ),
)

EXTRACT_CONTACT_INFO = ToolDefinition(
    name="extract_contact_info",
    category=ToolCategory.UTILITY,
    priority=4,
    description=(
        "Pull contact details and profile links (email, phone, GitHub, LinkedIn, personal "
        "site) out of free text the user typed, without any network access. Cheap first "
        "pass before the heavier extraction tools."
    ),
    input_schema=InputSchema(
        properties={"text": PropertySchema(type="string", description="Free-form user text")},
        required=("text",),
    ),
    metadata=ToolMetadata(version="1.0.0", tags=("contact", "text"), estimated_time_ms=50),
)

BUILTIN_TOOLS: tuple[ToolDefinition, ...] = (
    ANALYZE_GITHUB,
    ANALYZE_GITHUB_REPO,
    SCRAPE_WEBPAGE,
    EXTRACT_SOCIAL_LINKS,
    ANALYZE_WEBPAGE_SEO,
    PARSE_DOCUMENT,
    ANALYZE_PDF_ADVANCED,
    EXTRACT_LINKEDIN,
    ANALYZE_SOCIAL_MEDIA,
    EXTRACT_CONTACT_INFO,
)
