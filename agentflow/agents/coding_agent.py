"""Generation stage: render the page files from the design brief."""

from __future__ import annotations

import html
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from agentflow.agents.base_agent import StageAgent
from agentflow.agents.prompt_output_agent import DESIGN_KEY, build_design_brief

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agentflow.agents.mappings import AgentMappingRegistry
    from agentflow.sessions.models import CollectedData, Session
    from agentflow.streaming.protocol import StreamableResponse

FILES_KEY = "files"


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    language: str
    content: str


class PageGenerator(Protocol):
    async def generate(
        self, design: dict[str, Any], collected: CollectedData
    ) -> list[GeneratedFile]: ...


def _section_html(section: str, collected: CollectedData) -> str:
    professional = collected.professional
    if section == "about":
        body = html.escape(professional.summary or professional.current_title or "")
        return f"<p>{body}</p>"
    if section == "skills":
        items = "".join(f"<li>{html.escape(skill)}</li>" for skill in professional.skills)
        return f'<ul class="skills">{items}</ul>'
    if section in ("projects", "experience", "education", "achievements", "certifications"):
        cards = []
        for item in getattr(collected, section):
            title = html.escape(str(item.get("name") or item.get("title") or ""))
            description = html.escape(str(item.get("description") or ""))
            url = item.get("url")
            link = f' <a href="{html.escape(url)}">Link</a>' if url else ""
            cards.append(
                f'<article class="card"><h3>{title}</h3><p>{description}</p>{link}</article>'
            )
        return f'<div class="cards">{"".join(cards)}</div>'
    return ""


class TemplatePageGenerator:
    """Static HTML/CSS page with the profile data embedded as JSON."""

    async def generate(
        self, design: dict[str, Any], collected: CollectedData
    ) -> list[GeneratedFile]:
        personal = collected.personal
        name = html.escape(personal.full_name or "My Page")
        subtitle = html.escape(
            collected.professional.current_title or collected.professional.target_role or ""
        )

        blocks = []
        for section in design.get("sections", []):
            if section in ("hero", "contact"):
                continue
            blocks.append(
                f'<section id="{section}"><h2>{section.title()}</h2>'
                f"{_section_html(section, collected)}</section>"
            )

        contact_links = [
            (label, value)
            for label, value in (
                ("Email", f"mailto:{personal.email}" if personal.email else None),
                ("GitHub", personal.github),
                ("LinkedIn", personal.linkedin),
                ("Website", personal.website or personal.portfolio),
            )
            if value
        ]
        contact = "".join(
            f'<a href="{html.escape(href)}">{label}</a>' for label, href in contact_links
        )

        page = (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n<head>\n<meta charset="utf-8">\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
            f"<title>{name}</title>\n"
            '<link rel="stylesheet" href="styles.css">\n</head>\n<body>\n'
            f'<header class="hero"><h1>{name}</h1><p>{subtitle}</p></header>\n'
            f"<main>{''.join(blocks)}</main>\n"
            f'<footer id="contact">{contact}</footer>\n'
            "</body>\n</html>\n"
        )

        palette = design.get("palette", {})
        fonts = design.get("typography", {})
        columns = "repeat(auto-fill, minmax(260px, 1fr))"
        if design.get("layout") == "single_column":
            columns = "1fr"
        styles = (
            ":root {\n"
            f"  --primary: {palette.get('primary', '#2563eb')};\n"
            f"  --accent: {palette.get('accent', '#14b8a6')};\n"
            f"  --background: {palette.get('background', '#ffffff')};\n"
            f"  --text: {palette.get('text', '#111111')};\n"
            "}\n"
            f"body {{ margin: 0; font-family: '{fonts.get('body', 'Inter')}', sans-serif; "
            "background: var(--background); color: var(--text); }\n"
            f"h1, h2, h3 {{ font-family: '{fonts.get('heading', 'Inter')}', sans-serif; }}\n"
            ".hero { padding: 4rem 2rem; background: var(--primary); color: #fff; }\n"
            "main { max-width: 960px; margin: 0 auto; padding: 2rem; }\n"
            f".cards {{ display: grid; grid-template-columns: {columns}; gap: 1rem; }}\n"
            ".card { border: 1px solid var(--accent); border-radius: 8px; padding: 1rem; }\n"
            "footer a { margin-right: 1rem; color: var(--primary); }\n"
        )

        data = json.dumps(collected.model_dump(mode="json"), ensure_ascii=False, indent=2)
        return [
            GeneratedFile(path="index.html", language="html", content=page),
            GeneratedFile(path="styles.css", language="css", content=styles),
            GeneratedFile(path="data.json", language="json", content=data),
        ]


class CodingAgent(StageAgent):
    name = "coding"

    def __init__(
        self,
        generator: PageGenerator | None = None,
        mappings: AgentMappingRegistry | None = None,
    ) -> None:
        super().__init__(mappings)
        self.generator = generator or TemplatePageGenerator()

    async def process(self, user_input: str, session: Session) -> AsyncIterator[StreamableResponse]:
        yield self.thinking("Generating the page files...", session)

        design = session.generated_content.get(DESIGN_KEY)
        if not design:
            self.log_warning("design brief missing, deriving one", correlation_id=session.id)
            design = build_design_brief(session).model_dump(mode="json")
            session.generated_content[DESIGN_KEY] = design

        files = await self.generator.generate(design, session.collected_data)
        session.generated_content[FILES_KEY] = {f.path: f.content for f in files}
        self.log_info(
            "page generated", correlation_id=session.id, files=[f.path for f in files]
        )

        for generated in files:
            yield self.respond(
                f"Generated {generated.path}",
                session,
                intent="file_generated",
                metadata={
                    "file": generated.path,
                    "language": generated.language,
                    "size": len(generated.content),
                    "content": generated.content,
                },
            )

        yield self.advance(
            f"Your page is ready: {', '.join(f.path for f in files)}.",
            session,
            metadata={"files": [f.path for f in files]},
        )
