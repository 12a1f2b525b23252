"""Design stage: derive a page design brief from the profile."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from agentflow.agents.base_agent import StageAgent

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agentflow.sessions.models import Session
    from agentflow.streaming.protocol import StreamableResponse

DESIGN_KEY = "design"

PALETTES: dict[str, dict[str, str]] = {
    "modern": {
        "primary": "#2563eb",
        "accent": "#14b8a6",
        "background": "#f8fafc",
        "text": "#0f172a",
    },
    "classic": {
        "primary": "#1e3a5f",
        "accent": "#b08d57",
        "background": "#ffffff",
        "text": "#222222",
    },
    "creative": {
        "primary": "#9333ea",
        "accent": "#f97316",
        "background": "#fffbf5",
        "text": "#1f1235",
    },
    "minimal": {
        "primary": "#111111",
        "accent": "#6b7280",
        "background": "#ffffff",
        "text": "#111111",
    },
    "corporate": {
        "primary": "#0b3d91",
        "accent": "#0ea5e9",
        "background": "#f4f6f9",
        "text": "#1b2430",
    },
}

TYPOGRAPHY: dict[str, dict[str, str]] = {
    "modern": {"heading": "Inter", "body": "Inter"},
    "classic": {"heading": "Merriweather", "body": "Source Serif Pro"},
    "creative": {"heading": "Space Grotesk", "body": "DM Sans"},
    "minimal": {"heading": "Helvetica Neue", "body": "Helvetica Neue"},
    "corporate": {"heading": "IBM Plex Sans", "body": "IBM Plex Sans"},
}

LAYOUTS = {
    "formal_resume": "single_column",
    "portfolio_website": "grid_showcase",
    "career_guidance": "single_column",
    "exploration": "card_stack",
}

# Sections promoted right after the hero for each profession.
PROFESSION_FOCUS: dict[str, tuple[str, ...]] = {
    "developer": ("projects", "skills"),
    "ai_engineer": ("projects", "skills"),
    "designer": ("projects", "experience"),
    "product_manager": ("experience", "achievements"),
    "marketer": ("achievements", "experience"),
}

SECTION_ORDER = (
    "about",
    "skills",
    "projects",
    "experience",
    "education",
    "achievements",
    "certifications",
)


class DesignBrief(BaseModel):
    layout: str
    style: str
    tone: str
    palette: dict[str, str]
    typography: dict[str, str]
    sections: list[str] = Field(default_factory=list)
    highlight_focus: str | None = None
    target_audience: str
    responsive: bool = True


def available_sections(session: Session) -> list[str]:
    collected = session.collected_data
    present = {
        "about": bool(collected.professional.summary or collected.professional.current_title),
        "skills": bool(collected.professional.skills),
        "projects": bool(collected.projects),
        "experience": bool(collected.experience),
        "education": bool(collected.education),
        "achievements": bool(collected.achievements),
        "certifications": bool(collected.certifications),
    }
    return [section for section in SECTION_ORDER if present[section]]


def build_design_brief(session: Session) -> DesignBrief:
    personalization = session.personalization
    style = personalization.preferences.style
    available = available_sections(session)

    preferred = PROFESSION_FOCUS.get(personalization.identity.profession, ())
    focus = [section for section in preferred if section in available]
    ordered = focus + [s for s in available if s not in focus]
    if "about" in ordered:
        ordered.remove("about")
        ordered.insert(0, "about")

    return DesignBrief(
        layout=LAYOUTS.get(session.user_intent.type, "single_column"),
        style=style,
        tone=personalization.preferences.tone,
        palette=dict(PALETTES[style]),
        typography=dict(TYPOGRAPHY[style]),
        sections=["hero", *ordered, "contact"],
        highlight_focus=personalization.context.highlight_focus,
        target_audience=session.user_intent.target_audience,
    )


class PromptOutputAgent(StageAgent):
    name = "prompt_output"

    async def process(self, user_input: str, session: Session) -> AsyncIterator[StreamableResponse]:
        yield self.thinking("Planning the page layout...", session)

        brief = build_design_brief(session)
        session.generated_content[DESIGN_KEY] = brief.model_dump(mode="json")
        self.log_info(
            "design brief created",
            correlation_id=session.id,
            layout=brief.layout,
            sections=brief.sections,
        )

        yield self.respond(
            f"Layout: {brief.layout.replace('_', ' ')}, style: {brief.style}. "
            f"Sections: {', '.join(brief.sections)}.",
            session,
            metadata={"design": session.generated_content[DESIGN_KEY]},
        )
        yield self.advance("The design brief is ready. Generating your page next.", session)
