"""Intake stage: identify who the user is and what page they want."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from agentflow.agents.base_agent import InteractionResult, StageAgent
from agentflow.streaming.protocol import ElementOption, Interaction, InteractionElement

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from agentflow.sessions.models import Session
    from agentflow.streaming.protocol import StreamableResponse

INTAKE_KEY = "intake"
INTAKE_FIELDS = ("user_role", "use_case", "style", "highlight_focus")

# Checked in order; the first role with a matching keyword wins.
ROLE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "ai_engineer",
        (
            "ai engineer",
            "machine learning",
            "ml engineer",
            "data scientist",
            "llm",
            "deep learning",
        ),
    ),
    ("product_manager", ("product manager", "product owner", "product lead")),
    ("designer", ("designer", "ux", "ui/ux", "illustrator", "visual design")),
    ("marketer", ("marketer", "marketing", "growth", "seo specialist")),
    (
        "developer",
        ("developer", "engineer", "programmer", "software", "frontend", "backend", "full stack"),
    ),
)

USE_CASE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("formal_resume", ("resume", "cv", "job application", "job hunt", "hiring")),
    ("portfolio_website", ("portfolio", "personal website", "personal site", "showcase my work")),
    ("career_guidance", ("career advice", "career guidance", "career change", "guidance")),
    ("exploration", ("just exploring", "explore", "just looking", "try it out")),
)

STYLE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("minimal", ("minimal", "minimalist", "clean", "simple")),
    ("creative", ("creative", "bold", "artistic", "colorful", "playful")),
    ("corporate", ("corporate", "business", "formal")),
    ("classic", ("classic", "traditional", "timeless")),
    ("modern", ("modern", "sleek", "contemporary")),
)

USE_CASE_AUDIENCE = {
    "formal_resume": "recruiters",
    "portfolio_website": "clients",
    "career_guidance": "internal_review",
    "exploration": "showcase",
}

USE_CASE_GOALS = {
    "formal_resume": "Create a professional resume page",
    "portfolio_website": "Showcase work on a personal portfolio site",
    "career_guidance": "Clarify career direction and present it",
    "exploration": "Explore what a personal page could look like",
}

_HIGHLIGHT_RE = re.compile(
    r"\b(?:highlight|focus on|emphasi[sz]e|show off|feature)\s+(?:my\s+)?([^.,;!?\n]{3,80})",
    re.IGNORECASE,
)

FIELD_LABELS = {
    "user_role": "What best describes your role?",
    "use_case": "What will the page be used for?",
    "style": "Which visual style do you prefer?",
    "highlight_focus": "What should the page highlight?",
}

FIELD_OPTIONS: dict[str, tuple[tuple[str, str], ...]] = {
    "user_role": (
        ("developer", "Developer"),
        ("designer", "Designer"),
        ("product_manager", "Product manager"),
        ("marketer", "Marketer"),
        ("ai_engineer", "AI engineer"),
        ("other", "Other"),
    ),
    "use_case": (
        ("formal_resume", "Job search resume"),
        ("portfolio_website", "Portfolio website"),
        ("career_guidance", "Career guidance"),
        ("exploration", "Just exploring"),
    ),
    "style": (
        ("modern", "Modern"),
        ("minimal", "Minimal"),
        ("creative", "Creative"),
        ("classic", "Classic"),
        ("corporate", "Corporate"),
    ),
}


def _match_keywords(text: str, table: tuple[tuple[str, tuple[str, ...]], ...]) -> str | None:
    for value, keywords in table:
        for keyword in keywords:
            if re.search(rf"(?<![a-z]){re.escape(keyword)}(?![a-z])", text):
                return value
    return None


def detect_intake_fields(text: str) -> dict[str, str]:
    """Pull whatever intake fields the free text reveals."""
    lowered = (text or "").lower()
    found: dict[str, str] = {}
    role = _match_keywords(lowered, ROLE_KEYWORDS)
    if role:
        found["user_role"] = role
    use_case = _match_keywords(lowered, USE_CASE_KEYWORDS)
    if use_case:
        found["use_case"] = use_case
    style = _match_keywords(lowered, STYLE_KEYWORDS)
    if style:
        found["style"] = style
    match = _HIGHLIGHT_RE.search(text or "")
    if match:
        found["highlight_focus"] = match.group(1).strip()
    return found


def _clean_value(field_name: str, value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    options = FIELD_OPTIONS.get(field_name)
    if options is not None and text not in {option for option, _ in options}:
        return None
    return text


class WelcomeAgent(StageAgent):
    name = "welcome"

    def intake(self, session: Session) -> dict[str, str]:
        return session.generated_content.setdefault(INTAKE_KEY, {})

    def missing_fields(self, session: Session) -> list[str]:
        intake = self.intake(session)
        return [name for name in INTAKE_FIELDS if not intake.get(name)]

    def apply_fields(self, session: Session, fields: dict[str, Any]) -> dict[str, str]:
        """Store accepted intake values and project them onto the session profile."""
        accepted: dict[str, str] = {}
        for field_name in INTAKE_FIELDS:
            value = _clean_value(field_name, fields.get(field_name))
            if value is not None:
                accepted[field_name] = value
        intake = self.intake(session)
        intake.update(accepted)

        personalization = session.personalization
        if "user_role" in accepted:
            personalization.identity.profession = accepted["user_role"]  # type: ignore[assignment]
        if "style" in accepted:
            personalization.preferences.style = accepted["style"]  # type: ignore[assignment]
        if "highlight_focus" in accepted:
            personalization.context.highlight_focus = accepted["highlight_focus"]
        if "use_case" in accepted:
            use_case = accepted["use_case"]
            session.user_intent.type = use_case  # type: ignore[assignment]
            audience = USE_CASE_AUDIENCE[use_case]
            session.user_intent.target_audience = audience  # type: ignore[assignment]
            session.user_intent.primary_goal = USE_CASE_GOALS[use_case]
        return accepted

    def build_form(self, missing: list[str]) -> Interaction:
        elements = []
        for field_name in missing:
            options = FIELD_OPTIONS.get(field_name)
            if options:
                elements.append(
                    InteractionElement(
                        id=field_name,
                        type="select",
                        label=FIELD_LABELS[field_name],
                        options=[ElementOption(value=v, label=label) for v, label in options],
                        required=True,
                    )
                )
            else:
                elements.append(
                    InteractionElement(
                        id=field_name,
                        type="input",
                        label=FIELD_LABELS[field_name],
                        placeholder="e.g. open-source projects, leadership, design process",
                        required=True,
                    )
                )
        return Interaction(
            type="form",
            title="A few quick questions",
            description="Your answers decide how the page is tailored",
            elements=elements,
            required=True,
        )

    def _summary(self, session: Session) -> str:
        intake = self.intake(session)
        return (
            f"Role: {intake['user_role']}, goal: {intake['use_case']}, "
            f"style: {intake['style']}, highlight: {intake['highlight_focus']}"
        )

    async def process(self, user_input: str, session: Session) -> AsyncIterator[StreamableResponse]:
        yield self.thinking("Understanding what you are looking for...", session)

        detected = self.apply_fields(session, detect_intake_fields(user_input))
        self.log_info("intake fields detected", correlation_id=session.id, fields=list(detected))

        missing = self.missing_fields(session)
        if missing:
            yield self.await_input(
                "Welcome! Tell me a bit more so I can tailor your page.",
                session,
                interaction=self.build_form(missing),
                metadata={"completion_status": "collecting", "missing_fields": missing},
            )
            return

        yield self.advance(
            f"Got it. {self._summary(session)}. Let's gather your materials next.",
            session,
            metadata={"completion_status": "ready", "intake": dict(self.intake(session))},
        )

    async def handle_interaction(
        self, interaction_type: str, data: dict[str, Any], session: Session
    ) -> InteractionResult:
        if interaction_type not in ("form", "choice"):
            return await super().handle_interaction(interaction_type, data, session)

        fields = dict(data)
        if interaction_type == "choice" and "field" in data:
            fields = {str(data["field"]): data.get("value")}
        accepted = self.apply_fields(session, fields)
        missing = self.missing_fields(session)
        if missing:
            return InteractionResult(
                action="continue",
                summary=f"Still missing: {', '.join(missing)}",
                data={"accepted": accepted, "missing_fields": missing},
            )
        return InteractionResult(
            action="advance",
            summary=self._summary(session),
            data={"accepted": accepted, "intake": dict(self.intake(session))},
        )
