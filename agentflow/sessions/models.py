"""Session aggregate and its value objects."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from agentflow.core.time_utils import utc_now

SessionStatus = Literal["active", "paused", "completed", "abandoned"]
FlowStatus = Literal["running", "completed", "failed", "cancelled"]
EntryType = Literal["user_message", "agent_response", "system_event"]

SESSION_VERSION = "1.0.0"
TOTAL_STAGES = 4


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


class UserIntent(BaseModel):
    type: Literal["formal_resume", "exploration", "portfolio_website", "career_guidance"] = (
        "formal_resume"
    )
    urgency: Literal["immediate", "this_week", "this_month", "exploring"] = "this_week"
    target_audience: Literal["recruiters", "clients", "showcase", "internal_review"] = (
        "recruiters"
    )
    primary_goal: str = "Create a professional resume page"
    secondary_goals: list[str] = Field(default_factory=list)


class Identity(BaseModel):
    profession: Literal[
        "designer", "developer", "product_manager", "marketer", "ai_engineer", "other"
    ] = "other"
    experience_level: Literal["entry", "mid", "senior", "executive"] = "mid"
    industry: str | None = None
    specializations: list[str] = Field(default_factory=list)


class Preferences(BaseModel):
    style: Literal["modern", "classic", "creative", "minimal", "corporate"] = "modern"
    tone: Literal["professional", "friendly", "authoritative", "approachable"] = "professional"
    detail_level: Literal["concise", "detailed", "comprehensive"] = "detailed"
    format_preference: Literal["pdf", "web", "both"] | None = None


class PersonalContext(BaseModel):
    current_situation: str | None = None
    career_goals: str | None = None
    target_companies: list[str] = Field(default_factory=list)
    geographic_preference: str | None = None
    highlight_focus: str | None = None


class Personalization(BaseModel):
    identity: Identity = Field(default_factory=Identity)
    preferences: Preferences = Field(default_factory=Preferences)
    context: PersonalContext = Field(default_factory=PersonalContext)


class PersonalInfo(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    portfolio: str | None = None
    linkedin: str | None = None
    github: str | None = None
    website: str | None = None


class ProfessionalInfo(BaseModel):
    current_title: str | None = None
    target_role: str | None = None
    years_experience: float | None = None
    summary: str | None = None
    skills: list[str] = Field(default_factory=list)
    languages: list[dict[str, Any]] = Field(default_factory=list)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _merge_list(existing: list[Any], incoming: list[Any]) -> list[Any]:
    """Extend ``existing`` with unseen items; dict items with an ``id`` are matched by id."""
    merged = list(existing)
    ids = {item.get("id") for item in merged if isinstance(item, dict) and item.get("id")}
    for item in incoming:
        if isinstance(item, dict) and item.get("id"):
            if item["id"] in ids:
                continue
            ids.add(item["id"])
        elif item in merged:
            continue
        merged.append(item)
    return merged


def _merge_model(current: BaseModel, update: BaseModel | dict[str, Any]) -> BaseModel:
    incoming = update if isinstance(update, dict) else update.model_dump(exclude_unset=False)
    values = current.model_dump()
    for key, value in incoming.items():
        if key not in values or _is_empty(value):
            continue
        if isinstance(values[key], list):
            values[key] = _merge_list(values[key], list(value))
        else:
            values[key] = value
    return type(current).model_validate(values)


class CollectedData(BaseModel):
    """Profile material gathered across stages.

    ``merge`` only ever adds: scalar fields are replaced by non-empty values
    and list fields are extended without duplicates.
    """

    personal: PersonalInfo = Field(default_factory=PersonalInfo)
    professional: ProfessionalInfo = Field(default_factory=ProfessionalInfo)
    experience: list[dict[str, Any]] = Field(default_factory=list)
    education: list[dict[str, Any]] = Field(default_factory=list)
    projects: list[dict[str, Any]] = Field(default_factory=list)
    achievements: list[dict[str, Any]] = Field(default_factory=list)
    certifications: list[dict[str, Any]] = Field(default_factory=list)

    def merge(self, update: CollectedData | dict[str, Any]) -> CollectedData:
        data = update if isinstance(update, dict) else update.model_dump()
        merged = self.model_copy(deep=True)
        if data.get("personal"):
            personal = _merge_model(merged.personal, data["personal"])
            merged.personal = personal  # type: ignore[assignment]
        if data.get("professional"):
            professional = _merge_model(merged.professional, data["professional"])
            merged.professional = professional  # type: ignore[assignment]
        for section in ("experience", "education", "projects", "achievements", "certifications"):
            items = data.get(section)
            if items:
                setattr(merged, section, _merge_list(getattr(merged, section), list(items)))
        return merged

    def filled_sections(self) -> list[str]:
        """Names of the sections holding at least one value."""
        sections: list[str] = []
        if any(not _is_empty(v) for v in self.personal.model_dump().values()):
            sections.append("personal")
        if any(not _is_empty(v) for v in self.professional.model_dump().values()):
            sections.append("professional")
        for section in ("experience", "education", "projects", "achievements", "certifications"):
            if getattr(self, section):
                sections.append(section)
        return sections


class ConversationEntry(BaseModel):
    id: str = Field(default_factory=lambda: new_id("msg"))
    timestamp: datetime = Field(default_factory=utc_now)
    type: EntryType
    agent: str | None = None
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    user_interaction: dict[str, Any] | None = None


class FlowMetrics(BaseModel):
    processing_time: int = 0
    tokens_used: int = 0
    api_calls: int = 0


class AgentFlowRecord(BaseModel):
    """Audit record of one agent run.

    Status moves from ``running`` to a finished state exactly once.
    """

    id: str
    agent: str
    start_time: datetime = Field(default_factory=utc_now)
    end_time: datetime | None = None
    status: FlowStatus = "running"
    input: Any = None
    output: dict[str, Any] | None = None
    error: str | None = None
    metrics: FlowMetrics = Field(default_factory=FlowMetrics)

    @property
    def finished(self) -> bool:
        return self.status != "running"

    def finish(
        self,
        status: FlowStatus,
        *,
        output: dict[str, Any] | None = None,
        error: str | None = None,
        end_time: datetime | None = None,
    ) -> AgentFlowRecord:
        if self.finished:
            msg = f"Flow record {self.id} already finished with status {self.status}"
            raise ValueError(msg)
        if status == "running":
            msg = "A flow record cannot be finished with status 'running'"
            raise ValueError(msg)
        self.status = status
        self.end_time = end_time or utc_now()
        self.output = output
        self.error = error
        self.metrics.processing_time = max(
            0, int((self.end_time - self.start_time).total_seconds() * 1000)
        )
        return self


class StageProgress(BaseModel):
    current_stage: str = "welcome"
    completed_stages: list[str] = Field(default_factory=list)
    total_stages: int = TOTAL_STAGES
    percentage: int = 0


class SessionMetrics(BaseModel):
    total_time: int = 0
    user_interactions: int = 0
    agent_transitions: int = 0
    errors_encountered: int = 0


class SessionPreferences(BaseModel):
    auto_save: bool = True
    reminder_enabled: bool = False
    privacy_level: Literal["public", "private", "limited"] = "private"


class SessionMetadata(BaseModel):
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_active: datetime = Field(default_factory=utc_now)
    version: str = SESSION_VERSION
    progress: StageProgress = Field(default_factory=StageProgress)
    metrics: SessionMetrics = Field(default_factory=SessionMetrics)
    settings: SessionPreferences = Field(default_factory=SessionPreferences)


class Session(BaseModel):
    """Durable state of one user's pass through the stage pipeline."""

    model_config = ConfigDict(validate_assignment=False)

    id: str = Field(default_factory=lambda: new_id("session"))
    user_id: str | None = None
    status: SessionStatus = "active"
    title: str | None = None
    user_intent: UserIntent = Field(default_factory=UserIntent)
    personalization: Personalization = Field(default_factory=Personalization)
    collected_data: CollectedData = Field(default_factory=CollectedData)
    conversation_history: list[ConversationEntry] = Field(default_factory=list)
    agent_flow: list[AgentFlowRecord] = Field(default_factory=list)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)
    generated_content: dict[str, Any] = Field(default_factory=dict)

    @property
    def current_stage(self) -> str:
        return self.metadata.progress.current_stage

    @property
    def completed_stages(self) -> list[str]:
        return self.metadata.progress.completed_stages

    def touch(self, now: datetime | None = None) -> None:
        now = now or utc_now()
        self.metadata.updated_at = now
        self.metadata.last_active = now
        self.metadata.metrics.total_time = max(
            0, int((now - self.metadata.created_at).total_seconds() * 1000)
        )

    def add_entry(self, entry: ConversationEntry) -> ConversationEntry:
        self.conversation_history.append(entry)
        return entry

    def add_flow_record(self, record: AgentFlowRecord) -> AgentFlowRecord:
        self.agent_flow.append(record)
        return record
