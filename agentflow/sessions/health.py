"""Session health diagnosis and advisory recovery recommendations."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel, Field

from agentflow.config.sessions import SessionSettings
from agentflow.core.time_utils import ensure_aware, utc_now
from agentflow.sessions.models import Session

HealthStatus = Literal["healthy", "warning", "critical"]
RecoveryAction = Literal["retry", "reset", "restart"]

CRITICAL_ERROR_COUNT = 5
WARNING_ERROR_COUNT = 2
MAX_USER_INTERACTIONS = 20
CRITICAL_ISSUE_COUNT = 3

_RETRY_KEYWORDS = ("fetch", "network", "timeout")
_RESET_KEYWORDS = ("agent", "processing")


class SessionHealth(BaseModel):
    status: HealthStatus
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class RecoveryRecommendation(BaseModel):
    action: RecoveryAction
    reason: str
    target_stage: str | None = None


def get_session_health(
    session: Session,
    now: datetime | None = None,
    settings: SessionSettings | None = None,
) -> SessionHealth:
    """Evaluate error count, age, failed agent runs and interaction volume.

    The session is critical with three or more issues or more than five
    errors, a warning with any issue, and healthy otherwise.
    """
    settings = settings or SessionSettings()
    now = ensure_aware(now or utc_now())
    metrics = session.metadata.metrics
    issues: list[str] = []
    suggestions: list[str] = []

    if metrics.errors_encountered > CRITICAL_ERROR_COUNT:
        issues.append("Too many errors encountered")
        suggestions.append("Consider restarting the conversation")
    elif metrics.errors_encountered > WARNING_ERROR_COUNT:
        issues.append("Some errors were encountered")
        suggestions.append("If problems persist, reset to the previous stage")

    age = now - ensure_aware(session.metadata.created_at)
    if age > timedelta(minutes=settings.max_duration_min):
        issues.append("Session has been running for a long time")
        suggestions.append("Save the current progress and start a fresh session")

    failed = sum(1 for record in session.agent_flow if record.status == "failed")
    if failed:
        issues.append(f"{failed} agent run(s) failed")
        suggestions.append("Retry, or reset to the stage before the failure")

    if metrics.user_interactions > MAX_USER_INTERACTIONS:
        issues.append("Large number of interactions")
        suggestions.append("The flow may need to be simplified")

    status: HealthStatus = "healthy"
    if len(issues) >= CRITICAL_ISSUE_COUNT or metrics.errors_encountered > CRITICAL_ERROR_COUNT:
        status = "critical"
    elif issues:
        status = "warning"
    return SessionHealth(status=status, issues=issues, suggestions=suggestions)


def get_recovery_recommendation(
    session: Session,
    error: BaseException | str,
    now: datetime | None = None,
    settings: SessionSettings | None = None,
) -> RecoveryRecommendation:
    """Suggest how to recover from ``error``; the rules are checked in order."""
    settings = settings or SessionSettings()
    message = str(error).lower()

    if any(keyword in message for keyword in _RETRY_KEYWORDS):
        return RecoveryRecommendation(action="retry", reason="Network or API error, retry")

    if any(keyword in message for keyword in _RESET_KEYWORDS):
        return RecoveryRecommendation(
            action="reset",
            target_stage=session.current_stage,
            reason="Agent processing error, reset the current stage",
        )

    health = get_session_health(session, now=now, settings=settings)
    if (
        health.status == "critical"
        or session.metadata.metrics.errors_encountered > settings.restart_error_threshold
    ):
        return RecoveryRecommendation(action="restart", reason="Session state is unstable, restart")

    return RecoveryRecommendation(action="retry", reason="Retry the current operation")
