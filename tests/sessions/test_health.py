"""Tests for session health diagnosis and recovery recommendations."""

from datetime import timedelta

from agentflow.config.sessions import SessionSettings
from agentflow.sessions.health import get_recovery_recommendation, get_session_health
from agentflow.sessions.models import AgentFlowRecord, Session


def _fresh_session():
    session = Session()
    return session, session.metadata.created_at + timedelta(minutes=1)


class TestSessionHealth:
    def test_new_session_is_healthy(self):
        session, now = _fresh_session()

        health = get_session_health(session, now=now)

        assert health.status == "healthy"
        assert health.issues == []
        assert health.suggestions == []

    def test_many_errors_is_critical(self):
        session, now = _fresh_session()
        session.metadata.metrics.errors_encountered = 6

        health = get_session_health(session, now=now)

        assert health.status == "critical"
        assert "Too many errors encountered" in health.issues
        assert health.suggestions

    def test_some_errors_is_warning(self):
        session, now = _fresh_session()
        session.metadata.metrics.errors_encountered = 3

        health = get_session_health(session, now=now)

        assert health.status == "warning"
        assert health.issues == ["Some errors were encountered"]

    def test_old_session_is_reported(self):
        session = Session()
        now = session.metadata.created_at + timedelta(minutes=45)

        health = get_session_health(session, now=now)

        assert health.status == "warning"
        assert health.issues == ["Session has been running for a long time"]

    def test_max_duration_comes_from_settings(self):
        session = Session()
        now = session.metadata.created_at + timedelta(minutes=45)

        health = get_session_health(
            session, now=now, settings=SessionSettings(max_duration_min=60)
        )

        assert health.status == "healthy"

    def test_three_issues_is_critical(self):
        session = Session()
        now = session.metadata.created_at + timedelta(hours=2)
        session.metadata.metrics.user_interactions = 25
        failed = AgentFlowRecord(id="CodingAgent_1", agent="CodingAgent")
        failed.finish("failed", error="boom")
        session.add_flow_record(failed)

        health = get_session_health(session, now=now)

        assert health.status == "critical"
        assert len(health.issues) == 3
        assert "1 agent run(s) failed" in health.issues


class TestRecoveryRecommendation:
    def test_network_errors_are_retried(self):
        session, now = _fresh_session()

        rec = get_recovery_recommendation(session, "Failed to fetch profile", now=now)

        assert rec.action == "retry"

    def test_timeout_is_retried_even_with_many_errors(self):
        session, now = _fresh_session()
        session.metadata.metrics.errors_encountered = 10

        rec = get_recovery_recommendation(session, TimeoutError("request timeout"), now=now)

        assert rec.action == "retry"

    def test_agent_errors_reset_the_current_stage(self):
        session, now = _fresh_session()
        session.metadata.progress.current_stage = "page_design"

        rec = get_recovery_recommendation(session, "Agent crashed while processing", now=now)

        assert rec.action == "reset"
        assert rec.target_stage == "page_design"

    def test_unstable_session_is_restarted(self):
        session, now = _fresh_session()
        session.metadata.metrics.errors_encountered = 4

        rec = get_recovery_recommendation(session, ValueError("bad value"), now=now)

        assert rec.action == "restart"
        assert rec.target_stage is None

    def test_default_is_retry(self):
        session, now = _fresh_session()

        rec = get_recovery_recommendation(session, "something odd", now=now)

        assert rec.action == "retry"
