"""Tests for the HTTP surface."""

import pytest
from conftest import FakeToolService
from fastapi.testclient import TestClient

from agentflow.api.main import create_app
from agentflow.config import load_config
from agentflow.di.container import Container
from agentflow.sessions.store import InMemorySessionStore
from agentflow.streaming.protocol import STREAM_SENTINEL, decode_sse

COMPLETE_INTRO = (
    "I'm a developer building a portfolio, modern style, highlight my open source projects"
)


@pytest.fixture
def container():
    return Container(
        load_config({"LOG_LEVEL": "WARNING"}),
        session_store=InMemorySessionStore(),
        tool_service=FakeToolService(),
    )


@pytest.fixture
def client(container):
    with TestClient(create_app(container)) as test_client:
        yield test_client


def _start_session(client, session_id):
    response = client.post("/chat/stream", json={"session_id": session_id, "message": "Hi"})
    assert response.status_code == 200
    return response


class TestChatStream:
    def test_stream_is_sse_and_ends_with_sentinel(self, client):
        response = client.post(
            "/chat/stream", json={"session_id": "session_api", "message": COMPLETE_INTRO}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        items = decode_sse(response.text)
        assert items[-1] == STREAM_SENTINEL
        fragments = items[:-1]
        assert fragments[0].immediate_display.agent_name == "WelcomeAgent"
        assert fragments[-1].system_state.intent == "awaiting_input"
        assert fragments[-1].system_state.current_stage == "info_collection"

    def test_missing_session_id_is_rejected(self, client):
        response = client.post("/chat/stream", json={"message": "Hi"})

        assert response.status_code == 422


class TestInteract:
    def test_interaction_returns_envelope(self, client):
        _start_session(client, "session_form")

        response = client.post(
            "/chat/interact",
            json={
                "session_id": "session_form",
                "interaction_type": "form",
                "data": {
                    "user_role": "designer",
                    "use_case": "portfolio_website",
                    "style": "minimal",
                    "highlight_focus": "case studies",
                },
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["action"] == "advance"
        assert body["data"]["next_agent"] == "info_collection"
        assert body["meta"]["correlation_id"] == response.headers["X-Correlation-ID"]
        assert body["meta"]["timestamp"]

    def test_unknown_session_is_not_found(self, client):
        response = client.post(
            "/chat/interact",
            json={"session_id": "session_missing", "interaction_type": "form"},
        )

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"
        assert body["error"]["details"] == {"session_id": "session_missing"}


class TestSessionEndpoints:
    def test_status(self, client):
        _start_session(client, "session_status")

        response = client.get("/sessions/session_status/status")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["session_id"] == "session_status"
        assert data["current_stage"] == "welcome"
        assert data["current_agent"] == "welcome"

    def test_status_of_unknown_session(self, client):
        response = client.get("/sessions/session_missing/status")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_health(self, client):
        _start_session(client, "session_health")

        response = client.get("/sessions/session_health/health")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "healthy"

    def test_reset(self, client):
        client.post(
            "/chat/stream", json={"session_id": "session_reset", "message": COMPLETE_INTRO}
        )

        response = client.post("/sessions/session_reset/reset", json={"stage": "welcome"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["current_stage"] == "welcome"
        assert data["completed_stages"] == []

    def test_reset_to_invalid_stage(self, client):
        _start_session(client, "session_bad_reset")

        response = client.post("/sessions/session_bad_reset/reset", json={"stage": "deploy"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"] == {"stage": "deploy"}

    def test_reset_unknown_session(self, client):
        response = client.post("/sessions/session_missing/reset", json={"stage": "welcome"})

        assert response.status_code == 404


class TestCorrelationId:
    def test_incoming_id_is_echoed(self, client):
        response = client.get(
            "/sessions/session_missing/status", headers={"X-Correlation-ID": "req-123"}
        )

        assert response.headers["X-Correlation-ID"] == "req-123"
        assert response.json()["meta"]["correlation_id"] == "req-123"

    def test_id_is_generated_when_missing(self, client):
        response = client.get("/sessions/session_missing/status")

        assert response.headers["X-Correlation-ID"]
