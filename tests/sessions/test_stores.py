"""Tests for the in-memory and sqlite session stores."""

from datetime import timedelta

import pytest

from agentflow.config.infrastructure import DatabaseConfig
from agentflow.core.time_utils import ensure_aware, utc_now
from agentflow.sessions.models import AgentFlowRecord, ConversationEntry, Session
from agentflow.sessions.sqlite_store import SqliteSessionStore
from agentflow.sessions.store import InMemorySessionStore


def _session_with_history(session_id="session_store_test"):
    session = Session(id=session_id, user_id="user-1")
    session.metadata.progress.current_stage = "info_collection"
    session.metadata.progress.completed_stages.append("welcome")
    session.collected_data = session.collected_data.merge(
        {"personal": {"full_name": "Jane Doe"}, "professional": {"skills": ["Figma"]}}
    )
    session.generated_content["intake"] = {"user_role": "designer"}
    session.add_entry(ConversationEntry(type="user_message", content="Hi"))
    session.add_entry(
        ConversationEntry(type="agent_response", agent="welcome", content="Welcome!")
    )
    record = AgentFlowRecord(id="WelcomeAgent_1", agent="WelcomeAgent")
    record.finish("completed", output={"content": "Welcome!"})
    session.add_flow_record(record)
    return session


@pytest.fixture
def sqlite_store(tmp_path):
    store = SqliteSessionStore(DatabaseConfig(db_path=str(tmp_path / "sessions.db")))
    store.migrate()
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield InMemorySessionStore()
        return
    sqlite = SqliteSessionStore(DatabaseConfig(db_path=str(tmp_path / "sessions.db")))
    sqlite.migrate()
    yield sqlite
    sqlite.close()


class TestSessionStoreContract:
    @pytest.mark.asyncio
    async def test_round_trip_keeps_history_and_flow(self, store):
        await store.save_session(_session_with_history())

        loaded = await store.load_session("session_store_test")

        assert loaded is not None
        assert loaded.user_id == "user-1"
        assert loaded.current_stage == "info_collection"
        assert loaded.completed_stages == ["welcome"]
        assert loaded.collected_data.personal.full_name == "Jane Doe"
        assert loaded.generated_content["intake"] == {"user_role": "designer"}
        assert [e.content for e in loaded.conversation_history] == ["Hi", "Welcome!"]
        assert [r.agent for r in loaded.agent_flow] == ["WelcomeAgent"]
        assert loaded.agent_flow[0].status == "completed"

    @pytest.mark.asyncio
    async def test_saving_again_appends_new_entries(self, store):
        session = _session_with_history()
        await store.save_session(session)

        session.add_entry(ConversationEntry(type="user_message", content="Here is my site"))
        session.metadata.progress.current_stage = "page_design"
        await store.save_session(session)

        loaded = await store.load_session(session.id)

        assert len(loaded.conversation_history) == 3
        assert loaded.conversation_history[-1].content == "Here is my site"
        assert loaded.current_stage == "page_design"

    @pytest.mark.asyncio
    async def test_load_missing_returns_none(self, store):
        assert await store.load_session("session_missing") is None

    @pytest.mark.asyncio
    async def test_load_all_sessions(self, store):
        await store.save_session(Session(id="session_a"))
        await store.save_session(Session(id="session_b"))

        sessions = await store.load_all_sessions()

        assert {s.id for s in sessions} == {"session_a", "session_b"}

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.save_session(_session_with_history())

        assert await store.delete_session("session_store_test") is True
        assert await store.delete_session("session_store_test") is False
        assert await store.load_session("session_store_test") is None

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, store):
        now = utc_now()
        stale = Session(id="session_stale")
        stale.touch(now - timedelta(hours=30))
        fresh = Session(id="session_fresh")
        fresh.touch(now)
        await store.save_session(stale)
        await store.save_session(fresh)

        removed = await store.cleanup_expired(now - timedelta(hours=24))

        assert removed == 1
        assert await store.load_session("session_stale") is None
        assert await store.load_session("session_fresh") is not None


class TestInMemorySessionStore:
    @pytest.mark.asyncio
    async def test_sessions_are_copied_in_and_out(self):
        store = InMemorySessionStore()
        session = Session(id="session_copy")
        await store.save_session(session)

        session.metadata.progress.current_stage = "code_generation"
        loaded = await store.load_session("session_copy")
        loaded.metadata.progress.completed_stages.append("welcome")

        assert loaded.current_stage == "welcome"
        assert (await store.load_session("session_copy")).completed_stages == []
        assert len(store) == 1


class TestSqliteSessionStore:
    def test_migrate_is_idempotent(self, sqlite_store):
        sqlite_store.migrate()

        tables = set(sqlite_store.database.get_tables())

        assert {"sessions", "conversation_entries", "agent_flow_records"} <= tables

    @pytest.mark.asyncio
    async def test_datetimes_read_back_as_utc(self, sqlite_store):
        session = _session_with_history()
        await sqlite_store.save_session(session)

        loaded = await sqlite_store.load_session(session.id)

        assert ensure_aware(loaded.metadata.last_active) == ensure_aware(
            session.metadata.last_active
        )

    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        path = str(tmp_path / "reopen.db")
        first = SqliteSessionStore(DatabaseConfig(db_path=path))
        first.migrate()
        await first.save_session(_session_with_history())
        first.close()

        second = SqliteSessionStore(DatabaseConfig(db_path=path))
        second.migrate()
        try:
            loaded = await second.load_session("session_store_test")
        finally:
            second.close()

        assert loaded is not None
        assert len(loaded.conversation_history) == 2
