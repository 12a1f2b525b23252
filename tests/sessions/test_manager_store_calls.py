"""Tests for how the session manager drives its store."""

import unittest
from unittest.mock import AsyncMock

from agentflow.config.sessions import SessionSettings
from agentflow.domain.exceptions import StorageError
from agentflow.sessions.manager import SessionManager
from agentflow.sessions.models import Session


def _mock_store():
    store = AsyncMock()
    store.load_all_sessions.return_value = []
    store.load_session.return_value = None
    store.delete_session.return_value = False
    store.cleanup_expired.return_value = 0
    return store


class TestSessionManagerStoreCalls(unittest.IsolatedAsyncioTestCase):
    """Write-through and read-through behaviour against a mocked store."""

    async def test_save_writes_through(self):
        """Saving updates the cache and persists the same object."""
        store = _mock_store()
        manager = SessionManager(store, SessionSettings())
        session = Session(id="session_write")

        await manager.save_session(session)

        store.save_session.assert_awaited_once_with(session)
        assert manager.get_cached_session("session_write") is session

    async def test_cached_session_skips_store(self):
        """A cache hit never reaches the store."""
        store = _mock_store()
        manager = SessionManager(store, SessionSettings())
        await manager.create_session("session_cached")

        await manager.get_session("session_cached")

        store.load_session.assert_not_awaited()

    async def test_miss_is_loaded_once(self):
        """A miss reads through and the result is cached."""
        store = _mock_store()
        store.load_session.return_value = Session(id="session_miss")
        manager = SessionManager(store, SessionSettings())

        first = await manager.get_session("session_miss")
        second = await manager.get_session("session_miss")

        assert first is second
        store.load_session.assert_awaited_once_with("session_miss")

    async def test_cleanup_passes_expiry_threshold(self):
        """The store receives ``now - expiry`` as its cutoff."""
        store = _mock_store()
        store.cleanup_expired.return_value = 3
        manager = SessionManager(store, SessionSettings(expiry_hours=2))
        now = Session().metadata.created_at

        removed = await manager.cleanup_expired_sessions(now)

        assert removed == 3
        threshold = store.cleanup_expired.await_args.args[0]
        assert (now - threshold).total_seconds() == 7200

    async def test_failed_save_keeps_cache(self):
        """A failed write still leaves the session usable from the cache."""
        store = _mock_store()
        store.save_session.side_effect = StorageError("disk full")
        manager = SessionManager(store, SessionSettings())

        session = await manager.create_session("session_disk_full")

        assert manager.get_cached_session("session_disk_full") is session
        store.save_session.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
