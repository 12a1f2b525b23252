"""Persistence contract for sessions and the in-memory implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from agentflow.core.time_utils import ensure_aware

if TYPE_CHECKING:
    from datetime import datetime

    from agentflow.sessions.models import Session


class SessionStore(Protocol):
    """CRUD contract the session manager relies on.

    Implementations own durability; callers treat the store as the source of
    truth and may keep their own cache on top of it.
    """

    async def load_all_sessions(self) -> list[Session]: ...

    async def load_session(self, session_id: str) -> Session | None: ...

    async def save_session(self, session: Session) -> None: ...

    async def delete_session(self, session_id: str) -> bool: ...

    async def cleanup_expired(self, threshold: datetime) -> int:
        """Delete sessions whose ``last_active`` is older than ``threshold``."""
        ...


class InMemorySessionStore:
    """Dictionary-backed store; sessions are deep-copied in and out."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def load_all_sessions(self) -> list[Session]:
        return [session.model_copy(deep=True) for session in self._sessions.values()]

    async def load_session(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    async def save_session(self, session: Session) -> None:
        self._sessions[session.id] = session.model_copy(deep=True)

    async def delete_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    async def cleanup_expired(self, threshold: datetime) -> int:
        threshold = ensure_aware(threshold)
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if ensure_aware(session.metadata.last_active) < threshold
        ]
        for session_id in expired:
            del self._sessions[session_id]
        return len(expired)
