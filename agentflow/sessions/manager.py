"""Cache-aside session repository.

The store is the source of truth. Reads go through the in-process cache and
fall back to the store on a miss; writes update both. Storage failures are
logged and swallowed so a flaky store never breaks a conversation.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from agentflow.agents.mappings import AgentMappingRegistry
from agentflow.config.sessions import SessionSettings
from agentflow.core.time_utils import ensure_aware, utc_now
from agentflow.domain.exceptions import StorageError
from agentflow.sessions.health import (
    RecoveryRecommendation,
    SessionHealth,
    get_recovery_recommendation,
    get_session_health,
)
from agentflow.sessions.models import (
    AgentFlowRecord,
    ConversationEntry,
    EntryType,
    FlowMetrics,
    Personalization,
    Session,
    UserIntent,
    new_id,
)

if TYPE_CHECKING:
    from agentflow.sessions.store import SessionStore

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        store: SessionStore,
        settings: SessionSettings | None = None,
        mappings: AgentMappingRegistry | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or SessionSettings()
        self.mappings = mappings or AgentMappingRegistry()
        self._sessions: dict[str, Session] = {}
        self._cleanup_task: asyncio.Task[None] | None = None

    @property
    def expiry(self) -> timedelta:
        return timedelta(hours=self.settings.expiry_hours)

    def _is_expired(self, session: Session, now: datetime) -> bool:
        return now - ensure_aware(session.metadata.last_active) > self.expiry

    async def initialize(self) -> int:
        """Warm the cache from the store; returns the number of sessions loaded."""
        try:
            sessions = await self.store.load_all_sessions()
        except StorageError as exc:
            logger.warning("session_cache_warmup_failed", extra={"error": str(exc)})
            return 0
        self._sessions = {session.id: session for session in sessions}
        if self._sessions:
            logger.info("session_cache_warmed", extra={"sessions": len(self._sessions)})
        return len(self._sessions)

    async def get_session(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        if session is not None:
            return session
        try:
            session = await self.store.load_session(session_id)
        except StorageError as exc:
            logger.warning(
                "session_load_failed", extra={"session_id": session_id, "error": str(exc)}
            )
            return None
        if session is None:
            logger.debug("session_not_found", extra={"session_id": session_id})
            return None
        self._sessions[session_id] = session
        logger.info("session_reloaded", extra={"session_id": session_id})
        return session

    def get_cached_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    async def create_session(
        self,
        session_id: str | None = None,
        *,
        user_id: str | None = None,
        user_intent: UserIntent | None = None,
        personalization: Personalization | None = None,
    ) -> Session:
        session = Session(
            id=session_id or new_id("session"),
            user_id=user_id,
            user_intent=user_intent or UserIntent(),
            personalization=personalization or Personalization(),
        )
        await self.save_session(session)
        logger.info("session_created", extra={"session_id": session.id})
        return session

    async def get_or_create_session(self, session_id: str, **kwargs: Any) -> Session:
        session = await self.get_session(session_id)
        if session is not None:
            return session
        return await self.create_session(session_id, **kwargs)

    async def save_session(self, session: Session) -> None:
        session.touch()
        self._sessions[session.id] = session
        try:
            await self.store.save_session(session)
        except StorageError as exc:
            logger.warning(
                "session_persist_failed", extra={"session_id": session.id, "error": str(exc)}
            )

    async def delete_session(self, session_id: str) -> bool:
        cached = self._sessions.pop(session_id, None) is not None
        try:
            stored = await self.store.delete_session(session_id)
        except StorageError as exc:
            logger.warning(
                "session_delete_failed", extra={"session_id": session_id, "error": str(exc)}
            )
            stored = False
        deleted = cached or stored
        if deleted:
            logger.info("session_deleted", extra={"session_id": session_id})
        return deleted

    def get_all_active_sessions(self, now: datetime | None = None) -> list[Session]:
        now = ensure_aware(now or utc_now())
        return [s for s in self._sessions.values() if not self._is_expired(s, now)]

    def get_session_stats(self, now: datetime | None = None) -> dict[str, int]:
        now = ensure_aware(now or utc_now())
        expired = sum(1 for s in self._sessions.values() if self._is_expired(s, now))
        return {
            "total_sessions": len(self._sessions),
            "active_sessions": len(self._sessions) - expired,
            "expired_sessions": expired,
        }

    async def cleanup_expired_sessions(self, now: datetime | None = None) -> int:
        now = ensure_aware(now or utc_now())
        expired_ids = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
        for session_id in expired_ids:
            self._sessions.pop(session_id, None)
        removed = len(expired_ids)
        try:
            stored_removed = await self.store.cleanup_expired(now - self.expiry)
        except StorageError as exc:
            logger.warning("session_cleanup_failed", extra={"error": str(exc)})
        else:
            removed = max(removed, stored_removed)
        if removed:
            logger.info("expired_sessions_cleaned", extra={"count": removed})
        return removed

    async def _cleanup_loop(self) -> None:
        interval = self.settings.cleanup_interval_min * 60
        while True:
            await asyncio.sleep(interval)
            await self.cleanup_expired_sessions()

    def start_cleanup_task(self) -> asyncio.Task[None]:
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info(
                "session_cleanup_started",
                extra={"interval_min": self.settings.cleanup_interval_min},
            )
        return self._cleanup_task

    async def stop_cleanup_task(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("session_cleanup_stopped")

    def record_agent_completion(
        self,
        session: Session,
        agent_name: str,
        start_time: datetime,
        output: dict[str, Any] | None = None,
        end_time: datetime | None = None,
        *,
        stage_completed: bool = True,
    ) -> AgentFlowRecord:
        """Append a completed flow record.

        With ``stage_completed`` the agent's stage is also added to the
        completed stages (once).
        """
        display_name = self.mappings.standardize_agent_name(agent_name)
        end_time = end_time or utc_now()
        record = AgentFlowRecord(
            id=f"{display_name}_{int(end_time.timestamp() * 1000)}_{new_id('run')[-6:]}",
            agent=display_name,
            start_time=start_time,
            metrics=FlowMetrics(api_calls=1),
        )
        record.finish("completed", output=output, end_time=end_time)
        session.add_flow_record(record)

        stage = self.mappings.get_stage_from_agent(agent_name)
        if stage_completed and stage not in session.metadata.progress.completed_stages:
            session.metadata.progress.completed_stages.append(stage)
        logger.info(
            "agent_completion_recorded",
            extra={"session_id": session.id, "agent": display_name, "stage": stage},
        )
        return record

    def record_agent_failure(
        self,
        session: Session,
        agent_name: str,
        start_time: datetime,
        error: BaseException | str,
        user_input: Any = None,
    ) -> AgentFlowRecord:
        display_name = self.mappings.standardize_agent_name(agent_name)
        end_time = utc_now()
        record = AgentFlowRecord(
            id=f"{display_name}_{int(end_time.timestamp() * 1000)}_{new_id('run')[-6:]}",
            agent=display_name,
            start_time=start_time,
            input=user_input,
        )
        record.finish("failed", error=str(error), end_time=end_time)
        session.add_flow_record(record)
        session.metadata.metrics.errors_encountered += 1
        logger.warning(
            "agent_failure_recorded",
            extra={"session_id": session.id, "agent": display_name, "error": str(error)},
        )
        return record

    def record_conversation_entry(
        self,
        session: Session,
        entry_type: EntryType,
        content: str,
        agent: str | None = None,
        metadata: dict[str, Any] | None = None,
        user_interaction: dict[str, Any] | None = None,
    ) -> ConversationEntry:
        return session.add_entry(
            ConversationEntry(
                type=entry_type,
                agent=agent,
                content=content,
                metadata=metadata or {},
                user_interaction=user_interaction,
            )
        )

    def get_session_health(self, session: Session, now: datetime | None = None) -> SessionHealth:
        return get_session_health(session, now=now, settings=self.settings)

    def get_recovery_recommendation(
        self, session: Session, error: BaseException | str, now: datetime | None = None
    ) -> RecoveryRecommendation:
        return get_recovery_recommendation(session, error, now=now, settings=self.settings)
