"""SQLite session store built on peewee.

A session is stored as a JSON snapshot row plus two child tables: the
conversation history (append-only) and the agent flow records (upserted by
id so status transitions are persisted). Blocking peewee calls run in a
worker thread under a connection context and an operation timeout.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import peewee
from playhouse.sqlite_ext import JSONField, SqliteExtDatabase

from agentflow.config.infrastructure import DatabaseConfig
from agentflow.core.time_utils import ensure_aware
from agentflow.domain.exceptions import StorageError
from agentflow.sessions.models import AgentFlowRecord, ConversationEntry, Session

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# Initialised with the concrete database when a store is constructed.
database_proxy: peewee.Database = peewee.DatabaseProxy()


class BaseModel(peewee.Model):
    class Meta:
        database = database_proxy
        legacy_table_names = False


class SessionRow(BaseModel):
    id = peewee.TextField(primary_key=True)
    user_id = peewee.TextField(null=True, index=True)
    status = peewee.TextField(default="active")
    current_stage = peewee.TextField(default="welcome")
    snapshot = JSONField()
    created_at = peewee.DateTimeField()
    updated_at = peewee.DateTimeField()
    last_active = peewee.DateTimeField(index=True)

    class Meta:
        table_name = "sessions"


class ConversationEntryRow(BaseModel):
    id = peewee.TextField(primary_key=True)
    session_id = peewee.TextField(index=True)
    seq = peewee.IntegerField()
    type = peewee.TextField()
    agent = peewee.TextField(null=True)
    payload = JSONField()

    class Meta:
        table_name = "conversation_entries"


class AgentFlowRecordRow(BaseModel):
    id = peewee.TextField(primary_key=True)
    session_id = peewee.TextField(index=True)
    seq = peewee.IntegerField()
    agent = peewee.TextField()
    status = peewee.TextField()
    payload = JSONField()

    class Meta:
        table_name = "agent_flow_records"


ALL_MODELS = (SessionRow, ConversationEntryRow, AgentFlowRecordRow)


def _naive_utc(value: datetime) -> datetime:
    # Stored without tzinfo so peewee's datetime formats round-trip and compare.
    return ensure_aware(value).astimezone(UTC).replace(tzinfo=None)


class SqliteSessionStore:
    def __init__(self, config: DatabaseConfig | None = None) -> None:
        self.config = config or DatabaseConfig()
        self.path = self.config.db_path
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._database = SqliteExtDatabase(
            self.path,
            pragmas={
                "journal_mode": "wal",
                "synchronous": "normal",
                "foreign_keys": 1,
            },
            check_same_thread=False,
        )
        database_proxy.initialize(self._database)

    @property
    def database(self) -> peewee.SqliteDatabase:
        return self._database

    def migrate(self) -> None:
        """Create tables if they do not exist."""
        with self._database.connection_context():
            self._database.create_tables(ALL_MODELS, safe=True)
        logger.info("session_store_migrated", extra={"path": self.path})

    def close(self) -> None:
        if not self._database.is_closed():
            self._database.close()

    async def _execute(
        self,
        operation: Callable[..., Any],
        *args: Any,
        operation_name: str = "session_store_operation",
        **kwargs: Any,
    ) -> Any:
        def _op_wrapper() -> Any:
            with self._database.connection_context():
                return operation(*args, **kwargs)

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(_op_wrapper), timeout=self.config.operation_timeout
            )
        except TimeoutError as exc:
            logger.exception(
                "db_operation_timeout",
                extra={"operation": operation_name, "timeout": self.config.operation_timeout},
            )
            msg = f"Session store operation {operation_name} timed out"
            raise StorageError(msg, {"operation": operation_name}) from exc
        except peewee.PeeweeException as exc:
            logger.exception(
                "db_operation_failed",
                extra={"operation": operation_name, "error": str(exc)},
            )
            msg = f"Session store operation {operation_name} failed: {exc}"
            raise StorageError(msg, {"operation": operation_name}) from exc

    # -- sync operations executed in a worker thread --

    def _load(self, session_id: str) -> Session | None:
        row = SessionRow.get_or_none(SessionRow.id == session_id)
        if row is None:
            return None
        return self._assemble(row)

    def _assemble(self, row: SessionRow) -> Session:
        data = dict(row.snapshot)
        entries = (
            ConversationEntryRow.select()
            .where(ConversationEntryRow.session_id == row.id)
            .order_by(ConversationEntryRow.seq)
        )
        flows = (
            AgentFlowRecordRow.select()
            .where(AgentFlowRecordRow.session_id == row.id)
            .order_by(AgentFlowRecordRow.seq)
        )
        data["conversation_history"] = [entry.payload for entry in entries]
        data["agent_flow"] = [flow.payload for flow in flows]
        return Session.model_validate(data)

    def _load_all(self) -> list[Session]:
        return [self._assemble(row) for row in SessionRow.select().order_by(SessionRow.created_at)]

    def _save(self, session: Session) -> None:
        snapshot = session.model_dump(mode="json", exclude={"conversation_history", "agent_flow"})
        metadata = session.metadata
        with self._database.atomic():
            SessionRow.insert(
                id=session.id,
                user_id=session.user_id,
                status=session.status,
                current_stage=session.current_stage,
                snapshot=snapshot,
                created_at=_naive_utc(metadata.created_at),
                updated_at=_naive_utc(metadata.updated_at),
                last_active=_naive_utc(metadata.last_active),
            ).on_conflict_replace().execute()

            entries = [
                self._entry_row(session.id, seq, entry)
                for seq, entry in enumerate(session.conversation_history)
            ]
            if entries:
                ConversationEntryRow.insert_many(entries).on_conflict_ignore().execute()

            flows = [
                self._flow_row(session.id, seq, record)
                for seq, record in enumerate(session.agent_flow)
            ]
            if flows:
                AgentFlowRecordRow.insert_many(flows).on_conflict_replace().execute()

    @staticmethod
    def _entry_row(session_id: str, seq: int, entry: ConversationEntry) -> dict[str, Any]:
        return {
            "id": entry.id,
            "session_id": session_id,
            "seq": seq,
            "type": entry.type,
            "agent": entry.agent,
            "payload": entry.model_dump(mode="json"),
        }

    @staticmethod
    def _flow_row(session_id: str, seq: int, record: AgentFlowRecord) -> dict[str, Any]:
        return {
            "id": record.id,
            "session_id": session_id,
            "seq": seq,
            "agent": record.agent,
            "status": record.status,
            "payload": record.model_dump(mode="json"),
        }

    def _delete(self, session_id: str) -> bool:
        with self._database.atomic():
            ConversationEntryRow.delete().where(
                ConversationEntryRow.session_id == session_id
            ).execute()
            AgentFlowRecordRow.delete().where(AgentFlowRecordRow.session_id == session_id).execute()
            return SessionRow.delete().where(SessionRow.id == session_id).execute() > 0

    def _cleanup(self, threshold: datetime) -> int:
        cutoff = _naive_utc(threshold)
        expired = [
            row.id
            for row in SessionRow.select(SessionRow.id).where(SessionRow.last_active < cutoff)
        ]
        for session_id in expired:
            self._delete(session_id)
        return len(expired)

    # -- SessionStore --

    async def load_all_sessions(self) -> list[Session]:
        return await self._execute(self._load_all, operation_name="load_all_sessions")

    async def load_session(self, session_id: str) -> Session | None:
        return await self._execute(self._load, session_id, operation_name="load_session")

    async def save_session(self, session: Session) -> None:
        await self._execute(self._save, session, operation_name="save_session")

    async def delete_session(self, session_id: str) -> bool:
        return await self._execute(self._delete, session_id, operation_name="delete_session")

    async def cleanup_expired(self, threshold: datetime) -> int:
        removed = await self._execute(self._cleanup, threshold, operation_name="cleanup_expired")
        if removed:
            logger.info("expired_sessions_removed", extra={"count": removed})
        return removed
