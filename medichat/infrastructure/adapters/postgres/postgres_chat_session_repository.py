"""PostgreSQL adapter implementation of ChatSessionRepository."""

import logging
import uuid
from typing import Iterable, Optional, Sequence

from asyncpg import Connection, Pool

from medichat.domain.exceptions import ChatNotFoundError
from medichat.domain.models import (
    ChatMessage,
    ChatSession,
    SessionUpdate,
    MAX_SESSION_MESSAGES,
)
from medichat.domain.ports import ChatSessionRepository

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS chat_sessions (
    chat_id         TEXT PRIMARY KEY,
    tenant_id       TEXT NOT NULL,
    session_id      TEXT NOT NULL,
    user_name       TEXT NOT NULL DEFAULT 'Guest',
    user_email      TEXT,
    chat_type       TEXT NOT NULL DEFAULT 'ai',
    status          TEXT NOT NULL DEFAULT 'active',
    assigned_agent  TEXT,
    context         TEXT NOT NULL DEFAULT '',
    last_activity   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (tenant_id, session_id)
);

CREATE TABLE IF NOT EXISTS chat_messages (
    id              BIGSERIAL PRIMARY KEY,
    chat_id         TEXT NOT NULL REFERENCES chat_sessions (chat_id) ON DELETE CASCADE,
    role            TEXT NOT NULL,
    content         TEXT NOT NULL,
    timestamp       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    read_by_admin   BOOLEAN NOT NULL DEFAULT FALSE,
    read_by_user    BOOLEAN NOT NULL DEFAULT FALSE
);

CREATE INDEX IF NOT EXISTS idx_chat_messages_chat ON chat_messages (chat_id, id);
CREATE INDEX IF NOT EXISTS idx_chat_sessions_queue
    ON chat_sessions (tenant_id, chat_type, status, last_activity DESC);
"""

SESSION_COLUMNS = """
    chat_id, tenant_id, session_id, user_name, user_email, chat_type,
    status, assigned_agent, context, last_activity, created_at
"""


class PostgresChatSessionRepository(ChatSessionRepository):
    """
    PostgreSQL implementation of the ChatSessionRepository port.

    Updates lock the session row (SELECT ... FOR UPDATE) inside a
    transaction, so concurrent appends to the same session from several
    requests or instances are serialized by the database.
    """

    def __init__(self, pool: Pool):
        """
        Initialize the PostgreSQL repository.

        Args:
            pool: AsyncPG connection pool
        """
        self.pool = pool

    async def ensure_schema(self) -> None:
        """Create the chat tables if they do not exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA)
        logger.info("✅ Chat session schema ready")

    async def get_session(self, tenant_id: str, session_id: str) -> Optional[ChatSession]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {SESSION_COLUMNS} FROM chat_sessions WHERE tenant_id = $1 AND session_id = $2",
                tenant_id, session_id
            )
            if not row:
                return None
            return await self._load(conn, row)

    async def get_by_chat_id(self, tenant_id: str, chat_id: str) -> Optional[ChatSession]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {SESSION_COLUMNS} FROM chat_sessions WHERE tenant_id = $1 AND chat_id = $2",
                tenant_id, chat_id
            )
            if not row:
                return None
            return await self._load(conn, row)

    async def get_or_create_session(
        self,
        tenant_id: str,
        session_id: str,
        user_name: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> ChatSession:
        async with self.pool.acquire() as conn:
            inserted = await conn.fetchval(
                """
                INSERT INTO chat_sessions (chat_id, tenant_id, session_id, user_name, user_email)
                VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (tenant_id, session_id) DO NOTHING
                RETURNING chat_id
                """,
                uuid.uuid4().hex, tenant_id, session_id, user_name or "Guest", user_email or None
            )
            if inserted:
                logger.info(f"🆕 Created chat session {session_id} for tenant {tenant_id}")

            row = await conn.fetchrow(
                f"SELECT {SESSION_COLUMNS} FROM chat_sessions WHERE tenant_id = $1 AND session_id = $2",
                tenant_id, session_id
            )
            return await self._load(conn, row)

    async def update_session(
        self,
        tenant_id: str,
        session_id: str,
        update: Optional[SessionUpdate] = None,
        messages: Sequence[ChatMessage] = (),
        max_messages: int = MAX_SESSION_MESSAGES,
    ) -> ChatSession:
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                chat_id = await conn.fetchval(
                    "SELECT chat_id FROM chat_sessions WHERE tenant_id = $1 AND session_id = $2 FOR UPDATE",
                    tenant_id, session_id
                )
                if not chat_id:
                    raise ChatNotFoundError(tenant_id, session_id)

                assignments = ["last_activity = NOW()"]
                params: list = [chat_id]
                if update is not None:
                    for column, value in (
                        ("chat_type", update.chat_type),
                        ("status", update.status),
                        ("user_name", update.user_name or None),
                        ("user_email", update.user_email or None),
                        ("context", update.context),
                    ):
                        if value is not None:
                            params.append(value)
                            assignments.append(f"{column} = ${len(params)}")
                    if update.touches_agent:
                        params.append(update.assigned_agent)
                        assignments.append(f"assigned_agent = ${len(params)}")

                await conn.execute(
                    f"UPDATE chat_sessions SET {', '.join(assignments)} WHERE chat_id = $1",
                    *params
                )

                if messages:
                    await conn.executemany(
                        """
                        INSERT INTO chat_messages (chat_id, role, content, timestamp, read_by_admin, read_by_user)
                        VALUES ($1, $2, $3, $4, $5, $6)
                        """,
                        [
                            (chat_id, m.role, m.content, m.timestamp, m.read_by_admin, m.read_by_user)
                            for m in messages
                        ]
                    )
                    await conn.execute(
                        """
                        DELETE FROM chat_messages
                        WHERE chat_id = $1
                          AND id NOT IN (
                              SELECT id FROM chat_messages
                              WHERE chat_id = $1
                              ORDER BY id DESC
                              LIMIT $2
                          )
                        """,
                        chat_id, max_messages
                    )

                row = await conn.fetchrow(
                    f"SELECT {SESSION_COLUMNS} FROM chat_sessions WHERE chat_id = $1",
                    chat_id
                )
                return await self._load(conn, row)

    async def mark_read(self, tenant_id: str, session_id: str, by_admin: bool) -> int:
        column = "read_by_admin" if by_admin else "read_by_user"
        async with self.pool.acquire() as conn:
            chat_id = await conn.fetchval(
                "SELECT chat_id FROM chat_sessions WHERE tenant_id = $1 AND session_id = $2",
                tenant_id, session_id
            )
            if not chat_id:
                raise ChatNotFoundError(tenant_id, session_id)

            result = await conn.execute(
                f"UPDATE chat_messages SET {column} = TRUE WHERE chat_id = $1 AND {column} = FALSE",
                chat_id
            )
            return int(result.split()[-1])

    async def delete_session(self, tenant_id: str, session_id: str) -> bool:
        async with self.pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM chat_sessions WHERE tenant_id = $1 AND session_id = $2",
                tenant_id, session_id
            )
            return result == "DELETE 1"

    async def list_sessions(
        self,
        tenant_id: str,
        chat_type: str,
        statuses: Iterable[str],
    ) -> list[ChatSession]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM chat_sessions
                WHERE tenant_id = $1 AND chat_type = $2 AND status = ANY($3::text[])
                ORDER BY last_activity DESC
                """,
                tenant_id, chat_type, list(statuses)
            )
            return [await self._load(conn, row) for row in rows]

    async def _load(self, conn: Connection, row) -> ChatSession:
        """Build a ChatSession from a session row and its messages."""
        message_rows = await conn.fetch(
            """
            SELECT role, content, timestamp, read_by_admin, read_by_user
            FROM chat_messages
            WHERE chat_id = $1
            ORDER BY id ASC
            """,
            row["chat_id"]
        )
        return ChatSession(
            chat_id=row["chat_id"],
            tenant_id=row["tenant_id"],
            session_id=row["session_id"],
            user_name=row["user_name"],
            user_email=row["user_email"],
            chat_type=row["chat_type"],
            status=row["status"],
            assigned_agent=row["assigned_agent"],
            context=row["context"] or "",
            last_activity=row["last_activity"],
            created_at=row["created_at"],
            messages=tuple(
                ChatMessage(
                    role=m["role"],
                    content=m["content"],
                    timestamp=m["timestamp"],
                    read_by_admin=m["read_by_admin"],
                    read_by_user=m["read_by_user"],
                )
                for m in message_rows
            ),
        )
