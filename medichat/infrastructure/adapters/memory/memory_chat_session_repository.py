"""In-memory adapter implementation of ChatSessionRepository."""

import logging
import uuid
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from medichat.domain.exceptions import ChatNotFoundError
from medichat.domain.models import (
    ChatMessage,
    ChatSession,
    SessionUpdate,
    MAX_SESSION_MESSAGES,
    truncate_messages,
)
from medichat.domain.models.chat_models import utcnow
from medichat.domain.ports import ChatSessionRepository

logger = logging.getLogger(__name__)


class InMemoryChatSessionRepository(ChatSessionRepository):
    """
    Process-local session store for single-instance deployments and tests.

    No method awaits between reading and writing a session, so every
    update is atomic with respect to other coroutines on the event loop.
    """

    def __init__(self):
        self._sessions: dict[tuple[str, str], ChatSession] = {}
        self._chat_index: dict[str, tuple[str, str]] = {}

    async def get_session(self, tenant_id: str, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get((tenant_id, session_id))

    async def get_by_chat_id(self, tenant_id: str, chat_id: str) -> Optional[ChatSession]:
        key = self._chat_index.get(chat_id)
        if key is None or key[0] != tenant_id:
            return None
        return self._sessions.get(key)

    async def get_or_create_session(
        self,
        tenant_id: str,
        session_id: str,
        user_name: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> ChatSession:
        key = (tenant_id, session_id)
        existing = self._sessions.get(key)
        if existing is not None:
            return existing

        session = ChatSession(
            chat_id=uuid.uuid4().hex,
            tenant_id=tenant_id,
            session_id=session_id,
            user_name=user_name or "Guest",
            user_email=user_email or None,
        )
        self._sessions[key] = session
        self._chat_index[session.chat_id] = key
        logger.info(f"🆕 Created chat session {session_id} for tenant {tenant_id}")
        return session

    async def update_session(
        self,
        tenant_id: str,
        session_id: str,
        update: Optional[SessionUpdate] = None,
        messages: Sequence[ChatMessage] = (),
        max_messages: int = MAX_SESSION_MESSAGES,
    ) -> ChatSession:
        key = (tenant_id, session_id)
        session = self._sessions.get(key)
        if session is None:
            raise ChatNotFoundError(tenant_id, session_id)

        changes = {}
        if update is not None:
            if update.chat_type is not None:
                changes["chat_type"] = update.chat_type
            if update.status is not None:
                changes["status"] = update.status
            if update.touches_agent:
                changes["assigned_agent"] = update.assigned_agent
            if update.user_name:
                changes["user_name"] = update.user_name
            if update.user_email:
                changes["user_email"] = update.user_email
            if update.context is not None:
                changes["context"] = update.context

        changes["messages"] = truncate_messages(
            session.messages + tuple(messages), max_messages
        )
        changes["last_activity"] = utcnow()

        updated = replace(session, **changes)
        self._sessions[key] = updated
        return updated

    async def mark_read(self, tenant_id: str, session_id: str, by_admin: bool) -> int:
        session = self._sessions.get((tenant_id, session_id))
        if session is None:
            raise ChatNotFoundError(tenant_id, session_id)

        flag = "read_by_admin" if by_admin else "read_by_user"
        changed = 0
        messages = []
        for message in session.messages:
            if not getattr(message, flag):
                message = replace(message, **{flag: True})
                changed += 1
            messages.append(message)

        self._sessions[(tenant_id, session_id)] = replace(session, messages=tuple(messages))
        return changed

    async def delete_session(self, tenant_id: str, session_id: str) -> bool:
        session = self._sessions.pop((tenant_id, session_id), None)
        if session is None:
            return False
        self._chat_index.pop(session.chat_id, None)
        return True

    async def list_sessions(
        self,
        tenant_id: str,
        chat_type: str,
        statuses: Iterable[str],
    ) -> list[ChatSession]:
        wanted = set(statuses)
        sessions = [
            s for (tenant, _), s in self._sessions.items()
            if tenant == tenant_id and s.chat_type == chat_type and s.status in wanted
        ]
        return sorted(sessions, key=lambda s: s.last_activity, reverse=True)
