"""Repository port (interface) for chat session storage."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence

from medichat.domain.models import (
    ChatMessage,
    ChatSession,
    SessionUpdate,
    MAX_SESSION_MESSAGES,
)


class ChatSessionRepository(ABC):
    """
    Port (interface) for the chat session store.

    The store is the durability boundary of the chat subsystem. Every
    mutation goes through `update_session`, which adapters must apply
    atomically per session (field changes, message append, front
    truncation and last-activity bump in one step), so application code
    never does a read-modify-write of the message list.
    """

    @abstractmethod
    async def get_session(self, tenant_id: str, session_id: str) -> Optional[ChatSession]:
        """
        Retrieve a session by its visitor session identifier.

        Args:
            tenant_id: Tenant (hospital) identifier
            session_id: Client-generated session identifier

        Returns:
            ChatSession if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_chat_id(self, tenant_id: str, chat_id: str) -> Optional[ChatSession]:
        """
        Retrieve a session by its server-side chat identifier.

        Args:
            tenant_id: Tenant (hospital) identifier
            chat_id: Chat identifier shown in the agent console

        Returns:
            ChatSession if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_or_create_session(
        self,
        tenant_id: str,
        session_id: str,
        user_name: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> ChatSession:
        """
        Return the session, creating it in AI mode if it does not exist.

        This is the only place sessions are created.

        Args:
            tenant_id: Tenant (hospital) identifier
            session_id: Client-generated session identifier
            user_name: Visitor display name for new sessions
            user_email: Visitor email for new sessions

        Returns:
            Existing or newly created ChatSession
        """
        pass

    @abstractmethod
    async def update_session(
        self,
        tenant_id: str,
        session_id: str,
        update: Optional[SessionUpdate] = None,
        messages: Sequence[ChatMessage] = (),
        max_messages: int = MAX_SESSION_MESSAGES,
    ) -> ChatSession:
        """
        Atomically apply field changes and append messages.

        Messages beyond `max_messages` are dropped oldest-first.

        Args:
            tenant_id: Tenant (hospital) identifier
            session_id: Client-generated session identifier
            update: Field changes (None for append-only)
            messages: Messages to append in order
            max_messages: Retention bound

        Returns:
            The updated ChatSession

        Raises:
            ChatNotFoundError: If the session does not exist
        """
        pass

    async def append_messages(
        self,
        tenant_id: str,
        session_id: str,
        messages: Sequence[ChatMessage],
        max_messages: int = MAX_SESSION_MESSAGES,
    ) -> ChatSession:
        """Append messages without changing any other field."""
        return await self.update_session(
            tenant_id, session_id, messages=messages, max_messages=max_messages
        )

    @abstractmethod
    async def mark_read(self, tenant_id: str, session_id: str, by_admin: bool) -> int:
        """
        Mark every message as read by one party.

        Args:
            tenant_id: Tenant (hospital) identifier
            session_id: Client-generated session identifier
            by_admin: True for the agent side, False for the visitor side

        Returns:
            Number of messages whose flag changed
        """
        pass

    @abstractmethod
    async def delete_session(self, tenant_id: str, session_id: str) -> bool:
        """
        Delete a session and its messages.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_sessions(
        self,
        tenant_id: str,
        chat_type: str,
        statuses: Iterable[str],
    ) -> list[ChatSession]:
        """
        List sessions of one chat type in the given statuses.

        Returns:
            Sessions ordered by last activity, newest first
        """
        pass
