"""Hand-off coordination between the AI assistant and hospital agents."""

import logging
from typing import Any, Optional

from medichat.domain.exceptions import ChatNotFoundError, ChatValidationError, InvalidTransitionError
from medichat.domain.models import (
    ChatMessage,
    ChatSession,
    ChatState,
    ChatStatus,
    ChatType,
    MessageRole,
    SessionUpdate,
    MAX_SESSION_MESSAGES,
)
from medichat.domain.ports import ChatNotifier, ChatSessionRepository
from medichat.domain.ports.chat_notifier import agents_room, session_room
from medichat.domain.services.session_locks import SessionLockManager

logger = logging.getLogger(__name__)

WAITING_NOTICE = (
    "You have requested to chat with our support team. "
    "Please wait while we connect you with an available agent."
)
AGENT_JOINED_NOTICE = "An agent has joined the chat. How can we help you today?"
SWITCHED_TO_AI_NOTICE = "You are now chatting with our AI assistant. How can I help you?"
CLOSED_NOTICE = "This chat has been closed. Thank you for contacting us!"

HUMAN_STATES = (ChatState.HUMAN_WAITING, ChatState.HUMAN_ACTIVE)


class HandoffService:
    """
    State machine moving a visitor session between the AI and a human agent.

    AI_ACTIVE -> HUMAN_WAITING -> HUMAN_ACTIVE -> CLOSED, with the visitor
    able to go back to the AI from either human state and to request a
    human again from any state. Every transition is one atomic store
    update under the session lock, followed by best-effort events.
    """

    def __init__(
        self,
        repository: ChatSessionRepository,
        notifier: ChatNotifier,
        lock_manager: Optional[SessionLockManager] = None,
        max_messages: int = MAX_SESSION_MESSAGES,
    ):
        self.repository = repository
        self.notifier = notifier
        self.lock_manager = lock_manager or SessionLockManager()
        self.max_messages = max_messages

    # ========== Visitor side ==========

    async def request_human(
        self,
        tenant_id: str,
        session_id: str,
        user_name: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> ChatSession:
        """Queue the session for a human agent, creating it if needed."""
        _require(session_id, "Session ID is required")

        async with self.lock_manager.hold(tenant_id, session_id):
            await self.repository.get_or_create_session(
                tenant_id, session_id, user_name=user_name, user_email=user_email
            )
            session = await self.repository.update_session(
                tenant_id,
                session_id,
                update=SessionUpdate(
                    chat_type=ChatType.HUMAN.value,
                    status=ChatStatus.WAITING.value,
                    assigned_agent=None,
                    user_name=user_name,
                    user_email=user_email,
                ),
                messages=[ChatMessage.authored(MessageRole.ASSISTANT, WAITING_NOTICE)],
                max_messages=self.max_messages,
            )

        logger.info(f"🙋 Session {session_id} waiting for an agent (tenant {tenant_id})")
        await self.notifier.publish(
            agents_room(tenant_id),
            "chat:newWaiting",
            {
                "chatId": session.chat_id,
                "sessionId": session.session_id,
                "userName": session.user_name,
                "userEmail": session.user_email or "",
            },
        )
        await self._broadcast_waiting_list(tenant_id)
        return session

    async def switch_to_ai(self, tenant_id: str, session_id: str) -> ChatSession:
        """Return a human chat to the AI assistant. No-op if already with the AI."""
        _require(session_id, "Session ID is required")

        async with self.lock_manager.hold(tenant_id, session_id):
            session = await self._load_session(tenant_id, session_id)
            if session.state == ChatState.AI_ACTIVE:
                return session
            if session.state not in HUMAN_STATES:
                raise InvalidTransitionError("switch to AI", session.state.value)

            session = await self.repository.update_session(
                tenant_id,
                session_id,
                update=SessionUpdate(
                    chat_type=ChatType.AI.value,
                    status=ChatStatus.ACTIVE.value,
                    assigned_agent=None,
                ),
                messages=[ChatMessage.authored(MessageRole.ASSISTANT, SWITCHED_TO_AI_NOTICE)],
                max_messages=self.max_messages,
            )

        logger.info(f"🤖 Session {session_id} switched back to AI")
        await self._publish_message(session, session.messages[-1])
        await self._broadcast_waiting_list(tenant_id)
        return session

    async def send_user_message(self, tenant_id: str, session_id: str, text: Optional[str]) -> ChatSession:
        """Store a visitor message addressed to the agent."""
        _require(session_id, "Session ID and message are required")
        _require(text, "Session ID and message are required")

        async with self.lock_manager.hold(tenant_id, session_id):
            session = await self._load_session(tenant_id, session_id)
            if session.state not in HUMAN_STATES:
                raise InvalidTransitionError("send a human-chat message in", session.state.value)

            session = await self.repository.append_messages(
                tenant_id,
                session_id,
                [ChatMessage.authored(MessageRole.USER, text)],
                max_messages=self.max_messages,
            )

        await self._publish_message(session, session.messages[-1], to_agents=True)
        await self._broadcast_waiting_list(tenant_id)
        return session

    async def get_session(self, tenant_id: str, session_id: str) -> Optional[ChatSession]:
        _require(session_id, "Session ID is required")
        return await self.repository.get_session(tenant_id, session_id)

    async def relay_user_typing(self, tenant_id: str, session_id: str) -> None:
        await self.notifier.publish(
            agents_room(tenant_id), "chat:userTyping", {"sessionId": session_id}
        )

    # ========== Agent side ==========

    async def list_active_chats(self, tenant_id: str) -> list[dict[str, Any]]:
        """Waiting and active human chats, most recent activity first."""
        sessions = await self.repository.list_sessions(
            tenant_id,
            ChatType.HUMAN.value,
            [ChatStatus.WAITING.value, ChatStatus.ACTIVE.value],
        )
        return [s.to_summary() for s in sessions]

    async def get_chat(self, tenant_id: str, chat_id: str) -> ChatSession:
        return await self._load_chat(tenant_id, chat_id)

    async def accept(self, tenant_id: str, chat_id: str, agent_id: str) -> ChatSession:
        """Assign a waiting chat to an agent."""
        found = await self._load_chat(tenant_id, chat_id)

        async with self.lock_manager.hold(tenant_id, found.session_id):
            session = await self._load_session(tenant_id, found.session_id)
            if session.state != ChatState.HUMAN_WAITING:
                raise InvalidTransitionError("accept", session.state.value)

            session = await self.repository.update_session(
                tenant_id,
                session.session_id,
                update=SessionUpdate(status=ChatStatus.ACTIVE.value, assigned_agent=agent_id),
                messages=[ChatMessage.authored(MessageRole.ADMIN, AGENT_JOINED_NOTICE)],
                max_messages=self.max_messages,
            )

        logger.info(f"✅ Agent {agent_id} accepted chat {chat_id}")
        await self.notifier.publish(
            session_room(tenant_id, session.session_id),
            "chat:adminJoined",
            {"chatId": session.chat_id},
        )
        await self._publish_message(session, session.messages[-1])
        await self._broadcast_waiting_list(tenant_id)
        return session

    async def send_admin_message(self, tenant_id: str, chat_id: str, text: Optional[str]) -> ChatSession:
        """Store an agent reply and push it to the visitor."""
        _require(text, "Message is required")
        found = await self._load_chat(tenant_id, chat_id)

        async with self.lock_manager.hold(tenant_id, found.session_id):
            session = await self._load_session(tenant_id, found.session_id)
            if session.state != ChatState.HUMAN_ACTIVE:
                raise InvalidTransitionError("send an agent message in", session.state.value)

            session = await self.repository.append_messages(
                tenant_id,
                session.session_id,
                [ChatMessage.authored(MessageRole.ADMIN, text)],
                max_messages=self.max_messages,
            )

        await self._publish_message(session, session.messages[-1])
        return session

    async def close(self, tenant_id: str, chat_id: str) -> ChatSession:
        """Close a chat from any open state."""
        found = await self._load_chat(tenant_id, chat_id)

        async with self.lock_manager.hold(tenant_id, found.session_id):
            session = await self._load_session(tenant_id, found.session_id)
            if session.state == ChatState.CLOSED:
                raise InvalidTransitionError("close", session.state.value)

            session = await self.repository.update_session(
                tenant_id,
                session.session_id,
                update=SessionUpdate(status=ChatStatus.CLOSED.value),
                messages=[ChatMessage.authored(MessageRole.ASSISTANT, CLOSED_NOTICE)],
                max_messages=self.max_messages,
            )

        logger.info(f"🔒 Chat {chat_id} closed")
        await self.notifier.publish(
            session_room(tenant_id, session.session_id),
            "chat:closed",
            {"chatId": session.chat_id},
        )
        await self._broadcast_waiting_list(tenant_id)
        return session

    async def mark_read(self, tenant_id: str, chat_id: str, by_admin: bool = True) -> int:
        """Mark every message of a chat as read by one side."""
        session = await self._load_chat(tenant_id, chat_id)
        async with self.lock_manager.hold(tenant_id, session.session_id):
            changed = await self.repository.mark_read(tenant_id, session.session_id, by_admin)

        if by_admin and changed:
            await self._broadcast_waiting_list(tenant_id)
        return changed

    async def relay_admin_typing(self, tenant_id: str, chat_id: str) -> None:
        session = await self._load_chat(tenant_id, chat_id)
        await self.notifier.publish(
            session_room(tenant_id, session.session_id),
            "chat:adminTyping",
            {"chatId": session.chat_id},
        )

    # ========== Helpers ==========

    async def _load_session(self, tenant_id: str, session_id: str) -> ChatSession:
        session = await self.repository.get_session(tenant_id, session_id)
        if session is None:
            raise ChatNotFoundError(tenant_id, session_id)
        return session

    async def _load_chat(self, tenant_id: str, chat_id: str) -> ChatSession:
        _require(chat_id, "Chat ID is required")
        session = await self.repository.get_by_chat_id(tenant_id, chat_id)
        if session is None:
            raise ChatNotFoundError(tenant_id, chat_id)
        return session

    async def _publish_message(
        self,
        session: ChatSession,
        message: ChatMessage,
        to_agents: bool = False,
    ) -> None:
        payload = {
            "chatId": session.chat_id,
            "sessionId": session.session_id,
            "message": message.to_dict(),
        }
        await self.notifier.publish(
            session_room(session.tenant_id, session.session_id), "chat:newMessage", payload
        )
        if to_agents:
            await self.notifier.publish(agents_room(session.tenant_id), "chat:newMessage", payload)

    async def _broadcast_waiting_list(self, tenant_id: str) -> list[dict[str, Any]]:
        chats = await self.list_active_chats(tenant_id)
        await self.notifier.publish(agents_room(tenant_id), "chat:waitingList", {"chats": chats})
        return chats


def _require(value: Optional[str], message: str) -> None:
    if not value or not value.strip():
        raise ChatValidationError(message)
