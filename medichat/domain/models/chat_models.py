"""Domain models for visitor chat sessions and their messages."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


MAX_SESSION_MESSAGES = 50


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatType(str, Enum):
    """Who answers the visitor."""
    AI = "ai"
    HUMAN = "human"


class ChatStatus(str, Enum):
    """Session status types."""
    ACTIVE = "active"
    WAITING = "waiting"
    CLOSED = "closed"


class MessageRole(str, Enum):
    """Message role types."""
    USER = "user"
    ASSISTANT = "assistant"
    ADMIN = "admin"


class ChatState(str, Enum):
    """Hand-off state derived from chat type and status."""
    AI_ACTIVE = "AI_ACTIVE"
    HUMAN_WAITING = "HUMAN_WAITING"
    HUMAN_ACTIVE = "HUMAN_ACTIVE"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class ChatMessage:
    """Represents a message in a visitor conversation."""

    role: str
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    read_by_admin: bool = False
    read_by_user: bool = False

    def __post_init__(self):
        """Validate message."""
        valid_roles = [r.value for r in MessageRole]
        if self.role not in valid_roles:
            raise ValueError(f"role must be one of {valid_roles}")

    @classmethod
    def authored(cls, role: MessageRole, content: str) -> "ChatMessage":
        """
        Build a message read by its author and unread by the other party.

        Assistant output counts as read on the agent side; only the
        visitor has to see it.
        """
        if role == MessageRole.USER:
            return cls(role=role.value, content=content, read_by_user=True, read_by_admin=False)
        if role == MessageRole.ADMIN:
            return cls(role=role.value, content=content, read_by_user=False, read_by_admin=True)
        return cls(role=role.value, content=content, read_by_user=False, read_by_admin=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "readByAdmin": self.read_by_admin,
            "readByUser": self.read_by_user,
        }


@dataclass(frozen=True)
class ChatSession:
    """Represents one visitor's conversation with a tenant."""

    chat_id: str
    tenant_id: str
    session_id: str
    user_name: str = "Guest"
    user_email: Optional[str] = None
    chat_type: str = ChatType.AI.value
    status: str = ChatStatus.ACTIVE.value
    assigned_agent: Optional[str] = None
    messages: tuple[ChatMessage, ...] = ()
    context: str = ""
    last_activity: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        """Validate session."""
        valid_types = [t.value for t in ChatType]
        if self.chat_type not in valid_types:
            raise ValueError(f"chat_type must be one of {valid_types}")
        valid_statuses = [s.value for s in ChatStatus]
        if self.status not in valid_statuses:
            raise ValueError(f"status must be one of {valid_statuses}")
        if self.state == ChatState.HUMAN_WAITING and self.assigned_agent:
            raise ValueError("a waiting human chat cannot have an assigned agent")

    @property
    def state(self) -> ChatState:
        if self.status == ChatStatus.CLOSED.value:
            return ChatState.CLOSED
        if self.chat_type == ChatType.AI.value:
            return ChatState.AI_ACTIVE
        if self.status == ChatStatus.WAITING.value:
            return ChatState.HUMAN_WAITING
        return ChatState.HUMAN_ACTIVE

    @property
    def unread_for_admin(self) -> int:
        return sum(
            1 for m in self.messages
            if m.role == MessageRole.USER.value and not m.read_by_admin
        )

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None

    def to_summary(self) -> dict[str, Any]:
        """Row shown in the agent console waiting list."""
        last = self.last_message
        return {
            "chatId": self.chat_id,
            "sessionId": self.session_id,
            "userName": self.user_name,
            "userEmail": self.user_email or "",
            "status": self.status,
            "lastActivity": self.last_activity.isoformat(),
            "unreadCount": self.unread_for_admin,
            "lastMessage": last.to_dict() if last else None,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "chatId": self.chat_id,
            "tenantId": self.tenant_id,
            "sessionId": self.session_id,
            "userName": self.user_name,
            "userEmail": self.user_email or "",
            "chatType": self.chat_type,
            "status": self.status,
            "state": self.state.value,
            "assignedAgent": self.assigned_agent,
            "messages": [m.to_dict() for m in self.messages],
            "lastActivity": self.last_activity.isoformat(),
            "createdAt": self.created_at.isoformat(),
        }


_UNSET: Any = object()


@dataclass(frozen=True)
class SessionUpdate:
    """
    Field changes applied atomically together with a message append.

    Fields left at their default are not touched. `assigned_agent=None`
    clears the agent.
    """

    chat_type: Optional[str] = None
    status: Optional[str] = None
    assigned_agent: Any = _UNSET
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    context: Optional[str] = None

    @property
    def touches_agent(self) -> bool:
        return self.assigned_agent is not _UNSET


def truncate_messages(
    messages: tuple[ChatMessage, ...],
    max_messages: int = MAX_SESSION_MESSAGES,
) -> tuple[ChatMessage, ...]:
    """Drop the oldest messages so at most `max_messages` remain."""
    if len(messages) <= max_messages:
        return messages
    return messages[-max_messages:]
