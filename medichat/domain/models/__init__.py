from .chat_models import (
    ChatMessage,
    ChatSession,
    ChatState,
    ChatStatus,
    ChatType,
    MessageRole,
    SessionUpdate,
    MAX_SESSION_MESSAGES,
    truncate_messages,
)
from .hospital_models import (
    Doctor,
    Hospital,
    MedicalService,
    OpeningHours,
    Schedule,
    WEEKDAYS,
)
from .contact_models import WebsiteContactForm

__all__ = [
    "ChatMessage",
    "ChatSession",
    "ChatState",
    "ChatStatus",
    "ChatType",
    "MessageRole",
    "SessionUpdate",
    "MAX_SESSION_MESSAGES",
    "truncate_messages",
    "Doctor",
    "Hospital",
    "MedicalService",
    "OpeningHours",
    "Schedule",
    "WEEKDAYS",
    "WebsiteContactForm",
]
