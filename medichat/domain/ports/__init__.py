from .chat_session_repository import ChatSessionRepository
from .hospital_directory import HospitalDirectory
from .guard import RateLimiter, ResponseCache, RateLimitDecision
from .reply_provider import ReplyProvider, ProviderTurn
from .chat_notifier import ChatNotifier
from .contact_form_repository import ContactFormRepository

__all__ = [
    "ChatSessionRepository",
    "HospitalDirectory",
    "RateLimiter",
    "ResponseCache",
    "RateLimitDecision",
    "ReplyProvider",
    "ProviderTurn",
    "ChatNotifier",
    "ContactFormRepository",
]
