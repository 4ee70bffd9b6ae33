from .session_locks import SessionLockManager
from .context_builder import HospitalContextBuilder, FALLBACK_CONTEXT
from .chatbot_service import ChatbotService, ChatReply, GeneratedReply, build_provider_history
from .handoff_service import HandoffService
from .contact_form_service import ContactFormService

__all__ = [
    "SessionLockManager",
    "HospitalContextBuilder",
    "FALLBACK_CONTEXT",
    "ChatbotService",
    "ChatReply",
    "GeneratedReply",
    "build_provider_history",
    "HandoffService",
    "ContactFormService",
]
