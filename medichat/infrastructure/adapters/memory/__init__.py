from .memory_chat_session_repository import InMemoryChatSessionRepository
from .memory_contact_form_repository import InMemoryContactFormRepository
from .memory_guard import InMemoryRateLimiter, InMemoryResponseCache
from .memory_hospital_directory import InMemoryHospitalDirectory

__all__ = [
    "InMemoryChatSessionRepository",
    "InMemoryContactFormRepository",
    "InMemoryRateLimiter",
    "InMemoryResponseCache",
    "InMemoryHospitalDirectory",
]
