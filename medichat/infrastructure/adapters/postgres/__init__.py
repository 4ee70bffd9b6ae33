from .postgres_chat_session_repository import PostgresChatSessionRepository
from .postgres_contact_form_repository import PostgresContactFormRepository
from .postgres_hospital_directory import PostgresHospitalDirectory

__all__ = [
    "PostgresChatSessionRepository",
    "PostgresContactFormRepository",
    "PostgresHospitalDirectory",
]
