"""Domain model for marketing-site contact form submissions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .chat_models import utcnow


@dataclass(frozen=True)
class WebsiteContactForm:
    """A contact form submitted from the marketing site."""

    form_id: str
    first_name: str
    last_name: str
    email: str
    message: str
    phone: str = ""
    hospital_name: str = ""
    subject: str = "General Inquiry"
    status: str = "unread"
    is_starred: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.form_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "hospitalName": self.hospital_name,
            "subject": self.subject,
            "message": self.message,
            "status": self.status,
            "isStarred": self.is_starred,
            "createdAt": self.created_at.isoformat(),
        }
