"""Business logic for marketing-site contact form submissions."""

import logging
import uuid
from typing import Optional

from medichat.domain.exceptions import ChatValidationError
from medichat.domain.models import WebsiteContactForm
from medichat.domain.ports import ChatNotifier, ContactFormRepository, HospitalDirectory
from medichat.domain.ports.chat_notifier import SUPER_ADMIN_ROOM

logger = logging.getLogger(__name__)


class ContactFormService:
    """Stores contact forms and notifies the super-admin group."""

    def __init__(
        self,
        repository: ContactFormRepository,
        directory: HospitalDirectory,
        notifier: ChatNotifier,
    ):
        self.repository = repository
        self.directory = directory
        self.notifier = notifier

    async def submit(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        message: Optional[str],
        phone: Optional[str] = None,
        hospital_id: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> WebsiteContactForm:
        if not all([first_name, last_name, email, message]):
            raise ChatValidationError(
                "First name, last name, email, and message are required"
            )

        hospital_name = ""
        if hospital_id:
            try:
                hospital = await self.directory.get_hospital(hospital_id)
                if hospital is not None:
                    hospital_name = hospital.name
            except Exception as e:
                logger.warning(f"⚠️ Could not resolve hospital {hospital_id}: {e}")

        form = WebsiteContactForm(
            form_id=uuid.uuid4().hex,
            first_name=first_name,
            last_name=last_name,
            email=email,
            message=message,
            phone=phone or "",
            hospital_name=hospital_name,
            subject=subject or "General Inquiry",
        )
        form = await self.repository.save(form)
        logger.info(f"📨 Website contact form {form.form_id} from {form.email}")

        await self.notifier.publish(
            SUPER_ADMIN_ROOM, "websiteContactForm:new", {"contactForm": form.to_dict()}
        )
        return form
