"""Public website contact form API."""

import logging

from fastapi import APIRouter, Depends, status

from medichat.application.api.errors import to_http_exception
from medichat.application.di import get_container
from medichat.domain.models.api_models import WebsiteContactFormRequest
from medichat.domain.services import ContactFormService

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_contact_form_service() -> ContactFormService:
    """Dependency to get the contact form service."""
    container = get_container()
    return await container.get_contact_form_service()


@router.post("/website-contact-form", status_code=status.HTTP_201_CREATED)
async def submit_website_contact_form(
    request: WebsiteContactFormRequest,
    service: ContactFormService = Depends(get_contact_form_service),
):
    """Store a marketing-site contact form and notify connected super admins."""
    try:
        form = await service.submit(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            message=request.message,
            phone=request.phone,
            hospital_id=request.hospital_id,
            subject=request.subject,
        )
    except Exception as e:
        raise to_http_exception(e, "Failed to submit contact form")

    return {
        "success": True,
        "message": "Contact form submitted successfully",
        "data": form.to_dict(),
    }
