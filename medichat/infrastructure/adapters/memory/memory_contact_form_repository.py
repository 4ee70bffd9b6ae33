"""In-memory adapter implementation of ContactFormRepository."""

from medichat.domain.models import WebsiteContactForm
from medichat.domain.ports import ContactFormRepository


class InMemoryContactFormRepository(ContactFormRepository):
    """Keeps submissions in a list."""

    def __init__(self):
        self.forms: list[WebsiteContactForm] = []

    async def save(self, form: WebsiteContactForm) -> WebsiteContactForm:
        self.forms.append(form)
        return form
