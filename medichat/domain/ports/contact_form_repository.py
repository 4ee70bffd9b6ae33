"""Repository port (interface) for website contact forms."""

from abc import ABC, abstractmethod

from medichat.domain.models import WebsiteContactForm


class ContactFormRepository(ABC):
    """Port for storing marketing-site contact form submissions."""

    @abstractmethod
    async def save(self, form: WebsiteContactForm) -> WebsiteContactForm:
        """
        Persist a submission.

        Args:
            form: The submission to store

        Returns:
            The stored WebsiteContactForm
        """
        pass
