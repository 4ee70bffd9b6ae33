"""Port (interface) for the external text-generation provider."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class ProviderTurn:
    """One prior turn sent to the provider. Role is 'user' or 'model'."""

    role: str
    text: str


class ReplyProvider(ABC):
    """
    Pluggable generation capability.

    Implementations raise ProviderRateLimitedError when the provider
    throttles the call, ProviderUnavailableError for any other failure
    (timeouts included) and ProviderConfigurationError when credentials
    are missing.
    """

    @abstractmethod
    async def generate(
        self,
        context: str,
        history: Sequence[ProviderTurn],
        message: str,
    ) -> str:
        """
        Generate an assistant reply.

        Args:
            context: Tenant context string
            history: Prior turns, starting with a user turn (may be empty)
            message: The visitor's new message

        Returns:
            Generated reply text
        """
        pass
