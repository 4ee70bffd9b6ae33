"""Domain errors raised by the chat services and mapped to HTTP by the routes."""

from typing import Optional


class ChatError(Exception):
    """Base class for chat domain errors."""


class ChatValidationError(ChatError):
    """Request is missing a required value."""


class ChatNotFoundError(ChatError):
    """Session or chat does not exist for this tenant."""

    def __init__(self, tenant_id: str, key: str):
        super().__init__(f"Chat '{key}' not found for tenant '{tenant_id}'")
        self.tenant_id = tenant_id
        self.key = key


class InvalidTransitionError(ChatError):
    """Hand-off operation is not allowed from the current state."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"Cannot {operation} a chat in state {state}")
        self.operation = operation
        self.state = state


class ChatClosedError(InvalidTransitionError):
    """AI message sent to a closed session."""

    def __init__(self):
        super().__init__("send an AI message to", "CLOSED")


class RateLimitExceededError(ChatError):
    """Local guard denied the request."""

    def __init__(self, reset_seconds: int):
        super().__init__(
            f"Rate limit exceeded. Please try again in {reset_seconds} seconds."
        )
        self.reset_seconds = reset_seconds


class ProviderError(ChatError):
    """Failure of the external text-generation provider."""


class ProviderRateLimitedError(ProviderError):
    """Provider rejected the call with a rate-limit response."""

    def __init__(self, message: str = "Provider rate limit exceeded", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ProviderUnavailableError(ProviderError):
    """Provider failed for any other reason, including timeouts."""


class ProviderConfigurationError(ProviderError):
    """Provider cannot be used because configuration is missing."""
