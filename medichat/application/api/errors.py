"""Translation of domain errors into HTTP responses."""

import logging

from fastapi import HTTPException

from medichat.domain.exceptions import (
    ChatNotFoundError,
    ChatValidationError,
    InvalidTransitionError,
    ProviderRateLimitedError,
    RateLimitExceededError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: Exception, failure_detail: str) -> HTTPException:
    """
    Map a domain error to the HTTPException the routes raise.

    Anything that is not a known domain error becomes a 500 with a
    generic message; the underlying error is logged, never returned.
    """
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, ChatValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, RateLimitExceededError):
        return HTTPException(
            status_code=429,
            detail={
                "error": str(error),
                "resetTime": error.reset_seconds,
            },
        )
    if isinstance(error, ProviderRateLimitedError):
        logger.warning(f"⚠️ Provider rate limit surfaced to client: {error}")
        return HTTPException(
            status_code=429,
            detail="The assistant is receiving too many requests. Please try again in a moment.",
        )
    if isinstance(error, ChatNotFoundError):
        return HTTPException(status_code=404, detail="Chat not found")
    if isinstance(error, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(error))

    logger.error(f"❌ {failure_detail}: {error}", exc_info=error)
    return HTTPException(status_code=500, detail=failure_detail)
