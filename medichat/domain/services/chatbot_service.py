"""Business logic for the visitor-facing AI chat."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from medichat.domain.exceptions import (
    ChatClosedError,
    ChatValidationError,
    ProviderRateLimitedError,
    RateLimitExceededError,
)
from medichat.domain.models import (
    ChatMessage,
    ChatState,
    MessageRole,
    SessionUpdate,
    MAX_SESSION_MESSAGES,
)
from medichat.domain.ports import (
    ChatSessionRepository,
    ProviderTurn,
    RateLimiter,
    ReplyProvider,
    ResponseCache,
)
from medichat.domain.services.context_builder import HospitalContextBuilder
from medichat.domain.services.session_locks import SessionLockManager

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 14
CONTEXT_REFRESH_EVERY = 10
DEFAULT_HISTORY_LIMIT = 30


@dataclass(frozen=True)
class GeneratedReply:
    """Result of one successful provider round trip."""

    reply: str
    chat_id: str
    session_id: str


@dataclass(frozen=True)
class ChatReply:
    """What the visitor endpoint returns."""

    message: str
    chat_id: Optional[str]
    cached: bool


def build_provider_history(
    messages: Sequence[ChatMessage],
    window: int = HISTORY_WINDOW,
) -> list[ProviderTurn]:
    """
    Convert the tail of a session into provider turns.

    The provider requires the first turn to come from the user, so the
    window is cut at its first user message. Agent messages are sent as
    model turns.
    """
    recent = list(messages)[-window:]
    first_user = next(
        (i for i, m in enumerate(recent) if m.role == MessageRole.USER.value),
        None,
    )
    if first_user is None:
        return []

    return [
        ProviderTurn(
            role="user" if m.role == MessageRole.USER.value else "model",
            text=m.content,
        )
        for m in recent[first_user:]
    ]


def needs_context_refresh(context: str, message_count: int) -> bool:
    return not context or message_count % CONTEXT_REFRESH_EVERY == 0


class ChatbotService:
    """Guarded AI reply path for hospital website visitors."""

    def __init__(
        self,
        repository: ChatSessionRepository,
        context_builder: HospitalContextBuilder,
        provider: ReplyProvider,
        rate_limiter: RateLimiter,
        cache: ResponseCache,
        lock_manager: Optional[SessionLockManager] = None,
        max_retries: int = 2,
        base_delay: float = 1.0,
        max_messages: int = MAX_SESSION_MESSAGES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.repository = repository
        self.context_builder = context_builder
        self.provider = provider
        self.rate_limiter = rate_limiter
        self.cache = cache
        self.lock_manager = lock_manager or SessionLockManager()
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_messages = max_messages
        self._sleep = sleep

    async def chat(
        self,
        tenant_id: str,
        user_id: Optional[str],
        message: Optional[str],
        user_name: Optional[str] = None,
    ) -> ChatReply:
        """
        Answer a visitor message.

        Order matters: a cache hit is served without touching the rate
        limiter or the store; only a miss consumes a rate-limit slot.

        Raises:
            ChatValidationError: Empty message or visitor id
            RateLimitExceededError: Visitor exhausted the current window
            ChatClosedError: Session is closed
            ProviderError: Provider failed after retries
        """
        if not message or not message.strip():
            raise ChatValidationError("Message is required")
        if not user_id or not user_id.strip():
            raise ChatValidationError("User ID is required")
        message = message.strip()

        cached = await self.cache.get(tenant_id, message)
        if cached is not None:
            logger.info(f"✅ Cache hit for tenant {tenant_id}")
            session = await self.repository.get_session(tenant_id, user_id)
            return ChatReply(
                message=cached,
                chat_id=session.chat_id if session else None,
                cached=True,
            )

        decision = await self.rate_limiter.check(user_id)
        if not decision.allowed:
            logger.warning(f"🔒 Rate limit hit for visitor {user_id} ({decision.reset_seconds}s)")
            raise RateLimitExceededError(decision.reset_seconds)

        result = await self.generate_reply(tenant_id, user_id, message, user_name)
        await self.cache.set(tenant_id, message, result.reply)

        return ChatReply(message=result.reply, chat_id=result.chat_id, cached=False)

    async def generate_reply(
        self,
        tenant_id: str,
        session_id: str,
        message: str,
        user_name: Optional[str] = None,
    ) -> GeneratedReply:
        """
        Generate an assistant reply and persist the exchange.

        The user message and the reply are appended in one store update,
        so a failed provider call leaves the session untouched.
        """
        async with self.lock_manager.hold(tenant_id, session_id):
            session = await self.repository.get_or_create_session(
                tenant_id, session_id, user_name=user_name
            )
            if session.state == ChatState.CLOSED:
                raise ChatClosedError()

            context = session.context
            if needs_context_refresh(context, len(session.messages)):
                context = await self.context_builder.build(tenant_id)

            history = build_provider_history(session.messages)
            reply = await self._generate_with_retry(context, history, message)

            updated = await self.repository.update_session(
                tenant_id,
                session_id,
                update=SessionUpdate(context=context),
                messages=[
                    ChatMessage.authored(MessageRole.USER, message),
                    ChatMessage.authored(MessageRole.ASSISTANT, reply),
                ],
                max_messages=self.max_messages,
            )

        logger.info(f"✅ Reply generated for chat {updated.chat_id}")
        return GeneratedReply(reply=reply, chat_id=updated.chat_id, session_id=session_id)

    async def _generate_with_retry(
        self,
        context: str,
        history: Sequence[ProviderTurn],
        message: str,
    ) -> str:
        attempt = 0
        while True:
            try:
                return await self.provider.generate(context, history, message)
            except ProviderRateLimitedError:
                if attempt >= self.max_retries:
                    logger.error(f"❌ Provider still rate limited after {attempt} retries")
                    raise
                delay = self.base_delay * (2 ** attempt)
                attempt += 1
                logger.warning(f"⚠️ Provider rate limited, retry {attempt} in {delay:g}s")
                await self._sleep(delay)

    async def get_history(
        self,
        tenant_id: str,
        user_id: Optional[str],
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[ChatMessage]:
        """Last `limit` messages of the visitor's session (empty if none)."""
        if not user_id:
            raise ChatValidationError("User ID is required")

        session = await self.repository.get_session(tenant_id, user_id)
        if session is None:
            return []
        return list(session.messages[-limit:])

    async def clear_history(self, tenant_id: str, user_id: Optional[str]) -> bool:
        """Delete the visitor's session. Returns False if there was none."""
        if not user_id:
            raise ChatValidationError("User ID is required")

        async with self.lock_manager.hold(tenant_id, user_id):
            deleted = await self.repository.delete_session(tenant_id, user_id)

        if deleted:
            logger.info(f"🗑️ Cleared chat history for {user_id} (tenant {tenant_id})")
        return deleted
