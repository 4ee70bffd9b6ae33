"""Tests for the guarded AI reply path."""

import pytest

from medichat.domain.exceptions import (
    ChatClosedError,
    ChatValidationError,
    ProviderRateLimitedError,
    ProviderUnavailableError,
    RateLimitExceededError,
)
from medichat.domain.models import ChatMessage, MessageRole, SessionUpdate
from medichat.domain.services import FALLBACK_CONTEXT, build_provider_history
from tests.conftest import TENANT


def _msg(role: MessageRole, text: str) -> ChatMessage:
    return ChatMessage.authored(role, text)


class TestProviderHistory:
    """History window sent to the provider."""

    def test_empty_without_user_message(self):
        messages = [_msg(MessageRole.ASSISTANT, "welcome"), _msg(MessageRole.ADMIN, "hi")]
        assert build_provider_history(messages) == []

    def test_window_starts_at_first_user_message(self):
        messages = [_msg(MessageRole.USER, f"u{i}") if i % 2 == 0 else _msg(MessageRole.ASSISTANT, f"a{i}")
                    for i in range(20)]
        # Last 14 are indexes 6..19; index 6 is a user message.
        messages[6] = _msg(MessageRole.ASSISTANT, "notice")

        history = build_provider_history(messages)

        assert history[0].role == "user"
        assert history[0].text == "u8"
        assert len(history) == 12

    def test_agent_messages_become_model_turns(self):
        messages = [
            _msg(MessageRole.ASSISTANT, "waiting notice"),
            _msg(MessageRole.USER, "question"),
            _msg(MessageRole.ADMIN, "agent answer"),
            _msg(MessageRole.ASSISTANT, "ai answer"),
        ]

        history = build_provider_history(messages)

        assert [(t.role, t.text) for t in history] == [
            ("user", "question"),
            ("model", "agent answer"),
            ("model", "ai answer"),
        ]


class TestChatOrdering:
    """Validate, then cache, then rate limit, then generate."""

    @pytest.mark.asyncio
    async def test_empty_message_is_rejected(self, chatbot_service):
        with pytest.raises(ChatValidationError):
            await chatbot_service.chat(TENANT, "v1", "   ")
        with pytest.raises(ChatValidationError):
            await chatbot_service.chat(TENANT, "", "hello")

    @pytest.mark.asyncio
    async def test_first_message_generates_and_persists(self, chatbot_service, repository, provider):
        reply = await chatbot_service.chat(TENANT, "v1", "Do you have a cardiologist?", "Ann")

        assert reply.cached is False
        assert reply.message == "Reply to: Do you have a cardiologist?"
        session = await repository.get_session(TENANT, "v1")
        assert session.chat_id == reply.chat_id
        assert session.user_name == "Ann"
        assert [m.role for m in session.messages] == ["user", "assistant"]
        assert "St. Mary" in session.context
        assert provider.calls[0]["history"] == []

    @pytest.mark.asyncio
    async def test_message_is_trimmed_before_generation(self, chatbot_service, repository, provider):
        reply = await chatbot_service.chat(TENANT, "v1", "  Do you take walk-ins?\n")

        assert provider.calls[0]["message"] == "Do you take walk-ins?"
        assert reply.message == "Reply to: Do you take walk-ins?"
        session = await repository.get_session(TENANT, "v1")
        assert session.messages[0].content == "Do you take walk-ins?"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_rate_limit_and_store(self, chatbot_service, repository, provider):
        await chatbot_service.chat(TENANT, "v1", "What are your hours?")

        other = await chatbot_service.chat(TENANT, "v2", "  WHAT are your hours?  ")
        again = await chatbot_service.chat(TENANT, "v1", "what are your hours?")

        assert other.cached is True and again.cached is True
        assert len(provider.calls) == 1
        assert await repository.get_session(TENANT, "v2") is None
        assert len((await repository.get_session(TENANT, "v1")).messages) == 2

    @pytest.mark.asyncio
    async def test_second_miss_in_window_is_rate_limited(self, chatbot_service, provider):
        await chatbot_service.chat(TENANT, "v1", "first question")

        with pytest.raises(RateLimitExceededError) as exc_info:
            await chatbot_service.chat(TENANT, "v1", "second question")

        assert exc_info.value.reset_seconds > 0
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_cache_expires_after_ttl(self, chatbot_service, provider, clock):
        await chatbot_service.chat(TENANT, "v1", "parking?")
        clock.advance(600_001)

        reply = await chatbot_service.chat(TENANT, "v1", "parking?")

        assert reply.cached is False
        assert len(provider.calls) == 2


class TestRetry:
    """Provider rate-limit retries."""

    @pytest.mark.asyncio
    async def test_two_rate_limits_then_success(self, chatbot_service, provider, sleeps):
        provider.outcomes = [ProviderRateLimitedError(), ProviderRateLimitedError(), "finally"]

        result = await chatbot_service.generate_reply(TENANT, "v1", "hello")

        assert result.reply == "finally"
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_three_rate_limits_surface_the_last_error(self, chatbot_service, provider, sleeps, repository):
        last = ProviderRateLimitedError("third")
        provider.outcomes = [ProviderRateLimitedError(), ProviderRateLimitedError(), last]

        with pytest.raises(ProviderRateLimitedError) as exc_info:
            await chatbot_service.generate_reply(TENANT, "v1", "hello")

        assert exc_info.value is last
        assert sleeps == [1.0, 2.0]
        assert (await repository.get_session(TENANT, "v1")).messages == ()

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, chatbot_service, provider, sleeps):
        provider.outcomes = [ProviderUnavailableError("timeout")]

        with pytest.raises(ProviderUnavailableError):
            await chatbot_service.generate_reply(TENANT, "v1", "hello")

        assert sleeps == []
        assert len(provider.calls) == 1


class TestGenerateReply:
    """Context refresh, history and closed sessions."""

    @pytest.mark.asyncio
    async def test_history_is_sent_on_later_turns(self, chatbot_service, provider):
        await chatbot_service.generate_reply(TENANT, "v1", "first")
        await chatbot_service.generate_reply(TENANT, "v1", "second")

        history = provider.calls[1]["history"]
        assert [(t.role, t.text) for t in history] == [("user", "first"), ("model", "Reply to: first")]
        assert provider.calls[1]["message"] == "second"

    @pytest.mark.asyncio
    async def test_context_rebuilt_every_tenth_message(self, chatbot_service, repository, provider):
        await repository.get_or_create_session(TENANT, "v1")
        await repository.update_session(
            TENANT, "v1",
            update=SessionUpdate(context="stale context"),
            messages=[_msg(MessageRole.USER, "x")] * 8,
        )

        await chatbot_service.generate_reply(TENANT, "v1", "eight messages so far")
        assert provider.calls[-1]["context"] == "stale context"

        await chatbot_service.generate_reply(TENANT, "v1", "ten messages so far")
        assert "St. Mary" in provider.calls[-1]["context"]

    @pytest.mark.asyncio
    async def test_unknown_tenant_uses_fallback_context(self, chatbot_service, provider):
        await chatbot_service.generate_reply("unknown-hospital", "v1", "hello")

        assert provider.calls[0]["context"] == FALLBACK_CONTEXT

    @pytest.mark.asyncio
    async def test_closed_session_rejects_ai_messages(self, chatbot_service, repository, provider):
        await repository.get_or_create_session(TENANT, "v1")
        await repository.update_session(TENANT, "v1", update=SessionUpdate(status="closed"))

        with pytest.raises(ChatClosedError):
            await chatbot_service.generate_reply(TENANT, "v1", "hello?")

        assert provider.calls == []


class TestHistory:
    """History and clearing."""

    @pytest.mark.asyncio
    async def test_history_is_limited_to_last_thirty(self, chatbot_service, repository):
        await repository.get_or_create_session(TENANT, "v1")
        await repository.append_messages(
            TENANT, "v1", [_msg(MessageRole.USER, str(i)) for i in range(40)]
        )

        history = await chatbot_service.get_history(TENANT, "v1")

        assert len(history) == 30
        assert history[0].content == "10"

    @pytest.mark.asyncio
    async def test_history_of_unknown_visitor_is_empty(self, chatbot_service):
        assert await chatbot_service.get_history(TENANT, "nobody") == []

    @pytest.mark.asyncio
    async def test_clear_deletes_the_session(self, chatbot_service, repository):
        await chatbot_service.generate_reply(TENANT, "v1", "hello")

        assert await chatbot_service.clear_history(TENANT, "v1") is True
        assert await repository.get_session(TENANT, "v1") is None
        assert await chatbot_service.clear_history(TENANT, "v1") is False
