"""Tests for the Gemini provider: request shape and error translation."""

import asyncio
from types import SimpleNamespace

import pytest
from google.genai import errors

from medichat.domain.exceptions import (
    ProviderConfigurationError,
    ProviderRateLimitedError,
    ProviderUnavailableError,
)
from medichat.domain.ports import ProviderTurn
from medichat.infrastructure.providers import GeminiReplyProvider


class FakeModels:
    def __init__(self, result=None, error=None, delay: float = 0):
        self.result = result
        self.error = error
        self.delay = delay
        self.requests = []

    async def generate_content(self, model, contents, config):
        self.requests.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.result)


def _provider(models: FakeModels, **kwargs) -> GeminiReplyProvider:
    provider = GeminiReplyProvider(api_key="test-key", **kwargs)
    provider._client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return provider


def _api_error(code: int, status: str) -> errors.APIError:
    return errors.ClientError(code, {"error": {"code": code, "message": status, "status": status}})


@pytest.mark.asyncio
async def test_history_then_prompt_turn():
    models = FakeModels(result="We open at 8.")
    provider = _provider(models)

    reply = await provider.generate(
        "CONTEXT",
        [ProviderTurn("user", "hi"), ProviderTurn("model", "hello")],
        "When do you open?",
    )

    assert reply == "We open at 8."
    request = models.requests[0]
    assert request["model"] == "gemini-2.5-flash"
    assert [c.role for c in request["contents"]] == ["user", "model", "user"]
    assert request["contents"][-1].parts[0].text == "CONTEXT\n\nUser: When do you open?"
    assert request["config"].max_output_tokens == 500
    assert request["config"].temperature == 0.7


@pytest.mark.asyncio
async def test_429_becomes_rate_limited():
    provider = _provider(FakeModels(error=_api_error(429, "RESOURCE_EXHAUSTED")))

    with pytest.raises(ProviderRateLimitedError):
        await provider.generate("ctx", [], "hi")


@pytest.mark.asyncio
async def test_other_api_errors_become_unavailable():
    provider = _provider(FakeModels(error=_api_error(400, "INVALID_ARGUMENT")))

    with pytest.raises(ProviderUnavailableError):
        await provider.generate("ctx", [], "hi")


@pytest.mark.asyncio
async def test_timeout_becomes_unavailable():
    provider = _provider(FakeModels(result="late", delay=1), timeout_seconds=0.01)

    with pytest.raises(ProviderUnavailableError):
        await provider.generate("ctx", [], "hi")


@pytest.mark.asyncio
async def test_empty_reply_is_an_error():
    provider = _provider(FakeModels(result=""))

    with pytest.raises(ProviderUnavailableError):
        await provider.generate("ctx", [], "hi")


@pytest.mark.asyncio
async def test_missing_key_fails_on_first_use():
    provider = GeminiReplyProvider(api_key=None)

    with pytest.raises(ProviderConfigurationError):
        await provider.generate("ctx", [], "hi")
