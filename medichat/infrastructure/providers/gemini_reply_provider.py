"""
Gemini implementation of the ReplyProvider port.

Uses the google-genai async client. The client is created on first use so
a missing API key surfaces on the first chat request instead of at
startup.
"""

import asyncio
import logging
from typing import Optional, Sequence

from google import genai
from google.genai import errors, types

from medichat.domain.exceptions import (
    ProviderConfigurationError,
    ProviderRateLimitedError,
    ProviderUnavailableError,
)
from medichat.domain.ports import ReplyProvider, ProviderTurn

logger = logging.getLogger(__name__)


class GeminiReplyProvider(ReplyProvider):
    """
    Reply provider backed by Gemini.

    Features:
    - Bounded generation (max output tokens, fixed temperature)
    - Explicit request timeout
    - Provider errors translated to domain errors
    """

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 500,
        timeout_seconds: float = 30.0,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Gemini API key (may be None until first use fails)
            model_name: Gemini model to use
            temperature: Model temperature (0.0-1.0)
            max_output_tokens: Maximum response length
            timeout_seconds: Per-call timeout
        """
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_seconds = timeout_seconds
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                logger.error("❌ GEMINI_API_KEY is not set")
                raise ProviderConfigurationError(
                    "GEMINI_API_KEY is not set in environment variables"
                )
            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"GeminiReplyProvider initialized with model: {self.model_name}")
        return self._client

    async def generate(
        self,
        context: str,
        history: Sequence[ProviderTurn],
        message: str,
    ) -> str:
        client = self._get_client()
        contents = self._build_contents(context, history, message)

        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model_name,
                    contents=contents,
                    config=types.GenerateContentConfig(
                        temperature=self.temperature,
                        max_output_tokens=self.max_output_tokens,
                    ),
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"⏱️ Gemini call timed out after {self.timeout_seconds}s")
            raise ProviderUnavailableError(
                f"Provider did not answer within {self.timeout_seconds}s"
            ) from e
        except errors.APIError as e:
            if e.code == 429:
                raise ProviderRateLimitedError(str(e)) from e
            raise ProviderUnavailableError(f"Provider error {e.code}: {e.message}") from e

        text = response.text
        if not text:
            raise ProviderUnavailableError("Provider returned an empty reply")
        return text

    def _build_contents(
        self,
        context: str,
        history: Sequence[ProviderTurn],
        message: str,
    ) -> list[types.Content]:
        """
        Build the turn list for Gemini.

        Prior turns go first; the tenant context and the new message are
        combined into the final user turn.
        """
        contents = [
            types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
            for turn in history
        ]
        contents.append(types.Content(
            role="user",
            parts=[types.Part(text=f"{context}\n\nUser: {message}")]
        ))
        return contents
