"""
Anthropic Claude provider.

Wraps ``anthropic.AsyncAnthropic.messages.create`` behind ``BaseLLM``.
Concurrent requests are capped by a semaphore, and SDK errors are
translated so the curation layer can tell bad credentials from transient
trouble.
"""

import asyncio
import logging

from anthropic import (
    APIConnectionError,
    APITimeoutError,
    AsyncAnthropic,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from auranotes.core.config import get_settings
from auranotes.core.exceptions import LLMAuthError
from auranotes.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


def _translate_error(exc: Exception) -> Exception:
    """Map an Anthropic SDK exception onto the provider error contract."""
    if isinstance(exc, (AuthenticationError, PermissionDeniedError)):
        logger.error("Anthropic rejected the API key: %s", exc)
        return LLMAuthError(f"Claude API rejected credentials: {exc}")
    if isinstance(exc, APITimeoutError):
        logger.warning("Anthropic request timed out: %s", exc)
        return TimeoutError(f"Claude API request timed out: {exc}")
    if isinstance(exc, RateLimitError):
        logger.warning("Anthropic rate limit reached: %s", exc)
        return ConnectionError(f"Claude API rate limit exceeded: {exc}")
    if isinstance(exc, APIConnectionError):
        logger.warning("Could not reach Anthropic: %s", exc)
        return ConnectionError(f"Failed to connect to Claude API: {exc}")
    logger.error("Claude call failed: %s", exc)
    return RuntimeError(f"Claude API error: {exc}")


class ClaudeLLM(BaseLLM):
    """Claude messages API with a concurrency cap and retries.

    Args:
        api_key: Anthropic key; defaults to ``claude_api_key`` from settings.
        model: Model id; defaults to ``claude_model``.
        max_tokens: Maximum response tokens when the caller gives none.
        temperature: Sampling temperature when the caller gives none.
        max_concurrent: Requests allowed in flight at once.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        max_concurrent: int = 5,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.claude_api_key
        self._model = model or settings.claude_model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._client = AsyncAnthropic(api_key=self._api_key)

    def _build_request(
        self,
        prompt: str,
        system: str | None,
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict:
        request: dict = {
            "model": self._model,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": self._temperature if temperature is None else temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        # The API rejects an empty system prompt
        if system:
            request["system"] = system
        return request

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    async def _call_api(self, request: dict) -> str:
        """One messages.create round trip; text blocks are concatenated."""
        async with self._semaphore:
            try:
                message = await self._client.messages.create(**request)
            except Exception as exc:
                raise _translate_error(exc) from exc
        return "".join(getattr(block, "text", "") for block in message.content)

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response."""
        request = self._build_request(
            prompt,
            system=kwargs.pop("system", None),
            temperature=kwargs.pop("temperature", None),
            max_tokens=kwargs.pop("max_tokens", None),
        )
        return await self._call_api(request)
