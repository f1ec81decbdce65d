"""
OpenRouter LLM provider implementation.

Talks to OpenRouter's OpenAI-compatible ``/chat/completions`` endpoint with
``httpx.AsyncClient``.  Status codes are mapped onto the same exception
contract as the SDK-based providers.
"""

import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from auranotes.core.config import get_settings
from auranotes.core.exceptions import LLMAuthError
from auranotes.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


class OpenRouterLLM(BaseLLM):
    """OpenRouter chat-completions provider with retry logic."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.7,
        timeout: float = 60.0,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.openrouter_api_key
        self._model = model or settings.openrouter_model
        self._base_url = (base_url or settings.openrouter_base_url).rstrip("/")
        self._temperature = temperature
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "X-Title": settings.openrouter_app_title,
            },
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    async def _call_api(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """POST a chat request and return the first choice's content."""
        payload: dict = {
            "model": self._model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self._temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        try:
            resp = await self._client.post("/chat/completions", json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("OpenRouter timeout: %s", exc)
            raise TimeoutError(f"OpenRouter request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning("OpenRouter connection error: %s", exc)
            raise ConnectionError(f"Failed to connect to OpenRouter: {exc}") from exc

        if resp.status_code in (401, 403):
            logger.error("OpenRouter rejected credentials (HTTP %s)", resp.status_code)
            raise LLMAuthError(f"OpenRouter API Error: {resp.status_code}")
        if resp.status_code == 429 or resp.status_code >= 500:
            logger.warning("OpenRouter unavailable (HTTP %s)", resp.status_code)
            raise ConnectionError(f"OpenRouter API Error: {resp.status_code}")
        if resp.status_code >= 400:
            logger.error("OpenRouter request failed (HTTP %s): %s", resp.status_code, resp.text)
            raise RuntimeError(f"OpenRouter API Error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise RuntimeError(f"OpenRouter returned non-JSON body: {exc}") from exc

        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response."""
        messages: list[dict[str, str]] = []
        system = kwargs.pop("system", None)
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        return await self._call_api(
            messages=messages,
            temperature=kwargs.pop("temperature", None),
            max_tokens=kwargs.pop("max_tokens", None),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()
