"""
Local Ollama provider.

Sends chat requests to an Ollama server through ``ollama.AsyncClient``.
Connection trouble is retried; an HTTP 401/403 from a protected server is
reported as ``LLMAuthError`` so curation can surface it to the user.
"""

import logging

from ollama import AsyncClient, ResponseError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from auranotes.core.config import get_settings
from auranotes.core.exceptions import LLMAuthError
from auranotes.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

_AUTH_STATUS_CODES = (401, 403)


def _chat_messages(prompt: str, system: str | None) -> list[dict[str, str]]:
    messages = [{"role": "system", "content": system}] if system else []
    messages.append({"role": "user", "content": prompt})
    return messages


class OllamaLLM(BaseLLM):
    """Chat completions served by a local Ollama instance.

    Args:
        base_url: Server URL; defaults to ``ollama_base_url`` from settings.
        model: Model tag, e.g. ``llama3.2``; defaults to ``ollama_model``.
        temperature: Sampling temperature when the caller gives none.
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float = 0.7,
    ) -> None:
        settings = get_settings()
        self._base_url = base_url or settings.ollama_base_url
        self._model = model or settings.ollama_model
        self._temperature = temperature
        self._client = AsyncClient(host=self._base_url)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    async def _call_api(self, messages: list[dict[str, str]], temperature: float) -> str:
        """Run one chat request; SDK errors leave as standard exceptions."""
        try:
            response = await self._client.chat(
                model=self._model,
                messages=messages,
                options={"temperature": temperature},
            )
        except (ConnectionError, TimeoutError) as exc:
            logger.warning("Ollama at %s unreachable: %s", self._base_url, exc)
            raise type(exc)(f"Failed to connect to Ollama at {self._base_url}: {exc}") from exc
        except ResponseError as exc:
            if exc.status_code in _AUTH_STATUS_CODES:
                logger.error("Ollama refused the request (HTTP %s)", exc.status_code)
                raise LLMAuthError(f"Ollama rejected credentials: {exc}") from exc
            logger.error("Ollama returned an error: %s", exc)
            raise RuntimeError(f"Ollama error: {exc}") from exc
        except Exception as exc:
            logger.error("Ollama call failed: %s", exc)
            raise RuntimeError(f"Ollama error: {exc}") from exc
        return response.message.content or ""

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response."""
        temperature = kwargs.pop("temperature", None)
        return await self._call_api(
            _chat_messages(prompt, kwargs.pop("system", None)),
            self._temperature if temperature is None else temperature,
        )
