"""
Abstract base class for LLM providers.

All LLM implementations (Claude, Ollama, OpenRouter) must implement this
interface, enabling provider-agnostic business logic in the service layer.
"""

from abc import ABC, abstractmethod


class BaseLLM(ABC):
    """Interface that every LLM provider must implement.

    Implementations translate SDK errors so callers only see standard
    exceptions: ``TimeoutError`` and ``ConnectionError`` for transient
    failures, ``LLMAuthError`` for rejected credentials, and
    ``RuntimeError`` for anything else.
    """

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a free-form text response.

        Args:
            prompt: The user prompt to send to the model.
            **kwargs: Provider options (system, temperature, max_tokens).

        Returns:
            The model's text response.
        """
