"""
LLM providers behind a single ``BaseLLM`` interface.

``create_llm`` picks the implementation named by ``Settings.llm_provider``;
provider modules are imported lazily so only the chosen SDK is loaded.
"""

from importlib import import_module

from .base import BaseLLM

__all__ = ["BaseLLM", "create_llm"]

_PROVIDERS = {
    "ollama": (".ollama", "OllamaLLM"),
    "claude": (".claude", "ClaudeLLM"),
    "openrouter": (".openrouter", "OpenRouterLLM"),
}


def create_llm(provider: str, **kwargs) -> BaseLLM:
    """Instantiate the provider called ``provider`` ("ollama", "claude", "openrouter").

    Raises:
        ValueError: If no such provider exists.
    """
    try:
        module_name, class_name = _PROVIDERS[provider]
    except KeyError:
        raise ValueError(f"Unknown LLM provider: {provider}") from None
    cls = getattr(import_module(module_name, __name__), class_name)
    return cls(**kwargs)
