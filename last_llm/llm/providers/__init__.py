"""
LLM provider factory.

Maps provider identifiers (see ``constants``) to adapter classes.

Supported provider names:
    openai, anthropic, google_gemini, deepseek, ollama, test
"""

from typing import Any, Mapping, Type

from last_llm.exceptions import ConfigurationError
from last_llm.llm.base import Provider
from last_llm.llm.providers import constants
from last_llm.llm.providers.anthropic_provider import AnthropicProvider
from last_llm.llm.providers.deepseek_provider import DeepseekProvider
from last_llm.llm.providers.google_provider import GoogleGeminiProvider
from last_llm.llm.providers.ollama_provider import OllamaProvider
from last_llm.llm.providers.openai_provider import OpenAIProvider
from last_llm.llm.providers.test_provider import TestProvider

_PROVIDERS: dict[str, Type[Provider]] = {
    constants.OPENAI: OpenAIProvider,
    constants.ANTHROPIC: AnthropicProvider,
    constants.GOOGLE_GEMINI: GoogleGeminiProvider,
    constants.DEEPSEEK: DeepseekProvider,
    constants.OLLAMA: OllamaProvider,
    constants.TEST: TestProvider,
}


def get_provider(
    provider_name: str,
    config: Mapping[str, Any] | None = None,
    logger: Any = None,
) -> Provider:
    """
    Return an initialized provider instance.

    Args:
        provider_name: Provider identifier, e.g. ``"openai"``.
        config: Provider settings (api_key, base_url, model, timeout, ...).
        logger: ``LLMLogger`` or stdlib logger; defaults to the library logger.

    Raises:
        ConfigurationError: Unknown provider name, or invalid settings.
    """
    cls = _PROVIDERS.get(str(provider_name))
    if cls is None:
        raise ConfigurationError(
            f"Unknown provider: {provider_name}. Supported: {sorted(_PROVIDERS)}"
        )
    return cls(config, logger)


__all__ = [
    "get_provider",
    "AnthropicProvider",
    "DeepseekProvider",
    "GoogleGeminiProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "TestProvider",
]
