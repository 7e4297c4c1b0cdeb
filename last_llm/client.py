"""
Client: the composition root of last_llm.

Resolves a ``Configuration``, selects and validates the active provider and
exposes text and structured-object generation on top of it.

Usage::

    from last_llm import Client, Configuration

    config = Configuration(default_provider="openai", default_model="gpt-4o")
    config.configure_provider("openai", api_key="sk-...")

    client = Client(config)
    client.generate_text("Say hello")
    client.generate_object("Describe a user", schema)
"""

from typing import Any, Mapping

from last_llm.configuration import Configuration
from last_llm.llm.base import Provider
from last_llm.llm.providers import get_provider
from last_llm.structured_output import StructuredOutput

# settings from Configuration.globals forwarded to every provider
_FORWARDED_GLOBALS = ("timeout", "max_retries")


class Client:
    """
    Generates text and objects through one configured provider.

    Args:
        config: A ``Configuration``, a settings map for
                ``Configuration.from_dict``, or None for the process-wide
                default configuration.
        provider: Provider name; defaults to ``config.default_provider``.

    Raises:
        ConfigurationError: Unknown provider, or its settings are invalid.
    """

    def __init__(
        self,
        config: "Configuration | Mapping[str, Any] | None" = None,
        provider: str | None = None,
    ):
        self.configuration = _resolve_configuration(config)
        self.provider: Provider = self._create_provider(provider or self.configuration.default_provider)

    def __repr__(self) -> str:
        return f"Client(provider={self.provider.name!r})"

    def generate_text(self, prompt: Any, options: dict[str, Any] | None = None) -> str:
        """Generate text with the active provider."""
        return self.provider.generate_text(prompt, options)

    def generate_object(self, prompt: Any, schema: Any, options: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Generate an object matching ``schema`` and validate it.

        Raises:
            ValidationError: The generated object does not satisfy ``schema``.
            ApiError: The provider call failed or returned invalid JSON.
        """
        return StructuredOutput(self).generate(prompt, schema, options)

    def _create_provider(self, name: str) -> Provider:
        name = str(name)
        configuration = self.configuration
        configuration.validate_provider_config(name)

        settings = {
            key: configuration.get_global(key)
            for key in _FORWARDED_GLOBALS
            if configuration.get_global(key) is not None
        }
        settings.update(configuration.provider_config(name))
        if (
            name == configuration.default_provider
            and configuration.default_model
            and not settings.get("model")
        ):
            settings["model"] = configuration.default_model

        return get_provider(name, settings, configuration.logger)


def _resolve_configuration(config: "Configuration | Mapping[str, Any] | None") -> Configuration:
    if isinstance(config, Configuration):
        return config
    if config is None:
        from last_llm import get_configuration

        return get_configuration()
    return Configuration.from_dict(config)
