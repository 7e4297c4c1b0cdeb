"""
last_llm: one interface to several LLM vendor APIs.

last_llm normalizes OpenAI, Anthropic, Google Gemini, Deepseek and Ollama
behind one provider contract: text generation, schema-validated
structured output, tool calling helpers and one error taxonomy.

Quick start
-----------
::

    import last_llm

    last_llm.configure(default_provider="openai")
    last_llm.get_configuration().configure_provider("openai", api_key="sk-...")

    client = last_llm.new_client()
    client.generate_text("Write a haiku about tests")

Scoped configuration
--------------------
::

    from last_llm import Client, Configuration

    config = Configuration(default_provider="anthropic")
    config.configure_provider("anthropic", api_key="sk-ant-...")
    client = Client(config)

Structured output
-----------------
::

    from last_llm import schema

    person = schema.create({
        "type": "object",
        "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        "required": ["name", "age"],
    })
    client.generate_object("Invent a person", person)  # {"name": ..., "age": ...}

Tools
-----
::

    from last_llm import Tool
    from last_llm.llm.providers import OpenAIProvider

    weather = Tool(
        name="get_weather",
        description="Current weather for a city",
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        },
        function=lambda p: {"city": p["city"], "forecast": "sunny"},
    )
    OpenAIProvider.format_tool(weather)
    OpenAIProvider.execute_tool(weather, response)
"""

from typing import Any

from last_llm import schema
from last_llm.client import Client
from last_llm.completion import Completion
from last_llm.configuration import Configuration
from last_llm.exceptions import (
    ApiError,
    ConfigurationError,
    LastLLMError,
    ToolValidationError,
    ValidationError,
)
from last_llm.llm.base import Provider
from last_llm.llm.providers import get_provider
from last_llm.logger import LLMLogger, configure_logging, get_logger
from last_llm.structured_output import StructuredOutput
from last_llm.tools.base import Tool

__version__ = "0.1.0"

_configuration: Configuration | None = None


def get_configuration() -> Configuration:
    """Return the process-wide default configuration, creating it on first call."""
    global _configuration
    if _configuration is None:
        _configuration = Configuration()
    return _configuration


def configure(**settings: Any) -> Configuration:
    """
    Update the process-wide default configuration.

    Accepts the attributes of ``Configuration`` (default_provider,
    default_model, test_mode, logger, log_level) plus ``providers``
    (name -> settings) and ``globals``.
    """
    config = get_configuration()
    providers = settings.pop("providers", None) or {}
    global_settings = settings.pop("globals", None) or {}

    for key, value in settings.items():
        if key not in ("default_provider", "default_model", "test_mode", "logger", "log_level"):
            raise ConfigurationError(f"Unknown configuration setting: {key}")
        setattr(config, key, value)
    for provider, provider_settings in providers.items():
        config.configure_provider(provider, provider_settings)
    for key, value in global_settings.items():
        config.set_global(key, value)
    return config


def reset_configuration() -> Configuration:
    """Replace the process-wide default configuration with a fresh one."""
    global _configuration
    _configuration = Configuration()
    return _configuration


def new_client(provider: str | None = None) -> Client:
    """Create a ``Client`` on the process-wide default configuration."""
    return Client(get_configuration(), provider)


__all__ = [
    # Entry points
    "Client",
    "Completion",
    "Configuration",
    "StructuredOutput",
    "new_client",
    "get_configuration",
    "configure",
    "reset_configuration",
    # Providers and tools
    "Provider",
    "get_provider",
    "Tool",
    "schema",
    # Logging
    "LLMLogger",
    "configure_logging",
    "get_logger",
    # Exceptions
    "LastLLMError",
    "ConfigurationError",
    "ValidationError",
    "ToolValidationError",
    "ApiError",
    # Version
    "__version__",
]
