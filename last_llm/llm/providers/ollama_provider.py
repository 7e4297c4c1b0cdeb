"""
Ollama LLM provider for locally-hosted models.

Ollama exposes an OpenAI-compatible REST API under ``<host>/v1``.
Default host: http://localhost:11434. A key is optional; the ``openai`` SDK
is given a placeholder when none is configured.

Ollama has no native function calling. ``execute_tool`` falls back to a
best-effort scan of the assistant text for a ``name(args)`` call whose
arguments are JSON.
"""

import json
import re
from typing import Any, Mapping

from last_llm.exceptions import ConfigurationError
from last_llm.llm.base import as_dict, dig
from last_llm.llm.providers import constants
from last_llm.llm.providers.openai_provider import OpenAICompatibleProvider
from last_llm.tools.base import Tool

DEFAULT_HOST = "http://localhost:11434"

_CALL_PATTERN = re.compile(r"([A-Za-z_][\w\-]*)\s*\(([^)]+)\)")


def check_settings(settings: Mapping[str, Any]) -> None:
    """Either an API key or a host must be configured."""
    if settings.get("api_key"):
        return
    if not settings.get("host"):
        raise ConfigurationError("Ollama host is required when no API key is provided")


class OllamaProvider(OpenAICompatibleProvider):
    """Ollama provider speaking the OpenAI-compatible endpoint."""

    VENDOR = "Ollama"
    DEFAULT_MODEL = "llama3.2:latest"

    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_TOP_P = 0.7
    DEFAULT_MAX_TOKENS = 24_576

    def __init__(self, config: Mapping[str, Any] | None = None, logger: Any = None):
        super().__init__(constants.OLLAMA, config, logger)

    def validate_config(self, settings: Mapping[str, Any]) -> None:
        check_settings(settings)

    def setup_auth(self) -> dict[str, Any]:
        auth = super().setup_auth()
        auth["api_key"] = self.config.get("api_key") or "ollama"
        auth["base_url"] = self.config.get("base_url") or f"{self.host.rstrip('/')}/v1"
        return auth

    @property
    def host(self) -> str:
        return self.config.get("host") or DEFAULT_HOST

    @classmethod
    def format_tool(cls, tool: Tool) -> dict[str, Any]:
        return {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        }

    @classmethod
    def extract_tool_call(cls, response: Any) -> dict[str, Any] | None:
        """First ``name(args)`` in the assistant text whose arguments parse as JSON."""
        content = _content(response)
        if not content:
            return None
        for match in _CALL_PATTERN.finditer(content):
            arguments = _parse_call_arguments(match.group(2))
            if arguments is not None:
                return {"name": match.group(1), "arguments": arguments}
        return None

    @classmethod
    def execute_tool(cls, tool: Tool, response: Any) -> Any:
        """Look for a call to ``tool`` by name in the assistant text and run it."""
        content = _content(response)
        if not content or tool.name not in content:
            return None

        match = re.search(rf"{re.escape(tool.name)}\s*\(([^)]+)\)", content, re.IGNORECASE)
        if not match:
            return None

        arguments = _parse_call_arguments(match.group(1))
        if arguments is None:
            return None
        return tool.call(arguments)


def _content(response: Any) -> str | None:
    if isinstance(response, str):
        return response
    if hasattr(response, "model_dump"):
        response = as_dict(response)
    if not isinstance(response, dict):
        return None
    content = dig(response, "message", "content")
    if content is None:
        content = dig(response, "choices", 0, "message", "content")
    return None if content is None else str(content)


def _parse_call_arguments(raw: str) -> dict[str, Any] | None:
    """``{"a": 1}`` or the brace-less ``"a": 1`` form; None when not JSON."""
    raw = raw.strip()
    text = raw if raw.startswith("{") else f"{{{raw}}}"
    try:
        arguments = json.loads(text)
    except json.JSONDecodeError:
        return None
    return arguments if isinstance(arguments, dict) else None
