"""
Anthropic (Claude) LLM provider.

Translates the unified prompt/options into Anthropic's Messages API shape.

Key differences handled:
- System prompt is a top-level ``system`` parameter, not a message; system
  messages embedded in a message list are hoisted into it
- ``max_tokens`` is mandatory
- Tool definitions use ``input_schema`` instead of ``parameters``
- Tool calls come back as ``tool_use`` content blocks
- Authentication uses the ``x-api-key`` and ``anthropic-version`` headers
"""

import os
from typing import Any, Mapping

import anthropic
import httpx

from last_llm.exceptions import ApiError, ConfigurationError
from last_llm.llm.base import (
    Provider,
    api_error,
    compact,
    is_message_list,
    option,
    transport_error,
)
from last_llm.llm.providers import constants
from last_llm.tools.base import Tool


class AnthropicProvider(Provider):
    """Anthropic Claude provider."""

    VENDOR = "Anthropic"
    API_VERSION = "2023-06-01"
    DEFAULT_MODEL = "claude-3-5-haiku-latest"

    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_MAX_TOKENS = 1000

    transport_errors = (anthropic.APIError, httpx.HTTPError)

    def __init__(self, config: Mapping[str, Any] | None = None, logger: Any = None):
        super().__init__(constants.ANTHROPIC, config, logger)

    def setup_auth(self) -> dict[str, Any]:
        headers = {"anthropic-version": self.API_VERSION, **(self.config.get("headers") or {})}
        auth: dict[str, Any] = {
            "api_key": self.config.get("api_key"),
            "base_url": self.config.get("base_url"),
            "timeout": self.config.get("timeout"),
            "max_retries": self.config.get("max_retries"),
            "default_headers": headers,
        }
        proxy = self.config.get("proxy")
        if proxy:
            auth["http_client"] = httpx.Client(proxy=proxy)
        return compact(auth)

    def create_client(self, auth: dict[str, Any]) -> anthropic.Anthropic:
        # the SDK only notices a missing credential when the first request is sent
        if not (auth.get("api_key") or os.environ.get("ANTHROPIC_API_KEY") or os.environ.get("ANTHROPIC_AUTH_TOKEN")):
            raise ConfigurationError("Anthropic client could not be created: no API key configured")
        try:
            return anthropic.Anthropic(**auth)
        except anthropic.AnthropicError as exc:
            raise ConfigurationError(f"Anthropic client could not be created: {exc}") from exc

    def build_request(self, prompt: Any, options: dict[str, Any], json_mode: bool = False) -> dict[str, Any]:
        system, messages = self.format_messages(prompt, options.get("system_prompt"))
        return compact({
            "model": self.model_for(options),
            "messages": messages,
            "system": system,
            "temperature": self.temperature_for(options),
            "max_tokens": option(options, "max_tokens", self.DEFAULT_MAX_TOKENS),
            "top_p": options.get("top_p"),
            "top_k": options.get("top_k"),
        })

    def send_request(self, body: dict[str, Any]) -> Any:
        return self.client.messages.create(**body)

    def format_messages(
        self, prompt: Any, system_prompt: str | None = None
    ) -> tuple[str | None, list[dict[str, Any]]]:
        """Split a prompt into Anthropic's ``system`` string and message list."""
        if not is_message_list(prompt):
            return system_prompt or None, [{"role": "user", "content": str(prompt)}]

        system_parts: list[str] = []
        messages: list[dict[str, Any]] = []
        for message in prompt:
            message = {str(k): v for k, v in message.items()}
            if message["role"] == "system":
                system_parts.append(str(message["content"]))
            else:
                messages.append(message)

        return ("\n\n".join(system_parts) or None), messages

    @classmethod
    def extract_text(cls, response: dict[str, Any]) -> str:
        for block in response.get("content") or []:
            if isinstance(block, dict) and block.get("type", "text") == "text" and block.get("text") is not None:
                return str(block["text"])
        return ""

    @classmethod
    def extract_tool_call(cls, response: Any) -> dict[str, Any] | None:
        """
        Accepts a full Messages response (``tool_use`` content block) or a
        bare ``{"tool_use": {...}}`` mapping.
        """
        if not isinstance(response, dict):
            return None

        tool_use = response.get("tool_use")
        if not isinstance(tool_use, dict):
            tool_use = next(
                (
                    block for block in response.get("content") or []
                    if isinstance(block, dict) and block.get("type") == "tool_use"
                ),
                None,
            )
        if not tool_use:
            return None
        return {"name": tool_use.get("name"), "arguments": tool_use.get("input")}

    @classmethod
    def format_tool(cls, tool: Tool) -> dict[str, Any]:
        return {
            "name": tool.name,
            "description": tool.description,
            "input_schema": tool.parameters,
        }

    def translate_error(self, exc: BaseException) -> ApiError:
        if isinstance(exc, anthropic.APIStatusError):
            return api_error(self.VENDOR, exc, exc.status_code, exc.body)
        if isinstance(exc, anthropic.APIError):
            return api_error(self.VENDOR, exc)
        return transport_error(self.VENDOR, exc)
