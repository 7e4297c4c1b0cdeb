"""
OpenAI LLM provider.

``OpenAICompatibleProvider`` holds everything shared by vendors that speak
the chat-completions wire format through the ``openai`` SDK (OpenAI itself,
Deepseek and Ollama's ``/v1`` endpoint). ``OpenAIProvider`` adds JSON mode
and embeddings.
"""

from typing import Any, Mapping

import httpx
import openai
from openai import OpenAI

from last_llm.exceptions import ApiError, ConfigurationError
from last_llm.llm.base import (
    Provider,
    api_error,
    chat_messages,
    compact,
    dig,
    option,
    transport_error,
)
from last_llm.llm.providers import constants
from last_llm.tools.base import Tool


class OpenAICompatibleProvider(Provider):
    """Chat-completions adapter on top of the ``openai`` SDK."""

    VENDOR = "OpenAI"
    BASE_URL: str | None = None
    DEFAULT_TOP_P: float | None = None
    DEFAULT_MAX_TOKENS: int | None = None

    transport_errors = (openai.APIError, httpx.HTTPError)

    def setup_auth(self) -> dict[str, Any]:
        auth: dict[str, Any] = {
            "api_key": self.config.get("api_key"),
            "base_url": self.config.get("base_url") or self.BASE_URL,
            "timeout": self.config.get("timeout"),
            "max_retries": self.config.get("max_retries"),
            "default_headers": self.config.get("headers"),
        }
        proxy = self.config.get("proxy")
        if proxy:
            auth["http_client"] = httpx.Client(proxy=proxy)
        return compact(auth)

    def create_client(self, auth: dict[str, Any]) -> OpenAI:
        try:
            return OpenAI(**auth)
        except openai.OpenAIError as exc:
            raise ConfigurationError(f"{self.VENDOR} client could not be created: {exc}") from exc

    def build_request(self, prompt: Any, options: dict[str, Any], json_mode: bool = False) -> dict[str, Any]:
        return compact({
            "model": self.model_for(options),
            "messages": chat_messages(prompt, options.get("system_prompt")),
            "temperature": self.temperature_for(options),
            "top_p": option(options, "top_p", self.DEFAULT_TOP_P),
            "max_tokens": option(options, "max_tokens", self.DEFAULT_MAX_TOKENS),
            "stream": False,
        })

    def send_request(self, body: dict[str, Any]) -> Any:
        return self.client.chat.completions.create(**body)

    @classmethod
    def extract_text(cls, response: dict[str, Any]) -> str:
        content = dig(response, "choices", 0, "message", "content")
        return "" if content is None else str(content)

    @classmethod
    def extract_tool_call(cls, response: Any) -> dict[str, Any] | None:
        """
        Accepts a full completion (``choices[0].message.tool_calls``) or just
        the assistant message (``tool_calls``).
        """
        if not isinstance(response, dict):
            return None
        tool_calls = dig(response, "choices", 0, "message", "tool_calls") or response.get("tool_calls")
        function = dig(tool_calls, 0, "function")
        if not function:
            return None
        return {"name": function.get("name"), "arguments": function.get("arguments")}

    @classmethod
    def format_tool(cls, tool: Tool) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }

    def translate_error(self, exc: BaseException) -> ApiError:
        if isinstance(exc, openai.APIStatusError):
            return api_error(self.VENDOR, exc, exc.status_code, exc.body)
        if isinstance(exc, openai.APIError):
            # Connection failures and timeouts carry no status.
            return api_error(self.VENDOR, exc)
        return transport_error(self.VENDOR, exc)


class OpenAIProvider(OpenAICompatibleProvider):
    """
    Provider for OpenAI's chat completions and embeddings APIs.

    Environment variable (read by ``Configuration.from_env``): OPENAI_API_KEY
    """

    VENDOR = "OpenAI"
    DEFAULT_MODEL = "gpt-4o-mini"
    EMBEDDINGS_MODEL = "text-embedding-ada-002"

    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_TOP_P = 0.7
    DEFAULT_MAX_TOKENS = 4096

    def __init__(self, config: Mapping[str, Any] | None = None, logger: Any = None):
        super().__init__(constants.OPENAI, config, logger)

    def build_request(self, prompt: Any, options: dict[str, Any], json_mode: bool = False) -> dict[str, Any]:
        body = super().build_request(prompt, options, json_mode)
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        return body

    def parse_object(self, text: str) -> Any:
        parsed = super().parse_object(text)
        # Some models echo the schema back and nest the answer in "properties".
        if isinstance(parsed, dict) and "$schema" in parsed and "properties" in parsed:
            return parsed["properties"]
        return parsed

    def embeddings(self, text: Any, options: dict[str, Any] | None = None) -> list[float]:
        """
        Embed ``text`` and return the first embedding vector.

        Raises:
            ApiError: The request failed or the response had no embedding array.
        """
        options = {str(k): v for k, v in (options or {}).items()}
        body = {
            "model": options.get("model") or self.EMBEDDINGS_MODEL,
            "input": str(text),
            "encoding_format": options.get("encoding_format") or "float",
        }
        self.logger.info(f"{self.name}: Generating embeddings with model: {body['model']}")

        result = self._perform(lambda: self.client.embeddings.create(**body))

        embedding = dig(result, "data", 0, "embedding")
        if not isinstance(embedding, list):
            raise ApiError("Invalid embeddings response format")
        return [float(value) for value in embedding]
