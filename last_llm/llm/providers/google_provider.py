"""
Google Gemini LLM provider (google-genai SDK).

Translates the unified prompt/options into Gemini's ``generate_content``
request and reads responses in Gemini's wire shape.

Key differences:
- System instruction is part of the generation config
- Assistant role is "model" (not "assistant")
- Text lives at ``candidates[0].content.parts[0].text``
- Tool calls are ``functionCall`` parts
- Errors carry a structured ``{code, status, message}`` body; invalid or
  missing keys get a dedicated authentication message
"""

import json
from typing import Any, Mapping

import httpx
from google import genai
from google.genai import errors as genai_errors

from last_llm.exceptions import ApiError, ConfigurationError
from last_llm.llm.base import Provider, compact, dig, is_message_list, option
from last_llm.llm.providers import constants
from last_llm.tools.base import Tool

UNAUTHORIZED_STATUS = 401
BAD_REQUEST_STATUS = 400
UNAUTHENTICATED_STATUS = "UNAUTHENTICATED"
INVALID_KEY_MARKER = "API key not valid"

AUTH_FAILED_MESSAGE = (
    "Authentication failed: Invalid API key or credentials. Please check your Google API key."
)
INVALID_KEY_MESSAGE = (
    "Authentication failed: Invalid API key format or credentials. Please check your Google API key."
)


class GoogleGeminiProvider(Provider):
    """Google Gemini provider."""

    DEFAULT_MODEL = "gemini-1.5-flash"
    JSON_MIME_TYPE = "application/json"

    DEFAULT_TEMPERATURE = 0.3
    DEFAULT_TOP_P = 0.95
    DEFAULT_TOP_K = 40
    DEFAULT_MAX_TOKENS = 1024

    transport_errors = (genai_errors.APIError, httpx.HTTPError)

    def __init__(self, config: Mapping[str, Any] | None = None, logger: Any = None):
        super().__init__(constants.GOOGLE_GEMINI, config, logger)

    def setup_auth(self) -> dict[str, Any]:
        timeout = self.config.get("timeout")
        http_options = compact({
            "base_url": self.config.get("base_url"),
            "headers": self.config.get("headers"),
            # google-genai expects milliseconds
            "timeout": int(timeout * 1000) if timeout else None,
        })
        proxy = self.config.get("proxy")
        if proxy:
            http_options["client_args"] = {"proxy": proxy}
        return compact({
            "api_key": self.config.get("api_key"),
            "http_options": http_options or None,
        })

    def create_client(self, auth: dict[str, Any]) -> genai.Client:
        try:
            return genai.Client(**auth)
        except ValueError as exc:
            raise ConfigurationError(f"Google Gemini client could not be created: {exc}") from exc

    def build_request(self, prompt: Any, options: dict[str, Any], json_mode: bool = False) -> dict[str, Any]:
        system, contents = self.format_contents(prompt, options.get("system_prompt"))
        return {
            "model": self.model_for(options),
            "contents": contents,
            "config": compact({
                "system_instruction": system,
                "max_output_tokens": option(options, "max_tokens", self.DEFAULT_MAX_TOKENS),
                "temperature": self.temperature_for(options),
                "top_p": option(options, "top_p", self.DEFAULT_TOP_P),
                "top_k": option(options, "top_k", self.DEFAULT_TOP_K),
                "response_mime_type": self.JSON_MIME_TYPE if json_mode else None,
            }),
        }

    def send_request(self, body: dict[str, Any]) -> Any:
        return self.client.models.generate_content(
            model=body["model"],
            contents=body["contents"],
            config=body["config"],
        )

    def format_contents(
        self, prompt: Any, system_prompt: str | None = None
    ) -> tuple[str | None, list[dict[str, Any]]]:
        """Split a prompt into a system instruction and Gemini ``contents``."""
        if not is_message_list(prompt):
            return system_prompt or None, [{"role": "user", "parts": [{"text": str(prompt)}]}]

        system_parts: list[str] = []
        contents: list[dict[str, Any]] = []
        for message in prompt:
            role = message["role"]
            if role == "system":
                system_parts.append(str(message["content"]))
                continue
            contents.append({
                "role": "model" if role == "assistant" else role,
                "parts": [{"text": str(message["content"])}],
            })

        return ("\n\n".join(system_parts) or None), contents

    @classmethod
    def extract_text(cls, response: dict[str, Any]) -> str:
        text = dig(response, "candidates", 0, "content", "parts", 0, "text")
        return "" if text is None else str(text)

    @classmethod
    def extract_tool_call(cls, response: Any) -> dict[str, Any] | None:
        part = dig(response, "candidates", 0, "content", "parts", 0)
        if not isinstance(part, dict):
            return None
        function_call = part.get("functionCall") or part.get("function_call")
        if not function_call:
            return None
        return {"name": function_call.get("name"), "arguments": function_call.get("args") or {}}

    @classmethod
    def format_tool(cls, tool: Tool) -> dict[str, Any]:
        return {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        }

    def translate_error(self, exc: BaseException) -> ApiError:
        if isinstance(exc, genai_errors.APIError):
            return ApiError(error_message(exc, getattr(exc, "details", None)), exc.code)
        if isinstance(exc, httpx.HTTPStatusError):
            return ApiError(error_message(exc, exc.response.text), exc.response.status_code)
        return ApiError(f"API request failed: {exc}")


def error_message(exc: BaseException, body: Any) -> str:
    """Human-readable message for a Gemini error body."""
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body) if body else None
        except json.JSONDecodeError:
            return f"API request failed: {exc}"
    if not body:
        return f"API request failed: {exc}"

    if isinstance(body, list):
        error = dig(body, 0, "error")
        if not error:
            return "Unknown API error"
        message = error.get("message") if isinstance(error, dict) else None
        return f"API error: {message or error}"

    if isinstance(body, dict) and body.get("error"):
        error = body["error"]
        if not isinstance(error, dict):
            return f"API error: {error}"
        return _detailed_message(error)

    return "Unknown API error"


def _detailed_message(error: dict[str, Any]) -> str:
    code = error.get("code")
    status = error.get("status")
    message = str(error.get("message") or "")

    if code == UNAUTHORIZED_STATUS or status == UNAUTHENTICATED_STATUS:
        return AUTH_FAILED_MESSAGE
    if code == BAD_REQUEST_STATUS and INVALID_KEY_MARKER in message:
        return INVALID_KEY_MESSAGE
    return f"API error ({code}): {message}"
