"""
Abstract base class for LLM providers.

Every vendor adapter implements the same fixed set of members:

- ``setup_auth()`` / ``create_client()``: credentials, headers, timeout and
  proxy for the vendor SDK client, and the client itself.
- ``build_request()``: the vendor request body for a prompt and options.
- ``send_request()``: one blocking vendor call.
- ``extract_text()`` / ``extract_tool_call()``: read the assistant text or a
  tool invocation out of a vendor response (plain dict in wire shape).
- ``format_tool()``: render a ``Tool`` in the vendor's function format.
- ``translate_error()``: turn a vendor/transport failure into ``ApiError``.

The base class owns the request lifecycle shared by all vendors
(``generate_text``, ``generate_object``, ``execute_tool``) and the error
boundary: exceptions listed in ``transport_errors`` never escape as anything
but ``ApiError``.
"""

import json
from abc import ABC, abstractmethod
from functools import cached_property
from types import MappingProxyType
from typing import Any, Callable, Mapping

import httpx

from last_llm.exceptions import ApiError, ConfigurationError, ToolValidationError
from last_llm.logger import LLMLogger, as_llm_logger, truncate
from last_llm.structured_output import DEFAULT_TEMPERATURE, format_prompt
from last_llm.tools.base import Tool


JSON_SYSTEM_PROMPT = "You are a helpful assistant that responds with valid JSON."

_SENSITIVE_KEYS = ("api_key", "headers")


class Provider(ABC):
    """
    Abstract interface for an LLM provider.

    Attributes:
        name: Vendor identifier (see ``last_llm.llm.providers.constants``).
        config: Read-only settings (api_key, base_url, model, timeout,
                max_retries, proxy, headers, skip_validation).
    """

    DEFAULT_MODEL: str = ""
    DEFAULT_TEMPERATURE: float = 0.7

    # Exceptions translated into ApiError at the adapter boundary.
    transport_errors: tuple[type[BaseException], ...] = (httpx.HTTPError,)

    def __init__(
        self,
        name: str,
        config: Mapping[str, Any] | None = None,
        logger: "LLMLogger | Any" = None,
    ):
        self.name = str(name)
        self.logger = as_llm_logger(logger)

        settings = {str(key): value for key, value in (config or {}).items()}
        if not settings.get("skip_validation"):
            self.validate_config(settings)
        self.config: Mapping[str, Any] = MappingProxyType(settings)

        self.logger.debug(f"{self.name}: Initialized provider with settings {self._safe_settings()}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # ------------------------------------------------------------------
    # Vendor members
    # ------------------------------------------------------------------

    @abstractmethod
    def setup_auth(self) -> dict[str, Any]:
        """Keyword arguments for the vendor SDK client."""
        ...

    @abstractmethod
    def create_client(self, auth: dict[str, Any]) -> Any:
        """Build the vendor SDK client from ``setup_auth()`` output."""
        ...

    @abstractmethod
    def build_request(self, prompt: Any, options: dict[str, Any], json_mode: bool = False) -> dict[str, Any]:
        """
        Build the vendor request body.

        Args:
            prompt: A string or a list of ``{"role", "content"}`` messages.
            options: Canonical option dict (model, temperature, max_tokens,
                     top_p, top_k, system_prompt).
            json_mode: True when the caller expects a JSON object back.

        Returns:
            The request body with absent values omitted.
        """
        ...

    @abstractmethod
    def send_request(self, body: dict[str, Any]) -> Any:
        """Perform one blocking vendor call and return the raw response."""
        ...

    @classmethod
    @abstractmethod
    def extract_text(cls, response: dict[str, Any]) -> str:
        """Assistant text from a response dict; empty string when absent."""
        ...

    @classmethod
    @abstractmethod
    def extract_tool_call(cls, response: Any) -> dict[str, Any] | None:
        """
        ``{"name": ..., "arguments": ...}`` for the first tool call, or None.

        Arguments are returned as the vendor sent them (a dict or a JSON
        string); ``execute_tool`` parses them once the name matches.
        """
        ...

    @classmethod
    @abstractmethod
    def format_tool(cls, tool: Tool) -> dict[str, Any]:
        """Render ``tool`` in the vendor's function-calling schema."""
        ...

    @abstractmethod
    def translate_error(self, exc: BaseException) -> ApiError:
        """Map a vendor or transport exception to ``ApiError``."""
        ...

    # ------------------------------------------------------------------
    # Shared lifecycle
    # ------------------------------------------------------------------

    def validate_config(self, settings: Mapping[str, Any]) -> None:
        """Raise ``ConfigurationError`` when the settings cannot authenticate."""
        if not settings.get("api_key"):
            raise ConfigurationError(f"API key is required for {self.name} provider")

    @cached_property
    def client(self) -> Any:
        """Vendor SDK client, created on first use and reused for every call."""
        return self.create_client(self.setup_auth())

    def generate_text(self, prompt: Any, options: dict[str, Any] | None = None) -> str:
        """
        Generate text for ``prompt``.

        Returns:
            The assistant text, or an empty string when the vendor returned
            no content.

        Raises:
            ApiError: The vendor call failed.
        """
        options = canonical_options(options)
        body = self.build_request(prompt, options)
        self.logger.request(self.name, body.get("model"), prompt)

        response = self._perform(lambda: self.send_request(body))

        text = self.extract_text(response)
        self.logger.response(self.name, text)
        return text

    def generate_object(self, prompt: Any, schema: Any, options: dict[str, Any] | None = None) -> Any:
        """
        Ask for a JSON object matching ``schema`` and parse it.

        The prompt is augmented with ``format_prompt()``, a JSON-only system
        instruction is added and the temperature defaults to 0.2.

        Raises:
            ApiError: The vendor call failed or the reply was not valid JSON.
        """
        options = canonical_options(options)
        caller_system = options.get("system_prompt")
        options["system_prompt"] = (
            f"{JSON_SYSTEM_PROMPT}\n\n{caller_system}" if caller_system else JSON_SYSTEM_PROMPT
        )
        if options.get("temperature") is None:
            options["temperature"] = DEFAULT_TEMPERATURE

        body = self.build_request(augment_prompt(prompt, schema), options, json_mode=True)
        self.logger.request(self.name, body.get("model"), prompt, kind="object")

        response = self._perform(lambda: self.send_request(body))

        text = self.extract_text(response)
        self.logger.debug(f"{self.name}: Raw JSON response: {truncate(text)}")
        return self.parse_object(text)

    def parse_object(self, text: str) -> Any:
        """Parse the JSON reply of ``generate_object``."""
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            self.logger.error(f"{self.name}: JSON parsing error: {exc}")
            raise ApiError(f"Invalid JSON response: {exc}") from exc

    @classmethod
    def execute_tool(cls, tool: Tool, response: Any) -> Any:
        """
        Run ``tool`` if ``response`` invokes it.

        Returns:
            The tool's result, or None when the response holds no matching
            invocation.

        Raises:
            ToolValidationError: The invocation's arguments are invalid.
        """
        tool_call = cls.extract_tool_call(as_dict(response) if hasattr(response, "model_dump") else response)
        if tool_call is None or tool_call.get("name") != tool.name:
            return None
        return tool.call(parse_arguments(tool.name, tool_call.get("arguments")))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _perform(self, call: Callable[[], Any]) -> dict[str, Any]:
        try:
            raw = call()
        except self.transport_errors as exc:
            error = self.translate_error(exc)
            self.logger.api_error(self.name, error.status, error.message)
            raise error from exc

        response = as_dict(raw)
        if response is None:
            raise ApiError(f"Invalid response format from {self.name}")
        return response

    def model_for(self, options: Mapping[str, Any]) -> str:
        return options.get("model") or self.config.get("model") or self.DEFAULT_MODEL

    def temperature_for(self, options: Mapping[str, Any]) -> float:
        return option(options, "temperature", self.DEFAULT_TEMPERATURE)

    def _safe_settings(self) -> dict[str, Any]:
        return {
            key: ("[REDACTED]" if key in _SENSITIVE_KEYS and value else value)
            for key, value in self.config.items()
        }


# ----------------------------------------------------------------------
# Module helpers shared by the vendor adapters
# ----------------------------------------------------------------------

def canonical_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Copy ``options`` with string keys."""
    return {str(key): value for key, value in (options or {}).items()}


def option(options: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """``options[key]`` unless absent or None (0 and 0.0 are kept)."""
    value = options.get(key)
    return default if value is None else value


def compact(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Drop None values so they are not sent to the vendor."""
    return {key: value for key, value in mapping.items() if value is not None}


def dig(data: Any, *path: Any) -> Any:
    """Follow ``path`` through nested dicts and lists; None when a step is missing."""
    for key in path:
        if isinstance(data, dict):
            data = data.get(key)
        elif isinstance(data, list) and isinstance(key, int) and -len(data) <= key < len(data):
            data = data[key]
        else:
            return None
        if data is None:
            return None
    return data


def as_dict(raw: Any) -> dict[str, Any] | None:
    """Convert an SDK response model to a dict in the vendor's wire shape."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    dump = getattr(raw, "model_dump", None)
    if callable(dump):
        return dump(mode="json", by_alias=True, exclude_none=True)
    return None


def is_message_list(prompt: Any) -> bool:
    """True for a non-empty list of ``{"role", "content"}`` dicts."""
    return (
        isinstance(prompt, list)
        and bool(prompt)
        and all(
            isinstance(m, dict) and m.get("role") and m.get("content") is not None
            for m in prompt
        )
    )


def chat_messages(prompt: Any, system_prompt: str | None = None) -> list[dict[str, Any]]:
    """
    OpenAI-shaped message list.

    A well-formed message list passes through unchanged; anything else
    becomes a single user message, preceded by a system message when
    ``system_prompt`` is set.
    """
    if is_message_list(prompt):
        return [{str(k): v for k, v in m.items()} for m in prompt]

    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": str(prompt)})
    return messages


def augment_prompt(prompt: Any, schema: Any) -> Any:
    """Apply ``format_prompt`` to a string prompt or to the last message of a list."""
    if not is_message_list(prompt):
        return format_prompt(str(prompt), schema)

    messages = [{str(k): v for k, v in m.items()} for m in prompt]
    last = messages[-1]
    messages[-1] = {**last, "content": format_prompt(str(last["content"]), schema)}

    if not any(m["role"] == "system" for m in messages):
        messages.insert(0, {"role": "system", "content": JSON_SYSTEM_PROMPT})
    return messages


def parse_arguments(tool_name: str, arguments: Any) -> dict[str, Any]:
    """Tool-call arguments arrive either as a dict or as a JSON-encoded string."""
    if arguments is None:
        return {}
    if isinstance(arguments, dict):
        return arguments
    try:
        parsed = json.loads(arguments)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ToolValidationError(f"Could not parse arguments for '{tool_name}': {exc}")
    if not isinstance(parsed, dict):
        raise ToolValidationError(f"Arguments for '{tool_name}' must be a JSON object")
    return parsed


def error_detail(body: Any) -> str | None:
    """
    Best-effort vendor error message from a response body.

    Understands ``{"error": {"message": ...}}``, ``{"error": "..."}``,
    ``{"message": ...}``, arrays of such objects and their JSON text.
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        if not body.strip():
            return None
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return body
    if isinstance(body, list):
        body = body[0] if body else None
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict):
            message = error.get("message")
            return str(message) if message else None
        return str(error) if error else None
    if isinstance(body, str):
        return body or None
    return None


def api_error(vendor: str, exc: BaseException, status: int | None = None, body: Any = None) -> ApiError:
    """Build the ``ApiError`` for a failed request, preferring vendor detail."""
    detail = error_detail(body)
    if detail:
        return ApiError(f"{vendor} API error: {detail}", status)
    return ApiError(f"{vendor} API request failed: {exc}", status)


def transport_error(vendor: str, exc: BaseException) -> ApiError:
    """Map a bare httpx failure raised below any vendor SDK."""
    if isinstance(exc, httpx.HTTPStatusError):
        return api_error(vendor, exc, exc.response.status_code, exc.response.text)
    return api_error(vendor, exc)
