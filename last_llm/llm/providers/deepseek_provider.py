"""
Deepseek LLM provider.

Deepseek exposes an OpenAI-compatible chat completions API at
https://api.deepseek.com, so requests go through the ``openai`` SDK.
Deepseek models tend to wrap JSON in Markdown fences; ``parse_object``
strips one fence before giving up.
"""

import json
import re
from typing import Any, Mapping

from last_llm.exceptions import ApiError
from last_llm.llm.providers import constants
from last_llm.llm.providers.openai_provider import OpenAICompatibleProvider

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    match = _CODE_FENCE.match(text.strip())
    return match.group(1) if match else text


class DeepseekProvider(OpenAICompatibleProvider):
    """Provider for Deepseek's chat completions API."""

    VENDOR = "Deepseek"
    BASE_URL = "https://api.deepseek.com"
    DEFAULT_MODEL = "deepseek-chat"

    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_TOP_P = 0.8

    def __init__(self, config: Mapping[str, Any] | None = None, logger: Any = None):
        super().__init__(constants.DEEPSEEK, config, logger)

    def parse_object(self, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            try:
                return json.loads(strip_code_fence(text))
            except json.JSONDecodeError:
                self.logger.error(f"{self.name}: JSON parsing error: {exc}")
                raise ApiError(f"Invalid JSON response: {exc}") from exc
