"""Tests for the Deepseek adapter."""

from unittest.mock import MagicMock

import httpx
import openai
import pytest

from last_llm import ApiError, ConfigurationError
from last_llm.llm.providers import DeepseekProvider
from last_llm.llm.providers.deepseek_provider import strip_code_fence


def _completion(content):
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def provider():
    provider = DeepseekProvider({"api_key": "ds-test"})
    provider.client = MagicMock()
    return provider


def test_defaults(provider):
    body = provider.build_request("Hello", {})
    assert body["model"] == "deepseek-chat"
    assert body["temperature"] == 0.7
    assert body["top_p"] == 0.8
    assert "max_tokens" not in body


def test_no_json_response_format(provider):
    assert "response_format" not in provider.build_request("Hi", {}, json_mode=True)


def test_base_url():
    provider = DeepseekProvider({"api_key": "ds-test"})
    assert provider.setup_auth()["base_url"] == "https://api.deepseek.com"
    assert str(provider.client.base_url).startswith("https://api.deepseek.com")


def test_requires_api_key():
    with pytest.raises(ConfigurationError, match="API key is required for deepseek provider"):
        DeepseekProvider({})


def test_generate_text(provider):
    provider.client.chat.completions.create.return_value = _completion("Hi from Deepseek")
    assert provider.generate_text("Hello") == "Hi from Deepseek"


def test_generate_object_strips_code_fence(provider):
    provider.client.chat.completions.create.return_value = _completion('```json\n{"name": "Ada"}\n```')
    assert provider.generate_object("x", {"type": "object"}) == {"name": "Ada"}


def test_generate_object_invalid_json(provider):
    provider.client.chat.completions.create.return_value = _completion("```json\nnot json\n```")
    with pytest.raises(ApiError, match="Invalid JSON response"):
        provider.generate_object("x", {"type": "object"})


def _status_error(status, message):
    return openai.APIStatusError(
        message,
        response=httpx.Response(status, request=httpx.Request("POST", "https://api.deepseek.com/chat/completions")),
        body={"error": {"message": message, "type": "invalid_request_error"}},
    )


def test_status_error(provider):
    provider.client.chat.completions.create.side_effect = _status_error(402, "Insufficient Balance")

    with pytest.raises(ApiError) as exc_info:
        provider.generate_text("Hi")

    assert exc_info.value.status == 402
    assert exc_info.value.message == "Deepseek API error: Insufficient Balance"


def test_generate_object_status_error(provider):
    provider.client.chat.completions.create.side_effect = _status_error(503, "Server overloaded")

    with pytest.raises(ApiError) as exc_info:
        provider.generate_object("x", {"type": "object"})

    assert exc_info.value.status == 503
    assert exc_info.value.message == "Deepseek API error: Server overloaded"


@pytest.mark.parametrize(
    "text, expected",
    [
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": 1}\n```', '{"a": 1}'),
        ('  ```json {"a": 1} ```  ', '{"a": 1}'),
        ('{"a": 1}', '{"a": 1}'),
    ],
)
def test_strip_code_fence(text, expected):
    assert strip_code_fence(text) == expected
