"""Tests for the Ollama adapter."""

from unittest.mock import MagicMock

import httpx
import openai
import pytest
from openai.types.chat import ChatCompletion

from last_llm import ApiError, ConfigurationError
from last_llm.llm.providers import OllamaProvider


def _completion(content):
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def provider():
    provider = OllamaProvider({"host": "http://localhost:11434"})
    provider.client = MagicMock()
    return provider


def test_host_required_without_api_key():
    with pytest.raises(ConfigurationError, match="Ollama host is required when no API key is provided"):
        OllamaProvider({})


def test_api_key_without_host_is_accepted():
    provider = OllamaProvider({"api_key": "secret"})
    assert provider.host == "http://localhost:11434"


def test_keyless_client_uses_placeholder_and_v1_endpoint():
    provider = OllamaProvider({"host": "http://gpu-box:11434/"})
    auth = provider.setup_auth()

    assert auth["api_key"] == "ollama"
    assert auth["base_url"] == "http://gpu-box:11434/v1"
    assert str(provider.client.base_url).startswith("http://gpu-box:11434/v1")


def test_defaults(provider):
    body = provider.build_request("Hello", {})
    assert body["model"] == "llama3.2:latest"
    assert body["temperature"] == 0.7
    assert body["top_p"] == 0.7
    assert body["max_tokens"] == 24576


def test_generate_text(provider):
    provider.client.chat.completions.create.return_value = _completion("Hello from llama")
    assert provider.generate_text("Hi") == "Hello from llama"


def test_generate_object(provider):
    provider.client.chat.completions.create.return_value = _completion('{"city": "Oslo"}')
    assert provider.generate_object("Pick a city", {"type": "object"}) == {"city": "Oslo"}


def _status_error(status, message):
    return openai.APIStatusError(
        message,
        response=httpx.Response(status, request=httpx.Request("POST", "http://localhost:11434/v1/chat/completions")),
        body={"error": {"message": message, "type": "api_error"}},
    )


def test_status_error(provider):
    provider.client.chat.completions.create.side_effect = _status_error(404, "model \"llama3.2:latest\" not found")

    with pytest.raises(ApiError) as exc_info:
        provider.generate_text("Hi")

    assert exc_info.value.status == 404
    assert exc_info.value.message == 'Ollama API error: model "llama3.2:latest" not found'


def test_generate_object_status_error(provider):
    provider.client.chat.completions.create.side_effect = _status_error(500, "llama runner process has terminated")

    with pytest.raises(ApiError) as exc_info:
        provider.generate_object("Pick a city", {"type": "object"})

    assert exc_info.value.status == 500
    assert exc_info.value.message == "Ollama API error: llama runner process has terminated"


def test_format_tool(calculator):
    assert OllamaProvider.format_tool(calculator) == {
        "name": "calculator",
        "description": "Perform arithmetic",
        "parameters": calculator.parameters,
    }


def test_execute_tool_without_tool_name(calculator):
    assert OllamaProvider.execute_tool(calculator, _completion("The answer is 5.")) is None


def test_execute_tool_with_json_arguments(calculator):
    response = _completion('I will call calculator({"operation": "add", "a": 2, "b": 3}) now.')
    assert OllamaProvider.execute_tool(calculator, response) == {"result": 5}


def test_execute_tool_with_sdk_completion(calculator):
    response = ChatCompletion.model_validate({
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "llama3.2:latest",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": 'calculator({"operation": "add", "a": 1, "b": 2})'},
            }
        ],
    })
    assert OllamaProvider.execute_tool(calculator, response) == {"result": 3}
    assert OllamaProvider.extract_tool_call(response) == {
        "name": "calculator",
        "arguments": {"operation": "add", "a": 1, "b": 2},
    }


def test_execute_tool_with_braceless_arguments(calculator):
    response = {"message": {"content": 'calculator("operation": "subtract", "a": "10", "b": 4)'}}
    assert OllamaProvider.execute_tool(calculator, response) == {"result": 6.0}


def test_execute_tool_with_unparseable_arguments(calculator):
    assert OllamaProvider.execute_tool(calculator, _completion("calculator(two plus three)")) is None


def test_execute_tool_name_mentioned_without_call(calculator):
    assert OllamaProvider.execute_tool(calculator, _completion("I could use the calculator for that.")) is None


def test_extract_tool_call():
    response = _completion('Sure. weather({"city": "Oslo"})')
    assert OllamaProvider.extract_tool_call(response) == {"name": "weather", "arguments": {"city": "Oslo"}}
    assert OllamaProvider.extract_tool_call(_completion("no call here")) is None
