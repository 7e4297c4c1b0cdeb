"""Tests for StructuredOutput.format_prompt and StructuredOutput.generate."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from last_llm import ApiError, ValidationError, schema
from last_llm.structured_output import StructuredOutput, format_prompt


def _client(result=None, error=None):
    provider = MagicMock()
    provider.generate_object.return_value = result
    if error is not None:
        provider.generate_object.side_effect = error
    return SimpleNamespace(provider=provider)


def test_format_prompt_text(user_schema):
    expected = (
        "Describe a user\n"
        "\n"
        "Respond with valid JSON that matches the following schema:\n"
        "\n"
        f"{json.dumps(user_schema, indent=2)}\n"
        "\n"
        "Ensure your response is a valid JSON object that strictly follows this schema.\n"
    )
    assert StructuredOutput.format_prompt("Describe a user", user_schema) == expected
    assert format_prompt("Describe a user", user_schema) == expected


def test_format_prompt_with_model(user_schema):
    rendered = format_prompt("Describe a user", schema.create(user_schema))
    assert '"required": [\n    "name",\n    "age"\n  ]' in rendered


def test_generate_returns_valid_object(user_schema):
    result = {"name": "Ada", "age": 36, "nickname": "Countess"}
    client = _client(result)

    assert StructuredOutput(client).generate("Invent a person", user_schema) is result


def test_generate_defaults_temperature(user_schema):
    client = _client({"name": "Ada", "age": 36})
    StructuredOutput(client).generate("Invent a person", user_schema, {"model": "gpt-4o"})

    prompt, passed_schema, options = client.provider.generate_object.call_args.args
    assert prompt == "Invent a person"
    assert passed_schema is user_schema
    assert options == {"temperature": 0.2, "model": "gpt-4o"}


def test_generate_keeps_caller_temperature(user_schema):
    client = _client({"name": "Ada", "age": 36})
    StructuredOutput(client).generate("x", user_schema, {"temperature": 0.8})
    assert client.provider.generate_object.call_args.args[2]["temperature"] == 0.8


def test_generate_rejects_wrong_type(user_schema):
    client = _client({"name": "Ada", "age": "thirty"})

    with pytest.raises(ValidationError, match="Generated object failed validation") as exc_info:
        StructuredOutput(client).generate("Invent a person", user_schema)

    assert list(exc_info.value.errors) == ["age"]


def test_generate_rejects_missing_field(user_schema):
    client = _client({"age": 1})

    with pytest.raises(ValidationError) as exc_info:
        StructuredOutput(client).generate("Invent a person", user_schema)

    assert "name" in exc_info.value.errors


def test_generate_with_prebuilt_model(user_schema):
    model = schema.create(user_schema)
    client = _client({"name": "Ada", "age": 1})
    assert StructuredOutput(client).generate("x", model) == {"name": "Ada", "age": 1}


def test_generate_propagates_api_errors(user_schema):
    client = _client(error=ApiError("Invalid JSON response: Expecting value", None))
    with pytest.raises(ApiError, match="Invalid JSON response"):
        StructuredOutput(client).generate("x", user_schema)


def test_generate_with_schema_renderer(user_schema):
    class Renderable:
        def json_schema(self):
            return user_schema

    client = _client({"name": "Ada"})
    with pytest.raises(ValidationError) as exc_info:
        StructuredOutput(client).generate("x", Renderable())
    assert list(exc_info.value.errors) == ["age"]


def test_generate_rejects_unusable_schema():
    with pytest.raises(TypeError, match="Cannot build a validator from str"):
        StructuredOutput(_client({})).generate("x", "not a schema")
