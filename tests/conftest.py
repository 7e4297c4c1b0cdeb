"""Shared fixtures for the last_llm test suite. No test touches the network."""

import logging

import pytest

import last_llm
from last_llm import Tool

ENV_VARIABLES = (
    "LAST_LLM_DEFAULT_PROVIDER",
    "LAST_LLM_DEFAULT_MODEL",
    "LAST_LLM_LOG_LEVEL",
    "LAST_LLM_TEST_MODE",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_AUTH_TOKEN",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "DEEPSEEK_API_KEY",
    "OLLAMA_HOST",
    "OLLAMA_API_KEY",
)


@pytest.fixture(autouse=True)
def fresh_state():
    """Fresh default configuration and untouched library logger for every test."""
    lib_logger = logging.getLogger("last_llm")
    level, handlers, propagate = lib_logger.level, list(lib_logger.handlers), lib_logger.propagate
    last_llm.reset_configuration()
    yield
    last_llm.reset_configuration()
    lib_logger.setLevel(level)
    lib_logger.handlers[:] = handlers
    lib_logger.propagate = propagate


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provider variables; anything set during the test is removed afterwards."""
    for name in ENV_VARIABLES:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def calculator():
    def run(params):
        if params["operation"] == "add":
            return {"result": params["a"] + params["b"]}
        return {"result": params["a"] - params["b"]}

    return Tool(
        name="calculator",
        description="Perform arithmetic",
        parameters={
            "type": "object",
            "properties": {
                "operation": {"type": "string", "enum": ["add", "subtract"]},
                "a": {"type": "number"},
                "b": {"type": "number"},
            },
            "required": ["operation", "a", "b"],
        },
        function=run,
    )


@pytest.fixture
def user_schema():
    return {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "age": {"type": "integer"},
            "email": {"type": "string"},
        },
        "required": ["name", "age"],
    }


@pytest.fixture
def offline_config():
    return last_llm.Configuration(default_provider="test", test_mode=True)
