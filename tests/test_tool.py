"""Tests for Tool construction, validation, coercion and invocation."""

import logging

import pytest

from last_llm import Tool, ToolValidationError


def _echo(params):
    return params


def _tool(properties, required=None):
    return Tool(
        name="echo",
        description="Echo the parameters",
        parameters={"type": "object", "properties": properties, "required": required or []},
        function=_echo,
    )


def test_enum_parameter():
    calc = Tool(
        name="calc",
        description="d",
        parameters={
            "type": "object",
            "properties": {"op": {"type": "string", "enum": ["add"]}},
            "required": ["op"],
        },
        function=lambda p: {"result": p["op"]},
    )

    assert calc.call({"op": "add"}) == {"result": "add"}
    with pytest.raises(ToolValidationError, match="Invalid value for op: subtract. Allowed values: add"):
        calc.call({"op": "subtract"})


def test_missing_required_parameter_blocks_call():
    calls = []
    tool = Tool(
        name="recorder",
        description="Record calls",
        parameters={"type": "object", "properties": {"x": {"type": "string"}}, "required": ["x"]},
        function=calls.append,
    )

    with pytest.raises(ToolValidationError, match="Missing required parameter: x") as exc_info:
        tool.call({})
    assert exc_info.value.errors == {"x": ["is missing"]}
    assert calls == []


def test_calculator(calculator):
    assert calculator.call({"operation": "add", "a": "5", "b": 3}) == {"result": 8.0}
    assert calculator.call({"operation": "subtract", "a": 5, "b": 3}) == {"result": 2}


@pytest.mark.parametrize(
    "prop_type, raw, expected",
    [
        ("number", "5", 5.0),
        ("number", "2.5", 2.5),
        ("number", 7, 7),
        ("integer", "5", 5),
        ("integer", "5.9", 5),
        ("integer", 3.0, 3),
        ("boolean", "true", True),
        ("boolean", "TRUE", True),
        ("boolean", "yes", False),
        ("boolean", "false", False),
        ("boolean", True, True),
        ("string", "5", "5"),
    ],
)
def test_coercion(prop_type, raw, expected):
    result = _tool({"value": {"type": prop_type}}).call({"value": raw})
    assert result["value"] == expected
    assert type(result["value"]) is type(expected)


def test_unparseable_number_is_rejected():
    with pytest.raises(ToolValidationError, match="not a number"):
        _tool({"value": {"type": "number"}}).call({"value": "five"})


def test_keys_are_canonicalized():
    class Key:
        def __str__(self):
            return "value"

    assert _tool({"value": {"type": "integer"}}).call({Key(): "4"}) == {"value": 4}


def test_undeclared_parameters_pass_through():
    assert _tool({"value": {"type": "string"}}).call({"value": "a", "extra": 1}) == {"value": "a", "extra": 1}


def test_call_without_params():
    assert _tool({"value": {"type": "string"}}).call() == {}


@pytest.mark.parametrize(
    "overrides, missing",
    [
        ({"name": ""}, "name"),
        ({"description": None}, "description"),
        ({"parameters": {}}, "parameters"),
        ({"function": "not callable"}, "function"),
    ],
)
def test_invalid_construction(overrides, missing):
    attributes = {
        "name": "t",
        "description": "d",
        "parameters": {"type": "object", "properties": {}},
        "function": _echo,
        **overrides,
    }
    with pytest.raises(ValueError, match=f"Missing or invalid required attributes: {missing}"):
        Tool(**attributes)


def test_every_invalid_attribute_is_named():
    with pytest.raises(ValueError, match="name, description, parameters, function"):
        Tool(name="", description="", parameters={}, function=None)


def test_parameters_must_be_valid_json_schema():
    with pytest.raises(ValueError, match="not a valid JSON Schema"):
        Tool(name="t", description="d", parameters={"type": "not-a-type"}, function=_echo)


def test_properties_and_required(calculator):
    assert set(calculator.properties) == {"operation", "a", "b"}
    assert calculator.required == ["operation", "a", "b"]


def test_calls_are_logged(calculator, caplog):
    caplog.set_level(logging.DEBUG, logger="last_llm")
    calculator.call({"operation": "add", "a": 1, "b": 2})

    assert 'TOOL_CALL  tool=calculator args={"operation": "add", "a": 1, "b": 2}' in caplog.text
    assert "TOOL_RESULT tool=calculator" in caplog.text
