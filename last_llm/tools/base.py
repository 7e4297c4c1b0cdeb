"""
Tool definition: a caller-defined function exposed to an LLM.

A ``Tool`` carries everything a vendor adapter needs to advertise the
function (name, description, JSON Schema parameters) and the Python callable
that implements it. Vendor adapters render it with ``format_tool()`` and run
it from a vendor response with ``execute_tool()``.

Usage::

    from last_llm import Tool

    calculator = Tool(
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
        function=lambda p: {"result": p["a"] + p["b"]},
    )

    calculator.call({"operation": "add", "a": "5", "b": 3})  # {"result": 8.0}
"""

from dataclasses import dataclass
from typing import Any, Callable

from jsonschema import SchemaError
from jsonschema.validators import validator_for

from last_llm.exceptions import ToolValidationError
from last_llm.logger import get_logger


@dataclass
class Tool:
    """
    A callable function exposed to an LLM.

    Attributes:
        name: Tool name, unique within a calling context.
        description: Description shown to the LLM to guide tool selection.
        parameters: JSON Schema describing an object with ``properties`` and
                    an optional ``required`` list.
        function: Callable receiving the validated parameter dict and
                  returning a result dict.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    function: Callable[[dict[str, Any]], Any]

    def __post_init__(self) -> None:
        invalid = []
        if not isinstance(self.name, str) or not self.name:
            invalid.append("name")
        if not isinstance(self.description, str) or not self.description:
            invalid.append("description")
        if not isinstance(self.parameters, dict) or not self.parameters:
            invalid.append("parameters")
        if not callable(self.function):
            invalid.append("function")

        if invalid:
            raise ValueError(f"Missing or invalid required attributes: {', '.join(invalid)}")

        try:
            validator_for(self.parameters).check_schema(self.parameters)
        except SchemaError as exc:
            raise ValueError(f"Tool '{self.name}' parameters are not a valid JSON Schema: {exc.message}") from exc

    @property
    def properties(self) -> dict[str, dict[str, Any]]:
        return self.parameters.get("properties") or {}

    @property
    def required(self) -> list[str]:
        return [str(p) for p in self.parameters.get("required") or []]

    def call(self, params: dict[str, Any] | None = None) -> Any:
        """
        Validate ``params``, coerce string values to their declared types and
        invoke the function.

        Raises:
            ToolValidationError: If a required parameter is missing or a value
                is outside its enum. The function is not called.
        """
        params = {str(key): value for key, value in (params or {}).items()}
        logger = get_logger()
        logger.tool_call(self.name, params)

        self._validate(params)
        result = self.function(self._coerce(params))

        logger.tool_result(self.name, result)
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _validate(self, params: dict[str, Any]) -> None:
        for required_param in self.required:
            if required_param not in params:
                raise ToolValidationError(
                    f"Missing required parameter: {required_param}",
                    errors={required_param: ["is missing"]},
                )

        for prop_name, prop_schema in self.properties.items():
            allowed = prop_schema.get("enum")
            if prop_name not in params or not isinstance(allowed, list):
                continue

            value = params[prop_name]
            if value not in allowed:
                raise ToolValidationError(
                    f"Invalid value for {prop_name}: {value}. "
                    f"Allowed values: {', '.join(str(v) for v in allowed)}",
                    errors={prop_name: [f"must be one of: {', '.join(str(v) for v in allowed)}"]},
                )

    def _coerce(self, params: dict[str, Any]) -> dict[str, Any]:
        converted = dict(params)

        for prop_name, prop_schema in self.properties.items():
            if prop_name not in params:
                continue

            value = params[prop_name]
            prop_type = prop_schema.get("type")

            if prop_type in ("number", "integer"):
                if isinstance(value, str):
                    try:
                        value = float(value)
                    except ValueError:
                        raise ToolValidationError(
                            f"Invalid value for {prop_name}: {value!r} is not a number",
                            errors={prop_name: ["must be a number"]},
                        )
                if prop_type == "integer" and isinstance(value, float):
                    value = int(value)
                converted[prop_name] = value

            elif prop_type == "boolean" and isinstance(value, str):
                converted[prop_name] = value.lower() == "true"

        return converted
