"""
Structured output: coerce an LLM response into schema-valid data.

``format_prompt()`` is the text contract every provider's
``generate_object()`` uses to ask for JSON; ``StructuredOutput.generate()``
runs the provider and validates what comes back.
"""

from typing import Any, TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from last_llm.exceptions import ValidationError
from last_llm.schema import to_json_schema, validation_errors, validator_for

if TYPE_CHECKING:
    from last_llm.client import Client


DEFAULT_TEMPERATURE = 0.2


def format_prompt(prompt: str, schema: Any) -> str:
    """Append the JSON-only instruction and the rendered schema to ``prompt``."""
    schema_json = to_json_schema(schema)

    return (
        f"{prompt}\n"
        "\n"
        "Respond with valid JSON that matches the following schema:\n"
        "\n"
        f"{schema_json}\n"
        "\n"
        "Ensure your response is a valid JSON object that strictly follows this schema.\n"
    )


class StructuredOutput:
    """Generates objects through a client's provider and validates them."""

    format_prompt = staticmethod(format_prompt)

    def __init__(self, client: "Client"):
        self._client = client

    def generate(self, prompt: Any, schema: Any, options: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Generate an object for ``prompt`` and validate it against ``schema``.

        Args:
            prompt: A string or a list of ``{"role", "content"}`` messages.
            schema: A JSON Schema dict, a model class from ``schema.create()``
                or an object exposing a ``json_schema()`` renderer.
            options: Generation options; ``temperature`` defaults to 0.2.

        Returns:
            The parsed object, unchanged.

        Raises:
            ValidationError: The parsed object does not satisfy ``schema``.
            ApiError: The provider call failed or returned invalid JSON.
        """
        options = {"temperature": DEFAULT_TEMPERATURE, **{str(k): v for k, v in (options or {}).items()}}
        validator = validator_for(schema)

        result = self._client.provider.generate_object(prompt, schema, options)

        try:
            validator.model_validate(result)
        except PydanticValidationError as exc:
            errors = validation_errors(exc)
            raise ValidationError(f"Generated object failed validation: {errors}", errors=errors) from exc

        return result
