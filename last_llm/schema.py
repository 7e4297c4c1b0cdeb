"""
Schema translation between JSON-Schema-like dicts and pydantic validators.

A structured-output contract is described the way LLM vendors expect it::

    {
        "type": "object",
        "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
        "required": ["name", "age"],
    }

``create()`` turns that description into a pydantic model class used to
validate parsed responses, ``to_json_schema()`` renders either form back
into JSON text for prompts. The reverse mapping from a model class is
best-effort: nested objects come back as ``{"type": "object"}`` without
their properties.
"""

import json
import keyword
import types
import typing
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    create_model,
)
from pydantic import ValidationError as PydanticValidationError


def _filled(value: Any) -> Any:
    if value is None:
        raise ValueError("must be filled")
    return value


# Untyped property: only requires the key to be present with a non-null value.
Present = Annotated[Any, AfterValidator(_filled)]

# Maps JSON Schema primitive types to strict pydantic types
_JSON_TO_PYTHON: dict[str, Any] = {
    "string": StrictStr,
    "integer": StrictInt,
    "number": StrictFloat,
    "boolean": StrictBool,
}

_PYTHON_TO_JSON: tuple[tuple[type, str], ...] = (
    (bool, "boolean"),
    (str, "string"),
    (int, "integer"),
    (float, "number"),
)

_MODEL_CONFIG = ConfigDict(extra="ignore", protected_namespaces=())


def create(schema_def: dict[str, Any]) -> type[BaseModel]:
    """
    Build a pydantic model class that validates data against ``schema_def``.

    Required properties are non-nullable; optional properties accept null
    and default to None. Object properties get one level of typed nested
    properties, anything deeper is only checked for presence.
    """
    if not isinstance(schema_def, dict):
        raise TypeError(f"Schema definition must be a dict, got {type(schema_def).__name__}.")
    title = str(schema_def.get("title") or "GeneratedObject")
    return _model(title, schema_def, depth=0)


def from_json_schema(json_schema: str) -> type[BaseModel]:
    """Parse a JSON Schema document and build its validator."""
    return create(json.loads(json_schema))


def to_json_schema(schema: Any) -> str:
    """
    Render a schema as pretty-printed JSON Schema text.

    Accepts a JSON Schema dict (serialized as-is), any object exposing a
    ``json_schema()`` renderer, or a model class produced by ``create()``.
    """
    if isinstance(schema, dict):
        return json.dumps(schema, indent=2)

    renderer = getattr(schema, "json_schema", None)
    if callable(renderer):
        return json.dumps(renderer(), indent=2)

    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return json.dumps(_describe_model(schema), indent=2)

    raise TypeError(f"Cannot render {type(schema).__name__} as a JSON schema.")


def validator_for(schema: Any) -> type[BaseModel]:
    """
    Return the validator model for ``schema``.

    Accepts the same inputs as ``to_json_schema()``: a JSON Schema dict, an
    existing model class, or an object exposing a ``json_schema()`` renderer.
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema
    if isinstance(schema, dict):
        return create(schema)

    renderer = getattr(schema, "json_schema", None)
    if callable(renderer):
        return create(renderer())

    raise TypeError(
        f"Cannot build a validator from {type(schema).__name__}; "
        "expected a JSON Schema dict, a model class or a json_schema() renderer."
    )


def validation_errors(exc: PydanticValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors into a ``{field: [messages]}`` mapping."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, []).append(error["msg"])
    return errors


# ------------------------------------------------------------------
# JSON Schema -> model
# ------------------------------------------------------------------

def _model(name: str, schema_def: dict[str, Any], depth: int) -> type[BaseModel]:
    properties = schema_def.get("properties") or {}
    required = {str(p) for p in schema_def.get("required") or []}

    taken = {str(p) for p in properties}
    fields: dict[str, Any] = {}
    for index, (prop_name, prop_def) in enumerate(properties.items()):
        prop_name = str(prop_name)
        rule = _rule(prop_name, prop_def or {}, depth)
        field_name = _field_name(prop_name, index, taken)
        taken.add(field_name)

        if prop_name in required:
            fields[field_name] = (rule, Field(alias=prop_name))
        elif rule is Present:
            fields[field_name] = (Any, Field(default=None, alias=prop_name))
        else:
            fields[field_name] = (Optional[rule], Field(default=None, alias=prop_name))

    return create_model(name, __config__=_MODEL_CONFIG, **fields)


def _rule(prop_name: str, prop_def: dict[str, Any], depth: int) -> Any:
    prop_type = prop_def.get("type")

    if prop_type in _JSON_TO_PYTHON:
        return _JSON_TO_PYTHON[prop_type]

    if depth > 0:
        return Present

    if prop_type == "array":
        items_type = (prop_def.get("items") or {}).get("type")
        if items_type in _JSON_TO_PYTHON:
            return list[_JSON_TO_PYTHON[items_type]]
        if items_type == "object":
            return list[dict]
        return list[Any]

    if prop_type == "object":
        model_name = "".join(w.capitalize() for w in prop_name.split("_")) or "Nested"
        return _model(model_name, prop_def, depth + 1)

    return Present


def _field_name(prop_name: str, index: int, taken: set[str]) -> str:
    """Python-safe attribute name; the original property name lives in the alias."""
    if (
        prop_name.isidentifier()
        and not keyword.iskeyword(prop_name)
        and not prop_name.startswith(("_", "model_"))
        and not hasattr(BaseModel, prop_name)
    ):
        return prop_name

    # fallback names must not shadow another property
    candidate = f"field_{index}"
    while candidate in taken:
        candidate += "_"
    return candidate


# ------------------------------------------------------------------
# model -> JSON Schema
# ------------------------------------------------------------------

def _describe_model(model: type[BaseModel]) -> dict[str, Any]:
    json_schema: dict[str, Any] = {"type": "object", "properties": {}, "required": []}

    for name, field in model.model_fields.items():
        prop_name = field.alias or name
        if field.is_required():
            json_schema["required"].append(prop_name)
        json_schema["properties"][prop_name] = _describe_annotation(field.annotation)

    return json_schema


def _describe_annotation(annotation: Any) -> dict[str, Any]:
    annotation = _unwrap(annotation)

    primitive = _primitive(annotation)
    if primitive:
        return {"type": primitive}

    if annotation is list or typing.get_origin(annotation) is list:
        args = typing.get_args(annotation)
        item = _unwrap(args[0]) if args else Any
        if _is_object(item):
            return {"type": "array", "items": {"type": "object"}}
        item_type = _primitive(item)
        return {"type": "array", "items": {"type": item_type} if item_type else {}}

    if _is_object(annotation):
        return {"type": "object"}

    return {}


def _unwrap(annotation: Any) -> Any:
    """Strip ``Optional[...]`` and ``Annotated[...]`` wrappers."""
    while True:
        origin = typing.get_origin(annotation)
        if origin is Annotated:
            annotation = typing.get_args(annotation)[0]
        elif origin is Union or origin is types.UnionType:
            args = [a for a in typing.get_args(annotation) if a is not type(None)]
            if len(args) != 1:
                return annotation
            annotation = args[0]
        else:
            return annotation


def _primitive(annotation: Any) -> str | None:
    for py_type, json_type in _PYTHON_TO_JSON:
        if annotation is py_type:
            return json_type
    return None


def _is_object(annotation: Any) -> bool:
    if annotation is dict or typing.get_origin(annotation) is dict:
        return True
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)
