"""Schema validation and parameter-schema export.

Manifesto:
    Operations must validate what goes in and what comes out.  This module
    wraps pydantic so any type pydantic understands (models, annotated
    scalars, typed dicts, containers) can serve as an operation schema, and
    so the same schema can be exported as the JSON Schema document that
    function-calling protocols expect.

Tags:
    openkit, schema, validation, pydantic, json-schema

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from openkit.errors import SchemaError, ValidationError

_DIRECTION_PHRASES = {
    "input": "Invalid input for operation",
    "output": "Invalid output from operation",
}


class Schema:
    """
    A validated shape backed by a pydantic ``TypeAdapter``.

    Example:
        >>> from pydantic import BaseModel
        >>> class Greeting(BaseModel):
        ...     name: str
        >>> Schema(Greeting).validate({"name": "Ada"}).name
        'Ada'
    """

    def __init__(self, spec: Any):
        self.spec = spec
        self._adapter: TypeAdapter[Any] = TypeAdapter(spec)

    @classmethod
    def coerce(cls, spec: Any) -> Schema | None:
        """Return ``spec`` as a Schema; ``None`` stays ``None``."""
        if spec is None or isinstance(spec, Schema):
            return spec
        return cls(spec)

    def validate(self, value: Any) -> Any:
        """Validate ``value``; raises pydantic's ValidationError on mismatch."""
        return self._adapter.validate_python(value)

    def json_schema(self) -> dict[str, Any]:
        return self._adapter.json_schema()

    def __repr__(self) -> str:
        name = getattr(self.spec, "__name__", None) or repr(self.spec)
        return f"Schema({name})"


def validate(
    schema: Schema | None,
    value: Any,
    *,
    operation: str,
    direction: str = "input",
) -> Any:
    """
    Validate ``value`` against ``schema`` on behalf of ``operation``.

    No schema means no validation: the value is returned unchanged.

    Raises:
        ValidationError: naming the operation and every offending field
    """
    if schema is None:
        return value

    try:
        return schema.validate(value)
    except PydanticValidationError as e:
        issues = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in e.errors()
        ]
        phrase = _DIRECTION_PHRASES.get(direction, _DIRECTION_PHRASES["input"])
        raise ValidationError(
            f'{phrase} "{operation}": {e}',
            operation=operation,
            direction=direction,
            issues=issues,
            cause=e,
        ) from e


def to_parameter_schema(schema: Schema | None) -> dict[str, Any]:
    """
    Build the protocol parameter document for ``schema``.

    Only object-shaped schemas can describe function parameters; anything
    else raises SchemaError.  Nested model definitions are kept under
    ``$defs`` so ``$ref`` pointers stay resolvable.
    """
    if schema is None:
        return {"type": "object", "properties": {}}

    document = schema.json_schema()
    if document.get("type") != "object":
        raise SchemaError(f"{schema!r} does not describe an object; function parameters must be an object")

    parameters: dict[str, Any] = {
        "type": "object",
        "properties": document.get("properties", {}),
    }
    if document.get("required"):
        parameters["required"] = list(document["required"])
    if "additionalProperties" in document:
        parameters["additionalProperties"] = document["additionalProperties"]
    if document.get("$defs"):
        parameters["$defs"] = document["$defs"]
    return parameters
