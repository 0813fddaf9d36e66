"""Registry of the payload schemas shared by handlers and external callers.

Every request and response shape is a Pydantic model registered here under a
stable public name. ``validate`` is the single entry point for checking an
untyped payload against one of them; the FastAPI request-validation handler
reports errors through the same ``field_errors`` helper so both paths agree.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.exceptions import NotFound, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Location prefixes FastAPI adds in front of the field name
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}

_schemas: dict[str, type[BaseModel]] = {}


def register(name: str) -> Callable[[type[ModelT]], type[ModelT]]:
    """Class decorator recording a schema under a public name."""

    def decorator(schema: type[ModelT]) -> type[ModelT]:
        existing = _schemas.get(name)
        if existing is not None and existing is not schema:
            raise ValueError(f"Schema name '{name}' is already registered to {existing.__name__}")
        _schemas[name] = schema
        return schema

    return decorator


def get_schema(name: str) -> type[BaseModel]:
    """Look up a registered schema by name."""
    try:
        return _schemas[name]
    except KeyError:
        raise NotFound(f"Schema '{name}' not found") from None


def schema_names() -> list[str]:
    return sorted(_schemas)


def json_schema(name: str) -> dict[str, Any]:
    """JSON Schema of a registered schema, for callers outside Python."""
    return get_schema(name).model_json_schema()


def field_errors(errors: Iterable[Mapping[str, Any]]) -> list[dict[str, str]]:
    """Flatten Pydantic error dicts into ``{"field", "message", "type"}`` entries."""
    result = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        result.append(
            {
                "field": ".".join(loc) if loc else "payload",
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )
    return result


def validate(schema: type[ModelT] | str, payload: Any) -> ModelT:
    """Check a raw payload against a schema.

    Returns the typed model with defaults filled in, or raises ValidationError
    listing every field that broke a constraint.
    """
    model = get_schema(schema) if isinstance(schema, str) else schema
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(field_errors(e.errors())) from None
