"""Schema registry endpoints for clients that validate payloads themselves."""

from typing import Any

from fastapi import APIRouter, Body

from src.schemas.registry import get_schema, json_schema, schema_names, validate

router = APIRouter(prefix="/schemas", tags=["schemas"])


@router.get("")
def list_schemas():
    """Names of all registered schemas."""
    return {"schemas": schema_names()}


@router.get("/{name}")
def get_json_schema(name: str):
    """JSON Schema for one registered schema."""
    return json_schema(name)


@router.post("/{name}/validate")
def validate_payload(name: str, payload: Any = Body(...)):
    """Dry-run a payload against a schema without performing any action."""
    value = validate(get_schema(name), payload)
    return {"valid": True, "value": value.model_dump(mode="json")}
