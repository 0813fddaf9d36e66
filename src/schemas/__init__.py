"""Pydantic schemas for API requests and responses."""

from src.schemas.ai import AIPrompt, AIResponse
from src.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse, VerifyRequest
from src.schemas.health import HealthResponse
from src.schemas.registry import get_schema, json_schema, register, schema_names, validate
from src.schemas.todo import TodoCreate, TodoDeleted, TodoResponse, TodoUpdate

__all__ = [
    "AIPrompt",
    "AIResponse",
    "AuthResponse",
    "HealthResponse",
    "TodoCreate",
    "TodoDeleted",
    "TodoResponse",
    "TodoUpdate",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "VerifyRequest",
    "get_schema",
    "json_schema",
    "register",
    "schema_names",
    "validate",
]
