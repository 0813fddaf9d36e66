"""Health check schemas."""

from pydantic import BaseModel

from src.schemas.registry import register


@register("health.response")
class HealthResponse(BaseModel):
    status: str
    environment: str
    database: str
