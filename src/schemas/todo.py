"""Todo schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.enums import Priority
from src.schemas.registry import register


@register("todo.create")
class TodoCreate(BaseModel):
    """Create a new todo."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None


@register("todo.update")
class TodoUpdate(BaseModel):
    """Update a todo. Only fields present in the payload are changed."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    priority: Priority | None = None
    due_date: date | None = None
    completed: bool | None = None


@register("todo.response")
class TodoResponse(BaseModel):
    """Todo response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    title: str
    description: str | None
    completed: bool
    completed_at: datetime | None
    priority: Priority
    due_date: date | None
    created_at: datetime
    updated_at: datetime


class TodoDeleted(BaseModel):
    """Number of todos removed by a delete request."""

    deleted: int
