"""Todo API endpoints.

Every query is filtered by the caller's user id, so a todo owned by someone
else behaves exactly like one that does not exist.
"""

from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import CurrentIdentity, Repo
from src.exceptions import NotFound
from src.models.todo import Todo
from src.schemas.todo import TodoCreate, TodoDeleted, TodoResponse, TodoUpdate
from src.services.auth import utcnow

router = APIRouter(prefix="/todos", tags=["todos"])


def get_user_todo(repo: Repo, todo_id: int, identity: CurrentIdentity) -> Todo:
    """Get a todo owned by the caller."""
    todo = repo.get(Todo, {"id": todo_id, "owner_id": identity.user_id})
    if todo is None:
        raise NotFound("Todo not found")
    return todo


@router.get("", response_model=list[TodoResponse])
def get_todos(
    identity: CurrentIdentity,
    repo: Repo,
    completed: Annotated[bool | None, Query(description="Filter by completion")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """List the caller's todos, newest first."""
    filters: dict = {"owner_id": identity.user_id}
    if completed is not None:
        filters["completed"] = completed
    return repo.select(Todo, filters, order_by=["-created_at", "-id"], limit=limit, offset=offset)


@router.post("", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
def create_todo(todo_data: TodoCreate, identity: CurrentIdentity, repo: Repo):
    """Create a new todo."""
    return repo.insert(
        Todo,
        {
            "owner_id": identity.user_id,
            "title": todo_data.title,
            "description": todo_data.description,
            "priority": todo_data.priority.value,
            "due_date": todo_data.due_date,
        },
    )


@router.get("/{todo_id}", response_model=TodoResponse)
def get_todo(todo_id: int, identity: CurrentIdentity, repo: Repo):
    """Get a specific todo."""
    return get_user_todo(repo, todo_id, identity)


@router.patch("/{todo_id}", response_model=TodoResponse)
def update_todo(todo_id: int, todo_data: TodoUpdate, identity: CurrentIdentity, repo: Repo):
    """Update the fields present in the payload."""
    values = todo_data.model_dump(exclude_unset=True)
    # Not-null columns: an explicit null leaves the stored value alone
    for field in ("title", "priority", "completed"):
        if field in values and values[field] is None:
            del values[field]
    if "priority" in values:
        values["priority"] = values["priority"].value
    completed = values.pop("completed", None)

    filters = {"id": todo_id, "owner_id": identity.user_id}
    with repo.transaction():
        if repo.count(Todo, filters) == 0:
            raise NotFound("Todo not found")
        if values:
            repo.update(Todo, filters, values)
        if completed is not None:
            # Only a change of state moves completed_at
            repo.update(
                Todo,
                {**filters, "completed__ne": completed},
                {"completed": completed, "completed_at": utcnow() if completed else None},
            )
    return get_user_todo(repo, todo_id, identity)


@router.delete("/{todo_id}", response_model=TodoDeleted)
def delete_todo(todo_id: int, identity: CurrentIdentity, repo: Repo):
    """Delete a todo; deleting one that is already gone reports zero."""
    return TodoDeleted(deleted=repo.delete(Todo, {"id": todo_id, "owner_id": identity.user_id}))
