"""Health check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.dependencies import AppSettings
from src.database import Database, get_database
from src.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(
    settings: AppSettings,
    database: Annotated[Database, Depends(get_database)],
):
    """Report liveness; answers 503 when the database cannot be reached."""
    database.ping()
    return HealthResponse(status="healthy", environment=settings.environment, database="ok")
