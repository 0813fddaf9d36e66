"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.api import ai, auth, health, schemas, todos
from src.config import Settings, get_settings
from src.database import Database
from src.exceptions import register_exception_handlers
from src.logging_config import REQUEST_ID_HEADER, configure_logging, set_request_id
from src.routing import include_routers
from src.services.auth import SessionIdentityResolver

logger = logging.getLogger(__name__)

# Mount order is dispatch order
ROUTERS = [health.router, auth.router, todos.router, ai.router, schemas.router]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(f"Starting Todo API in {app.state.settings.environment} mode")
    yield
    logger.info("Shutting down Todo API")
    app.state.database.dispose()


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the application.

    Settings are resolved here, so missing required environment variables fail
    at process start rather than on the first request.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Todo API",
        description="Todo service with session auth, shared schemas and an AI prompt endpoint",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.identity_resolver = SessionIdentityResolver(settings)

    register_exception_handlers(app)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    # CORS middleware for development
    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Register routers
    include_routers(app, ROUTERS)
    return app


app = create_app()
