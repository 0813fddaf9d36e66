"""FastAPI dependencies for authentication and data access."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.config import Settings
from src.database import get_db
from src.exceptions import Forbidden
from src.repository import Repository
from src.services.auth import Identity, IdentityResolver
from src.services.llm import LLMService


def get_settings_dep(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


def get_repository(db: Annotated[Session, Depends(get_db)]) -> Repository:
    """Repository bound to the request's database session."""
    return Repository(db)


def get_identity_resolver(request: Request) -> IdentityResolver:
    return request.app.state.identity_resolver


def get_identity(
    request: Request,
    repo: Annotated[Repository, Depends(get_repository)],
    resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
) -> Identity:
    """Resolve the caller's identity; raises Unauthenticated before the handler runs."""
    return resolver.resolve_identity(request, repo)


def require_verified(identity: Annotated[Identity, Depends(get_identity)]) -> Identity:
    """Like get_identity, but also requires a verified email address."""
    if not identity.email_verified:
        raise Forbidden("Email address must be verified to use this endpoint")
    return identity


def get_llm_service(settings: Annotated[Settings, Depends(get_settings_dep)]) -> LLMService:
    """Get LLM service instance."""
    return LLMService(settings)


CurrentIdentity = Annotated[Identity, Depends(get_identity)]
VerifiedIdentity = Annotated[Identity, Depends(require_verified)]
Repo = Annotated[Repository, Depends(get_repository)]
AppSettings = Annotated[Settings, Depends(get_settings_dep)]
