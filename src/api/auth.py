"""Authentication API endpoints."""

from fastapi import APIRouter, Request, status

from src.api.dependencies import AppSettings, CurrentIdentity, Repo
from src.exceptions import NotFound, Unauthenticated
from src.models.user import User
from src.schemas.auth import (
    AuthResponse,
    LogoutResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    VerificationIssued,
    VerifyRequest,
)
from src.services.auth import (
    as_utc,
    authenticate_user,
    consume_verification,
    create_session,
    deliver_verification,
    issue_verification,
    register_user,
    revoke_session,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    request: Request,
    repo: Repo,
    settings: AppSettings,
):
    """Register a new user and sign them in."""
    user, access_token, session, verification_token = register_user(
        repo,
        user_data.email,
        user_data.password,
        user_data.name,
        settings,
        user_agent=request.headers.get("User-Agent"),
    )
    deliver_verification(user, verification_token, settings)

    return AuthResponse(
        access_token=access_token,
        expires_at=as_utc(session.expires_at),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    request: Request,
    repo: Repo,
    settings: AppSettings,
):
    """Login with email and password."""
    user = authenticate_user(repo, credentials.email, credentials.password)
    if not user:
        raise Unauthenticated("Incorrect email or password")

    access_token, session = create_session(
        repo, user.id, settings, user_agent=request.headers.get("User-Agent")
    )

    return AuthResponse(
        access_token=access_token,
        expires_at=as_utc(session.expires_at),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
def get_me(identity: CurrentIdentity, repo: Repo):
    """Get current user information."""
    user = repo.get(User, {"id": identity.user_id})
    if user is None:
        raise NotFound("User not found")
    return user


@router.post("/logout", response_model=LogoutResponse)
def logout(identity: CurrentIdentity, repo: Repo):
    """End the current session."""
    return LogoutResponse(revoked=revoke_session(repo, identity.session_id))


@router.post(
    "/verification", response_model=VerificationIssued, status_code=status.HTTP_202_ACCEPTED
)
def request_verification(identity: CurrentIdentity, repo: Repo, settings: AppSettings):
    """Send a fresh email verification token."""
    user = repo.get(User, {"id": identity.user_id})
    if user is None:
        raise NotFound("User not found")
    if user.is_verified:
        return VerificationIssued(
            message="Email already verified", expires_at=as_utc(user.email_verified_at)
        )

    raw_token, verification = issue_verification(repo, user.id, settings)
    deliver_verification(user, raw_token, settings)
    return VerificationIssued(
        message="Verification sent", expires_at=as_utc(verification.expires_at)
    )


@router.post("/verify", response_model=UserResponse)
def verify(payload: VerifyRequest, repo: Repo):
    """Confirm an email address with a verification token."""
    return consume_verification(repo, payload.token)
