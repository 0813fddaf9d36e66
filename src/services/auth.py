"""Authentication service: passwords, sessions, verification tokens and identity resolution."""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from src.config import Settings
from src.exceptions import ConstraintViolation, Unauthenticated, ValidationError
from src.models.enums import VerificationPurpose
from src.models.session import UserSession
from src.models.user import User
from src.models.verification import Verification
from src.repository import Repository

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class Identity:
    """The authenticated subject of a request."""

    user_id: int
    email: str
    session_id: int
    email_verified: bool


class IdentityResolver(Protocol):
    """Anything that can turn request credentials into an Identity."""

    def resolve_identity(self, request: Request, repo: Repository) -> Identity:
        """Return the request's identity or raise Unauthenticated."""
        ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores without time zone support."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def hash_token(raw_token: str) -> str:
    """Digest stored in place of a raw verification token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def create_access_token(user_id: int, token_id: str, settings: Settings) -> str:
    """Create a signed bearer token pointing at a session row."""
    to_encode = {
        "sub": str(user_id),
        "sid": token_id,
        "iat": int(utcnow().timestamp()),
    }
    return jwt.encode(to_encode, settings.auth_secret, algorithm=settings.auth_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict | None:
    """Decode and validate a bearer token's signature."""
    try:
        return jwt.decode(token, settings.auth_secret, algorithms=[settings.auth_algorithm])
    except JWTError:
        return None


def get_user_by_email(repo: Repository, email: str) -> User | None:
    """Get an active user by email."""
    return repo.get(User, User.active(email=normalize_email(email)))


def authenticate_user(repo: Repository, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(repo, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def create_session(
    repo: Repository, user_id: int, settings: Settings, user_agent: str | None = None
) -> tuple[str, UserSession]:
    """Open a session for a user and return its bearer token."""
    now = utcnow()
    token_id = secrets.token_urlsafe(32)
    session = repo.insert(
        UserSession,
        {
            "user_id": user_id,
            "token_id": token_id,
            "expires_at": now + timedelta(minutes=settings.session_ttl_minutes),
            "last_seen_at": now,
            "user_agent": user_agent[:255] if user_agent else None,
        },
    )
    return create_access_token(user_id, token_id, settings), session


def revoke_session(repo: Repository, session_id: int) -> int:
    """Delete a session; returns 0 if it was already gone."""
    return repo.delete(UserSession, {"id": session_id})


def issue_verification(
    repo: Repository,
    user_id: int,
    settings: Settings,
    purpose: VerificationPurpose = VerificationPurpose.EMAIL,
) -> tuple[str, Verification]:
    """Create a verification record and return the raw token with it."""
    raw_token = secrets.token_urlsafe(32)
    verification = repo.insert(
        Verification,
        {
            "user_id": user_id,
            "purpose": purpose.value,
            "token_hash": hash_token(raw_token),
            "expires_at": utcnow() + timedelta(minutes=settings.verification_ttl_minutes),
        },
    )
    return raw_token, verification


def deliver_verification(user: User, raw_token: str, settings: Settings) -> None:
    """Hand a verification token to the user.

    No mail transport is wired up; development logs the token so it can be
    used by hand.
    """
    if settings.is_development:
        logger.info(f"Verification token for {user.email}: {raw_token}")
    else:
        logger.warning(f"No mail transport configured; verification for user {user.id} not sent")


def consume_verification(
    repo: Repository,
    raw_token: str,
    purpose: VerificationPurpose = VerificationPurpose.EMAIL,
) -> User:
    """Use a verification token once and mark the user's email verified.

    The token is claimed with a single conditional UPDATE, so of two concurrent
    attempts only one sees an affected row.
    """
    invalid = ValidationError(
        [
            {
                "field": "token",
                "message": "Verification token is invalid, expired or already used",
                "type": "token_invalid",
            }
        ]
    )
    now = utcnow()
    with repo.transaction():
        verification = repo.get(
            Verification, {"token_hash": hash_token(raw_token), "purpose": purpose.value}
        )
        if verification is None:
            raise invalid
        claimed = repo.update(
            Verification,
            {"id": verification.id, "used_at": None, "expires_at__gt": now},
            {"used_at": now},
        )
        if claimed == 0:
            raise invalid
        repo.update(User, {"id": verification.user_id}, {"email_verified_at": now})
        user = repo.get(User, {"id": verification.user_id})
    logger.info(f"Verified email for user {user.id}")
    return user


def register_user(
    repo: Repository,
    email: str,
    password: str,
    name: str | None,
    settings: Settings,
    user_agent: str | None = None,
) -> tuple[User, str, UserSession, str]:
    """Create a user with a first session and a pending email verification.

    All three rows are written in one transaction. Returns the user, the
    bearer token, the session and the raw verification token.
    """
    try:
        with repo.transaction():
            user = repo.insert(
                User,
                {
                    "email": normalize_email(email),
                    "password_hash": get_password_hash(password),
                    "name": name,
                },
            )
            access_token, session = create_session(repo, user.id, settings, user_agent)
            raw_token, _ = issue_verification(repo, user.id, settings)
    except ConstraintViolation as e:
        raise ConstraintViolation("Email already registered", details={"entity": "users"}) from e
    logger.info(f"Registered user {user.id}")
    return user, access_token, session, raw_token


def purge_expired(repo: Repository, now: datetime | None = None) -> dict[str, int]:
    """Delete expired sessions and spent verification records."""
    now = now or utcnow()
    with repo.transaction():
        sessions = repo.delete(UserSession, {"expires_at__lte": now})
        expired = repo.delete(Verification, {"expires_at__lte": now})
        used = repo.delete(Verification, {"used_at__ne": None})
    return {"sessions": sessions, "verifications": expired + used}


def bearer_token(request: Request) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class SessionIdentityResolver:
    """Resolves identities from signed bearer tokens backed by session rows."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.ttl = timedelta(minutes=settings.session_ttl_minutes)

    def resolve_identity(self, request: Request, repo: Repository) -> Identity:
        token = bearer_token(request)
        if token is None:
            raise Unauthenticated("Not authenticated")

        payload = decode_access_token(token, self.settings)
        if payload is None or payload.get("sub") is None or payload.get("sid") is None:
            raise Unauthenticated()

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise Unauthenticated() from None

        session = repo.get(UserSession, {"token_id": payload["sid"], "user_id": user_id})
        if session is None:
            raise Unauthenticated("Session not found")

        now = utcnow()
        if as_utc(session.expires_at) <= now:
            repo.delete(UserSession, {"id": session.id})
            raise Unauthenticated("Session expired")

        user = repo.get(User, User.active(id=user_id))
        if user is None:
            raise Unauthenticated("User not found")

        self._refresh(repo, session, now)
        return Identity(
            user_id=user.id,
            email=user.email,
            session_id=session.id,
            email_verified=user.is_verified,
        )

    def _refresh(self, repo: Repository, session: UserSession, now: datetime) -> None:
        """Slide the expiry forward once less than half of the lifetime remains."""
        if as_utc(session.expires_at) - now < self.ttl / 2:
            repo.update(
                UserSession,
                {"id": session.id},
                {"expires_at": now + self.ttl, "last_seen_at": now},
            )
            logger.debug(f"Extended session {session.id}")
