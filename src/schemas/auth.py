"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.schemas.registry import register


@register("auth.register")
class UserRegister(BaseModel):
    """User registration request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: str | None = Field(None, max_length=255)


@register("auth.login")
class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


@register("auth.verify")
class VerifyRequest(BaseModel):
    """Verification token submitted by the user."""

    token: str = Field(..., min_length=16, max_length=128)


@register("auth.user")
class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None
    email_verified_at: datetime | None = None


@register("auth.response")
class AuthResponse(BaseModel):
    """Authentication response with token and user info."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    expires_at: datetime
    user: UserResponse


class LogoutResponse(BaseModel):
    revoked: int


class VerificationIssued(BaseModel):
    """Acknowledges that a verification token was sent."""

    message: str
    expires_at: datetime
