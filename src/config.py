"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_SECRET = "change-me-in-production"  # noqa: S105


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    ``DATABASE_URL`` and ``AUTH_SECRET`` have no defaults, so a process started
    without them fails while building the settings instead of on first request.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(...)
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=10, ge=0)

    # Redis (Celery broker)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Auth
    auth_secret: str = Field(..., min_length=1)
    auth_algorithm: str = Field(default="HS256")
    session_ttl_minutes: int = Field(default=10080, ge=1)  # 7 days
    verification_ttl_minutes: int = Field(default=60, ge=1)

    # AI
    ai_provider: str = Field(default="openai")
    ai_model: str = Field(default="gpt-4o-mini")
    openai_api_key: str | None = Field(default=None)
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    anthropic_api_key: str | None = Field(default=None)

    # API
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001", "http://localhost:5173"]
    )

    @field_validator("ai_provider")
    @classmethod
    def validate_ai_provider(cls, value: str) -> str:
        """Only the providers LLMService knows how to call are accepted."""
        value = value.lower()
        if value not in ("openai", "anthropic"):
            raise ValueError("AI_PROVIDER must be 'openai' or 'anthropic'")
        return value

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.environment == "production":
            if self.auth_secret == PLACEHOLDER_SECRET:
                raise ValueError("AUTH_SECRET must be changed in production")
            if "localhost" in self.database_url:
                raise ValueError("DATABASE_URL should not use localhost in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def ai_api_key(self) -> str | None:
        """API key for the selected AI provider."""
        if self.ai_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
