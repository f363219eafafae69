"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Self


_INSECURE_DEFAULT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "QuizDesk API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    # Sync-style URLs are mapped onto their async driver in app.models.base
    DATABASE_URL: str = "sqlite:///./quizdesk.db"
    DB_AUTO_CREATE: bool = True  # create_all at startup; use alembic when False
    DB_ECHO: bool = False

    # Sessions (signed cookie holding attempt start times)
    SECRET_KEY: str = Field(
        default=_INSECURE_DEFAULT_SECRET,
        repr=False,
        description="Session signing key (must be overridden in production)",
    )
    SESSION_COOKIE: str = "quizdesk_session"
    SESSION_MAX_AGE_SECONDS: int = Field(default=24 * 60 * 60, gt=0)

    # Admin API
    ADMIN_TOKEN: str = Field(
        default="",
        repr=False,
        description="Admin API token sent as X-Admin-Token (required for admin endpoints)",
    )

    # Test taking
    SUBMISSION_GRACE_SECONDS: int = Field(default=5, ge=0)
    DEFAULT_DURATION_MINUTES: int = Field(default=10, gt=0)
    DEFAULT_PASSING_SCORE: int = Field(default=5, gt=0)
    DEFAULT_QUESTIONS_PER_TEST: int = Field(default=10, gt=0)

    # Event stream
    EVENT_STREAM_HEARTBEAT_SECONDS: float = Field(default=15.0, gt=0)
    EVENT_SUBSCRIBER_QUEUE_SIZE: int = Field(default=100, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_production_secret(self) -> Self:
        """Refuse to start in production with the placeholder session key."""
        if self.ENV == "production" and self.SECRET_KEY == _INSECURE_DEFAULT_SECRET:
            raise ValueError("SECRET_KEY must be set when ENV=production")
        return self


settings = Settings()
