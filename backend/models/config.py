import os
import sys
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Decide whether `.env` is read.

    Local development picks up `backend/.env` for convenience. Under pytest
    or CI the file is ignored so tests only see what they set explicitly.
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'production' or 'test'",
    )

    DATABASE_URL: str = "sqlite:///./data/bantaydalan.db"
    SECRET_KEY: str = Field(
        ...,
        description="JWT signing key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # First super admin, seeded by init_db.py
    SUPER_ADMIN_USERNAME: str = Field(
        ...,
        description="Username of the initial super admin",
    )
    SUPER_ADMIN_PASSWORD: str = Field(
        ...,
        description="Password of the initial super admin",
    )
    SUPER_ADMIN_EMAIL: str | None = Field(
        default=None,
        description="Optional email of the initial super admin",
    )

    DB_POOL_SIZE: int = Field(
        default=5,
        description="Number of persistent connections in pool",
    )
    DB_MAX_OVERFLOW: int = Field(
        default=10,
        description="Extra connections when pool exhausted",
    )
    DB_POOL_TIMEOUT: int = Field(
        default=30,
        description="Seconds to wait for connection from pool",
    )
    DB_POOL_RECYCLE: int = Field(
        default=1800,
        description="Recycle connections after N seconds",
    )

    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true (development only), call Base.metadata.create_all on startup",
    )

    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # Report submission limits
    MAX_IMAGES_PER_REPORT: int = Field(
        default=5,
        description="Maximum number of image attachments per report",
    )
    MAX_IMAGE_SIZE_BYTES: int = Field(
        default=5 * 1024 * 1024,
        description="Maximum size of a single image attachment",
    )
    MAP_MAX_RESULTS: int = Field(
        default=1000,
        description="Maximum number of reports returned to the map view",
    )

    LOGIN_RATE_LIMIT: str = Field(
        default="5/minute",
        description="slowapi rate limit applied to login endpoints",
    )
    REGISTER_RATE_LIMIT: str = Field(
        default="3/minute",
        description="slowapi rate limit applied to reporter registration",
    )
    SUBMIT_RATE_LIMIT: str = Field(
        default="20/minute",
        description="slowapi rate limit applied to report submission",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Raises pydantic.ValidationError at import time when required secrets are missing.
settings = Settings()  # type: ignore[call-arg]


def get_settings() -> Settings:
    """Get the settings instance (for dependency injection)."""
    return settings
