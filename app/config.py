"""
Application Configuration
=========================

Centralized configuration using Pydantic Settings.
Loads from environment variables with validation.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: str = Field(default="development")

    # Server
    PORT: int = Field(default=5000)

    # Database
    DATABASE_URL: str = Field(default="")

    # Redis (empty string disables caching and rate limiting)
    REDIS_URL: str = Field(default="redis://localhost:6379/0")

    # JWT Authentication
    JWT_SECRET: str = Field(default="change-this-secret-in-production")
    REFRESH_TOKEN_SECRET: str = Field(default="change-this-refresh-secret-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRES_IN: str = Field(default="15m")
    REFRESH_TOKEN_EXPIRES_IN: str = Field(default="30d")

    # Refresh token cookie
    COOKIE_SECURE: bool = Field(default=False)
    REFRESH_COOKIE_NAME: str = Field(default="refreshToken")

    # App Configuration
    ALLOWED_ORIGINS: str = Field(default="http://localhost:3000,http://localhost:5000")

    # Scheduler
    SCHEDULER_ENABLED: bool = Field(default=True)
    SCHEDULER_TIMEZONE: str = Field(default="UTC")
    GOAL_TASK_RETENTION_MONTHS: int = Field(default=3, ge=1)

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def database_url_async(self) -> str:
        """Convert database URL to async format for asyncpg."""
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )
        return self.DATABASE_URL

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    @field_validator("JWT_SECRET", "REFRESH_TOKEN_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Ensure signing secrets are sufficiently long."""
        if len(v) < 32:
            raise ValueError("JWT secrets must be at least 32 characters long")
        return v

    @field_validator("JWT_EXPIRES_IN", "REFRESH_TOKEN_EXPIRES_IN")
    @classmethod
    def validate_expiry(cls, v: str) -> str:
        """Expiry strings look like 15m, 12h or 30d."""
        if len(v) < 2 or not v[:-1].isdigit():
            raise ValueError("Expiry must be a number followed by m, h or d")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Export a default settings instance
settings = get_settings()
