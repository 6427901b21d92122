"""Configuration settings for the osu! tournament rating backend."""

from __future__ import annotations

import os
import sys
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    postgres_db: str = Field(default="otr_db")
    postgres_user: str = Field(default="otr_user")
    postgres_password: str = Field(default="dev_password")
    postgres_host: str = Field(default="postgres")
    postgres_port: int = Field(default=5432)

    @property
    def database_url(self) -> str:
        """Construct async database URL from components."""
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Application Configuration
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # CORS Configuration
    cors_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        return [
            origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
        ]

    @property
    def environment(self) -> str:
        """Get current environment from ENVIRONMENT variable."""
        env = os.getenv("ENVIRONMENT", "").lower()
        return env if env in ["dev", "production"] else "dev"

    # JWT Authentication Configuration
    jwt_secret_key: str = Field(
        default="dev_secret_key_please_change_in_production",
        description="Secret key for JWT token signing - MUST be changed in production",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_issuer: str = Field(default="otr-api", description="Expected token issuer")
    jwt_access_token_expire_minutes: int = Field(
        default=10080,  # 7 days
        description="JWT access token expiration time in minutes",
    )
    auth_cookie_name: str = Field(
        default="OTR-Access-Token",
        description="Cookie that may carry the access token instead of the Authorization header",
    )

    # osu! API Configuration
    osu_api_base_url: str = Field(default="https://osu.ppy.sh/api")
    osu_api_key: str = Field(default="", description="osu! API key")
    osu_api_requests_per_minute: int = Field(default=60, ge=1)

    # osu!track Configuration
    osu_track_base_url: str = Field(default="https://osutrack-api.ameo.dev")
    osu_track_requests_per_window: int = Field(default=200, ge=1)
    osu_track_window_seconds: int = Field(default=60, ge=1)

    # Background worker Configuration
    auto_update_users: bool = Field(
        default=False,
        description="Enable the osu! player data and osu!track history sync workers",
    )
    player_refresh_interval_seconds: int = Field(default=5, ge=1)
    player_outdated_after_days: int = Field(default=14, ge=0)
    player_refresh_batch_size: int = Field(default=100, ge=1)
    osu_track_interval_seconds: int = Field(default=60, ge=1)
    osu_track_batch_size: int = Field(default=100, ge=1)

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Validate JWT secret key meets security requirements.

        Enforces:
        - Minimum length of 32 characters (256 bits for HS256 per RFC 7518)
        - No default/placeholder values in production

        Raises:
            ValueError: If secret is weak and environment is production
        """
        env = os.getenv("ENVIRONMENT", "").lower()
        is_production = env == "production"

        weak_indicators = ["dev_secret", "please_change", "changeme", "secret_key"]
        is_weak = any(indicator in v.lower() for indicator in weak_indicators)

        if is_weak:
            if is_production:
                raise ValueError(
                    "Production deployment detected with default/weak JWT secret! "
                    "Set a strong secret via JWT_SECRET_KEY environment variable."
                )
            print(
                "WARNING: Using default JWT secret in development. "
                "Generate a production secret before deployment!",
                file=sys.stderr,
            )

        if len(v) < 32:
            if is_production:
                raise ValueError(
                    f"JWT secret must be at least 32 characters (256 bits). "
                    f"Current length: {len(v)} characters."
                )
            print(
                f"WARNING: JWT secret is too short ({len(v)} chars). "
                f"Minimum recommended: 32 characters.",
                file=sys.stderr,
            )

        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Create a global settings instance lazily
settings: Settings | None = None


def get_global_settings() -> Settings:
    """Get or create the global settings instance."""
    global settings
    if settings is None:
        settings = get_settings()
    return settings
