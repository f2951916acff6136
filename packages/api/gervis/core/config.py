# This project was developed with assistance from AI tools.
"""
Application configuration.

Settings come from environment variables (or the project-root .env) with
local dev defaults.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve project root .env regardless of CWD
_PROJECT_ROOT = Path(__file__).resolve().parents[4]
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings -- single source of truth for env-driven config."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- App --
    APP_NAME: str = "gervis"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    BASE_URL: str = Field(
        default="http://localhost:5173",
        description="Public origin of the client-facing web app; used to build onboarding links.",
    )

    # -- CORS --
    ALLOWED_HOSTS: list[str] = ["http://localhost:5173"]

    # -- Auth --
    AUTH_DISABLED: bool = Field(
        default=False,
        description="Bypass JWT validation. Set True for tests and local dev without Keycloak.",
    )
    KEYCLOAK_URL: str = "http://localhost:8080"
    KEYCLOAK_REALM: str = "gervis"
    JWKS_CACHE_TTL: int = Field(
        default=300,
        description="JWKS cache lifetime in seconds (default 5 minutes).",
    )

    # -- Onboarding / signature sessions --
    ONBOARDING_TOKEN_TTL_DAYS: int = Field(
        default=7,
        description="Lifetime of an onboarding link in days.",
    )
    SIGNATURE_SESSION_TTL_HOURS: int = Field(
        default=24,
        description="Lifetime of a remote signature session in hours.",
    )

    # -- Storage (local filesystem) --
    UPLOAD_ROOT: Path = Field(
        default=_PROJECT_ROOT / "private" / "uploads",
        description="Root of the per-client private upload directories.",
    )
    PUBLIC_ROOT: Path = Field(
        default=_PROJECT_ROOT / "client" / "public",
        description="Legacy public directory that older document URLs point into.",
    )
    UPLOAD_MAX_SIZE_MB: int = 15

    # -- Mail (SMTP) --
    SMTP_HOST: str | None = Field(
        default=None,
        description="Fallback SMTP host used when the advisor has no personal mail settings.",
    )
    SMTP_PORT: int = 465
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM: str | None = None
    SMTP_USE_SSL: bool = True
    SMTP_TIMEOUT: int = 10
    MAIL_SENDER_NAME: str = "Gervis Financial"


settings = Settings()
