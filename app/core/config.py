from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver", "test"]
DEFAULT_SECRET_KEY = "change-this-secret-key-in-production"


def _normalize_allowed_hosts(value: Any) -> list[str]:
    """Accept comma-separated string or list-like and normalize hosts."""
    if value is None or value == "":
        return []

    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple, set)):
        parts = [str(part).strip() for part in value]
    else:
        return []

    return [part for part in parts if part]


class Settings(BaseSettings):
    """Application settings."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./ledger.db"
    ALLOWED_HOSTS: list[str] = Field(default_factory=lambda: DEFAULT_ALLOWED_HOSTS.copy())

    # Application
    ENV: str = "development"
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    APP_NAME: str = "Fundboard"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Account creation throttling
    ACCOUNT_CREATE_RATE_LIMIT_MAX: int = 10
    ACCOUNT_CREATE_RATE_LIMIT_WINDOW_SECONDS: int = 60 * 60

    # Pydantic v2 compatible settings: read .env and ignore extra env vars
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("ALLOWED_HOSTS", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, value: Any) -> list[str] | Any:
        """Support comma-separated ALLOWED_HOSTS from environment."""
        return _normalize_allowed_hosts(value)


def _validate_security() -> None:
    """Fail fast when running production with insecure defaults."""
    env = settings.ENV.lower()
    if env != "production":
        return

    secret = settings.SECRET_KEY
    if not secret or secret == DEFAULT_SECRET_KEY or len(secret) < 32:
        raise ValueError("SECRET_KEY must be set to a strong value in production.")

    if not settings.ALLOWED_HOSTS or settings.ALLOWED_HOSTS == DEFAULT_ALLOWED_HOSTS:
        raise ValueError("ALLOWED_HOSTS must be configured explicitly in production.")

    if settings.DATABASE_URL.startswith("sqlite"):
        raise ValueError("Use PostgreSQL in production; sqlite is only for local/dev.")


settings = Settings()


_validate_security()
