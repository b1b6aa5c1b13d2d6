"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - The bot token comes from the environment (never hardcoded), read once per process
    - get_settings() is cached (lru_cache) — single instance per process
    - database_url is always an async SQLAlchemy URL after validation

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - DATABASE accepted as an alias of DATABASE_URL, and a bare file path is
      promoted to sqlite+aiosqlite (deployments that only set DATABASE=database.sqlite)
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Telegram
    telegram_bot_token: str = ""
    telegram_api_base: str = "https://api.telegram.org"
    telegram_timeout_seconds: float = 10.0

    # Launch data — 0 disables the auth_date freshness window
    init_data_max_age_seconds: int = 0

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///database.sqlite",
        validation_alias=AliasChoices("database_url", "DATABASE_URL", "DATABASE"),
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Promote sync/bare URLs to their async driver equivalents."""
        if not isinstance(v, str):
            return v
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite:///"):
            return v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        if "://" not in v:
            return f"sqlite+aiosqlite:///{v}"
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # HTTP listener
    bot_host: str = "127.0.0.1"
    bot_lport: int = 5000
    cors_origins: list[str] = []
    static_dir: str = "static"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
