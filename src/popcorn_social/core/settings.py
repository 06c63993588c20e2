"""Application settings and configuration.

This module defines all configuration options for the popcorn social core.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="PopcornPal Social", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Local relational store (used when no hosted backend is configured)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./popcorn.db",
        alias="DATABASE_URL",
    )
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Hosted backend (PostgREST + realtime)
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: str | None = Field(default=None, alias="SUPABASE_ANON_KEY")

    # Feed aggregation
    feed_procedure_name: str = Field(default="get_feed", alias="FEED_PROCEDURE_NAME")
    feed_page_size: int = Field(default=20, ge=1, alias="FEED_PAGE_SIZE")
    feed_initial_visible: int = Field(default=5, ge=0, alias="FEED_INITIAL_VISIBLE")
    feed_reveal_step: int = Field(default=5, ge=1, alias="FEED_REVEAL_STEP")
    # Only the first N followees feed the fallback query.
    feed_followee_cap: int = Field(default=50, ge=1, alias="FEED_FOLLOWEE_CAP")

    # Generic store access outside the feed/comment core
    store_timeout_seconds: float = Field(default=8.0, gt=0, alias="STORE_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def supabase_configured(self) -> bool:
        """Return True when real hosted-backend credentials are present.

        Placeholder values copied from an example env file do not count.
        """
        url = self.supabase_url or ""
        key = self.supabase_anon_key or ""
        return bool(
            url
            and key
            and url.startswith("https://")
            and "your_supabase" not in url
            and "your_supabase" not in key
        )


settings = Settings()
