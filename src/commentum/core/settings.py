"""Application settings and configuration.

This module defines all configuration options for the Commentum Stage application.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Commentum Stage application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Commentum Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Identity token signing. There is no default: a missing secret stops startup.
    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Database configuration
    database_url: str = Field(default="sqlite:///./commentum.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Feature toggles
    system_enabled: bool = Field(default=True, alias="SYSTEM_ENABLED")
    voting_enabled: bool = Field(default=True, alias="VOTING_ENABLED")
    reporting_enabled: bool = Field(default=True, alias="REPORTING_ENABLED")

    # Comment limits
    max_comment_length: int = Field(default=10_000, alias="MAX_COMMENT_LENGTH")
    max_nesting_level: int = Field(default=10, alias="MAX_NESTING_LEVEL")
    banned_keywords: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        alias="BANNED_KEYWORDS",
    )

    # Warning thresholds are surfaced to moderators, never enforced automatically
    auto_warn_threshold: int = Field(default=3, alias="AUTO_WARN_THRESHOLD")
    auto_mute_threshold: int = Field(default=5, alias="AUTO_MUTE_THRESHOLD")
    auto_ban_threshold: int = Field(default=10, alias="AUTO_BAN_THRESHOLD")

    # Voting policy
    allow_self_voting: bool = Field(default=True, alias="ALLOW_SELF_VOTING")
    vote_max_attempts: int = Field(default=5, ge=1, alias="VOTE_MAX_ATTEMPTS")

    # Listing limits
    moderation_queue_limit: int = Field(default=100, alias="MODERATION_QUEUE_LIMIT")
    history_limit: int = Field(default=50, alias="HISTORY_LIMIT")
    comment_page_limit: int = Field(default=100, alias="COMMENT_PAGE_LIMIT")

    # Discord notifications
    discord_notifications_enabled: bool = Field(
        default=False,
        alias="DISCORD_NOTIFICATIONS_ENABLED",
    )
    discord_webhook_url: str | None = Field(default=None, alias="DISCORD_WEBHOOK_URL")

    # Third-party identity and media providers
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")
    mal_client_id: str | None = Field(default=None, alias="MAL_CLIENT_ID")
    simkl_client_id: str | None = Field(default=None, alias="SIMKL_CLIENT_ID")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("jwt_secret")
    @classmethod
    def _require_secret(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("JWT_SECRET must be set to a non-empty value")
        return value

    @field_validator("banned_keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: object) -> object:
        """Accept a comma-separated string as well as a list."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def warning_thresholds(self) -> dict[str, int]:
        """Return warning thresholds as a convenience dictionary."""
        return {
            "warn": self.auto_warn_threshold,
            "mute": self.auto_mute_threshold,
            "ban": self.auto_ban_threshold,
        }

    def public_config(self) -> dict[str, object]:
        """Return the server-level configuration safe to show to administrators."""
        return {
            "system_enabled": self.system_enabled,
            "voting_enabled": self.voting_enabled,
            "reporting_enabled": self.reporting_enabled,
            "max_comment_length": self.max_comment_length,
            "max_nesting_level": self.max_nesting_level,
            "banned_keywords": list(self.banned_keywords),
            "warning_thresholds": self.warning_thresholds,
            "allow_self_voting": self.allow_self_voting,
            "discord_notifications_enabled": self.discord_notifications_enabled,
        }


settings = Settings()  # type: ignore[call-arg]
