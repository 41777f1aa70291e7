"""Application settings and configuration.

This module defines all configuration options for the Engagement Ledger service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Engagement Ledger", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    admin_email: str | None = Field(default=None, alias="ADMIN_EMAIL")
    admin_user_ids: list[str] = Field(default_factory=list, alias="ADMIN_USER_IDS")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./engagement.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Storage contention handling
    storage_timeout_seconds: float = Field(default=5.0, alias="STORAGE_TIMEOUT_SECONDS")
    storage_max_retries: int = Field(default=3, alias="STORAGE_MAX_RETRIES")
    storage_retry_backoff_seconds: float = Field(
        default=0.05,
        alias="STORAGE_RETRY_BACKOFF_SECONDS",
    )

    # Content bounds
    post_max_length: int = Field(default=500, alias="POST_MAX_LENGTH")
    comment_max_length: int = Field(default=300, alias="COMMENT_MAX_LENGTH")

    # Scan tracking
    scan_tracking_queue_size: int = Field(default=1000, alias="SCAN_TRACKING_QUEUE_SIZE")
    scan_history_default_limit: int = Field(default=10, alias="SCAN_HISTORY_DEFAULT_LIMIT")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def privileged_user_ids(self) -> frozenset[str]:
        """Return identities allowed to delete content they do not own.

        Returns:
            The union of ``ADMIN_EMAIL`` and ``ADMIN_USER_IDS``.
        """
        ids = set(self.admin_user_ids)
        if self.admin_email:
            ids.add(self.admin_email)
        return frozenset(ids)


settings = Settings()  # type: ignore[call-arg]
