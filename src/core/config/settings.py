# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for EduTrack.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_SECRET = "change-this-in-production"


class DatabaseSettings(BaseSettings):
    """Database configuration.

    All schools share one database; rows are isolated by their
    school_id column rather than by physical database.

    Attributes:
        url_override: Full connection URL. When set, the component
            fields are ignored (used for SQLite in tests).
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        echo: Log emitted SQL statements.
        run_migrations: Apply pending migrations at startup.
        auto_create: Create missing tables from model metadata at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
        populate_by_name=True,
    )

    url_override: str | None = Field(default=None, validation_alias="DB_URL")
    user: str = "edutrack"
    password: SecretStr = SecretStr("edutrack_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "edutrack"
    pool_size: int = 10
    max_overflow: int = 20
    echo: bool = False
    run_migrations: bool = False
    auto_create: bool = False

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured backend is SQLite."""
        return self.url.startswith("sqlite")


class JWTSettings(BaseSettings):
    """JWT authentication configuration.

    Access, refresh and password-reset tokens are signed with separate
    secrets so a leaked key for one kind cannot mint another.

    Attributes:
        secret_key: Secret key for signing access tokens.
        refresh_secret_key: Secret key for signing refresh tokens.
        reset_secret_key: Secret key for signing password reset tokens.
        algorithm: JWT signing algorithm.
        access_token_expire_minutes: Access token expiration time.
        refresh_token_expire_days: Refresh token expiration time.
        reset_token_expire_minutes: Password reset token expiration time.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr(_DEFAULT_SECRET)
    refresh_secret_key: SecretStr = SecretStr(f"{_DEFAULT_SECRET}-refresh")
    reset_secret_key: SecretStr = SecretStr(f"{_DEFAULT_SECRET}-reset")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=15,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    refresh_token_expire_days: int = Field(
        default=7,
        validation_alias="REFRESH_TOKEN_EXPIRE_DAYS",
    )
    reset_token_expire_minutes: int = 60


class AuthSettings(BaseSettings):
    """Account and password policy.

    Attributes:
        bcrypt_rounds: Cost factor for bcrypt hashing.
        allow_super_admin_signup: Whether the public registration
            endpoint may create SUPER_ADMIN accounts.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        extra="ignore",
    )

    bcrypt_rounds: int = 12
    allow_super_admin_signup: bool = False


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        enabled: Whether rate limits are enforced.
        requests_per_minute: Default requests per minute per client.
        auth_requests_per_minute: Limit for login/register/reset endpoints.
        storage_uri: slowapi storage backend URI.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    requests_per_minute: int = 120
    auth_requests_per_minute: int = 10
    storage_uri: str = "memory://"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class SMTPSettings(BaseSettings):
    """Outgoing email configuration.

    Email delivery is disabled unless host, username, password and
    from_email are all set.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port.
        username: SMTP authentication username.
        password: SMTP authentication password.
        use_tls: Use STARTTLS.
        from_email: Sender email address.
        from_name: Sender display name.
        frontend_url: Base URL used to build password reset links.
    """

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        extra="ignore",
    )

    host: str | None = None
    port: int = 587
    username: str | None = None
    password: SecretStr | None = None
    use_tls: bool = True
    from_email: str | None = None
    from_name: str = "EduTrack"
    frontend_url: str = "http://localhost:3000"

    @property
    def is_configured(self) -> bool:
        """Check whether all required SMTP fields are present."""
        return all([self.host, self.username, self.password, self.from_email])


class StorageSettings(BaseSettings):
    """Uploaded file storage configuration.

    Attributes:
        root: Directory where uploaded files are written.
        base_url: Public URL prefix that maps onto root.
        max_file_size_mb: Maximum size of a single uploaded file.
        allowed_extensions: Comma-separated list of accepted extensions.
    """

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore",
    )

    root: str = "./uploads"
    base_url: str = "/uploads"
    max_file_size_mb: int = 10
    allowed_extensions: str = "pdf,doc,docx,ppt,pptx,xls,xlsx,txt,png,jpg,jpeg,gif,zip"

    @property
    def max_file_size_bytes(self) -> int:
        """Maximum upload size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def allowed_extensions_set(self) -> set[str]:
        """Parse allowed extensions into a lowercase set."""
        return {
            ext.strip().lower().lstrip(".")
            for ext in self.allowed_extensions.split(",")
            if ext.strip()
        }


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 5000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    This is the primary configuration class for EduTrack.
    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        app_name: Service name reported by health checks and logs.
        version: Service version.
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        log_format: Log renderer, JSON lines or human readable console.
        database: Database settings.
        jwt: JWT authentication settings.
        auth: Account and password policy.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        smtp: Outgoing email settings.
        storage: Uploaded file storage settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: str = "edutrack"
    version: str = "0.1.0"

    # Environment
    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"
    log_format: Literal["json", "console"] = "console"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            secrets = (
                self.jwt.secret_key,
                self.jwt.refresh_secret_key,
                self.jwt.reset_secret_key,
            )
            if any(s.get_secret_value().startswith(_DEFAULT_SECRET) for s in secrets):
                raise ValueError(
                    "JWT secret keys must be changed from default in production. "
                    "Set JWT_SECRET_KEY, JWT_REFRESH_SECRET_KEY and JWT_RESET_SECRET_KEY."
                )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
