"""
Settings Module for Uptime Monitor

Configuration management using Pydantic Settings.
Supports environment variables, .env files, and explicit construction
in tests. Every section carries its own environment prefix.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.constants import Defaults


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class BaseSettingsConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


class DatabaseSettings(BaseSettingsConfig):
    """
    Database Configuration Settings

    SQLite (aiosqlite) for development and tests, PostgreSQL (asyncpg)
    for production deployments.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore"
    )

    type: DatabaseType = Field(
        default=DatabaseType.SQLITE,
        description="Database type: postgresql or sqlite"
    )

    host: str = Field(default="localhost", description="Database host address")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port number")
    name: str = Field(
        default="uptime_monitor",
        min_length=1,
        max_length=64,
        description="Database name"
    )
    user: str = Field(default="postgres", min_length=1, max_length=64, description="Database username")
    password: SecretStr = Field(default=SecretStr(""), description="Database password")

    sqlite_path: Path = Field(
        default=Path("data/uptime_monitor.db"),
        description="Path to SQLite database file (':memory:' for an in-memory database)"
    )

    pool_size: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=10, ge=0, le=100, description="Maximum overflow connections")
    pool_timeout: int = Field(default=30, ge=1, le=300, description="Pool checkout timeout in seconds")
    pool_recycle: int = Field(default=1800, ge=60, le=7200, description="Connection recycle time in seconds")

    echo: bool = Field(default=False, description="Echo SQL queries (debug mode)")

    @property
    def is_memory(self) -> bool:
        """True when SQLite runs fully in memory."""
        return self.type == DatabaseType.SQLITE and str(self.sqlite_path) == ":memory:"

    @property
    def url(self) -> str:
        """Generate the async driver URL based on configuration."""
        if self.type == DatabaseType.SQLITE:
            if self.is_memory:
                return "sqlite+aiosqlite:///:memory:"
            self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{self.sqlite_path}"

        if self.type == DatabaseType.POSTGRESQL:
            password = self.password.get_secret_value()
            return (
                f"postgresql+asyncpg://{self.user}:{password}"
                f"@{self.host}:{self.port}/{self.name}"
            )

        raise ValueError(f"Unsupported database type: {self.type}")

    @field_validator("sqlite_path")
    @classmethod
    def validate_sqlite_path(cls, v: Path) -> Path:
        """Validate and normalize SQLite path."""
        if str(v) != ":memory:" and not v.suffix:
            v = v.with_suffix(".db")
        return v


class RetrySettings(BaseSettingsConfig):
    """
    Probe Retry Settings

    RETRY_COUNT is the number of retries after the first attempt.
    Delays are milliseconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRY_",
        env_file=".env",
        extra="ignore"
    )

    count: int = Field(default=Defaults.RETRY_COUNT, ge=0, le=10, description="Retries after the first attempt")
    initial_delay: int = Field(
        default=Defaults.RETRY_INITIAL_DELAY_MS,
        ge=0,
        le=60_000,
        description="Delay before the first retry (ms)"
    )
    multiplier: float = Field(
        default=Defaults.RETRY_MULTIPLIER,
        ge=0.0,
        le=10.0,
        description="Exponential backoff multiplier"
    )
    max_delay: int = Field(
        default=Defaults.RETRY_MAX_DELAY_MS,
        ge=0,
        le=300_000,
        description="Upper bound for a single backoff delay (ms)"
    )

    def to_config(self):
        """Build the immutable RetryConfig consumed by the retry controller."""
        from monitoring.retry import RetryConfig

        return RetryConfig(
            retry_count=self.count,
            initial_delay=self.initial_delay,
            multiplier=self.multiplier,
            max_delay=self.max_delay,
        )


class MonitoringSettings(BaseSettingsConfig):
    """
    Monitoring Engine Configuration Settings

    Controls the batch execution budget, redirect policy and the
    in-process scheduler cadence.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_file=".env",
        extra="ignore"
    )

    execution_budget: float = Field(
        default=Defaults.EXECUTION_BUDGET_SECONDS,
        ge=1.0,
        le=900.0,
        description="Wall-clock ceiling for one batch invocation (seconds)"
    )
    max_redirects: int = Field(
        default=Defaults.MAX_REDIRECTS,
        ge=0,
        le=20,
        description="Maximum redirect hops followed by the prober"
    )
    user_agent: str = Field(
        default=Defaults.USER_AGENT,
        description="User agent string for probe requests"
    )
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates when probing")

    run_interval: int = Field(
        default=60,
        ge=5,
        le=3600,
        description="Seconds between batches when running the in-process scheduler"
    )
    check_retention_days: int = Field(
        default=Defaults.CHECK_RETENTION_DAYS,
        ge=1,
        le=3650,
        description="Days of check history kept by the prune job"
    )
    prune_interval: int = Field(
        default=86_400,
        ge=60,
        le=604_800,
        description="Seconds between check-history prune runs"
    )


class EmailSettings(BaseSettingsConfig):
    """SMTP configuration for e-mail alerts."""

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        extra="ignore"
    )

    enabled: bool = Field(default=True, description="Enable e-mail alerts")
    host: str = Field(default="smtp.gmail.com", description="SMTP server")
    port: int = Field(default=587, ge=1, le=65535, description="SMTP port (465 = implicit TLS)")
    user: Optional[str] = Field(default=None, description="SMTP username")
    password: SecretStr = Field(default=SecretStr(""), description="SMTP password")
    from_address: str = Field(default="noreply@uptimemonitor.com", description="Sender address")
    use_tls: bool = Field(default=True, description="Use STARTTLS on non-465 ports")
    timeout: int = Field(default=30, ge=1, le=120, description="SMTP socket timeout in seconds")

    @property
    def configured(self) -> bool:
        return self.enabled and bool(self.host)


class WebhookSettings(BaseSettingsConfig):
    """Outbound webhook alert configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WEBHOOK_",
        env_file=".env",
        extra="ignore"
    )

    enabled: bool = Field(default=True, description="Enable webhook alerts")
    timeout: int = Field(default=10, ge=1, le=60, description="Webhook POST timeout in seconds")


class TwilioSettings(BaseSettingsConfig):
    """Twilio voice-call configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TWILIO_",
        env_file=".env",
        extra="ignore"
    )

    account_sid: Optional[str] = Field(default=None, description="Twilio account SID")
    auth_token: SecretStr = Field(default=SecretStr(""), description="Twilio auth token")
    from_number: Optional[str] = Field(default=None, description="Caller number in E.164 format")
    api_base: str = Field(default="https://api.twilio.com", description="Twilio REST API base URL")
    timeout: int = Field(default=15, ge=1, le=60, description="REST call timeout in seconds")

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token.get_secret_value() and self.from_number)


class PushSettings(BaseSettingsConfig):
    """FCM relay configuration for device push notifications."""

    model_config = SettingsConfigDict(
        env_prefix="PUSH_",
        env_file=".env",
        extra="ignore"
    )

    relay_url: Optional[str] = Field(default=None, description="FCM relay endpoint")
    relay_api_key: SecretStr = Field(default=SecretStr(""), description="Relay API key")
    timeout: int = Field(default=10, ge=1, le=60, description="Relay request timeout in seconds")

    @property
    def configured(self) -> bool:
        return bool(self.relay_url and self.relay_api_key.get_secret_value())


class LoggingSettings(BaseSettingsConfig):
    """
    Logging Configuration Settings

    Console and rotating file sinks for loguru.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: LogLevel = Field(default=LogLevel.INFO, description="Minimum logging level")
    to_console: bool = Field(default=True, description="Enable console logging")
    colorize: bool = Field(default=True, description="Enable colored console output")
    to_file: bool = Field(default=False, description="Enable file logging")
    file_path: Path = Field(default=Path("logs/uptime_monitor.log"), description="Log file path")
    error_file_path: Path = Field(default=Path("logs/errors.log"), description="Error log file path")
    rotation: str = Field(default="10 MB", description="Log rotation size (e.g., '10 MB', '1 day')")
    retention: str = Field(default="30 days", description="Log retention period")
    serialize: bool = Field(default=False, description="Write JSON lines to the log file")


class ServerSettings(BaseSettingsConfig):
    """HTTP trigger server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        env_file=".env",
        extra="ignore"
    )

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    cron_secret: Optional[SecretStr] = Field(
        default=None,
        description="Bearer token required by mutating routes when set"
    )


class Settings(BaseSettingsConfig):
    """
    Main Settings Class

    Aggregates all settings sections and provides the main
    configuration interface for the application.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    app_name: str = Field(default="Uptime Monitor", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    twilio: TwilioSettings = Field(default_factory=TwilioSettings)
    push: PushSettings = Field(default_factory=PushSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @model_validator(mode="after")
    def configure_for_environment(self) -> "Settings":
        """Apply environment-specific configuration."""
        if self.is_production:
            self.database.echo = False
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
