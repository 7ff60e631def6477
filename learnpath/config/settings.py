"""Runtime configuration read from the environment (and ``.env``)."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


Environment = Literal["development", "staging", "production", "testing"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_DEV_SECRET = "dev-jwt-secret-key-change-in-production-32chars!"


class Settings(BaseSettings):
    """LearnPath service settings.

    Field names map one to one onto upper-case environment variables,
    e.g. ``CASSANDRA_HOSTS='["db1","db2"]'`` or ``STRUCTURE_LOCK_WAIT_SECONDS=2``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "learnpath"
    app_version: str = "0.1.0"
    environment: Environment = "development"
    debug: bool = True

    # Bearer tokens are minted by the identity provider; we only verify them.
    auth_secret_key: str = Field(default=_DEV_SECRET, min_length=32)
    auth_algorithm: str = "HS256"
    auth_access_token_expire_minutes: int = Field(default=15, gt=0)

    payment_webhook_secret: str | None = Field(
        default=None, description="Expected value of the X-Webhook-Secret header"
    )

    # Course structure mutations are serialized per course.
    redis_enabled: bool = Field(
        default=True, description="Hold structure locks in Redis instead of in-process"
    )
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 10
    redis_socket_timeout: float = 5.0
    redis_socket_connect_timeout: float = 5.0
    structure_lock_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Lease after which a held lock expires"
    )
    structure_lock_wait_seconds: float = Field(
        default=5.0, gt=0, description="How long a mutation waits before giving up"
    )

    cassandra_hosts: list[str] = ["localhost"]
    cassandra_port: int = 9042
    cassandra_keyspace: str = "learnpath"
    cassandra_username: str | None = None
    cassandra_password: str | None = None
    cassandra_protocol_version: int = 4
    cassandra_connect_timeout: float = 10.0
    cassandra_replication_factor: int = Field(
        default=1, ge=1, description="SimpleStrategy factor outside production"
    )

    log_level: LogLevel = "INFO"
    log_format: Literal["json", "console"] = "console"
    log_include_caller_info: bool = False
    log_requests: bool = True
    log_exclude_paths: list[str] = ["/health", "/health/live", "/health/ready"]
    log_to_file: bool = False
    log_dir: str = "logs"
    log_file_max_bytes: int = 10 * 1024 * 1024
    log_file_backup_count: int = 5

    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @model_validator(mode="after")
    def _check_production(self) -> "Settings":
        if self.is_production and self.auth_secret_key == _DEV_SECRET:
            raise ValueError("AUTH_SECRET_KEY must be set in production")
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def payments_configured(self) -> bool:
        """Whether the payment webhook can authenticate callers at all."""
        return bool(self.payment_webhook_secret)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once."""
    return Settings()
