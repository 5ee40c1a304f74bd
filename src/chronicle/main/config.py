import logging
import os
import sys
from typing import Optional

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    # Infrastructure dependencies
    postgres_user: str
    postgres_host: str
    postgres_password: str
    postgres_port: int
    postgres_db: str

    # Connection pool
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Audit writes
    audit_write_timeout_seconds: float = 30.0  # Terminal failure for one audit attempt

    # History queries
    audit_max_page_size: int = 1000

    # Retention
    default_retention_days: int = 365

    # Dev
    testing: bool = False
    dev: bool = False

    @model_validator(mode="after")
    def validate_audit_settings(self):
        """Ensure audit-related configuration values are sane."""
        if self.audit_write_timeout_seconds <= 0:
            logging.error(
                "AUDIT_WRITE_TIMEOUT_SECONDS must be greater than zero. Current value: %s",
                self.audit_write_timeout_seconds,
            )
            sys.exit(1)

        if self.audit_max_page_size <= 0:
            logging.error(
                "AUDIT_MAX_PAGE_SIZE must be greater than zero. Current value: %s",
                self.audit_max_page_size,
            )
            sys.exit(1)

        if self.default_retention_days < 0:
            logging.error(
                "DEFAULT_RETENTION_DAYS cannot be negative. Current value: %s",
                self.default_retention_days,
            )
            sys.exit(1)

        return self

    @computed_field
    @property
    def sync_database_url(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, loaded from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Replace the process-wide settings (tests, embedding applications)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    global _settings
    _settings = None


_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_loglevel() -> int:
    # Unknown names fall back to INFO
    return _LOG_LEVELS.get(os.getenv("LOGLEVEL", "INFO").strip().upper(), logging.INFO)
