"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a .env file and
FORMRELAY_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """Runtime settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export FORMRELAY_ENVIRONMENT=staging
        export FORMRELAY_LOG_LEVEL=DEBUG
        export FORMRELAY_STORE_PATH=/data/integrations.db

    Or via .env file::

        FORMRELAY_CHANNEL_TIMEOUT_SECONDS=5
        FORMRELAY_SMTP_HOST=smtp.example.com
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FORMRELAY_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage paths
    store_path: Path = Path(".formrelay/integrations.db")
    record_store_path: Path = Path(".formrelay/records.db")
    spreadsheet_path: Path = Path(".formrelay/sheets")

    # Event history retention per integration
    event_history_limit: int = 100

    # Dispatch
    channel_timeout_seconds: float = 10.0
    max_concurrent_channels: int = 4

    # Opt-in retry wrapper; 0 disables it entirely
    retry_attempts: int = 0
    retry_backoff_seconds: float = 0.5

    # Mail transport
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_sender: str = "formrelay@localhost"

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton: import as `from formrelay.config import settings`
settings = RelaySettings()
