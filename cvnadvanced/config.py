"""Relay configuration: env-driven process settings.

Centralized config using pydantic-settings for environment variable
support.  Reads from a .env file and CVNADVANCED_* environment variables.
Routing itself (filters, transports, map) lives in the JSON route profile,
see ``cvnadvanced.models.routing``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class RelayConfig(BaseSettings):
    """Relay configuration with environment variable overrides.

    All settings can be overridden via CVNADVANCED_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Override via environment::

        export CVNADVANCED_LOG_LEVEL=DEBUG
        export CVNADVANCED_PROFILE_PATH=/etc/cvnadvanced/profile.json
        export CVNADVANCED_CHANNELS='["#cvn-wikia", "#wikia-spam"]'

    Or via .env file::

        CVNADVANCED_ENVIRONMENT=production
        CVNADVANCED_SHUTDOWN_GRACE=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CVNADVANCED_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Route profile
    profile_path: Path = Path("profile.json")

    # Monitored channels; lines from anywhere else are ignored.
    # An empty list disables gating.
    channels: list[str] = ["#cvn-wikia", "#wikia-discussions", "#wikia-spam"]

    # Delivery
    max_delivery_workers: int = 4
    delivery_timeout_seconds: float = 10.0
    shutdown_grace: bool = True
    user_agent: str = "cvnadvanced/0.1"

    # New-users transport
    newusers_interval_seconds: float = 1800.0
    newusers_poll_seconds: float = 5.0

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton: import as `from cvnadvanced.config import config`
config = RelayConfig()
