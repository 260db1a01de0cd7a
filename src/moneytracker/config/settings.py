"""Client configuration.

All settings can be overridden via environment variables with the
MONEYTRACKER_ prefix.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from moneytracker.core.constants import (
    CACHE_MAX_ENTRIES,
    REMOTE_TIMEOUT_SECONDS,
    SYNC_INTERVAL_SECONDS,
)
from moneytracker.offline.storage import DEFAULT_DATA_DIR

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """MoneyTracker client settings."""

    # Remote store
    remote_url: str = ""
    api_key: str = ""
    access_token: str = ""
    request_timeout_seconds: float = REMOTE_TIMEOUT_SECONDS

    # Local storage
    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    cache_max_entries: int = CACHE_MAX_ENTRIES

    # Sync
    sync_interval_seconds: float = SYNC_INTERVAL_SECONDS

    # Logging
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        settings = cls()

        if "MONEYTRACKER_REMOTE_URL" in os.environ:
            settings.remote_url = os.environ["MONEYTRACKER_REMOTE_URL"]
        if "MONEYTRACKER_API_KEY" in os.environ:
            settings.api_key = os.environ["MONEYTRACKER_API_KEY"]
        if "MONEYTRACKER_ACCESS_TOKEN" in os.environ:
            settings.access_token = os.environ["MONEYTRACKER_ACCESS_TOKEN"]
        if "MONEYTRACKER_REQUEST_TIMEOUT" in os.environ:
            settings.request_timeout_seconds = float(os.environ["MONEYTRACKER_REQUEST_TIMEOUT"])

        if "MONEYTRACKER_DATA_DIR" in os.environ:
            settings.data_dir = Path(os.environ["MONEYTRACKER_DATA_DIR"]).expanduser()
        if "MONEYTRACKER_CACHE_MAX_ENTRIES" in os.environ:
            settings.cache_max_entries = int(os.environ["MONEYTRACKER_CACHE_MAX_ENTRIES"])

        if "MONEYTRACKER_SYNC_INTERVAL" in os.environ:
            settings.sync_interval_seconds = float(os.environ["MONEYTRACKER_SYNC_INTERVAL"])

        if "MONEYTRACKER_LOG_LEVEL" in os.environ:
            settings.log_level = os.environ["MONEYTRACKER_LOG_LEVEL"].upper()

        return settings

    def validate(self) -> list[str]:
        """Validate settings. Returns list of errors."""
        errors = []

        if self.remote_url and not self.remote_url.startswith(("http://", "https://")):
            errors.append(f"remote_url must be http(s), got {self.remote_url}")

        if self.remote_url and not self.api_key:
            errors.append("remote_url set but no api_key configured")

        if self.request_timeout_seconds <= 0:
            errors.append(f"request_timeout_seconds must be > 0, got {self.request_timeout_seconds}")

        if self.cache_max_entries < 1:
            errors.append(f"cache_max_entries must be >= 1, got {self.cache_max_entries}")

        if self.sync_interval_seconds <= 0:
            errors.append(f"sync_interval_seconds must be > 0, got {self.sync_interval_seconds}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Unknown log_level: {self.log_level}")

        return errors


def configure_logging(level: str = "WARNING") -> None:
    """Apply the package log format at ``level``."""
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=LOG_FORMAT)
