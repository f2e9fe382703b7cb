"""Configuration management for readstreak.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

BASELINE_TIMEZONE = "America/New_York"
MIN_THRESHOLD = 1
MAX_THRESHOLD = 9999
MAX_HISTORY_DAYS = 3650


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Defaults for newly created streak records
    default_timezone: str
    default_threshold: int

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "READSTREAK_DB_PATH",
            str(Path.home() / ".readstreak" / "readstreak.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            default_timezone=os.environ.get(
                "READSTREAK_DEFAULT_TIMEZONE", BASELINE_TIMEZONE
            ),
            default_threshold=int(os.environ.get("READSTREAK_DEFAULT_THRESHOLD", "1")),
            log_level=os.environ.get("READSTREAK_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        try:
            ZoneInfo(self.default_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown default timezone: {self.default_timezone}")

        if not MIN_THRESHOLD <= self.default_threshold <= MAX_THRESHOLD:
            errors.append(
                f"Default threshold must be between {MIN_THRESHOLD} and {MAX_THRESHOLD}"
            )

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
