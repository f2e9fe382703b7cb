"""Database module for local SQLite storage."""

from .models import Base, ProgressLog, StreakRecord
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Base",
    "ProgressLog",
    "StreakRecord",
    "Database",
    "get_db",
    "reset_db",
]
