"""Pytest configuration and shared fixtures.

This module provides fixtures for testing readstreak, including in-memory
databases, a controllable clock, and ready-made repositories and services.
"""

from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest

from readstreak.config import reset_config
from readstreak.db.sqlite import Database, reset_db
from readstreak.progress.repository import ProgressRepository
from readstreak.progress.service import ProgressService
from readstreak.streaks.manager import StreakManager
from readstreak.streaks.repository import StreakRepository


ENV_VARS = (
    "READSTREAK_DB_PATH",
    "READSTREAK_DEFAULT_TIMEZONE",
    "READSTREAK_DEFAULT_THRESHOLD",
    "READSTREAK_LOG_LEVEL",
)


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch) -> Generator[None, None, None]:
    """Run every test with default configuration."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    reset_db()
    yield
    reset_config()
    reset_db()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Database:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    return database


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at 2025-03-10 12:00 in America/New_York (16:00 UTC)."""
    return FrozenClock(datetime(2025, 3, 10, 16, 0, tzinfo=timezone.utc))


# ============================================================================
# Repository and Service Fixtures
# ============================================================================


@pytest.fixture
def progress_repo(db: Database) -> ProgressRepository:
    return ProgressRepository(db)


@pytest.fixture
def streak_repo(db: Database) -> StreakRepository:
    return StreakRepository(db)


@pytest.fixture
def manager(db: Database, progress_repo, streak_repo, clock) -> StreakManager:
    """Create a StreakManager on the test database and clock."""
    return StreakManager(db, progress_repo=progress_repo, streak_repo=streak_repo, clock=clock)


@pytest.fixture
def service(db: Database, manager: StreakManager, progress_repo) -> ProgressService:
    """Create a ProgressService wired to the test StreakManager."""
    return ProgressService(db, streak_manager=manager, progress_repo=progress_repo)
