"""SQLAlchemy ORM models for local SQLite database.

Tables:
- progress_logs: Dated page-count events, one per progress update
- streaks: One streak record per user (user_id NULL in single-user mode)
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProgressLog(Base):
    """Progress log model - one entry per recorded reading progress event."""

    __tablename__ = "progress_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    book_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    # UTC timestamp, fixed-width ISO so string order is time order
    progress_date: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    pages_read: Mapped[int] = mapped_column(Integer, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)

    def __repr__(self) -> str:
        return (
            f"<ProgressLog(id={self.id}, date={self.progress_date}, "
            f"pages={self.pages_read})>"
        )


class StreakRecord(Base):
    """Streak record model - the persisted streak state for one user."""

    __tablename__ = "streaks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, unique=True, index=True)

    # Streak counters
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    total_days_active: Mapped[int] = mapped_column(Integer, default=0)

    # Rules
    daily_threshold: Mapped[int] = mapped_column(Integer, default=1)
    user_timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    streak_enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    # Calendar days in user_timezone, ISO dates
    last_activity_date: Mapped[str] = mapped_column(String(10), nullable=False)
    streak_start_date: Mapped[str] = mapped_column(String(10), nullable=False)
    last_checked_date: Mapped[Optional[str]] = mapped_column(String(10))

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )

    def __repr__(self) -> str:
        return (
            f"<StreakRecord(user_id={self.user_id}, current={self.current_streak}, "
            f"longest={self.longest_streak})>"
        )


# NULLs never collide under UNIQUE, so the single-user row needs its own index
Index(
    "uq_streaks_single_user",
    func.coalesce(StreakRecord.user_id, 0),
    unique=True,
    sqlite_where=StreakRecord.user_id.is_(None),
)
