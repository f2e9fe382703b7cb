"""Recording progress and keeping the streak in step with it."""

import logging
from datetime import datetime
from typing import Optional

from ..db.models import ProgressLog
from ..db.sqlite import Database, get_db
from ..days import calendar_day, today_in_timezone
from ..exceptions import NotFoundError
from ..streaks.manager import StreakManager
from .repository import ProgressRepository
from .schemas import ProgressLogCreate, ProgressLogUpdate, parse_progress

logger = logging.getLogger(__name__)


class ProgressService:
    """Writes progress entries, then runs the matching streak update."""

    def __init__(
        self,
        db: Optional[Database] = None,
        streak_manager: Optional[StreakManager] = None,
        progress_repo: Optional[ProgressRepository] = None,
    ):
        """Initialize progress service.

        Args:
            db: Database instance
            streak_manager: Streak engine to notify after writes
            progress_repo: Progress log store
        """
        self.db = db or get_db()
        self.progress = progress_repo or ProgressRepository(self.db)
        self.streaks = streak_manager or StreakManager(self.db, progress_repo=self.progress)

    def log_progress(
        self,
        pages_read: int,
        progress_date: Optional[datetime] = None,
        user_id: Optional[int] = None,
        book_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ProgressLog:
        """Record pages read and update the streak.

        Entries for today in the user's timezone go through the incremental
        updater; backdated or future-dated entries trigger a full rebuild.

        Args:
            pages_read: Pages read in this entry
            progress_date: When the reading happened (default: now)
            user_id: Owner, or None for single-user mode
            book_id: Optional book reference
            notes: Optional notes

        Returns:
            The created ProgressLog

        Raises:
            ValidationError: If the entry is invalid
        """
        now = self.streaks.now()
        entry = parse_progress(
            ProgressLogCreate,
            pages_read=pages_read,
            progress_date=progress_date or now,
            user_id=user_id,
            book_id=book_id,
            notes=notes,
        )
        log = self.progress.create_progress_log(entry)

        tz_name = self.streaks.get_streak_basic(user_id).user_timezone
        if calendar_day(entry.progress_date, tz_name) == today_in_timezone(tz_name, now):
            self.streaks.check_and_reset_if_needed(user_id)
            self.streaks.update_streaks(user_id)
        else:
            logger.debug("Backdated progress for user %s, rebuilding streak", user_id)
            self.streaks.rebuild_streak(user_id)

        return log

    def edit_progress(
        self,
        log_id: str,
        pages_read: Optional[int] = None,
        progress_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ProgressLog:
        """Edit a past progress entry and rebuild the streak.

        Raises:
            NotFoundError: If no entry has ``log_id``
            ValidationError: If the new values are invalid
        """
        changes = {
            name: value
            for name, value in (
                ("pages_read", pages_read),
                ("progress_date", progress_date),
                ("notes", notes),
            )
            if value is not None
        }
        update = parse_progress(ProgressLogUpdate, **changes)

        log = self.progress.update_progress_log(log_id, update)
        if log is None:
            raise NotFoundError(f"Progress entry not found: {log_id}")

        self.streaks.rebuild_streak(log.user_id)
        return log

    def delete_progress(self, log_id: str) -> None:
        """Delete a progress entry and rebuild the streak.

        Raises:
            NotFoundError: If no entry has ``log_id``
        """
        log = self.progress.get_progress_log(log_id)
        if log is None or not self.progress.delete_progress_log(log_id):
            raise NotFoundError(f"Progress entry not found: {log_id}")

        self.streaks.rebuild_streak(log.user_id)
