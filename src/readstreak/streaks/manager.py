"""Streak manager: the reading streak engine's service surface.

Callers are expected to:
- run ``check_and_reset_if_needed`` before showing ``current_streak``,
- run ``update_streaks`` after every progress entry recorded for today,
- run ``rebuild_streak`` after threshold or timezone changes, backdated
  entries, and historical edits.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional, Union

from ..config import MAX_HISTORY_DAYS
from ..days import (
    calendar_day,
    day_bounds_utc,
    days_between,
    ensure_utc,
    from_storage,
    hours_remaining_today,
    parse_day,
    today_in_timezone,
    utc_now,
)
from ..db.models import StreakRecord
from ..db.sqlite import Database, get_db
from ..exceptions import NotFoundError, ValidationError
from ..progress.repository import ProgressRepository
from .engine import StreakState, advance_streak, bucket_pages_by_day, summarize_history
from .repository import StreakRepository
from .schemas import (
    DailyActivity,
    StreakAnalytics,
    StreakResponse,
    StreakSummaryStats,
    validate_threshold,
)

logger = logging.getLogger(__name__)

HISTORY_PERIODS = ("this-year", "all-time")


def history_window_days(days: Union[int, str], today: date) -> int:
    """Resolve a history window to the number of days before today it covers.

    ``"this-year"`` counts from January 1st of ``today``'s year and
    ``"all-time"`` is the longest window allowed.
    """
    if days == "this-year":
        return days_between(date(today.year, 1, 1), today)
    if days == "all-time":
        return MAX_HISTORY_DAYS
    if isinstance(days, bool) or not isinstance(days, int):
        raise ValidationError(
            f"days must be an integer or one of: {', '.join(HISTORY_PERIODS)}"
        )
    if not 1 <= days <= MAX_HISTORY_DAYS:
        raise ValidationError(f"days must be between 1 and {MAX_HISTORY_DAYS}")
    return days


class StreakManager:
    """Maintains each user's reading streak from their progress history."""

    def __init__(
        self,
        db: Optional[Database] = None,
        progress_repo: Optional[ProgressRepository] = None,
        streak_repo: Optional[StreakRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize streak manager.

        Args:
            db: Database instance
            progress_repo: Progress log store (defaults to one on ``db``)
            streak_repo: Streak record store (defaults to one on ``db``)
            clock: Returns the current time; defaults to UTC now
        """
        self.db = db or get_db()
        self.progress = progress_repo or ProgressRepository(self.db)
        self.streaks = streak_repo or StreakRepository(self.db)
        self.clock = clock or utc_now

    def now(self) -> datetime:
        return ensure_utc(self.clock())

    def _save(self, record: StreakRecord, changes: dict[str, Any]) -> StreakRecord:
        fields = {
            name: value.isoformat() if isinstance(value, date) else value
            for name, value in changes.items()
        }
        updated = self.streaks.update(record.id, fields)
        if updated is None:
            raise NotFoundError(f"Streak record {record.id} disappeared during update")
        return updated

    def _pages_on(self, day: date, tz_name: str, user_id: Optional[int]) -> int:
        start_utc, end_utc = day_bounds_utc(day, tz_name)
        progress = self.progress.get_progress_for_date(start_utc, end_utc, user_id)
        return progress["pages_read"] if progress else 0

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_streak_basic(self, user_id: Optional[int] = None) -> StreakRecord:
        """Get the stored streak record, creating it if needed."""
        return self.streaks.get_or_create(user_id, now=self.now())

    def get_streak(self, user_id: Optional[int] = None) -> StreakResponse:
        """Get the streak with the hours left in the user's day.

        Read-only apart from lazily creating the record; it does not apply
        the day-boundary reset.
        """
        now = self.now()
        record = self.streaks.get_or_create(user_id, now=now)
        response = StreakResponse.model_validate(record)
        return response.model_copy(
            update={"hours_remaining_today": hours_remaining_today(record.user_timezone, now)}
        )

    # -------------------------------------------------------------------------
    # Day-boundary guard
    # -------------------------------------------------------------------------

    def check_and_reset_if_needed(self, user_id: Optional[int] = None) -> bool:
        """Zero a stale streak, at most once per calendar day.

        Returns:
            True if the current streak was reset
        """
        now = self.now()
        record = self.streaks.get_or_create(user_id, now=now)
        today = today_in_timezone(record.user_timezone, now)

        if record.last_checked_date == today.isoformat():
            return False

        record = self._save(record, {"last_checked_date": today})

        days_since = days_between(parse_day(record.last_activity_date), today)
        if days_since > 1 and record.current_streak > 0:
            logger.info(
                "Resetting streak of %d for user %s (%d days since last activity)",
                record.current_streak,
                user_id,
                days_since,
            )
            self._save(record, {"current_streak": 0})
            return True

        return False

    # -------------------------------------------------------------------------
    # Incremental update
    # -------------------------------------------------------------------------

    def update_streaks(self, user_id: Optional[int] = None) -> StreakRecord:
        """Fold today's reading into the streak.

        Must be called after every progress entry recorded for today; a day
        that crosses the threshold is only noticed on the next call.

        Returns:
            The updated StreakRecord
        """
        now = self.now()
        record = self.streaks.find_by_user_id(user_id)

        if record is None:
            record = self.streaks.create(user_id, now=now)
            today = today_in_timezone(record.user_timezone, now)
            pages = self._pages_on(today, record.user_timezone, user_id)
            if pages and pages >= record.daily_threshold:
                logger.info("First reading day recorded for user %s", user_id)
                return self._save(
                    record,
                    {
                        "current_streak": 1,
                        "longest_streak": 1,
                        "total_days_active": 1,
                        "last_activity_date": today,
                        "streak_start_date": today,
                    },
                )
            return record

        today = today_in_timezone(record.user_timezone, now)
        if parse_day(record.last_activity_date) > today:
            # Future-dated entries moved last activity past today
            logger.info("Last activity for user %s is after today, rebuilding", user_id)
            return self.rebuild_streak(user_id, now=now)

        pages = self._pages_on(today, record.user_timezone, user_id)
        if not pages:
            return record

        state = StreakState(
            current_streak=record.current_streak,
            longest_streak=record.longest_streak,
            total_days_active=record.total_days_active,
            last_activity_date=parse_day(record.last_activity_date),
            streak_start_date=parse_day(record.streak_start_date),
        )
        changes = advance_streak(state, today, pages, record.daily_threshold)
        if not changes:
            return record

        logger.debug("Streak changes for user %s: %s", user_id, changes)
        return self._save(record, changes)

    # -------------------------------------------------------------------------
    # Full rebuild
    # -------------------------------------------------------------------------

    def rebuild_streak(
        self, user_id: Optional[int] = None, now: Optional[datetime] = None
    ) -> StreakRecord:
        """Recompute the streak from the complete progress history.

        Args:
            user_id: Owner, or None for single-user mode
            now: Point in time to evaluate "today" at (default: clock)

        Returns:
            The rebuilt StreakRecord
        """
        now = ensure_utc(now) if now else self.now()
        existing = self.streaks.find_by_user_id(user_id)
        if existing is not None:
            tz_name, threshold = existing.user_timezone, existing.daily_threshold
        else:
            tz_name = self.streaks.default_timezone()
            threshold = self.streaks.default_threshold()
        today = today_in_timezone(tz_name, now)

        entries = self.progress.get_all_progress_ordered(user_id)
        if not entries:
            logger.info("No progress for user %s, resetting streak", user_id)
            fields: dict[str, Any] = {
                "current_streak": 0,
                "longest_streak": 0,
                "total_days_active": 0,
                "last_activity_date": today.isoformat(),
                "streak_start_date": today.isoformat(),
            }
            return self.streaks.upsert(user_id, fields, now=now)

        daily_pages = bucket_pages_by_day(
            ((from_storage(entry.progress_date), entry.pages_read) for entry in entries),
            tz_name,
        )
        summary = summarize_history(daily_pages, threshold, today)

        fields = {
            "current_streak": summary.current_streak,
            "longest_streak": summary.longest_streak,
            "total_days_active": summary.total_days_active,
            "last_activity_date": (summary.last_activity_date or today).isoformat(),
        }
        if summary.streak_start_date is not None:
            fields["streak_start_date"] = summary.streak_start_date.isoformat()

        logger.info(
            "Rebuilt streak for user %s: current=%d longest=%d total=%d",
            user_id,
            summary.current_streak,
            summary.longest_streak,
            summary.total_days_active,
        )
        return self.streaks.upsert(user_id, fields, now=now)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def update_threshold(self, user_id: Optional[int], new_threshold: Any) -> StreakRecord:
        """Change the daily page threshold and re-evaluate all history.

        Raises:
            ValidationError: If ``new_threshold`` is not an integer in 1..9999
        """
        self.streaks.update_threshold(user_id, new_threshold, now=self.now())
        return self.rebuild_streak(user_id)

    def set_timezone(self, user_id: Optional[int], tz_name: Any) -> StreakRecord:
        """Change the user's timezone and re-bucket all history into its days.

        Raises:
            ValidationError: If ``tz_name`` is not a known IANA timezone
        """
        self.streaks.set_timezone(user_id, tz_name, now=self.now())
        return self.rebuild_streak(user_id)

    def set_streak_enabled(
        self,
        user_id: Optional[int],
        enabled: bool,
        daily_threshold: Optional[Any] = None,
    ) -> StreakRecord:
        """Turn streak tracking on or off.

        Enabling applies ``daily_threshold`` when given and rebuilds from
        history. Disabling keeps every stored value and ignores the threshold.
        """
        if not isinstance(enabled, bool):
            raise ValidationError("streak_enabled must be a boolean")

        if not enabled:
            return self.streaks.upsert(user_id, {"streak_enabled": False}, now=self.now())

        fields: dict[str, Any] = {"streak_enabled": True}
        if daily_threshold is not None:
            fields["daily_threshold"] = validate_threshold(daily_threshold)
        self.streaks.upsert(user_id, fields, now=self.now())
        return self.rebuild_streak(user_id)

    # -------------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------------

    def get_activity_history(
        self, user_id: Optional[int] = None, days: Union[int, str] = 365
    ) -> list[DailyActivity]:
        """Pages read per day, zero-filled, from the window start through today.

        The window starts ``days`` days ago, or at the first recorded day if
        that is later. ``days`` may also be one of HISTORY_PERIODS.

        Raises:
            ValidationError: If ``days`` is outside 1..3650 or an unknown period
        """
        now = self.now()
        record = self.streaks.get_or_create(user_id, now=now)
        tz_name = record.user_timezone
        today = today_in_timezone(tz_name, now)
        days = history_window_days(days, today)

        entries = self.progress.get_all_progress_ordered(user_id)
        daily_pages = bucket_pages_by_day(
            ((from_storage(entry.progress_date), entry.pages_read) for entry in entries),
            tz_name,
        )

        start = today - timedelta(days=days)
        earliest = self.progress.get_earliest_progress_date(user_id)
        if earliest is not None:
            start = max(start, calendar_day(earliest, tz_name))

        history = []
        day = start
        while day <= today:
            pages = daily_pages.get(day, 0)
            history.append(
                DailyActivity(
                    day=day,
                    pages_read=pages,
                    threshold_met=pages >= record.daily_threshold,
                )
            )
            day += timedelta(days=1)
        return history

    def get_analytics(self, user_id: Optional[int] = None, days: int = 365) -> StreakAnalytics:
        """Streak numbers plus the daily history behind them."""
        history = self.get_activity_history(user_id, days)
        record = self.get_streak_basic(user_id)
        return StreakAnalytics(
            streak=StreakSummaryStats(
                current_streak=record.current_streak,
                longest_streak=record.longest_streak,
                daily_threshold=record.daily_threshold,
                total_days_active=record.total_days_active,
            ),
            daily_reading_history=history,
        )
