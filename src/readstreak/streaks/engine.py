"""Pure streak computations.

Nothing in this module touches storage or the clock. ``summarize_history``
recomputes a streak from a full history of daily page totals;
``advance_streak`` applies one "today changed" update to an existing state.
Replaying every day through ``advance_streak`` in order ends in the same
counters ``summarize_history`` reports for that history.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

from ..days import calendar_day, days_between


@dataclass
class StreakState:
    """Counters and days the incremental updater works from."""

    current_streak: int
    longest_streak: int
    total_days_active: int
    last_activity_date: date
    streak_start_date: date


@dataclass
class StreakSummary:
    """Result of recomputing a streak from the whole history."""

    current_streak: int = 0
    longest_streak: int = 0
    total_days_active: int = 0
    last_activity_date: Optional[date] = None
    streak_start_date: Optional[date] = None


def bucket_pages_by_day(
    entries: Iterable[tuple[datetime, int]], tz_name: str
) -> dict[date, int]:
    """Sum pages read per calendar day in timezone ``tz_name``.

    Args:
        entries: (timestamp, pages_read) pairs
        tz_name: IANA timezone identifier

    Returns:
        Mapping of calendar day to total pages read that day
    """
    totals: dict[date, int] = defaultdict(int)
    for moment, pages in entries:
        totals[calendar_day(moment, tz_name)] += pages or 0
    return dict(totals)


def find_qualifying_days(daily_pages: dict[date, int], threshold: int) -> list[date]:
    """Days whose page total meets ``threshold``, oldest first."""
    return sorted(day for day, pages in daily_pages.items() if pages >= threshold)


def find_runs(days: list[date]) -> list[tuple[date, int]]:
    """Split sorted qualifying days into runs of consecutive days.

    Returns:
        List of (run_start, run_length), oldest first
    """
    runs: list[tuple[date, int]] = []
    previous: Optional[date] = None
    for day in days:
        if previous is not None and days_between(previous, day) == 1:
            start, length = runs[-1]
            runs[-1] = (start, length + 1)
        else:
            runs.append((day, 1))
        previous = day
    return runs


def summarize_history(
    daily_pages: dict[date, int], threshold: int, today: date
) -> StreakSummary:
    """Recompute streak counters from every day of recorded reading.

    The most recent run only counts as the current streak while it is still
    alive, i.e. its last day is today or yesterday.

    Args:
        daily_pages: Pages read per calendar day
        threshold: Minimum pages for a day to qualify
        today: Today's calendar day in the same timezone as ``daily_pages``

    Returns:
        StreakSummary; ``streak_start_date`` is None when the streak is broken
    """
    days = find_qualifying_days(daily_pages, threshold)
    if not days:
        return StreakSummary()

    runs = find_runs(days)
    last_day = days[-1]
    last_start, last_length = runs[-1]

    if days_between(last_day, today) > 1:
        current, start = 0, None
    else:
        current, start = last_length, last_start

    return StreakSummary(
        current_streak=current,
        longest_streak=max(length for _, length in runs),
        total_days_active=len(days),
        last_activity_date=last_day,
        streak_start_date=start,
    )


def advance_streak(
    state: StreakState, today: date, today_pages: int, threshold: int
) -> dict[str, Any]:
    """Work out how today's page total changes the streak.

    Args:
        state: Current streak state
        today: Today's calendar day in the user's timezone
        today_pages: Pages read so far today
        threshold: Minimum pages for a day to qualify

    Returns:
        Mapping of changed field names to new values; empty if nothing changes
    """
    if not today_pages:
        return {}

    threshold_met = today_pages >= threshold
    days_diff = days_between(state.last_activity_date, today)

    if days_diff < 0:
        return {}

    if days_diff == 0:
        if state.current_streak == 0 and threshold_met:
            changes: dict[str, Any] = {
                "current_streak": 1,
                "longest_streak": max(state.longest_streak, 1),
                "last_activity_date": today,
                "streak_start_date": today,
            }
            if state.total_days_active == 0:
                changes["total_days_active"] = 1
            return changes
        if state.current_streak > 0 and not threshold_met:
            # Threshold raised during the day
            return {"current_streak": 0, "last_activity_date": today}
        return {}

    # A new day that has not reached the threshold yet may still get there
    if not threshold_met:
        return {}

    if days_diff == 1:
        current = state.current_streak + 1
        changes = {
            "current_streak": current,
            "longest_streak": max(state.longest_streak, current),
            "total_days_active": state.total_days_active + 1,
            "last_activity_date": today,
        }
        if state.current_streak == 0:
            changes["streak_start_date"] = today
        return changes

    return {
        "current_streak": 1,
        "longest_streak": max(state.longest_streak, 1),
        "total_days_active": state.total_days_active + 1,
        "last_activity_date": today,
        "streak_start_date": today,
    }
