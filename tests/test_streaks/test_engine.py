"""Tests for the pure streak computations."""

import random
from datetime import date, datetime, timedelta, timezone

import pytest

from readstreak.days import days_between
from readstreak.streaks.engine import (
    StreakState,
    advance_streak,
    bucket_pages_by_day,
    find_qualifying_days,
    find_runs,
    summarize_history,
)

TODAY = date(2025, 3, 10)


def day(offset: int) -> date:
    """Calendar day ``offset`` days relative to TODAY."""
    return TODAY + timedelta(days=offset)


def state(current=0, longest=0, total=0, last=TODAY, start=TODAY) -> StreakState:
    return StreakState(
        current_streak=current,
        longest_streak=longest,
        total_days_active=total,
        last_activity_date=last,
        streak_start_date=start,
    )


class TestBucketing:
    """Tests for grouping entries by calendar day."""

    def test_sums_pages_per_local_day(self):
        entries = [
            (datetime(2025, 3, 10, 3, 0, tzinfo=timezone.utc), 10),  # Mar 9 in New York
            (datetime(2025, 3, 10, 14, 0, tzinfo=timezone.utc), 7),
            (datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc), 3),
        ]

        totals = bucket_pages_by_day(entries, "America/New_York")

        assert totals == {date(2025, 3, 9): 10, date(2025, 3, 10): 10}

    def test_empty(self):
        assert bucket_pages_by_day([], "UTC") == {}


class TestRuns:
    """Tests for qualifying days and run detection."""

    def test_threshold_filters_days(self):
        pages = {day(-3): 25, day(-2): 15, day(-1): 30}

        assert find_qualifying_days(pages, 20) == [day(-3), day(-1)]

    def test_threshold_is_inclusive(self):
        assert find_qualifying_days({TODAY: 20}, 20) == [TODAY]

    def test_runs_split_on_gaps(self):
        days = [day(-9), day(-8), day(-7), day(-4), day(-1), day(0)]

        assert find_runs(days) == [(day(-9), 3), (day(-4), 1), (day(-1), 2)]

    def test_runs_cross_month_boundary(self):
        days = [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1)]

        assert find_runs(days) == [(date(2025, 2, 27), 3)]

    def test_no_days(self):
        assert find_runs([]) == []


class TestSummarizeHistory:
    """Tests for recomputing a streak from the whole history."""

    def test_no_activity(self):
        summary = summarize_history({}, 1, TODAY)

        assert summary.current_streak == 0
        assert summary.longest_streak == 0
        assert summary.total_days_active == 0
        assert summary.last_activity_date is None
        assert summary.streak_start_date is None

    def test_nothing_meets_threshold(self):
        summary = summarize_history({day(-1): 5, TODAY: 9}, 10, TODAY)

        assert summary.total_days_active == 0
        assert summary.last_activity_date is None

    def test_streak_ending_today(self):
        pages = {day(-2): 5, day(-1): 5, TODAY: 5}

        summary = summarize_history(pages, 1, TODAY)

        assert summary.current_streak == 3
        assert summary.streak_start_date == day(-2)
        assert summary.last_activity_date == TODAY

    def test_streak_ending_yesterday_is_alive(self):
        summary = summarize_history({day(-2): 5, day(-1): 5}, 1, TODAY)

        assert summary.current_streak == 2
        assert summary.streak_start_date == day(-2)

    def test_streak_ending_two_days_ago_is_broken(self):
        summary = summarize_history({day(-3): 5, day(-2): 5}, 1, TODAY)

        assert summary.current_streak == 0
        assert summary.longest_streak == 2
        assert summary.total_days_active == 2
        assert summary.last_activity_date == day(-2)
        assert summary.streak_start_date is None

    def test_longest_from_earlier_run(self):
        pages = {day(-10): 1, day(-9): 1, day(-8): 1, day(-7): 1, day(-1): 1, TODAY: 1}

        summary = summarize_history(pages, 1, TODAY)

        assert summary.current_streak == 2
        assert summary.longest_streak == 4
        assert summary.total_days_active == 6

    def test_below_threshold_day_breaks_run(self):
        """Test a day under the threshold splits runs like a missing day."""
        pages = {day(-3): 25, day(-2): 15, day(-1): 30}

        summary = summarize_history(pages, 20, TODAY)

        assert summary.current_streak == 1
        assert summary.longest_streak == 1
        assert summary.total_days_active == 2


class TestAdvanceStreak:
    """Tests for the incremental update."""

    def test_no_pages_changes_nothing(self):
        assert advance_streak(state(current=2, last=day(-1)), TODAY, 0, 1) == {}

    def test_first_day(self):
        changes = advance_streak(state(), TODAY, 5, 1)

        assert changes == {
            "current_streak": 1,
            "longest_streak": 1,
            "total_days_active": 1,
            "last_activity_date": TODAY,
            "streak_start_date": TODAY,
        }

    def test_same_day_again_changes_nothing(self):
        current = state(current=3, longest=3, total=3, start=day(-2))

        assert advance_streak(current, TODAY, 50, 1) == {}

    def test_same_day_below_threshold_resets(self):
        """Test a raised threshold undoes a day that no longer qualifies."""
        current = state(current=4, longest=4, total=4, start=day(-3))

        changes = advance_streak(current, TODAY, 5, 10)

        assert changes == {"current_streak": 0, "last_activity_date": TODAY}

    def test_same_day_restart_keeps_total(self):
        current = state(current=0, longest=4, total=7, start=day(-5))

        changes = advance_streak(current, TODAY, 10, 10)

        assert changes["current_streak"] == 1
        assert changes["longest_streak"] == 4
        assert "total_days_active" not in changes

    def test_consecutive_day_extends(self):
        current = state(current=3, longest=3, total=5, last=day(-1), start=day(-3))

        changes = advance_streak(current, TODAY, 10, 10)

        assert changes == {
            "current_streak": 4,
            "longest_streak": 4,
            "total_days_active": 6,
            "last_activity_date": TODAY,
        }

    def test_consecutive_day_after_reset_sets_start(self):
        current = state(current=0, longest=2, total=2, last=day(-1), start=day(-5))

        changes = advance_streak(current, TODAY, 10, 10)

        assert changes["current_streak"] == 1
        assert changes["streak_start_date"] == TODAY

    def test_consecutive_day_below_threshold_waits(self):
        current = state(current=3, longest=3, total=3, last=day(-1), start=day(-3))

        assert advance_streak(current, TODAY, 9, 10) == {}

    def test_gap_restarts(self):
        current = state(current=6, longest=6, total=6, last=day(-3), start=day(-8))

        changes = advance_streak(current, TODAY, 1, 1)

        assert changes == {
            "current_streak": 1,
            "longest_streak": 6,
            "total_days_active": 7,
            "last_activity_date": TODAY,
            "streak_start_date": TODAY,
        }

    def test_last_activity_in_future_changes_nothing(self):
        current = state(current=2, longest=2, total=2, last=day(2))

        assert advance_streak(current, TODAY, 10, 1) == {}


class TestReplayAgreesWithSummary:
    """Replaying a history day by day ends where a full recompute does."""

    @staticmethod
    def replay(events, threshold, first_day, final_day):
        current = state(last=first_day, start=first_day)
        totals: dict[date, int] = {}

        for event_day, pages in events:
            if days_between(current.last_activity_date, event_day) > 1:
                current.current_streak = 0
            totals[event_day] = totals.get(event_day, 0) + pages
            previous_longest = current.longest_streak
            for name, value in advance_streak(
                current, event_day, totals[event_day], threshold
            ).items():
                setattr(current, name, value)
            assert current.longest_streak >= previous_longest
            assert current.current_streak <= current.longest_streak

        if days_between(current.last_activity_date, final_day) > 1:
            current.current_streak = 0
        return current, totals

    @pytest.mark.parametrize("seed", range(20))
    def test_random_histories(self, seed):
        rng = random.Random(seed)
        threshold = rng.randint(1, 10)
        first_day = date(2025, 1, 1)

        events = []
        for offset in range(40):
            if rng.random() < 0.35:
                continue
            for _ in range(rng.randint(1, 3)):
                events.append((first_day + timedelta(days=offset), rng.randint(0, 8)))
        final_day = events[-1][0] + timedelta(days=rng.randint(0, 3))

        replayed, totals = self.replay(events, threshold, first_day, final_day)
        summary = summarize_history(totals, threshold, final_day)

        assert replayed.current_streak == summary.current_streak
        assert replayed.longest_streak == summary.longest_streak
        assert replayed.total_days_active == summary.total_days_active
