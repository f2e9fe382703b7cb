"""Reading streak engine."""

from .engine import StreakState, StreakSummary, advance_streak, summarize_history
from .manager import StreakManager
from .repository import StreakRepository
from .schemas import (
    DailyActivity,
    StreakAnalytics,
    StreakResponse,
    StreakSummaryStats,
    ThresholdUpdate,
    TimezoneUpdate,
)

__all__ = [
    "StreakManager",
    "StreakRepository",
    "StreakState",
    "StreakSummary",
    "advance_streak",
    "summarize_history",
    "DailyActivity",
    "StreakAnalytics",
    "StreakResponse",
    "StreakSummaryStats",
    "ThresholdUpdate",
    "TimezoneUpdate",
]
