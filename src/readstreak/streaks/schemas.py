"""Pydantic schemas for reading streaks."""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, StrictInt, field_validator
from pydantic import ValidationError as SchemaValidationError

from ..config import MAX_THRESHOLD, MIN_THRESHOLD
from ..exceptions import ValidationError
from ..days import is_valid_timezone


class ThresholdUpdate(BaseModel):
    """Schema for changing the daily page threshold."""

    daily_threshold: StrictInt = Field(..., ge=MIN_THRESHOLD, le=MAX_THRESHOLD)


class TimezoneUpdate(BaseModel):
    """Schema for changing the user's timezone."""

    user_timezone: str

    @field_validator("user_timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError(f"Invalid timezone: {value}")
        return value


def _first_error(exc: SchemaValidationError) -> str:
    error = exc.errors()[0]
    return error["msg"]


def validate_threshold(value: Any) -> int:
    """Validate a daily threshold.

    Raises:
        ValidationError: If ``value`` is not an integer in 1..9999
    """
    try:
        return ThresholdUpdate(daily_threshold=value).daily_threshold
    except SchemaValidationError as exc:
        raise ValidationError(
            f"Daily threshold must be an integer between {MIN_THRESHOLD} and "
            f"{MAX_THRESHOLD}: {_first_error(exc)}"
        ) from exc


def validate_timezone(value: Any) -> str:
    """Validate an IANA timezone identifier.

    Raises:
        ValidationError: If ``value`` is not a known timezone
    """
    try:
        return TimezoneUpdate(user_timezone=value).user_timezone
    except SchemaValidationError as exc:
        raise ValidationError(f"Invalid timezone: {value!r}") from exc


class StreakResponse(BaseModel):
    """Schema for streak response."""

    id: UUID
    user_id: Optional[int]
    current_streak: int
    longest_streak: int
    total_days_active: int
    daily_threshold: int
    user_timezone: str
    streak_enabled: bool
    last_activity_date: date
    streak_start_date: date
    last_checked_date: Optional[date]
    created_at: datetime
    updated_at: datetime

    # Derived from user_timezone, not persisted
    hours_remaining_today: int = 0

    model_config = {"from_attributes": True}


class DailyActivity(BaseModel):
    """Pages read on one calendar day."""

    day: date
    pages_read: int
    threshold_met: bool


class StreakSummaryStats(BaseModel):
    """Headline streak numbers."""

    current_streak: int
    longest_streak: int
    daily_threshold: int
    total_days_active: int


class StreakAnalytics(BaseModel):
    """Streak numbers plus the day-by-day reading history behind them."""

    streak: StreakSummaryStats
    daily_reading_history: list[DailyActivity]
