"""Storage for streak records, one per user."""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..config import BASELINE_TIMEZONE, MAX_THRESHOLD, MIN_THRESHOLD, Config, get_config
from ..days import is_valid_timezone, today_in_timezone
from ..db.models import StreakRecord
from ..db.sqlite import Database, get_db
from ..exceptions import NotFoundError
from .schemas import validate_threshold, validate_timezone

logger = logging.getLogger(__name__)


class StreakRepository:
    """Reads and writes StreakRecord rows.

    ``user_id=None`` addresses the single-user record.
    """

    def __init__(self, db: Optional[Database] = None, config: Optional[Config] = None):
        """Initialize streak repository.

        Args:
            db: Database instance
            config: Configuration supplying defaults for new records
        """
        self.db = db or get_db()
        self.config = config or get_config()

    @staticmethod
    def _owner(user_id: Optional[int]):
        if user_id is None:
            return StreakRecord.user_id.is_(None)
        return StreakRecord.user_id == user_id

    def default_timezone(self) -> str:
        """Timezone for new records, falling back to the baseline."""
        name = self.config.default_timezone
        if is_valid_timezone(name):
            return name
        logger.warning("Configured timezone %r is invalid, using %s", name, BASELINE_TIMEZONE)
        return BASELINE_TIMEZONE

    def default_threshold(self) -> int:
        """Daily threshold for new records, clamped to the allowed range."""
        return min(max(self.config.default_threshold, MIN_THRESHOLD), MAX_THRESHOLD)

    def find_by_user_id(self, user_id: Optional[int] = None) -> Optional[StreakRecord]:
        """Get the streak record for a user.

        Args:
            user_id: Owner, or None for single-user mode

        Returns:
            StreakRecord or None
        """
        with self.db.get_session() as session:
            stmt = select(StreakRecord).where(self._owner(user_id))
            record = session.execute(stmt).scalar_one_or_none()
            if record:
                session.expunge(record)
            return record

    def _insert(
        self, user_id: Optional[int], now: Optional[datetime], fields: dict[str, Any]
    ) -> StreakRecord:
        tz_name = fields.get("user_timezone") or self.default_timezone()
        today = today_in_timezone(tz_name, now).isoformat()
        values = {
            "current_streak": 0,
            "longest_streak": 0,
            "total_days_active": 0,
            "daily_threshold": self.default_threshold(),
            "user_timezone": tz_name,
            "streak_enabled": True,
            "last_activity_date": today,
            "streak_start_date": today,
        }
        values.update(fields)

        with self.db.get_session() as session:
            record = StreakRecord(user_id=user_id, **values)
            session.add(record)
            session.commit()
            session.refresh(record)
            session.expunge(record)

        logger.debug("Created streak record %s for user %s", record.id, user_id)
        return record

    def _find_after_conflict(self, user_id: Optional[int], exc: IntegrityError) -> StreakRecord:
        existing = self.find_by_user_id(user_id)
        if existing is None:
            raise exc
        logger.debug("Streak record for user %s was created concurrently", user_id)
        return existing

    def create(
        self,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
        **fields: Any,
    ) -> StreakRecord:
        """Create a zeroed streak record, overridden by ``fields``.

        If the user already has a record, that record is returned unchanged.
        """
        try:
            return self._insert(user_id, now, fields)
        except IntegrityError as exc:
            return self._find_after_conflict(user_id, exc)

    def get_or_create(
        self, user_id: Optional[int] = None, now: Optional[datetime] = None
    ) -> StreakRecord:
        """Get the user's streak record, creating a zeroed one if missing."""
        record = self.find_by_user_id(user_id)
        if record is None:
            record = self.create(user_id, now=now)
        return record

    def update(self, record_id: str, fields: dict[str, Any]) -> Optional[StreakRecord]:
        """Apply ``fields`` to a record in a single read-modify-write.

        Args:
            record_id: StreakRecord id
            fields: Column names and new values

        Returns:
            Updated StreakRecord, or None if the record no longer exists
        """
        unknown = [name for name in fields if name not in StreakRecord.__table__.columns]
        if unknown:
            raise ValueError(f"Unknown streak fields: {', '.join(sorted(unknown))}")

        with self.db.get_session() as session:
            record = session.get(StreakRecord, record_id)
            if record is None:
                return None
            for name, value in fields.items():
                setattr(record, name, value)
            session.commit()
            session.refresh(record)
            session.expunge(record)
            return record

    def upsert(
        self,
        user_id: Optional[int],
        fields: dict[str, Any],
        now: Optional[datetime] = None,
    ) -> StreakRecord:
        """Update the user's record, or create it with ``fields`` applied."""
        existing = self.find_by_user_id(user_id)
        if existing is None:
            try:
                return self._insert(user_id, now, fields)
            except IntegrityError as exc:
                existing = self._find_after_conflict(user_id, exc)

        updated = self.update(existing.id, fields)
        if updated is None:
            raise NotFoundError(f"Streak record {existing.id} disappeared during update")
        return updated

    def update_threshold(
        self, user_id: Optional[int], new_threshold: Any, now: Optional[datetime] = None
    ) -> StreakRecord:
        """Validate and store a new daily threshold.

        Raises:
            ValidationError: If the threshold is not an integer in 1..9999
        """
        threshold = validate_threshold(new_threshold)
        return self.upsert(user_id, {"daily_threshold": threshold}, now=now)

    def set_timezone(
        self, user_id: Optional[int], tz_name: Any, now: Optional[datetime] = None
    ) -> StreakRecord:
        """Validate and store the user's timezone.

        Raises:
            ValidationError: If ``tz_name`` is not a known IANA timezone
        """
        tz_name = validate_timezone(tz_name)
        return self.upsert(user_id, {"user_timezone": tz_name}, now=now)

    def get_timezone(self, user_id: Optional[int] = None) -> str:
        """The user's timezone, or the default if there is no record yet."""
        record = self.find_by_user_id(user_id)
        if record and is_valid_timezone(record.user_timezone):
            return record.user_timezone
        return self.default_timezone()
