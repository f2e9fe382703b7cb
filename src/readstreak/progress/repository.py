"""Storage for progress log entries.

The streak engine only reads from here: the full ordered history for
rebuilds and a single day's total for incremental updates.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select

from ..db.models import ProgressLog
from ..db.sqlite import Database, get_db
from ..days import from_storage, to_storage
from .schemas import ProgressLogCreate, ProgressLogUpdate


class ProgressRepository:
    """Reads and writes ProgressLog rows."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize progress repository.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    @staticmethod
    def _owner(user_id: Optional[int]):
        if user_id is None:
            return ProgressLog.user_id.is_(None)
        return ProgressLog.user_id == user_id

    def create_progress_log(self, entry: ProgressLogCreate) -> ProgressLog:
        """Record a progress entry."""
        with self.db.get_session() as session:
            log = ProgressLog(
                user_id=entry.user_id,
                book_id=entry.book_id,
                pages_read=entry.pages_read,
                progress_date=to_storage(entry.progress_date),
                notes=entry.notes,
            )
            session.add(log)
            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

    def get_progress_log(self, log_id: str) -> Optional[ProgressLog]:
        with self.db.get_session() as session:
            log = session.get(ProgressLog, log_id)
            if log:
                session.expunge(log)
            return log

    def update_progress_log(
        self, log_id: str, update: ProgressLogUpdate
    ) -> Optional[ProgressLog]:
        """Edit a progress entry.

        Returns:
            Updated ProgressLog, or None if not found
        """
        with self.db.get_session() as session:
            log = session.get(ProgressLog, log_id)
            if log is None:
                return None

            update_data = update.model_dump(exclude_unset=True)
            if "progress_date" in update_data and update_data["progress_date"] is not None:
                update_data["progress_date"] = to_storage(update_data["progress_date"])
            for name, value in update_data.items():
                if value is not None:
                    setattr(log, name, value)

            session.commit()
            session.refresh(log)
            session.expunge(log)
            return log

    def delete_progress_log(self, log_id: str) -> bool:
        """Delete a progress entry. Returns True if it existed."""
        with self.db.get_session() as session:
            log = session.get(ProgressLog, log_id)
            if log is None:
                return False
            session.delete(log)
            return True

    def get_all_progress_ordered(self, user_id: Optional[int] = None) -> list[ProgressLog]:
        """Get every progress entry for a user, oldest first."""
        with self.db.get_session() as session:
            stmt = (
                select(ProgressLog)
                .where(self._owner(user_id))
                .order_by(ProgressLog.progress_date.asc())
            )
            logs = session.execute(stmt).scalars().all()
            for log in logs:
                session.expunge(log)
            return list(logs)

    def get_progress_for_date(
        self,
        start_utc: datetime,
        end_utc: datetime,
        user_id: Optional[int] = None,
    ) -> Optional[dict]:
        """Sum pages read within the UTC interval ``[start_utc, end_utc)``.

        Args:
            start_utc: Start of the user's calendar day, in UTC
            end_utc: Start of the following calendar day, in UTC
            user_id: Owner, or None for single-user mode

        Returns:
            Dict with ``pages_read``, or None if there are no entries
        """
        with self.db.get_session() as session:
            stmt = select(
                func.count(ProgressLog.id),
                func.coalesce(func.sum(ProgressLog.pages_read), 0),
            ).where(
                self._owner(user_id),
                ProgressLog.progress_date >= to_storage(start_utc),
                ProgressLog.progress_date < to_storage(end_utc),
            )
            count, pages = session.execute(stmt).one()

        if not count:
            return None
        return {"pages_read": int(pages)}

    def get_earliest_progress_date(self, user_id: Optional[int] = None) -> Optional[datetime]:
        """Timestamp of the user's first progress entry, if any."""
        with self.db.get_session() as session:
            stmt = select(func.min(ProgressLog.progress_date)).where(self._owner(user_id))
            earliest = session.execute(stmt).scalar()
        return from_storage(earliest) if earliest else None
