"""Progress log storage."""

from .repository import ProgressRepository
from .schemas import ProgressLogCreate, ProgressLogResponse, ProgressLogUpdate

__all__ = [
    "ProgressRepository",
    "ProgressLogCreate",
    "ProgressLogResponse",
    "ProgressLogUpdate",
]
