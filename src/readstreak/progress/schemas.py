"""Pydantic schemas for progress log entries."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaValidationError

from ..exceptions import ValidationError


class ProgressLogCreate(BaseModel):
    """Schema for recording reading progress."""

    pages_read: int = Field(..., ge=0)
    progress_date: datetime
    user_id: Optional[int] = None
    book_id: Optional[str] = Field(None, max_length=36)
    notes: Optional[str] = None


class ProgressLogUpdate(BaseModel):
    """Schema for editing a progress entry. All fields optional."""

    pages_read: Optional[int] = Field(None, ge=0)
    progress_date: Optional[datetime] = None
    notes: Optional[str] = None


class ProgressLogResponse(BaseModel):
    """Schema for progress entry response."""

    id: UUID
    user_id: Optional[int]
    book_id: Optional[str]
    pages_read: int
    progress_date: datetime
    notes: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


def parse_progress(schema: type[BaseModel], **data: Any) -> Any:
    """Build ``schema`` from ``data``, raising ValidationError on bad input."""
    try:
        return schema(**data)
    except SchemaValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(f"Invalid progress entry: {details}") from exc
