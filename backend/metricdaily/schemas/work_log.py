from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class WorkLogBase(BaseModel):
    date: date
    start_time: str  # 'HH:MM'
    end_time: str    # 'HH:MM'; at or before start_time means the shift ends after midnight
    break_duration_minutes: int = 0
    training_duration_minutes: int = 0

    documents_completed: int = 0
    video_sessions_completed: int = 0
    notes: Optional[str] = None

    # Target that was active when the log was recorded
    target_id: Optional[str] = None
    is_finalized: bool = False


class WorkLogUpsert(WorkLogBase):
    """Payload of the log form. Without an id the entry for `date` is created or replaced."""

    id: Optional[str] = None

    # Be lenient with extra fields from clients (e.g. a stale hours_worked)
    model_config = ConfigDict(extra="ignore")


class WorkLogRecord(WorkLogBase):
    """A fully derived entry on its way into a store."""

    id: Optional[str] = None
    hours_worked: float


class WorkLogRead(WorkLogRecord):
    id: str

    model_config = ConfigDict(from_attributes=True)


class CountField(str, Enum):
    documents_completed = "documents_completed"
    video_sessions_completed = "video_sessions_completed"


class QuickCountUpdate(BaseModel):
    field: CountField
    delta: int = 1


class WorkLogRow(WorkLogRead):
    """A log as shown in the previous-logs table, with figures against its target."""

    target_name: Optional[str] = None
    units_completed: float = 0.0
    avg_uph: float = 0.0


class WorkLogPage(BaseModel):
    items: list[WorkLogRow]
    page: int
    page_size: int
    total_items: int
    total_pages: int
