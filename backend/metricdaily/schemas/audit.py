from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class AuditLogRead(BaseModel):
    id: str
    timestamp: datetime
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: str = ""
    previous_state: Optional[dict[str, Any]] = None
    new_state: Optional[dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # Timestamps are written in UTC; SQLite and older files drop the offset
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class AuditLogPage(BaseModel):
    items: list[AuditLogRead]
    page: int
    page_size: int
    total_items: int
    total_pages: int
