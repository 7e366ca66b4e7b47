from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from metricdaily.core.constants import STATE_FORMAT_VERSION
from metricdaily.schemas.audit import AuditLogRead
from metricdaily.schemas.settings import UserSettingsRead
from metricdaily.schemas.target import UPHTargetRead
from metricdaily.schemas.work_log import WorkLogRead


class AppState(BaseModel):
    """The whole application state as one JSON document (backup/restore, backend moves)."""

    version: int = STATE_FORMAT_VERSION
    exported_at: Optional[datetime] = None
    work_logs: list[WorkLogRead] = []
    uph_targets: list[UPHTargetRead] = []
    settings: Optional[UserSettingsRead] = None
    audit_logs: list[AuditLogRead] = []

    model_config = ConfigDict(extra="ignore")


class MigrationResult(BaseModel):
    success: bool
    work_logs_migrated: int = 0
    targets_migrated: int = 0
    settings_migrated: bool = False
    # Records already present in the destination and left as they were
    work_logs_skipped: int = 0
    targets_skipped: int = 0
    error: Optional[str] = None
