"""The persistence contract shared by the JSON-file and SQL backends.

Stores are thin: they persist records and guard the two stored invariants
(one entry per date, exactly one active target). Validation, derived
fields and audit side effects live in TrackerService.
"""

import abc
import uuid
from datetime import date
from typing import Optional

from metricdaily.schemas.audit import AuditLogRead
from metricdaily.schemas.backup import AppState
from metricdaily.schemas.settings import UserSettingsRead
from metricdaily.schemas.target import UPHTargetRead, UPHTargetRecord
from metricdaily.schemas.work_log import WorkLogRead, WorkLogRecord


def new_id() -> str:
    return uuid.uuid4().hex


class Store(abc.ABC):
    # --- work logs ---

    @abc.abstractmethod
    def list_work_logs(self) -> list[WorkLogRead]:
        """All entries, most recent date first."""

    @abc.abstractmethod
    def get_work_log(self, log_id: str) -> Optional[WorkLogRead]:
        ...

    @abc.abstractmethod
    def find_work_log_by_date(self, day: date) -> Optional[WorkLogRead]:
        ...

    @abc.abstractmethod
    def upsert_work_log(self, log: WorkLogRecord) -> WorkLogRead:
        """Update the entry with `log.id`, else the entry for `log.date`, else create one."""

    @abc.abstractmethod
    def delete_work_log(self, log_id: str) -> None:
        """Raises NotFound for an unknown id."""

    # --- UPH targets ---

    @abc.abstractmethod
    def list_targets(self) -> list[UPHTargetRead]:
        ...

    @abc.abstractmethod
    def get_target(self, target_id: str) -> Optional[UPHTargetRead]:
        ...

    @abc.abstractmethod
    def get_active_target(self) -> Optional[UPHTargetRead]:
        ...

    @abc.abstractmethod
    def upsert_target(self, target: UPHTargetRecord) -> UPHTargetRead:
        """Create or update a target.

        Activation is never changed here: an existing target keeps its flag,
        and a new one is active only when no other target is.
        """

    @abc.abstractmethod
    def delete_target(self, target_id: str) -> None:
        """Raises NotFound, or InvariantViolation for the active target."""

    @abc.abstractmethod
    def set_active_target(self, target_id: str) -> UPHTargetRead:
        """Activate one target and deactivate all others in a single write."""

    # --- audit trail ---

    @abc.abstractmethod
    def list_audit_logs(self) -> list[AuditLogRead]:
        """Newest first."""

    @abc.abstractmethod
    def append_audit_log(self, entry: AuditLogRead) -> AuditLogRead:
        ...

    # --- settings ---

    @abc.abstractmethod
    def get_settings(self) -> Optional[UserSettingsRead]:
        """None until settings have been saved once."""

    @abc.abstractmethod
    def save_settings(self, values: UserSettingsRead) -> UserSettingsRead:
        ...

    # --- whole state ---

    @abc.abstractmethod
    def clear(self, include_audit: bool = False) -> None:
        """Remove logs, targets and settings (and the audit trail if asked)."""

    @abc.abstractmethod
    def import_state(self, state: AppState) -> None:
        """Replace logs, targets and settings with `state`, appending its audit entries."""

    def is_empty(self) -> bool:
        return not (self.list_work_logs() or self.list_targets() or self.get_settings())

    def export_state(self) -> AppState:
        return AppState(
            work_logs=self.list_work_logs(),
            uph_targets=self.list_targets(),
            settings=self.get_settings(),
            audit_logs=self.list_audit_logs(),
        )


def normalize_active(targets: list[UPHTargetRead]) -> list[UPHTargetRead]:
    """Leave exactly one active target (the first flagged, else the first) when loading foreign state."""
    out = []
    seen_active = False
    for t in targets:
        if t.is_active and seen_active:
            t = t.model_copy(update={"is_active": False})
        seen_active = seen_active or t.is_active
        out.append(t)
    if out and not seen_active:
        out[0] = out[0].model_copy(update={"is_active": True})
    return out
