"""Single-file JSON store, the "local storage" backend.

The whole state lives in one JSON document shaped like AppState. Every
operation reads the file, applies the change and rewrites it, so a save is
always visible to the next read.
"""

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from metricdaily.core.exceptions import InvariantViolation, NotFound, StorageUnavailable
from metricdaily.schemas.audit import AuditLogRead
from metricdaily.schemas.backup import AppState
from metricdaily.schemas.settings import UserSettingsRead
from metricdaily.schemas.target import UPHTargetRead, UPHTargetRecord
from metricdaily.schemas.work_log import WorkLogRead, WorkLogRecord
from metricdaily.storage.base import Store, new_id, normalize_active

logger = logging.getLogger(__name__)


class JsonFileStore(Store):
    def __init__(self, path):
        self.path = Path(path)

    # --------- file I/O --------- #

    def _load(self) -> AppState:
        if not self.path.exists():
            return AppState()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Could not read %s: %s", self.path, e)
            raise StorageUnavailable(f"Could not read local data file: {e}") from e
        try:
            return AppState.model_validate_json(raw)
        except ValidationError as e:
            self._quarantine_corrupted(e)
            return AppState()

    def _quarantine_corrupted(self, error) -> None:
        """Move an unreadable file aside and start from an empty state."""
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup = self.path.with_name(f"{self.path.stem}.corrupted_{stamp}{self.path.suffix}")
        try:
            self.path.replace(backup)
        except OSError as e:
            raise StorageUnavailable(f"Local data file is corrupted and could not be moved: {e}") from e
        logger.warning("Local data file %s was corrupted (%s); moved to %s", self.path, error, backup)

    def _save(self, state: AppState) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(state.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error("Could not write %s: %s", self.path, e)
            raise StorageUnavailable(f"Could not write local data file: {e}") from e

    # --------- work logs --------- #

    def list_work_logs(self) -> list[WorkLogRead]:
        return sorted(self._load().work_logs, key=lambda l: l.date, reverse=True)

    def get_work_log(self, log_id: str) -> Optional[WorkLogRead]:
        return next((l for l in self._load().work_logs if l.id == log_id), None)

    def find_work_log_by_date(self, day: date) -> Optional[WorkLogRead]:
        return next((l for l in self._load().work_logs if l.date == day), None)

    def upsert_work_log(self, log: WorkLogRecord) -> WorkLogRead:
        state = self._load()
        index = next((i for i, l in enumerate(state.work_logs) if log.id and l.id == log.id), None)
        if index is None:
            index = next((i for i, l in enumerate(state.work_logs) if l.date == log.date), None)

        if index is None:
            saved = WorkLogRead(**log.model_dump(exclude={"id"}), id=log.id or new_id())
            state.work_logs.append(saved)
        else:
            saved = WorkLogRead(**log.model_dump(exclude={"id"}), id=state.work_logs[index].id)
            state.work_logs[index] = saved
        self._save(state)
        return saved

    def delete_work_log(self, log_id: str) -> None:
        state = self._load()
        remaining = [l for l in state.work_logs if l.id != log_id]
        if len(remaining) == len(state.work_logs):
            raise NotFound("Work log not found")
        state.work_logs = remaining
        self._save(state)

    # --------- UPH targets --------- #

    def list_targets(self) -> list[UPHTargetRead]:
        return list(self._load().uph_targets)

    def get_target(self, target_id: str) -> Optional[UPHTargetRead]:
        return next((t for t in self._load().uph_targets if t.id == target_id), None)

    def get_active_target(self) -> Optional[UPHTargetRead]:
        return next((t for t in self._load().uph_targets if t.is_active), None)

    def upsert_target(self, target: UPHTargetRecord) -> UPHTargetRead:
        state = self._load()
        index = next((i for i, t in enumerate(state.uph_targets) if target.id and t.id == target.id), None)
        values = target.model_dump(exclude={"id", "is_active"})

        if index is None:
            has_active = any(t.is_active for t in state.uph_targets)
            saved = UPHTargetRead(**values, id=target.id or new_id(), is_active=not has_active)
            state.uph_targets.append(saved)
        else:
            current = state.uph_targets[index]
            saved = UPHTargetRead(**values, id=current.id, is_active=current.is_active)
            state.uph_targets[index] = saved
        self._save(state)
        return saved

    def delete_target(self, target_id: str) -> None:
        state = self._load()
        target = next((t for t in state.uph_targets if t.id == target_id), None)
        if target is None:
            raise NotFound("UPH target not found")
        if target.is_active:
            raise InvariantViolation("Cannot delete the currently active target.")
        state.uph_targets = [t for t in state.uph_targets if t.id != target_id]
        self._save(state)

    def set_active_target(self, target_id: str) -> UPHTargetRead:
        state = self._load()
        if not any(t.id == target_id for t in state.uph_targets):
            raise NotFound(f"Target with ID {target_id} not found.")
        state.uph_targets = [
            t.model_copy(update={"is_active": t.id == target_id}) for t in state.uph_targets
        ]
        self._save(state)
        return next(t for t in state.uph_targets if t.id == target_id)

    # --------- audit trail --------- #

    def list_audit_logs(self) -> list[AuditLogRead]:
        return sorted(self._load().audit_logs, key=lambda e: e.timestamp, reverse=True)

    def append_audit_log(self, entry: AuditLogRead) -> AuditLogRead:
        state = self._load()
        state.audit_logs.append(entry)
        self._save(state)
        return entry

    # --------- settings --------- #

    def get_settings(self) -> Optional[UserSettingsRead]:
        return self._load().settings

    def save_settings(self, values: UserSettingsRead) -> UserSettingsRead:
        state = self._load()
        state.settings = UserSettingsRead(**values.model_dump())
        self._save(state)
        return state.settings

    # --------- whole state --------- #

    def clear(self, include_audit: bool = False) -> None:
        state = self._load()
        state = AppState(audit_logs=[] if include_audit else state.audit_logs)
        self._save(state)

    def import_state(self, incoming: AppState) -> None:
        state = self._load()
        state.work_logs = list(incoming.work_logs)
        state.uph_targets = normalize_active(list(incoming.uph_targets))
        state.settings = incoming.settings
        known = {e.id for e in state.audit_logs}
        state.audit_logs.extend(e for e in incoming.audit_logs if e.id not in known)
        self._save(state)
