"""SQLAlchemy store, the database backend."""

import functools
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from metricdaily.core.exceptions import InvariantViolation, NotFound, StorageUnavailable
from metricdaily.core.time_utils import hhmm_to_time, time_to_hhmm
from metricdaily.models.audit_log import AuditLog
from metricdaily.models.uph_target import UPHTarget
from metricdaily.models.user_settings import UserSettings
from metricdaily.models.work_log import WorkLog
from metricdaily.schemas.audit import AuditLogRead
from metricdaily.schemas.backup import AppState
from metricdaily.schemas.settings import UserSettingsRead
from metricdaily.schemas.target import UPHTargetRead, UPHTargetRecord
from metricdaily.schemas.work_log import WorkLogRead, WorkLogRecord
from metricdaily.storage.base import Store, new_id, normalize_active

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def _guarded(method):
    """Map database failures onto the domain errors the API understands."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except OperationalError as e:
            self.db.rollback()
            logger.error("Database call %s failed: %s", method.__name__, e)
            raise StorageUnavailable("Database is unavailable, please retry.") from e
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Database call %s rejected: %s", method.__name__, e.orig)
            raise InvariantViolation("The change conflicts with a stored record (duplicate date or name).") from e

    return wrapper


def _work_log_read(row: WorkLog) -> WorkLogRead:
    return WorkLogRead(
        id=row.id,
        date=row.date,
        start_time=time_to_hhmm(row.start_time),
        end_time=time_to_hhmm(row.end_time),
        break_duration_minutes=row.break_duration_minutes,
        training_duration_minutes=row.training_duration_minutes or 0,
        hours_worked=float(row.hours_worked),
        documents_completed=row.documents_completed,
        video_sessions_completed=row.video_sessions_completed,
        notes=row.notes,
        target_id=row.target_id,
        is_finalized=bool(row.is_finalized),
    )


def _target_read(row: UPHTarget) -> UPHTargetRead:
    return UPHTargetRead(
        id=row.id,
        name=row.name,
        target_uph=float(row.target_uph),
        docs_per_unit=float(row.docs_per_unit),
        videos_per_unit=float(row.videos_per_unit),
        is_active=bool(row.is_active),
        is_displayed=bool(row.is_displayed),
    )


def _audit_read(row: AuditLog) -> AuditLogRead:
    return AuditLogRead.model_validate(row)


def _settings_read(row: UserSettings) -> UserSettingsRead:
    return UserSettingsRead(
        default_start_time=time_to_hhmm(row.default_start_time),
        default_end_time=time_to_hhmm(row.default_end_time),
        default_break_minutes=row.default_break_minutes,
        default_training_minutes=row.default_training_minutes,
        auto_switch_target_by_schedule=bool(row.auto_switch_target_by_schedule),
    )


def _apply_work_log(row: WorkLog, log: WorkLogRecord) -> None:
    row.date = log.date
    row.start_time = hhmm_to_time(log.start_time)
    row.end_time = hhmm_to_time(log.end_time)
    row.break_duration_minutes = log.break_duration_minutes
    row.training_duration_minutes = log.training_duration_minutes
    row.hours_worked = log.hours_worked
    row.documents_completed = log.documents_completed
    row.video_sessions_completed = log.video_sessions_completed
    row.notes = log.notes
    row.target_id = log.target_id
    row.is_finalized = log.is_finalized


def _apply_target(row: UPHTarget, target: UPHTargetRecord) -> None:
    row.name = target.name
    row.target_uph = target.target_uph
    row.docs_per_unit = target.docs_per_unit
    row.videos_per_unit = target.videos_per_unit
    row.is_displayed = target.is_displayed


def _apply_settings(row: UserSettings, values: UserSettingsRead) -> None:
    row.default_start_time = hhmm_to_time(values.default_start_time)
    row.default_end_time = hhmm_to_time(values.default_end_time)
    row.default_break_minutes = values.default_break_minutes
    row.default_training_minutes = values.default_training_minutes
    row.auto_switch_target_by_schedule = values.auto_switch_target_by_schedule


class SqlStore(Store):
    def __init__(self, db: Session):
        self.db = db

    # --------- work logs --------- #

    @_guarded
    def list_work_logs(self) -> list[WorkLogRead]:
        rows = self.db.query(WorkLog).order_by(WorkLog.date.desc()).all()
        return [_work_log_read(r) for r in rows]

    @_guarded
    def get_work_log(self, log_id: str) -> Optional[WorkLogRead]:
        row = self.db.query(WorkLog).filter(WorkLog.id == log_id).first()
        return _work_log_read(row) if row else None

    @_guarded
    def find_work_log_by_date(self, day: date) -> Optional[WorkLogRead]:
        row = self.db.query(WorkLog).filter(WorkLog.date == day).first()
        return _work_log_read(row) if row else None

    @_guarded
    def upsert_work_log(self, log: WorkLogRecord) -> WorkLogRead:
        row = None
        if log.id:
            row = self.db.query(WorkLog).filter(WorkLog.id == log.id).first()
        if row is None:
            row = self.db.query(WorkLog).filter(WorkLog.date == log.date).first()
        if row is None:
            row = WorkLog(id=log.id or new_id())
            self.db.add(row)

        _apply_work_log(row, log)
        self.db.commit()
        self.db.refresh(row)
        return _work_log_read(row)

    @_guarded
    def delete_work_log(self, log_id: str) -> None:
        row = self.db.query(WorkLog).filter(WorkLog.id == log_id).first()
        if not row:
            raise NotFound("Work log not found")
        self.db.delete(row)
        self.db.commit()

    # --------- UPH targets --------- #

    @_guarded
    def list_targets(self) -> list[UPHTargetRead]:
        rows = self.db.query(UPHTarget).order_by(UPHTarget.created_at, UPHTarget.name).all()
        return [_target_read(r) for r in rows]

    @_guarded
    def get_target(self, target_id: str) -> Optional[UPHTargetRead]:
        row = self.db.query(UPHTarget).filter(UPHTarget.id == target_id).first()
        return _target_read(row) if row else None

    @_guarded
    def get_active_target(self) -> Optional[UPHTargetRead]:
        row = self.db.query(UPHTarget).filter(UPHTarget.is_active.is_(True)).first()
        return _target_read(row) if row else None

    @_guarded
    def upsert_target(self, target: UPHTargetRecord) -> UPHTargetRead:
        row = None
        if target.id:
            row = self.db.query(UPHTarget).filter(UPHTarget.id == target.id).first()
        if row is None:
            has_active = self.db.query(UPHTarget).filter(UPHTarget.is_active.is_(True)).count() > 0
            row = UPHTarget(id=target.id or new_id(), is_active=not has_active)
            self.db.add(row)

        _apply_target(row, target)
        self.db.commit()
        self.db.refresh(row)
        return _target_read(row)

    @_guarded
    def delete_target(self, target_id: str) -> None:
        row = self.db.query(UPHTarget).filter(UPHTarget.id == target_id).first()
        if not row:
            raise NotFound("UPH target not found")
        if row.is_active:
            raise InvariantViolation("Cannot delete the currently active target.")
        self.db.delete(row)
        self.db.commit()

    @_guarded
    def set_active_target(self, target_id: str) -> UPHTargetRead:
        row = self.db.query(UPHTarget).filter(UPHTarget.id == target_id).first()
        if not row:
            raise NotFound(f"Target with ID {target_id} not found.")
        # Both updates land in the same transaction
        (
            self.db.query(UPHTarget)
            .filter(UPHTarget.id != target_id)
            .filter(UPHTarget.is_active.is_(True))
            .update({UPHTarget.is_active: False}, synchronize_session="fetch")
        )
        row.is_active = True
        self.db.commit()
        self.db.refresh(row)
        return _target_read(row)

    # --------- audit trail --------- #

    @_guarded
    def list_audit_logs(self) -> list[AuditLogRead]:
        rows = self.db.query(AuditLog).order_by(AuditLog.timestamp.desc()).all()
        return [_audit_read(r) for r in rows]

    @_guarded
    def append_audit_log(self, entry: AuditLogRead) -> AuditLogRead:
        self.db.add(AuditLog(**entry.model_dump(mode="python")))
        self.db.commit()
        return entry

    # --------- settings --------- #

    @_guarded
    def get_settings(self) -> Optional[UserSettingsRead]:
        row = self.db.query(UserSettings).filter(UserSettings.id == SETTINGS_ROW_ID).first()
        return _settings_read(row) if row else None

    @_guarded
    def save_settings(self, values: UserSettingsRead) -> UserSettingsRead:
        row = self.db.query(UserSettings).filter(UserSettings.id == SETTINGS_ROW_ID).first()
        if not row:
            row = UserSettings(id=SETTINGS_ROW_ID)
            self.db.add(row)
        _apply_settings(row, values)
        self.db.commit()
        self.db.refresh(row)
        return _settings_read(row)

    # --------- whole state --------- #

    def _delete_content(self, include_audit: bool) -> None:
        self.db.query(WorkLog).delete()
        self.db.query(UPHTarget).delete()
        self.db.query(UserSettings).delete()
        if include_audit:
            self.db.query(AuditLog).delete()

    @_guarded
    def clear(self, include_audit: bool = False) -> None:
        self._delete_content(include_audit)
        self.db.commit()

    @_guarded
    def import_state(self, state: AppState) -> None:
        """Replace content in one transaction; a failure leaves the database untouched."""
        self._delete_content(include_audit=False)
        self.db.flush()
        self.db.expunge_all()

        for log in state.work_logs:
            row = WorkLog(id=log.id)
            _apply_work_log(row, log)
            self.db.add(row)
        for target in normalize_active(list(state.uph_targets)):
            row = UPHTarget(id=target.id, is_active=target.is_active)
            _apply_target(row, target)
            self.db.add(row)
        if state.settings is not None:
            row = UserSettings(id=SETTINGS_ROW_ID)
            _apply_settings(row, state.settings)
            self.db.add(row)

        known = {r[0] for r in self.db.query(AuditLog.id).all()}
        for entry in state.audit_logs:
            if entry.id not in known:
                self.db.add(AuditLog(**entry.model_dump(mode="python")))
        self.db.commit()
