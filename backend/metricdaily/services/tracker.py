"""Application operations over a Store.

Validates input, derives `hours_worked`, and appends an audit entry for
every mutation. Errors are raised as TrackerError subclasses; nothing here
retries or swallows a storage failure.
"""

import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional

from metricdaily.core.constants import AuditAction, EntityType
from metricdaily.core.exceptions import NotFound, ValidationFailed
from metricdaily.core.metrics import hours_worked
from metricdaily.core.time_utils import hhmm_to_time, time_to_hhmm
from metricdaily.schemas.audit import AuditLogRead
from metricdaily.schemas.backup import AppState, MigrationResult
from metricdaily.schemas.settings import UserSettingsRead, UserSettingsUpdate
from metricdaily.schemas.target import UPHTargetCreate, UPHTargetRead, UPHTargetRecord, UPHTargetUpdate
from metricdaily.schemas.work_log import CountField, WorkLogRead, WorkLogRecord, WorkLogUpsert
from metricdaily.storage.base import Store, new_id
from metricdaily.storage.migration import migrate_store

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _snapshot(record) -> Optional[dict]:
    return record.model_dump(mode="json") if record is not None else None


def _normalize_hhmm(value: str, field: str) -> str:
    try:
        parsed = hhmm_to_time(value)
    except ValueError as e:
        raise ValidationFailed(str(e), field=field) from e
    if parsed is None:
        raise ValidationFailed(f"{field} is required", field=field)
    return time_to_hhmm(parsed)


def _require_non_negative(value, field: str) -> None:
    if value is None or value < 0:
        raise ValidationFailed(f"{field} cannot be negative", field=field)


class TrackerService:
    def __init__(self, store: Store, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    def _audit(self, action: AuditAction, entity_type: EntityType, entity_id, details: str,
               previous=None, new=None) -> AuditLogRead:
        entry = AuditLogRead(
            id=new_id(),
            timestamp=self.clock(),
            action=action.value,
            entity_type=entity_type.value,
            entity_id=entity_id,
            details=details,
            previous_state=_snapshot(previous),
            new_state=_snapshot(new),
        )
        return self.store.append_audit_log(entry)

    # --------- work logs --------- #

    def list_work_logs(self) -> list[WorkLogRead]:
        return self.store.list_work_logs()

    def get_work_log(self, log_id: str) -> WorkLogRead:
        log = self.store.get_work_log(log_id)
        if log is None:
            raise NotFound("Work log not found")
        return log

    def log_for_date(self, day: date) -> Optional[WorkLogRead]:
        return self.store.find_work_log_by_date(day)

    def save_work_log(self, payload: WorkLogUpsert) -> WorkLogRead:
        """Create or update an entry: by id when given, else by date."""
        start_time = _normalize_hhmm(payload.start_time, "start_time")
        end_time = _normalize_hhmm(payload.end_time, "end_time")
        _require_non_negative(payload.break_duration_minutes, "break_duration_minutes")
        _require_non_negative(payload.training_duration_minutes, "training_duration_minutes")
        _require_non_negative(payload.documents_completed, "documents_completed")
        _require_non_negative(payload.video_sessions_completed, "video_sessions_completed")

        hours = hours_worked(
            start_time,
            end_time,
            payload.break_duration_minutes,
            payload.training_duration_minutes,
        )
        if hours <= 0:
            raise ValidationFailed(
                "Hours worked must be positive; check start time, end time, break and training.",
                field="end_time",
            )

        existing = None
        if payload.id:
            existing = self.get_work_log(payload.id)
        same_date = self.store.find_work_log_by_date(payload.date)
        if existing and same_date and same_date.id != existing.id:
            raise ValidationFailed(f"A work log for {payload.date} already exists.", field="date")
        previous = existing or same_date

        if payload.target_id and self.store.get_target(payload.target_id) is None:
            raise ValidationFailed("Unknown UPH target", field="target_id")
        target_id = payload.target_id or (previous.target_id if previous else None)
        if not target_id:
            active = self.store.get_active_target()
            target_id = active.id if active else None

        record = WorkLogRecord(
            **payload.model_dump(exclude={"id", "start_time", "end_time", "target_id"}),
            id=previous.id if previous else None,
            start_time=start_time,
            end_time=end_time,
            hours_worked=hours,
            target_id=target_id,
        )
        saved = self.store.upsert_work_log(record)

        if previous is None:
            self._audit(AuditAction.create_work_log, EntityType.work_log, saved.id,
                        f"Created work log for {saved.date}.", new=saved)
            logger.info("Created work log %s for %s", saved.id, saved.date)
        else:
            self._audit(AuditAction.update_work_log, EntityType.work_log, saved.id,
                        f"Updated work log for {saved.date}.", previous=previous, new=saved)
            logger.info("Updated work log %s for %s", saved.id, saved.date)
        return saved

    def update_work_log(self, log_id: str, payload: WorkLogUpsert) -> WorkLogRead:
        return self.save_work_log(payload.model_copy(update={"id": log_id}))

    def quick_update_count(self, day: date, field: CountField, delta: int) -> WorkLogRead:
        """Increment or decrement one counter of the entry for `day`."""
        log = self.store.find_work_log_by_date(day)
        if log is None:
            raise NotFound(f"No work log found for {day}. Please add one first.")

        current = getattr(log, field.value)
        updated = current + delta
        if updated < 0:
            logger.warning("Rejected quick update of %s below zero for %s", field.value, day)
            raise ValidationFailed(f"{field.value} cannot go below zero", field=field.value)

        saved = self.store.upsert_work_log(WorkLogRecord(**log.model_dump(exclude={field.value}),
                                                         **{field.value: updated}))
        label = field.value.replace("_", " ").capitalize()
        self._audit(AuditAction.update_work_log_quick_count, EntityType.work_log, saved.id,
                    f"{label} for {day}: {current} -> {updated}.", previous=log, new=saved)
        return saved

    def finalize_work_log(self, log_id: str) -> WorkLogRead:
        log = self.get_work_log(log_id)
        if log.is_finalized:
            return log
        saved = self.store.upsert_work_log(WorkLogRecord(**log.model_dump(exclude={"is_finalized"}),
                                                         is_finalized=True))
        self._audit(AuditAction.finalize_work_log, EntityType.work_log, saved.id,
                    f"Finalized work log for {saved.date}.", previous=log, new=saved)
        return saved

    def delete_work_log(self, log_id: str) -> None:
        log = self.get_work_log(log_id)
        self.store.delete_work_log(log_id)
        self._audit(AuditAction.delete_work_log, EntityType.work_log, log_id,
                    f"Deleted work log for {log.date}.", previous=log)
        logger.info("Deleted work log %s for %s", log_id, log.date)

    # --------- UPH targets --------- #

    def list_targets(self) -> list[UPHTargetRead]:
        return self.store.list_targets()

    def get_target(self, target_id: str) -> UPHTargetRead:
        target = self.store.get_target(target_id)
        if target is None:
            raise NotFound("UPH target not found")
        return target

    def get_active_target(self) -> Optional[UPHTargetRead]:
        return self.store.get_active_target()

    def _validate_target(self, record: UPHTargetRecord) -> UPHTargetRecord:
        name = (record.name or "").strip()
        if not name:
            raise ValidationFailed("Target name is required", field="name")
        if record.target_uph is None or record.target_uph <= 0:
            raise ValidationFailed("Target UPH must be a positive number", field="target_uph")
        if not record.docs_per_unit or record.docs_per_unit <= 0 or not record.videos_per_unit or record.videos_per_unit <= 0:
            raise ValidationFailed("Items per unit must be positive numbers.", field="docs_per_unit")
        for other in self.store.list_targets():
            if other.id != record.id and other.name.strip().lower() == name.lower():
                raise ValidationFailed(f"A target named '{name}' already exists.", field="name")
        return record.model_copy(update={"name": name})

    def add_target(self, payload: UPHTargetCreate) -> UPHTargetRead:
        record = self._validate_target(UPHTargetRecord(**payload.model_dump()))
        saved = self.store.upsert_target(record)
        self._audit(AuditAction.create_uph_target, EntityType.uph_target, saved.id,
                    f"Created UPH target '{saved.name}'.", new=saved)
        logger.info("Created UPH target %s (%s)", saved.id, saved.name)
        return saved

    def update_target(self, target_id: str, payload: UPHTargetUpdate) -> UPHTargetRead:
        current = self.get_target(target_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        record = self._validate_target(UPHTargetRecord(**{**current.model_dump(), **changes}))
        saved = self.store.upsert_target(record)
        self._audit(AuditAction.update_uph_target, EntityType.uph_target, saved.id,
                    f"Updated UPH target '{saved.name}'.", previous=current, new=saved)
        return saved

    def delete_target(self, target_id: str) -> None:
        target = self.get_target(target_id)
        self.store.delete_target(target_id)
        self._audit(AuditAction.delete_uph_target, EntityType.uph_target, target_id,
                    f"Deleted UPH target '{target.name}'.", previous=target)
        logger.info("Deleted UPH target %s (%s)", target_id, target.name)

    def set_active_target(self, target_id: str) -> UPHTargetRead:
        previous = self.store.get_active_target()
        if previous is not None and previous.id == target_id:
            return previous
        activated = self.store.set_active_target(target_id)
        self._audit(AuditAction.set_active_uph_target, EntityType.uph_target, target_id,
                    f"Set '{activated.name}' as the active UPH target.", previous=previous, new=activated)
        logger.info("Active UPH target is now %s (%s)", activated.id, activated.name)
        return activated

    def duplicate_target(self, target_id: str) -> UPHTargetRead:
        source = self.get_target(target_id)
        taken = {t.name.strip().lower() for t in self.store.list_targets()}
        name = f"{source.name} (Copy)"
        n = 2
        while name.lower() in taken:
            name = f"{source.name} (Copy {n})"
            n += 1

        record = UPHTargetRecord(**source.model_dump(exclude={"id", "is_active", "name"}), name=name)
        saved = self.store.upsert_target(self._validate_target(record))
        self._audit(AuditAction.duplicate_uph_target, EntityType.uph_target, saved.id,
                    f"Duplicated UPH target '{source.name}' as '{saved.name}'.", new=saved)
        return saved

    # --------- settings --------- #

    def get_settings(self) -> UserSettingsRead:
        return self.store.get_settings() or UserSettingsRead()

    def save_settings(self, payload: UserSettingsUpdate) -> UserSettingsRead:
        _require_non_negative(payload.default_break_minutes, "default_break_minutes")
        _require_non_negative(payload.default_training_minutes, "default_training_minutes")
        values = UserSettingsRead(
            **payload.model_dump(exclude={"default_start_time", "default_end_time"}),
            default_start_time=_normalize_hhmm(payload.default_start_time, "default_start_time"),
            default_end_time=_normalize_hhmm(payload.default_end_time, "default_end_time"),
        )
        previous = self.store.get_settings()
        saved = self.store.save_settings(values)
        self._audit(AuditAction.update_settings, EntityType.settings, None,
                    "Updated default settings.", previous=previous, new=saved)
        return saved

    # --------- audit trail --------- #

    def list_audit_logs(self) -> list[AuditLogRead]:
        return self.store.list_audit_logs()

    def record_export(self, what: str) -> None:
        self._audit(AuditAction.system_export_data, EntityType.system, None, f"Exported {what}.")

    # --------- whole state --------- #

    def export_state(self) -> AppState:
        state = self.store.export_state().model_copy(update={"exported_at": self.clock()})
        self.record_export("full application state to JSON")
        return state

    def import_state(self, state: AppState) -> None:
        self.store.import_state(state)
        self._audit(
            AuditAction.system_import_data, EntityType.system, None,
            f"Imported {len(state.work_logs)} work logs and {len(state.uph_targets)} UPH targets.",
        )
        logger.info("Imported %d work logs and %d targets", len(state.work_logs), len(state.uph_targets))

    def clear_all_data(self) -> None:
        self.store.clear()
        self._audit(AuditAction.system_clear_all_data, EntityType.system, None,
                    "Cleared all work logs, UPH targets and settings.")
        logger.warning("All work logs, targets and settings were cleared")

    def migrate_from(self, source: Store) -> MigrationResult:
        result = migrate_store(source, self.store)
        if result.success:
            self._audit(
                AuditAction.system_migrate_data, EntityType.system, None,
                f"Migrated {result.work_logs_migrated} work logs and {result.targets_migrated} "
                "UPH targets from local storage.",
            )
        return result
