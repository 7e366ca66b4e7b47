"""Moving data from the local JSON store into the database store."""

import logging

from metricdaily.core.exceptions import TrackerError
from metricdaily.schemas.backup import AppState, MigrationResult
from metricdaily.schemas.work_log import WorkLogRecord
from metricdaily.storage.base import Store

logger = logging.getLogger(__name__)


def needs_migration(local: Store) -> bool:
    """True when the local store holds anything worth copying."""
    return not local.is_empty()


def backup_store(store: Store) -> AppState:
    """Snapshot of everything in `store`, to restore if a migration goes wrong."""
    return store.export_state()


def restore_store(store: Store, backup: AppState) -> None:
    store.import_state(backup)


def migrate_store(source: Store, destination: Store) -> MigrationResult:
    """Add every log, target and the settings of `source` to `destination`.

    Nothing already in the destination is changed or removed:
    - a target whose id or name is taken is skipped, and logs pointing at it
      are repointed to the destination's target;
    - a log whose id or date is taken is skipped;
    - settings are copied only when the destination has none.
    Record ids are kept so log -> target references stay valid. Errors are
    reported in the result, never raised.
    """
    try:
        if not needs_migration(source):
            return MigrationResult(success=False, error="There is no local data to migrate.")

        by_name = {t.name.strip().lower(): t for t in destination.list_targets()}
        had_active = destination.get_active_target() is not None
        source_active = source.get_active_target()

        id_map: dict[str, str] = {}
        targets_migrated = targets_skipped = 0
        for target in source.list_targets():
            existing = destination.get_target(target.id) or by_name.get(target.name.strip().lower())
            if existing is not None:
                id_map[target.id] = existing.id
                targets_skipped += 1
                continue
            saved = destination.upsert_target(target)
            by_name[saved.name.strip().lower()] = saved
            id_map[target.id] = saved.id
            targets_migrated += 1

        if not had_active and source_active is not None:
            destination.set_active_target(id_map[source_active.id])

        logs_migrated = logs_skipped = 0
        for log in source.list_work_logs():
            if destination.get_work_log(log.id) or destination.find_work_log_by_date(log.date):
                logs_skipped += 1
                continue
            target_id = id_map.get(log.target_id, log.target_id) if log.target_id else None
            destination.upsert_work_log(WorkLogRecord(**log.model_dump(exclude={"target_id"}), target_id=target_id))
            logs_migrated += 1

        settings_migrated = False
        local_settings = source.get_settings()
        if local_settings is not None and destination.get_settings() is None:
            destination.save_settings(local_settings)
            settings_migrated = True
    except TrackerError as e:
        logger.error("Migration failed: %s", e)
        return MigrationResult(success=False, error=e.message)

    logger.info(
        "Migrated %d work logs and %d targets to the database (%d logs, %d targets already present)",
        logs_migrated,
        targets_migrated,
        logs_skipped,
        targets_skipped,
    )
    return MigrationResult(
        success=True,
        work_logs_migrated=logs_migrated,
        targets_migrated=targets_migrated,
        settings_migrated=settings_migrated,
        work_logs_skipped=logs_skipped,
        targets_skipped=targets_skipped,
    )
