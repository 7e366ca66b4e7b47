from fastapi import APIRouter, Depends

from metricdaily.api.deps import get_service
from metricdaily.core.config import settings
from metricdaily.core.exceptions import InvariantViolation
from metricdaily.schemas.backup import AppState, MigrationResult
from metricdaily.services.tracker import TrackerService
from metricdaily.storage.local import JsonFileStore
from metricdaily.storage.migration import needs_migration


router = APIRouter(prefix="/data", tags=["data"])


@router.get("/export", response_model=AppState)
def export_data(service: TrackerService = Depends(get_service)):
    """The whole state as one JSON document, for backup or moving between backends."""
    return service.export_state()


@router.post("/import")
def import_data(payload: AppState, service: TrackerService = Depends(get_service)):
    service.import_state(payload)
    return {
        "message": "Data imported",
        "work_logs": len(payload.work_logs),
        "uph_targets": len(payload.uph_targets),
    }


@router.get("/migrate")
def migration_status():
    """Whether the local data file holds anything to copy into the database."""
    local = JsonFileStore(settings.local_store_path)
    return {"local_store_path": settings.local_store_path, "needs_migration": needs_migration(local)}


@router.post("/migrate", response_model=MigrationResult)
def migrate_local_data(service: TrackerService = Depends(get_service)):
    if settings.storage_backend != "sql":
        raise InvariantViolation("Migration copies local data into the database; switch STORAGE_BACKEND to 'sql' first.")
    return service.migrate_from(JsonFileStore(settings.local_store_path))


@router.post("/clear")
def clear_data(service: TrackerService = Depends(get_service)):
    service.clear_all_data()
    return {"message": "All work logs, UPH targets and settings were cleared"}
