from fastapi import APIRouter, Depends

from metricdaily.api.deps import get_service
from metricdaily.schemas.settings import UserSettingsRead, UserSettingsUpdate
from metricdaily.services.tracker import TrackerService


router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=UserSettingsRead)
def get_settings(service: TrackerService = Depends(get_service)):
    """Saved defaults, or the built-in ones if nothing was saved yet."""
    return service.get_settings()


@router.put("/", response_model=UserSettingsRead)
def save_settings(payload: UserSettingsUpdate, service: TrackerService = Depends(get_service)):
    return service.save_settings(payload)
