from typing import Optional

from fastapi import APIRouter, Depends

from metricdaily.api.deps import get_service
from metricdaily.schemas.target import UPHTargetCreate, UPHTargetRead, UPHTargetUpdate
from metricdaily.services.tracker import TrackerService


router = APIRouter(prefix="/targets", tags=["targets"])


@router.get("/", response_model=list[UPHTargetRead])
def list_targets(service: TrackerService = Depends(get_service)):
    return service.list_targets()


@router.get("/active", response_model=Optional[UPHTargetRead])
def get_active_target(service: TrackerService = Depends(get_service)):
    return service.get_active_target()


@router.post("/", response_model=UPHTargetRead)
def create_target(payload: UPHTargetCreate, service: TrackerService = Depends(get_service)):
    return service.add_target(payload)


@router.put("/{target_id}", response_model=UPHTargetRead)
def update_target(target_id: str, payload: UPHTargetUpdate, service: TrackerService = Depends(get_service)):
    return service.update_target(target_id, payload)


@router.delete("/{target_id}")
def delete_target(target_id: str, service: TrackerService = Depends(get_service)):
    service.delete_target(target_id)
    return {"message": "UPH target deleted"}


@router.post("/{target_id}/activate", response_model=UPHTargetRead)
def activate_target(target_id: str, service: TrackerService = Depends(get_service)):
    return service.set_active_target(target_id)


@router.post("/{target_id}/duplicate", response_model=UPHTargetRead)
def duplicate_target(target_id: str, service: TrackerService = Depends(get_service)):
    return service.duplicate_target(target_id)
