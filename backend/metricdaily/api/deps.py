from datetime import date
from typing import Optional

from fastapi import Depends, Query, Request

from metricdaily.core.config import settings
from metricdaily.core.time_utils import local_now
from metricdaily.db import get_store
from metricdaily.services.live import LiveProgressTracker
from metricdaily.services.tracker import TrackerService
from metricdaily.storage.base import Store


def get_service(store: Store = Depends(get_store)) -> TrackerService:
    return TrackerService(store)


def get_live_tracker(request: Request) -> LiveProgressTracker:
    return request.app.state.live_tracker


def today(day: Optional[date] = Query(None, description="Defaults to today in the configured timezone")) -> date:
    return day or local_now(settings.timezone).date()
