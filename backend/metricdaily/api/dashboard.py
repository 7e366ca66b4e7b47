from dataclasses import asdict
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from metricdaily.api.deps import get_live_tracker, get_service, today
from metricdaily.core.config import settings
from metricdaily.core.metrics import (
    GoalProjection,
    current_metrics,
    is_goal_met,
    remaining_units,
    required_units,
    summarize,
    time_ahead_behind_schedule,
    weekly_average_uph,
)
from metricdaily.core.time_utils import format_time_ahead_behind, local_now, to_local_datetime
from metricdaily.schemas.dashboard import (
    AnalyticsSummary,
    DailyUPHPoint,
    GoalProjectionRead,
    TargetProgress,
    TodayDashboard,
    WeeklyAverageRead,
)
from metricdaily.services.live import LiveProgressTracker
from metricdaily.services.tracker import TrackerService


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _projection_read(p: GoalProjection) -> GoalProjectionRead:
    return GoalProjectionRead(**{**asdict(p), "status": p.status.value})


@router.get("/today", response_model=TodayDashboard)
def get_today(
    at: Optional[datetime] = Query(None, description="Local wall-clock time to evaluate at (defaults to now)"),
    service: TrackerService = Depends(get_service),
    tracker: LiveProgressTracker = Depends(get_live_tracker),
):
    if at is None:
        now = local_now(settings.timezone)
    elif at.tzinfo is not None:
        now = to_local_datetime(at, settings.timezone).replace(tzinfo=None)
    else:
        now = at
    snap = tracker.refresh(service.store, now)
    log = snap.log

    progress: list[TargetProgress] = []
    if log is not None:
        for t in service.list_targets():
            if not t.is_displayed:
                continue
            cm = current_metrics(log, t, now)
            offset = time_ahead_behind_schedule(log, t, now)
            progress.append(
                TargetProgress(
                    target=t,
                    units_completed=round(cm.current_units, 2),
                    current_uph=round(cm.current_uph, 2),
                    required_units=round(required_units(log.hours_worked, t.target_uph), 2),
                    remaining_units=round(remaining_units(log, t), 2),
                    goal_met=is_goal_met(log, t, now),
                    ahead_behind_seconds=round(offset, 1),
                    ahead_behind=format_time_ahead_behind(offset),
                )
            )

    return TodayDashboard(
        date=snap.date,
        computed_at=snap.computed_at,
        log=log,
        active_target=service.get_active_target(),
        elapsed_hours=round(snap.current.elapsed_hours, 2),
        current_units=round(snap.current.current_units, 2),
        current_uph=round(snap.current.current_uph, 2),
        ahead_behind=snap.ahead_behind_text,
        projection=_projection_read(snap.projection),
        targets=progress,
    )


@router.get("/weekly", response_model=WeeklyAverageRead)
def get_weekly_average(day: date = Depends(today), service: TrackerService = Depends(get_service)):
    """Average daily UPH from Monday through `day`."""
    week = weekly_average_uph(service.list_work_logs(), service.list_targets(), service.get_active_target(), day)
    return WeeklyAverageRead(
        week_start=week.week_start,
        average_uph=week.average_uph,
        days=[DailyUPHPoint(**asdict(d)) for d in week.days],
    )


@router.get("/analytics", response_model=AnalyticsSummary)
def get_analytics(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    service: TrackerService = Depends(get_service),
):
    logs = [
        log for log in service.list_work_logs()
        if (date_from is None or log.date >= date_from) and (date_to is None or log.date <= date_to)
    ]
    summary = summarize(logs, service.list_targets(), service.get_active_target())
    data = asdict(summary)
    data["daily"] = [DailyUPHPoint(**d) for d in data["daily"]]
    return AnalyticsSummary(date_from=date_from, date_to=date_to, **data)
