from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from metricdaily.schemas.target import UPHTargetRead
from metricdaily.schemas.work_log import WorkLogRead


class TargetProgress(BaseModel):
    """Today's numbers measured against one displayed target."""

    target: UPHTargetRead
    units_completed: float
    current_uph: float
    required_units: float
    remaining_units: float
    goal_met: bool
    ahead_behind_seconds: float
    ahead_behind: str


class GoalProjectionRead(BaseModel):
    status: str
    required_units: float = 0.0
    units_to_goal: float = 0.0
    met_at: Optional[datetime] = None
    projected_at: Optional[datetime] = None
    remaining_seconds: Optional[float] = None
    shortfall_at_shift_end: Optional[float] = None


class TodayDashboard(BaseModel):
    date: date
    computed_at: datetime
    log: Optional[WorkLogRead] = None
    active_target: Optional[UPHTargetRead] = None
    elapsed_hours: float = 0.0
    current_units: float = 0.0
    current_uph: float = 0.0
    ahead_behind: str = "-"
    projection: GoalProjectionRead
    targets: list[TargetProgress] = []


class DailyUPHPoint(BaseModel):
    date: date
    uph: float
    weekday: str


class WeeklyAverageRead(BaseModel):
    week_start: date
    average_uph: Optional[float] = None
    days: list[DailyUPHPoint] = []


class AnalyticsSummary(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    day_count: int = 0
    total_hours: float = 0.0
    total_documents: int = 0
    total_videos: int = 0
    total_units: float = 0.0
    average_daily_uph: float = 0.0
    daily: list[DailyUPHPoint] = []
