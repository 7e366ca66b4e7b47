"""Derived productivity metrics.

Pure functions converting a work log and a UPH target into productivity
numbers. They are total: bad or missing inputs give 0, None or a sentinel
status, never an exception, because they run on every request and every
live refresh. None of them read the clock; `now` is always passed in.

`log` and `target` are duck-typed: anything with the WorkLogRead /
UPHTargetRead attribute names works (pydantic records or ORM rows).
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from metricdaily.core.time_utils import hhmm_to_time, monday_of, shift_minutes


def _num(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def hours_worked(start_time: str, end_time: str, break_minutes=0, training_minutes=0) -> float:
    """Net hours: (end - start) - break - training, rounded to 2 decimals.

    May be zero or negative; callers decide whether that is acceptable.
    Unparseable times give 0.0.
    """
    try:
        start = hhmm_to_time(start_time)
        end = hhmm_to_time(end_time)
    except ValueError:
        return 0.0
    if start is None or end is None:
        return 0.0
    net_minutes = shift_minutes(start, end) - _num(break_minutes) - _num(training_minutes)
    return round(net_minutes / 60, 2)


def units_completed(log, target) -> float:
    """Documents and video sessions converted to units via the target's divisors."""
    if log is None or target is None:
        return 0.0
    docs_per_unit = _num(getattr(target, "docs_per_unit", 0))
    videos_per_unit = _num(getattr(target, "videos_per_unit", 0))

    units = 0.0
    if docs_per_unit > 0:
        units += _num(log.documents_completed) / docs_per_unit
    if videos_per_unit > 0:
        units += _num(log.video_sessions_completed) / videos_per_unit
    return units


def units_per_hour(log, target) -> float:
    if log is None:
        return 0.0
    hours = _num(log.hours_worked)
    if hours <= 0:
        return 0.0
    return units_completed(log, target) / hours


def required_units(hours, target_uph) -> float:
    return _num(hours) * _num(target_uph)


def remaining_units(log, target) -> float:
    """Units still needed for the logged hours; <= 0 means the goal is met."""
    if log is None or target is None:
        return 0.0
    return required_units(log.hours_worked, target.target_uph) - units_completed(log, target)


def resolve_target(log, targets: Iterable, active_target=None):
    """The target a log is measured against: its own, else the active one."""
    target_id = getattr(log, "target_id", None)
    if target_id:
        for t in targets:
            if t.id == target_id:
                return t
    return active_target


# --------- Live (in-progress day) metrics --------- #

def shift_bounds(log) -> Optional[tuple[datetime, datetime]]:
    """Wall-clock start and end of the logged shift, or None if unparseable."""
    try:
        day = log.date if isinstance(log.date, date) else date.fromisoformat(str(log.date))
        start = hhmm_to_time(log.start_time)
        end = hhmm_to_time(log.end_time)
    except (AttributeError, ValueError):
        return None
    if start is None or end is None:
        return None
    start_dt = datetime.combine(day, start)
    return start_dt, start_dt + timedelta(minutes=shift_minutes(start, end))


def _net_ratio(log, start: datetime, end: datetime) -> float:
    """Share of the gross shift that is net work time (break/training spread evenly)."""
    gross_seconds = (end - start).total_seconds()
    if gross_seconds <= 0:
        return 0.0
    ratio = _num(log.hours_worked) * 3600 / gross_seconds
    return min(max(ratio, 0.0), 1.0)


@dataclass(frozen=True)
class CurrentMetrics:
    current_units: float = 0.0
    current_uph: float = 0.0
    elapsed_hours: float = 0.0  # net hours worked so far


def current_metrics(log, target, now: datetime) -> CurrentMetrics:
    """Units and UPH so far, measuring hours up to `now` instead of the logged end.

    Elapsed time is clamped to the shift; break and training time are
    deducted in proportion to the elapsed part of the shift, so at shift end
    this matches units_per_hour().
    """
    if log is None:
        return CurrentMetrics()
    units = units_completed(log, target)
    bounds = shift_bounds(log)
    if bounds is None:
        return CurrentMetrics(current_units=units)

    start, end = bounds
    clamped = min(max(now, start), end)
    elapsed_hours = (clamped - start).total_seconds() * _net_ratio(log, start, end) / 3600
    uph = units / elapsed_hours if elapsed_hours > 0 else 0.0
    return CurrentMetrics(current_units=units, current_uph=uph, elapsed_hours=elapsed_hours)


def time_ahead_behind_schedule(log, target, now: datetime) -> float:
    """Seconds of work ahead (+) or behind (-) the pace the target requires."""
    if log is None or target is None:
        return 0.0
    rate = _num(target.target_uph)
    if rate <= 0:
        return 0.0
    cm = current_metrics(log, target, now)
    expected_units = cm.elapsed_hours * rate
    return (cm.current_units - expected_units) / rate * 3600


def is_goal_met(log, target, now: datetime) -> bool:
    if log is None or target is None:
        return False
    required = required_units(log.hours_worked, target.target_uph)
    return required > 0 and current_metrics(log, target, now).current_units >= required


class ProjectionStatus(str, Enum):
    met = "met"
    on_track = "on_track"
    behind = "behind"
    not_started = "not_started"
    unavailable = "unavailable"


@dataclass(frozen=True)
class GoalProjection:
    status: ProjectionStatus
    required_units: float = 0.0
    units_to_goal: float = 0.0
    met_at: Optional[datetime] = None
    projected_at: Optional[datetime] = None
    remaining_seconds: Optional[float] = None
    shortfall_at_shift_end: Optional[float] = None


def project_goal_hit(log, target, now: datetime, goal_met_at: Optional[datetime] = None) -> GoalProjection:
    """Estimate when today's cumulative target will be reached.

    - met: units already cover the day's requirement; `met_at` is when the
      threshold was crossed (`goal_met_at` if observed, else `now`).
    - on_track: extrapolating the current pace reaches the goal by shift end.
    - behind: the extrapolation lands after shift end (or there is no pace);
      reports the expected shortfall, never a time past the shift.
    - not_started: `now` is before the shift starts.
    """
    if log is None or target is None:
        return GoalProjection(ProjectionStatus.unavailable)
    bounds = shift_bounds(log)
    required = required_units(log.hours_worked, target.target_uph)
    if bounds is None or required <= 0:
        return GoalProjection(ProjectionStatus.unavailable, required_units=required)

    start, end = bounds
    cm = current_metrics(log, target, now)
    to_goal = required - cm.current_units

    if to_goal <= 0:
        return GoalProjection(
            ProjectionStatus.met,
            required_units=required,
            units_to_goal=0.0,
            met_at=goal_met_at or now,
        )
    if now < start:
        return GoalProjection(ProjectionStatus.not_started, required_units=required, units_to_goal=to_goal)

    ratio = _net_ratio(log, start, end)
    if now >= end or cm.current_uph <= 0 or ratio <= 0:
        return GoalProjection(
            ProjectionStatus.behind,
            required_units=required,
            units_to_goal=to_goal,
            shortfall_at_shift_end=to_goal,
        )

    # Net hours still needed at the current pace, stretched back to wall-clock time
    wall_seconds = (to_goal / cm.current_uph) * 3600 / ratio
    projected = now + timedelta(seconds=wall_seconds)
    if projected > end:
        remaining_net_hours = (end - now).total_seconds() * ratio / 3600
        shortfall = to_goal - cm.current_uph * remaining_net_hours
        return GoalProjection(
            ProjectionStatus.behind,
            required_units=required,
            units_to_goal=to_goal,
            shortfall_at_shift_end=max(shortfall, 0.0),
        )
    return GoalProjection(
        ProjectionStatus.on_track,
        required_units=required,
        units_to_goal=to_goal,
        projected_at=projected,
        remaining_seconds=wall_seconds,
    )


# --------- Aggregates --------- #

@dataclass(frozen=True)
class DailyUPH:
    date: date
    uph: float
    weekday: str  # 'Mon', 'Tue', ...


@dataclass(frozen=True)
class WeeklyAverage:
    week_start: date
    average_uph: Optional[float]
    days: list[DailyUPH] = field(default_factory=list)


def weekly_average_uph(logs, targets, active_target, today: date) -> WeeklyAverage:
    """Average daily UPH from Monday of this week through `today`.

    Days with no positive UPH are left out. None when there is no active target.
    """
    week_start = monday_of(today)
    if active_target is None:
        return WeeklyAverage(week_start=week_start, average_uph=None)

    targets = list(targets)
    days: list[DailyUPH] = []
    for log in sorted(logs, key=lambda l: l.date):
        if not (week_start <= log.date <= today):
            continue
        uph = units_per_hour(log, resolve_target(log, targets, active_target))
        if uph > 0:
            days.append(DailyUPH(date=log.date, uph=round(uph, 2), weekday=log.date.strftime("%a")))

    if not days:
        return WeeklyAverage(week_start=week_start, average_uph=0.0)
    average = sum(d.uph for d in days) / len(days)
    return WeeklyAverage(week_start=week_start, average_uph=round(average, 2), days=days)


@dataclass(frozen=True)
class Summary:
    day_count: int = 0
    total_hours: float = 0.0
    total_documents: int = 0
    total_videos: int = 0
    total_units: float = 0.0
    average_daily_uph: float = 0.0
    daily: list[DailyUPH] = field(default_factory=list)


def summarize(logs, targets, active_target=None) -> Summary:
    """Totals and the per-day UPH series for a set of logs."""
    targets = list(targets)
    logs = sorted(logs, key=lambda l: l.date)
    if not logs:
        return Summary()

    total_units = 0.0
    daily: list[DailyUPH] = []
    for log in logs:
        target = resolve_target(log, targets, active_target)
        total_units += units_completed(log, target)
        uph = units_per_hour(log, target)
        if uph > 0:
            daily.append(DailyUPH(date=log.date, uph=round(uph, 2), weekday=log.date.strftime("%a")))

    average = sum(d.uph for d in daily) / len(daily) if daily else 0.0
    return Summary(
        day_count=len(logs),
        total_hours=round(sum(_num(l.hours_worked) for l in logs), 2),
        total_documents=sum(int(_num(l.documents_completed)) for l in logs),
        total_videos=sum(int(_num(l.video_sessions_completed)) for l in logs),
        total_units=round(total_units, 2),
        average_daily_uph=round(average, 2),
        daily=daily,
    )
