"""Today's progress recomputed against the wall clock.

A LiveProgressTracker holds the only state the calculator needs between
refreshes: the moment the day's goal was first seen as met. The ticker
started by the app lifespan calls refresh() on a fixed interval; the
dashboard calls it on demand.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from metricdaily.core.exceptions import TrackerError
from metricdaily.core.metrics import (
    CurrentMetrics,
    GoalProjection,
    ProjectionStatus,
    current_metrics,
    is_goal_met,
    project_goal_hit,
    remaining_units,
    resolve_target,
    shift_bounds,
    time_ahead_behind_schedule,
)
from metricdaily.core.time_utils import format_time_ahead_behind, local_now
from metricdaily.storage.base import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveSnapshot:
    computed_at: datetime
    date: date
    log: Optional[object] = None
    target: Optional[object] = None
    current: CurrentMetrics = CurrentMetrics()
    remaining_units: float = 0.0
    ahead_behind_seconds: Optional[float] = None
    ahead_behind_text: str = "-"
    goal_met: bool = False
    projection: GoalProjection = GoalProjection(ProjectionStatus.unavailable)


class LiveProgressTracker:
    def __init__(self):
        self._goal_met_at: dict[tuple, datetime] = {}
        self.latest: Optional[LiveSnapshot] = None

    def goal_met_at(self, day: date, target_id: str) -> Optional[datetime]:
        return self._goal_met_at.get((day, target_id))

    def update(self, log, target, now: datetime) -> LiveSnapshot:
        """Recompute from an already loaded log and target."""
        if log is None or target is None:
            day = log.date if log is not None else now.date()
            snapshot = LiveSnapshot(computed_at=now, date=day, log=log, target=target)
            self.latest = snapshot
            return snapshot

        # Earlier days can no longer change
        self._goal_met_at = {k: v for k, v in self._goal_met_at.items() if k[0] >= log.date}

        key = (log.date, target.id)
        met = is_goal_met(log, target, now)
        if met and key not in self._goal_met_at:
            self._goal_met_at[key] = now
            logger.info("Goal for %s reached against target %s", log.date, target.name)
        elif not met and key in self._goal_met_at:
            # Counts were corrected downwards
            del self._goal_met_at[key]

        offset = time_ahead_behind_schedule(log, target, now)
        snapshot = LiveSnapshot(
            computed_at=now,
            date=log.date,
            log=log,
            target=target,
            current=current_metrics(log, target, now),
            remaining_units=remaining_units(log, target),
            ahead_behind_seconds=offset,
            ahead_behind_text=format_time_ahead_behind(offset),
            goal_met=met,
            projection=project_goal_hit(log, target, now, goal_met_at=self._goal_met_at.get(key)),
        )
        self.latest = snapshot
        return snapshot

    def refresh(self, store: Store, now: datetime) -> LiveSnapshot:
        """Load the current shift's log and its target from `store` and recompute."""
        log = current_work_log(store, now)
        active = store.get_active_target()
        target = resolve_target(log, store.list_targets(), active) if log else active
        return self.update(log, target, now)


def current_work_log(store: Store, now: datetime):
    """Today's log, or yesterday's while its overnight shift is still running."""
    log = store.find_work_log_by_date(now.date())
    bounds = shift_bounds(log) if log is not None else None
    if log is None or (bounds is not None and now < bounds[0]):
        previous = store.find_work_log_by_date(now.date() - timedelta(days=1))
        previous_bounds = shift_bounds(previous) if previous is not None else None
        if previous_bounds is not None and previous_bounds[0] <= now <= previous_bounds[1]:
            return previous
    return log


async def run_ticker(tracker: LiveProgressTracker, open_store, interval: float, tz_name: str = "local"):
    """Refresh `tracker` every `interval` seconds until cancelled."""

    def _tick():
        with open_store() as store:
            tracker.refresh(store, local_now(tz_name))

    logger.info("Live progress ticker started (every %ss)", interval)
    try:
        while True:
            try:
                await asyncio.to_thread(_tick)
            except TrackerError as e:
                logger.warning("Live progress refresh failed: %s", e.message)
            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.info("Live progress ticker stopped")
        raise
