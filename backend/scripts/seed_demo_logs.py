import argparse
from datetime import date, timedelta
import random

from metricdaily.core.constants import DEFAULT_BREAK_MINUTES, DEFAULT_END_TIME, DEFAULT_START_TIME
from metricdaily.db import open_store
from metricdaily.schemas.target import UPHTargetCreate
from metricdaily.schemas.work_log import WorkLogUpsert
from metricdaily.services.tracker import TrackerService


SAMPLE_TARGETS = [
    # The first one created becomes the active target
    UPHTargetCreate(name="Meeting", target_uph=9.0, docs_per_unit=10, videos_per_unit=1.5),
    UPHTargetCreate(name="Minimum", target_uph=7.5, docs_per_unit=10, videos_per_unit=1.5),
    UPHTargetCreate(name="Outstanding", target_uph=10.5, docs_per_unit=10, videos_per_unit=1.5),
]


def seed_demo_logs(service: TrackerService, weeks: int = 4) -> None:
    """Insert sample targets and a block of weekday logs ending today."""
    existing = {t.name.lower() for t in service.list_targets()}
    for target in SAMPLE_TARGETS:
        if target.name.lower() not in existing:
            service.add_target(target)

    today = date.today()
    start_day = today - timedelta(weeks=weeks)
    count = 0
    d = start_day
    while d <= today:
        # Mon-Fri shifts only
        if d.weekday() < 5:
            service.save_work_log(
                WorkLogUpsert(
                    date=d,
                    start_time=DEFAULT_START_TIME,
                    end_time=DEFAULT_END_TIME,
                    break_duration_minutes=DEFAULT_BREAK_MINUTES,
                    training_duration_minutes=random.choice([0, 0, 0, 5, 15]),
                    documents_completed=random.randint(50, 90),
                    video_sessions_completed=random.randint(70, 110),
                    notes="Sample log.",
                    is_finalized=d < today,
                )
            )
            count += 1
        d += timedelta(days=1)

    print(f"Seeded {len(SAMPLE_TARGETS)} targets and {count} demo work logs")


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed sample UPH targets and weekday work logs")
    ap.add_argument("--weeks", type=int, default=4, help="How many weeks back to seed (default 4)")
    ap.add_argument("--keep", action="store_true", help="Do not clear existing logs, targets and settings first")
    args = ap.parse_args()

    with open_store() as store:
        service = TrackerService(store)
        if not args.keep:
            service.clear_all_data()
        seed_demo_logs(service, weeks=args.weeks)


if __name__ == "__main__":
    main()
