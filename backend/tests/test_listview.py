from datetime import date, datetime, timedelta, timezone

from metricdaily.core.listview import (
    ListViewState,
    LogFilter,
    SortColumn,
    SortDirection,
    SortState,
    filter_audit_logs,
    filter_work_logs,
    paginate,
    previous_logs,
    sort_audit_logs,
    sort_work_logs,
)
from metricdaily.schemas.audit import AuditLogRead
from metricdaily.schemas.target import UPHTargetRead
from metricdaily.schemas.work_log import WorkLogRead


TARGET = UPHTargetRead(id="t-1", name="Standard", target_uph=6, docs_per_unit=10, videos_per_unit=4, is_active=True)


def make_logs(n: int = 23) -> list[WorkLogRead]:
    start = date(2024, 7, 1)
    return [
        WorkLogRead(
            id=f"log-{i}",
            date=start + timedelta(days=i),
            start_time="14:00",
            end_time="22:30",
            break_duration_minutes=30,
            hours_worked=8.0,
            documents_completed=10 * i,
            video_sessions_completed=i % 5,
            notes="Quiet day" if i % 2 else None,
            target_id="t-1",
        )
        for i in range(n)
    ]


def test_sort_state_toggle_cycle():
    state = SortState()
    assert (state.column, state.direction) == (SortColumn.date, SortDirection.desc)

    state = state.toggle(SortColumn.date)
    assert state.direction == SortDirection.asc
    state = state.toggle(SortColumn.date)
    assert state.direction == SortDirection.desc

    # A new column starts ascending; there is no unsorted step
    state = state.toggle(SortColumn.avg_uph)
    assert (state.column, state.direction) == (SortColumn.avg_uph, SortDirection.asc)
    state = state.toggle(SortColumn.avg_uph).toggle(SortColumn.avg_uph)
    assert state.direction == SortDirection.asc


def test_sort_directions_are_reverses():
    logs = make_logs()
    asc = sort_work_logs(logs, SortState(SortColumn.documents_completed, SortDirection.asc), [TARGET], TARGET)
    desc = sort_work_logs(logs, SortState(SortColumn.documents_completed, SortDirection.desc), [TARGET], TARGET)
    assert [l.id for l in asc] == [l.id for l in reversed(desc)]
    assert asc[0].documents_completed == 0


def test_sort_is_stable_for_equal_keys():
    logs = make_logs(6)
    ordered = sort_work_logs(logs, SortState(SortColumn.hours_worked, SortDirection.asc))
    assert [l.id for l in ordered] == [l.id for l in logs]


def test_sort_by_avg_uph():
    logs = make_logs(5)
    ordered = sort_work_logs(logs, SortState(SortColumn.avg_uph, SortDirection.desc), [TARGET], TARGET)
    assert ordered[0].id == "log-4"


def test_pages_concatenate_to_full_list():
    logs = make_logs(23)
    first = paginate(logs, 1, 10)
    assert first.total_pages == 3
    assert first.total_items == 23

    collected = []
    for page in range(1, first.total_pages + 1):
        collected.extend(paginate(logs, page, 10).items)
    assert collected == logs


def test_paginate_clamps_page():
    logs = make_logs(23)
    assert paginate(logs, 99, 10).page == 3
    assert len(paginate(logs, 99, 10).items) == 3
    assert paginate(logs, 0, 10).page == 1
    empty = paginate([], 4, 10)
    assert (empty.page, empty.total_pages, empty.items) == (1, 0, [])


def test_list_view_changes_reset_page():
    view = ListViewState(page=3)
    view.sort_by(SortColumn.hours_worked)
    assert view.page == 1

    view.go_to(2, total_pages=3)
    view.set_filter(LogFilter(term="quiet"))
    assert view.page == 1

    view.go_to(7, total_pages=3)
    assert view.page == 3
    view.reset()
    assert view.filter == LogFilter() and view.sort == SortState() and view.page == 1


def test_filter_by_notes_dates_and_uph():
    logs = make_logs(10)

    quiet = filter_work_logs(logs, LogFilter(term="QUIET"), [TARGET], TARGET)
    assert {l.id for l in quiet} == {"log-1", "log-3", "log-5", "log-7", "log-9"}

    # Friendly date text: 'July 5th, 2024'
    assert [l.id for l in filter_work_logs(logs, LogFilter(term="july 5th"))] == ["log-4"]

    ranged = filter_work_logs(logs, LogFilter(date_from=date(2024, 7, 3), date_to=date(2024, 7, 4)))
    assert [l.id for l in ranged] == ["log-2", "log-3"]

    # log-2: 20 docs / 10 + 2 videos / 4 = 2.5 units over 8h
    assert "log-2" in {l.id for l in filter_work_logs(logs, LogFilter(term="0.31"), [TARGET], TARGET)}


def test_empty_filter_is_inactive():
    assert not LogFilter().is_active
    assert LogFilter(term="x").is_active


def test_previous_logs_excludes_open_today():
    today = date(2024, 7, 3)
    logs = make_logs(5)
    finalized_today = logs[2].model_copy(update={"is_finalized": True})

    assert [l.id for l in previous_logs(logs, today)] == ["log-0", "log-1"]
    assert [l.id for l in previous_logs(logs[:2] + [finalized_today], today)] == ["log-0", "log-1", "log-2"]


def _entry(i: int, action: str, entity_type: str, details: str) -> AuditLogRead:
    return AuditLogRead(
        id=f"a-{i}",
        timestamp=datetime(2024, 7, 15, 9, 0, tzinfo=timezone.utc) + timedelta(minutes=i),
        action=action,
        entity_type=entity_type,
        details=details,
    )


def test_filter_and_sort_audit_logs():
    entries = [
        _entry(0, "CREATE_UPH_TARGET", "UPHTarget", "Created UPH target 'Meeting'."),
        _entry(1, "CREATE_WORK_LOG", "WorkLog", "Created work log for 2024-07-15."),
        _entry(2, "UPDATE_WORK_LOG", "WorkLog", "Updated work log for 2024-07-15."),
    ]

    assert [e.id for e in filter_audit_logs(entries, LogFilter(entity_type="WorkLog"))] == ["a-1", "a-2"]
    assert [e.id for e in filter_audit_logs(entries, LogFilter(action="CREATE_WORK_LOG"))] == ["a-1"]
    assert [e.id for e in filter_audit_logs(entries, LogFilter(term="meeting"))] == ["a-0"]
    assert [e.id for e in sort_audit_logs(entries)] == ["a-2", "a-1", "a-0"]
    assert [e.id for e in sort_audit_logs(entries, newest_first=False)] == ["a-0", "a-1", "a-2"]
