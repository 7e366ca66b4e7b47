import csv
import io
from datetime import date, datetime, timezone

from metricdaily.schemas.audit import AuditLogRead
from metricdaily.schemas.target import UPHTargetRead
from metricdaily.schemas.work_log import WorkLogRead
from metricdaily.services.export import WORK_LOG_HEADERS, audit_logs_to_csv, work_logs_to_csv


TARGET = UPHTargetRead(id="t-1", name="Meeting", target_uph=6, docs_per_unit=10, videos_per_unit=4, is_active=True)
OTHER = UPHTargetRead(id="t-2", name="Outstanding", target_uph=10.5, docs_per_unit=10, videos_per_unit=1.5)


def make_log(notes=None, target_id="t-1") -> WorkLogRead:
    return WorkLogRead(
        id="log-1",
        date=date(2024, 7, 15),
        start_time="14:00",
        end_time="22:30",
        break_duration_minutes=30,
        hours_worked=8.0,
        documents_completed=100,
        video_sessions_completed=20,
        notes=notes,
        target_id=target_id,
    )


def test_header_and_row_values():
    lines = work_logs_to_csv([make_log(notes="steady")], [TARGET, OTHER]).splitlines()

    assert lines[0] == ",".join(WORK_LOG_HEADERS + ["Meeting Units", "Meeting UPH", "Outstanding Units", "Outstanding UPH"])
    assert lines[1] == (
        "2024-07-15,14:00,22:30,30,0,8.00,100,20,steady,No,t-1,Meeting,6.00,10,4,1.88,"
        "15.00,1.88,23.33,2.92"
    )


def test_notes_quoted_only_when_needed():
    plain = work_logs_to_csv([make_log(notes="all good")], [TARGET]).splitlines()[1]
    assert ",all good," in plain
    assert '"' not in plain

    comma = work_logs_to_csv([make_log(notes="slow, then fast")], [TARGET]).splitlines()[1]
    assert ',"slow, then fast",' in comma

    quote = work_logs_to_csv([make_log(notes='said "done"')], [TARGET]).splitlines()[1]
    assert ',"said ""done""",' in quote


def test_multiline_notes_survive_a_csv_reader():
    content = work_logs_to_csv([make_log(notes="line one\nline two")], [TARGET])
    rows = list(csv.reader(io.StringIO(content)))
    assert rows[1][8] == "line one\nline two"


def test_unknown_logged_target_is_na():
    row = work_logs_to_csv([make_log(target_id="gone")], [TARGET]).splitlines()[1].split(",")
    assert row[10:16] == ["gone", "N/A", "N/A", "N/A", "N/A", "0.00"]


def test_audit_csv_quotes_every_field():
    entry = AuditLogRead(
        id="a-1",
        timestamp=datetime(2024, 7, 15, 9, 30, 5, tzinfo=timezone.utc),
        action="UPDATE_SETTINGS",
        entity_type="Settings",
        details="Updated default settings.",
        new_state={"default_break_minutes": 65},
    )
    lines = audit_logs_to_csv([entry]).splitlines()

    assert lines[0] == '"Timestamp","Action","Entity Type","Entity ID","Details","Previous State","New State"'
    assert lines[1] == (
        '"2024-07-15 09:30:05","UPDATE_SETTINGS","Settings","","Updated default settings.","",'
        '"{""default_break_minutes"": 65}"'
    )
