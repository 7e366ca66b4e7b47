"""CSV renderings of work logs and audit entries."""

import csv
import io
import json
from typing import Iterable

from metricdaily.core.metrics import units_completed, units_per_hour

WORK_LOG_HEADERS = [
    "Date",
    "Start Time",
    "End Time",
    "Break Duration (min)",
    "Training Duration (min)",
    "Net Hours Worked",
    "Documents Completed",
    "Video Sessions Completed",
    "Notes",
    "Finalized",
    "Logged Target ID",
    "Logged Target Name",
    "Logged Target UPH (Goal)",
    "Logged Target Docs/Unit",
    "Logged Target Videos/Unit",
    "Avg UPH (vs Logged Target)",
]

AUDIT_LOG_HEADERS = ["Timestamp", "Action", "Entity Type", "Entity ID", "Details", "Previous State", "New State"]


def _plain_number(value) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def work_logs_to_csv(logs: Iterable, targets: Iterable) -> str:
    """One row per log; a field is quoted only if it holds a comma, quote or newline."""
    targets = list(targets)
    by_id = {t.id: t for t in targets}

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    header = list(WORK_LOG_HEADERS)
    for t in targets:
        header += [f"{t.name} Units", f"{t.name} UPH"]
    writer.writerow(header)

    for log in logs:
        logged = by_id.get(log.target_id) if log.target_id else None
        row = [
            log.date.isoformat(),
            log.start_time,
            log.end_time,
            log.break_duration_minutes,
            log.training_duration_minutes or 0,
            f"{log.hours_worked:.2f}",
            log.documents_completed,
            log.video_sessions_completed,
            log.notes or "",
            "Yes" if log.is_finalized else "No",
            log.target_id or "N/A",
            logged.name if logged else "N/A",
            f"{logged.target_uph:.2f}" if logged else "N/A",
            _plain_number(logged.docs_per_unit) if logged else "N/A",
            _plain_number(logged.videos_per_unit) if logged else "N/A",
            f"{units_per_hour(log, logged) if logged else 0:.2f}",
        ]
        for t in targets:
            row += [f"{units_completed(log, t):.2f}", f"{units_per_hour(log, t):.2f}"]
        writer.writerow(row)
    return buf.getvalue()


def audit_logs_to_csv(entries: Iterable) -> str:
    """Every field quoted; states are embedded as compact JSON."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(AUDIT_LOG_HEADERS)
    for e in entries:
        writer.writerow([
            e.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            e.action,
            e.entity_type,
            e.entity_id or "",
            e.details or "",
            json.dumps(e.previous_state) if e.previous_state else "",
            json.dumps(e.new_state) if e.new_state else "",
        ])
    return buf.getvalue()
