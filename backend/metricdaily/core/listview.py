"""Filter, sort and paginate the record lists behind the log and audit views.

The displayed page is always a contiguous slice of the filtered and sorted
full list. Sorting is stable, so rows with equal keys keep their input order.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Generic, Iterable, Optional, Sequence, TypeVar

from metricdaily.core.metrics import resolve_target, units_per_hour
from metricdaily.core.time_utils import format_friendly_date


T = TypeVar("T")


class SortColumn(str, Enum):
    date = "date"
    hours_worked = "hours_worked"
    documents_completed = "documents_completed"
    video_sessions_completed = "video_sessions_completed"
    avg_uph = "avg_uph"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


@dataclass(frozen=True)
class SortState:
    column: SortColumn = SortColumn.date
    direction: SortDirection = SortDirection.desc

    def toggle(self, column: SortColumn) -> "SortState":
        """Same column flips asc <-> desc; a new column starts ascending.

        There is no "unsorted" step in the cycle.
        """
        if column == self.column:
            flipped = SortDirection.desc if self.direction == SortDirection.asc else SortDirection.asc
            return SortState(column, flipped)
        return SortState(column, SortDirection.asc)


@dataclass(frozen=True)
class LogFilter:
    term: str = ""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    # Audit-only categorical filters
    action: Optional[str] = None
    entity_type: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return bool(self.term or self.date_from or self.date_to or self.action or self.entity_type)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list
    page: int
    page_size: int
    total_items: int
    total_pages: int


def paginate(items: Sequence[T], page: int, page_size: int) -> Page:
    """1-indexed page of `items`, with `page` clamped to the valid range."""
    page_size = max(1, page_size)
    total_pages = math.ceil(len(items) / page_size)
    page = min(max(1, page), max(1, total_pages))
    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_items=len(items),
        total_pages=total_pages,
    )


@dataclass
class ListViewState:
    """What one list view currently shows. Any filter or sort change goes back to page 1."""

    filter: LogFilter = field(default_factory=LogFilter)
    sort: SortState = field(default_factory=SortState)
    page: int = 1

    def set_filter(self, flt: LogFilter) -> None:
        self.filter = flt
        self.page = 1

    def sort_by(self, column: SortColumn) -> None:
        self.sort = self.sort.toggle(column)
        self.page = 1

    def go_to(self, page: int, total_pages: int) -> None:
        self.page = min(max(1, page), max(1, total_pages))

    def reset(self) -> None:
        self.filter = LogFilter()
        self.sort = SortState()
        self.page = 1


# --------- Work logs --------- #

def previous_logs(logs: Iterable, today: date) -> list:
    """Days before today, plus today's entry once it is finalized."""
    return [
        log for log in logs
        if log.date < today or (log.date == today and log.is_finalized)
    ]


def _number_text(value) -> str:
    value = float(value or 0)
    return str(int(value)) if value.is_integer() else f"{value:g}"


def _in_range(day: date, flt: LogFilter) -> bool:
    if flt.date_from and day < flt.date_from:
        return False
    if flt.date_to and day > flt.date_to:
        return False
    return True


def filter_work_logs(logs: Iterable, flt: LogFilter, targets: Iterable = (), active_target=None) -> list:
    targets = list(targets)
    term = flt.term.strip().lower()
    out = []
    for log in logs:
        if not _in_range(log.date, flt):
            continue
        if term:
            fields = [
                log.date.isoformat(),
                format_friendly_date(log.date).lower(),
                log.start_time.lower(),
                log.end_time.lower(),
                _number_text(log.hours_worked),
                _number_text(log.documents_completed),
                _number_text(log.video_sessions_completed),
                (log.notes or "").lower(),
            ]
            target = resolve_target(log, targets, active_target)
            if target is not None:
                fields.append(f"{units_per_hour(log, target):.2f}")
            if not any(term in f for f in fields):
                continue
        out.append(log)
    return out


def sort_work_logs(logs: Iterable, sort: SortState, targets: Iterable = (), active_target=None) -> list:
    targets = list(targets)

    if sort.column == SortColumn.avg_uph:
        def key(log):
            return units_per_hour(log, resolve_target(log, targets, active_target))
    elif sort.column == SortColumn.date:
        def key(log):
            return log.date
    else:
        def key(log):
            return float(getattr(log, sort.column.value) or 0)

    return sorted(logs, key=key, reverse=sort.direction == SortDirection.desc)


# --------- Audit entries --------- #

def _format_timestamp(ts) -> str:
    hour = ts.strftime("%I").lstrip("0") or "12"
    return f"{format_friendly_date(ts.date())} {hour}:{ts.strftime('%M %p')}"


def filter_audit_logs(entries: Iterable, flt: LogFilter) -> list:
    term = flt.term.strip().lower()
    out = []
    for entry in entries:
        if flt.action and entry.action != flt.action:
            continue
        if flt.entity_type and entry.entity_type != flt.entity_type:
            continue
        if not _in_range(entry.timestamp.date(), flt):
            continue
        if term:
            fields = [
                entry.action.lower(),
                entry.entity_type.lower(),
                (entry.entity_id or "").lower(),
                (entry.details or "").lower(),
                _format_timestamp(entry.timestamp).lower(),
            ]
            if not any(term in f for f in fields):
                continue
        out.append(entry)
    return out


def sort_audit_logs(entries: Iterable, newest_first: bool = True) -> list:
    return sorted(entries, key=lambda e: e.timestamp, reverse=newest_first)
