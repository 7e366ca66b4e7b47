from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from metricdaily.api.deps import get_service, today
from metricdaily.core.config import settings
from metricdaily.core.listview import (
    LogFilter,
    SortColumn,
    SortDirection,
    SortState,
    filter_work_logs,
    paginate,
    previous_logs,
    sort_work_logs,
)
from metricdaily.core.metrics import resolve_target, units_completed, units_per_hour
from metricdaily.schemas.work_log import (
    QuickCountUpdate,
    WorkLogPage,
    WorkLogRead,
    WorkLogRow,
    WorkLogUpsert,
)
from metricdaily.services.export import work_logs_to_csv
from metricdaily.services.tracker import TrackerService


router = APIRouter(prefix="/work-logs", tags=["work-logs"])


def _filtered_sorted(service: TrackerService, q, date_from, date_to, sort, direction, previous_only, day):
    logs = service.list_work_logs()
    if previous_only:
        logs = previous_logs(logs, day)
    targets = service.list_targets()
    active = service.get_active_target()
    flt = LogFilter(term=q or "", date_from=date_from, date_to=date_to)
    logs = filter_work_logs(logs, flt, targets, active)
    return sort_work_logs(logs, SortState(sort, direction), targets, active), targets, active


@router.get("/", response_model=WorkLogPage)
def list_work_logs(
    q: Optional[str] = Query(None, description="Free-text search"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    sort: SortColumn = Query(SortColumn.date),
    direction: SortDirection = Query(SortDirection.desc),
    page: int = Query(1),
    page_size: Optional[int] = Query(None, ge=1),
    previous_only: bool = Query(False, description="Only closed days (before today, or finalized)"),
    day: date = Depends(today),
    service: TrackerService = Depends(get_service),
):
    """
    Filtered, sorted, paginated work logs.

    The previous-logs view calls:
      GET /work-logs?previous_only=true&sort=avg_uph&direction=desc&page=2
    """
    logs, targets, active = _filtered_sorted(service, q, date_from, date_to, sort, direction, previous_only, day)
    result = paginate(logs, page, page_size or settings.work_log_page_size)

    items: list[WorkLogRow] = []
    for log in result.items:
        target = resolve_target(log, targets, active)
        items.append(
            WorkLogRow(
                **log.model_dump(),
                target_name=target.name if target else None,
                units_completed=round(units_completed(log, target), 2),
                avg_uph=round(units_per_hour(log, target), 2),
            )
        )
    return WorkLogPage(
        items=items,
        page=result.page,
        page_size=result.page_size,
        total_items=result.total_items,
        total_pages=result.total_pages,
    )


@router.get("/today", response_model=Optional[WorkLogRead])
def get_today_log(day: date = Depends(today), service: TrackerService = Depends(get_service)):
    return service.log_for_date(day)


@router.get("/export.csv")
def export_work_logs_csv(
    q: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    sort: SortColumn = Query(SortColumn.date),
    direction: SortDirection = Query(SortDirection.desc),
    previous_only: bool = Query(True),
    day: date = Depends(today),
    service: TrackerService = Depends(get_service),
):
    """Every log matching the current filter, in the current order (not just one page)."""
    logs, targets, _ = _filtered_sorted(service, q, date_from, date_to, sort, direction, previous_only, day)
    if not logs:
        raise HTTPException(status_code=404, detail="There are no logs matching the current filter.")

    content = work_logs_to_csv(logs, targets)
    service.record_export("previous work logs to CSV")
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="metric_daily_previous_logs_{stamp}.csv"'},
    )


@router.post("/", response_model=WorkLogRead)
def save_work_log(payload: WorkLogUpsert, service: TrackerService = Depends(get_service)):
    return service.save_work_log(payload)


@router.get("/{log_id}", response_model=WorkLogRead)
def get_work_log(log_id: str, service: TrackerService = Depends(get_service)):
    return service.get_work_log(log_id)


@router.put("/{log_id}", response_model=WorkLogRead)
def update_work_log(log_id: str, payload: WorkLogUpsert, service: TrackerService = Depends(get_service)):
    return service.update_work_log(log_id, payload)


@router.delete("/{log_id}")
def delete_work_log(log_id: str, service: TrackerService = Depends(get_service)):
    service.delete_work_log(log_id)
    return {"message": "Work log deleted"}


@router.post("/{log_date}/quick-update", response_model=WorkLogRead)
def quick_update(log_date: date, payload: QuickCountUpdate, service: TrackerService = Depends(get_service)):
    return service.quick_update_count(log_date, payload.field, payload.delta)


@router.post("/{log_id}/finalize", response_model=WorkLogRead)
def finalize_work_log(log_id: str, service: TrackerService = Depends(get_service)):
    return service.finalize_work_log(log_id)
