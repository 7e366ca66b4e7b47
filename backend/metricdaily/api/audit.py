from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from metricdaily.api.deps import get_service
from metricdaily.core.config import settings
from metricdaily.core.listview import LogFilter, filter_audit_logs, paginate, sort_audit_logs
from metricdaily.schemas.audit import AuditLogPage
from metricdaily.services.export import audit_logs_to_csv
from metricdaily.services.tracker import TrackerService


router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


def _filtered(service: TrackerService, q, action, entity_type, date_from, date_to, newest_first):
    flt = LogFilter(term=q or "", date_from=date_from, date_to=date_to, action=action, entity_type=entity_type)
    return sort_audit_logs(filter_audit_logs(service.list_audit_logs(), flt), newest_first=newest_first)


@router.get("/", response_model=AuditLogPage)
def list_audit_logs(
    q: Optional[str] = Query(None),
    action: Optional[str] = Query(None, description="e.g. CREATE_WORK_LOG"),
    entity_type: Optional[str] = Query(None, description="WorkLog, UPHTarget, Settings or System"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    newest_first: bool = Query(True),
    page: int = Query(1),
    page_size: Optional[int] = Query(None, ge=1),
    service: TrackerService = Depends(get_service),
):
    entries = _filtered(service, q, action, entity_type, date_from, date_to, newest_first)
    result = paginate(entries, page, page_size or settings.audit_log_page_size)
    return AuditLogPage(
        items=result.items,
        page=result.page,
        page_size=result.page_size,
        total_items=result.total_items,
        total_pages=result.total_pages,
    )


@router.get("/export.csv")
def export_audit_logs_csv(
    q: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    service: TrackerService = Depends(get_service),
):
    entries = _filtered(service, q, action, entity_type, date_from, date_to, True)
    if not entries:
        raise HTTPException(status_code=404, detail="There are no audit entries matching the current filter.")

    content = audit_logs_to_csv(entries)
    service.record_export("audit log to CSV")
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="metric_daily_audit_log_{stamp}.csv"'},
    )
