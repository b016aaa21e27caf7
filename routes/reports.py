from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backend import AuthUser, BackendClient, BackendError
from crud import reports as crud
from crud.settings import vendor_options
from routes.auth_router import backend_failure, get_client, require_user

router = APIRouter(prefix="/reports", tags=["Reports"])

EXPORT_FILENAME = "projects_report.csv"


@router.get("")
def report(
    name: Optional[str] = Query(None),
    vendor: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        rows = crud.report_rows(client, name=name, vendor=vendor, status=status_filter)
        vendors = vendor_options(client)
    except BackendError as e:
        raise backend_failure("Error loading report", e)
    return {
        "filters": {"name": name or "", "vendor": vendor, "status": status_filter},
        "rows": rows,
        "summary": crud.summarize(rows),
        "vendors": vendors,
        "statuses": ["ongoing", "completed", "delayed"],
    }


@router.get("/export")
def export(
    name: Optional[str] = Query(None),
    vendor: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    client: BackendClient = Depends(get_client),
    _u: AuthUser = Depends(require_user),
):
    try:
        rows = crud.report_rows(client, name=name, vendor=vendor, status=status_filter)
    except BackendError as e:
        raise backend_failure("Error exporting report", e)
    return Response(
        content=crud.export_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )
