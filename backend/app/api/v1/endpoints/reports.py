from __future__ import annotations

from datetime import datetime, time

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from backend.app.api.deps import get_current_company_id, get_db
from backend.app.core.errors import BadRequestError
from backend.app.schemas.common import ApiResponse
from backend.app.schemas.reports import DashboardRead, PeriodReportRead
from backend.services.ledger import fetch_company_meta
from backend.services.report_pdf import render_report_document
from backend.services.reporting import compute_dashboard, compute_global_report

router = APIRouter(prefix="/reports")

DATETIME_FORMATS = (
    "%Y-%m-%dT%H:%M:%S",     # 2025-12-07T14:23:59
    "%Y-%m-%dT%H:%M:%S.%f",  # 2025-12-07T14:23:59.123
    "%Y-%m-%d %H:%M:%S",     # 2025-12-07 14:23:59
)
DATE_FORMAT = "%Y-%m-%d"     # 2025-12-07


# ---------- Helpers ----------
def parse_period_bound(value: str | None, *, end_of_day: bool) -> datetime:
    """
    Date/heure de borne de période.
    Date seule -> début de journée, ou dernier instant si end_of_day.
    """
    if value is None or not value.strip():
        raise BadRequestError("Format de data no vàlid")
    value = value.strip()

    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    try:
        day = datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise BadRequestError("Format de data no vàlid") from None
    return datetime.combine(day, time.max if end_of_day else time.min)


def _period(start_date: str | None, end_date: str | None) -> tuple[datetime, datetime]:
    return (
        parse_period_bound(start_date, end_of_day=False),
        parse_period_bound(end_date, end_of_day=True),
    )


# ---------- Endpoints ----------
@router.get("/dashboard", response_model=ApiResponse[DashboardRead])
def dashboard_info(
    company_id: int = Depends(get_current_company_id),
    db: Session = Depends(get_db),
):
    """Commandes du mois en cours (actives uniquement)."""
    stats = compute_dashboard(db, company_id)
    return ApiResponse[DashboardRead].ok(
        DashboardRead.model_validate(stats),
        "Informació per dashboard correcta.",
    )


@router.get("/global", response_model=ApiResponse[PeriodReportRead])
def global_info(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    company_id: int = Depends(get_current_company_id),
    db: Session = Depends(get_db),
):
    start, end = _period(start_date, end_date)
    report = compute_global_report(db, company_id, start, end)
    return ApiResponse[PeriodReportRead].ok(
        PeriodReportRead.model_validate(report),
        "Informació per el report correcta.",
    )


@router.get("/global/pdf")
def global_info_pdf(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    company_id: int = Depends(get_current_company_id),
    db: Session = Depends(get_db),
):
    start, end = _period(start_date, end_date)
    report = compute_global_report(db, company_id, start, end)
    company = fetch_company_meta(db, company_id)

    pdf_bytes = render_report_document(report, company)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": 'inline; filename="report.pdf"'},
    )
