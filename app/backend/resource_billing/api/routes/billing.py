"""Billing statistics endpoints for admins."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from resource_billing.core.auth import RequestUserContext, require_admin
from resource_billing.db.dependencies import get_db_session
from resource_billing.repositories.billing_repository import BillingRepository
from resource_billing.services.billing_report_service import BillingReportService, ReportPeriod

router = APIRouter(prefix="/billing", tags=["billing"])


def _service(db: Session) -> BillingReportService:
    return BillingReportService(BillingRepository(db))


@router.get("/stats/project/{project_id}")
def get_project_billing_stats(
    project_id: str,
    month: int | None = Query(default=None, ge=0, le=11),
    year: int | None = Query(default=None, ge=1900, le=9999),
    period: ReportPeriod = ReportPeriod.MONTH,
    combine_currencies: bool = False,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    return service.project_billing_stats(
        project_id=project_id,
        month_index=month,
        year=year,
        period=period,
        combine_currencies=combine_currencies,
    )


@router.get("/stats/overview")
def get_billing_overview(
    month: int | None = Query(default=None, ge=0, le=11),
    year: int | None = Query(default=None, ge=1900, le=9999),
    combine_currencies: bool = False,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    return service.overview(month_index=month, year=year, combine_currencies=combine_currencies)


@router.get("/stats/annual")
def get_annual_billing_report(
    year: int | None = Query(default=None, ge=1900, le=9999),
    project_id: str | None = None,
    combine_currencies: bool = False,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    return service.annual_trend(year=year, project_id=project_id, combine_currencies=combine_currencies)
