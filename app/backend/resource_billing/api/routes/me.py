"""Current user endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from resource_billing.core.auth import RequestUserContext, get_current_user_context, require_resource_identity
from resource_billing.db.dependencies import get_db_session
from resource_billing.repositories.billing_repository import BillingRepository
from resource_billing.services.billing_report_service import BillingReportService

router = APIRouter(prefix="/me", tags=["me"])


@router.get("")
def get_me(context: RequestUserContext = Depends(get_current_user_context)) -> dict[str, object]:
    """Return current authenticated user profile and role."""

    return {
        "resource_id": str(context.resource_id) if context.resource_id is not None else None,
        "email": context.email,
        "display_name": context.display_name,
        "role": context.role.value,
    }


@router.get("/stats")
def get_my_stats(
    month: int | None = Query(default=None, ge=0, le=11),
    year: int | None = Query(default=None, ge=1900, le=9999),
    context: RequestUserContext = Depends(require_resource_identity),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Month and annual working-day figures for the logged-in resource."""

    service = BillingReportService(BillingRepository(db))
    return service.resource_dashboard(resource_id=context.resource_id, month_index=month, year=year)
