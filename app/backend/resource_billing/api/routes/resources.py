"""Resource management endpoints (admin only)."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from resource_billing.core.auth import RequestUserContext, require_admin
from resource_billing.db.dependencies import get_db_session
from resource_billing.models.entities import ResourceRole
from resource_billing.repositories.billing_repository import BillingRepository
from resource_billing.services.billing_report_service import BillingReportService
from resource_billing.services.leave_service import LeaveService
from resource_billing.services.management_service import (
    ManagementService,
    ResourceCreateData,
    ResourceImportRow,
    ResourceUpdateData,
)

router = APIRouter(prefix="/resources", tags=["resources"])


class ResourceCreatePayload(BaseModel):
    emp_code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    joining_date: date
    role: ResourceRole = ResourceRole.RESOURCE


class ResourceUpdatePayload(BaseModel):
    emp_code: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=320)
    joining_date: date | None = None


class ResourceImportRowPayload(BaseModel):
    emp_code: str | None = Field(default=None, max_length=64)
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    joining_date: date | None = None


class ResourcesBulkImportPayload(BaseModel):
    rows: list[ResourceImportRowPayload]


def _management_service(db: Session) -> ManagementService:
    return ManagementService(db)


@router.get("")
def list_resources(
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _management_service(db)
    return {"items": [service.serialize_resource(row) for row in service.list_resources()]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_resource(
    payload: ResourceCreatePayload,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _management_service(db)
    resource = service.create_resource(
        ResourceCreateData(
            emp_code=payload.emp_code,
            name=payload.name,
            email=payload.email,
            joining_date=payload.joining_date,
            role=payload.role,
        )
    )
    return service.serialize_resource(resource)


@router.post("/bulk")
def bulk_import_resources(
    payload: ResourcesBulkImportPayload,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    summary = _management_service(db).bulk_import_resources(
        [
            ResourceImportRow(
                emp_code=item.emp_code,
                name=item.name,
                email=item.email,
                joining_date=item.joining_date,
            )
            for item in payload.rows
        ]
    )
    return {
        "total": summary.total,
        "success": summary.success,
        "failed": summary.failed,
        "errors": summary.errors,
    }


@router.get("/{resource_id}")
def get_resource(
    resource_id: UUID,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _management_service(db)
    return service.serialize_resource(service.get_resource(resource_id))


@router.put("/{resource_id}")
def update_resource(
    resource_id: UUID,
    payload: ResourceUpdatePayload,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _management_service(db)
    resource = service.update_resource(
        resource_id,
        ResourceUpdateData(
            emp_code=payload.emp_code,
            name=payload.name,
            email=payload.email,
            joining_date=payload.joining_date,
        ),
    )
    return service.serialize_resource(resource)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resource(
    resource_id: UUID,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> Response:
    _management_service(db).delete_resource(resource_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{resource_id}/working-days")
def get_resource_working_days(
    resource_id: UUID,
    month: int = Query(ge=0, le=11),
    year: int = Query(ge=1900, le=9999),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = BillingReportService(BillingRepository(db))
    return service.resource_working_days(resource_id=resource_id, month_index=month, year=year)


@router.get("/{resource_id}/leaves")
def list_resource_leaves(
    resource_id: UUID,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = LeaveService(db)
    return {"items": [service.serialize_leave(row) for row in service.list_leaves(resource_id)]}
