"""Project lifecycle and resource assignment endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from resource_billing.core.auth import RequestUserContext, get_current_user_context, require_admin
from resource_billing.db.dependencies import get_db_session
from resource_billing.models.entities import ProjectStatus, RateType
from resource_billing.services.management_service import (
    AssignmentUpsertData,
    ManagementService,
    ProjectCreateData,
    ProjectUpdateData,
)

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectCreatePayload(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    start_date: date
    end_date: date | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    po: str | None = Field(default=None, max_length=128)
    line_item: str | None = Field(default=None, max_length=128)


class ProjectUpdatePayload(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus | None = None
    po: str | None = Field(default=None, max_length=128)
    line_item: str | None = Field(default=None, max_length=128)


class AssignmentPayload(BaseModel):
    resource_id: UUID
    rate: Decimal = Field(ge=0)
    rate_type: RateType | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    assigned_days: int | None = Field(default=None, ge=0)
    start_date: date | None = None


def _management_service(db: Session) -> ManagementService:
    return ManagementService(db)


@router.get("")
def list_projects(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _management_service(db)
    return {
        "items": [
            service.serialize_project(project, resource_count=count) for project, count in service.list_projects()
        ]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreatePayload,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _management_service(db)
    project = service.create_project(
        ProjectCreateData(
            code=payload.code,
            name=payload.name,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
            status=payload.status,
            po=payload.po,
            line_item=payload.line_item,
        )
    )
    return service.serialize_project(project)


@router.get("/{project_id}")
def get_project(
    project_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _management_service(db)
    project, assignments = service.get_project(project_id)
    payload = service.serialize_project(project, resource_count=len(assignments))
    payload["resources"] = [
        service.serialize_assignment(assignment, resource) for assignment, resource in assignments
    ]
    return payload


@router.patch("/{project_id}")
def update_project(
    project_id: UUID,
    payload: ProjectUpdatePayload,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _management_service(db)
    project = service.update_project(
        project_id,
        ProjectUpdateData(
            code=payload.code,
            name=payload.name,
            description=payload.description,
            start_date=payload.start_date,
            end_date=payload.end_date,
            status=payload.status,
            po=payload.po,
            line_item=payload.line_item,
            end_date_set="end_date" in payload.model_fields_set,
        ),
    )
    return service.serialize_project(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: UUID,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> Response:
    _management_service(db).delete_project(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/resources")
def assign_resource(
    project_id: UUID,
    payload: AssignmentPayload,
    response: Response,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _management_service(db)
    assignment, created = service.upsert_assignment(
        project_id,
        AssignmentUpsertData(
            resource_id=payload.resource_id,
            rate=payload.rate,
            rate_type=payload.rate_type,
            currency=payload.currency,
            assigned_days=payload.assigned_days,
            start_date=payload.start_date,
        ),
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return service.serialize_assignment(assignment)


@router.delete("/{project_id}/resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_resource_from_project(
    project_id: UUID,
    resource_id: UUID,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> Response:
    _management_service(db).remove_assignment(project_id, resource_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
