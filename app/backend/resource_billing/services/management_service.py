"""Application service for resources, projects and project assignments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resource_billing.core.config import get_settings
from resource_billing.models.entities import (
    Project,
    ProjectResource,
    ProjectStatus,
    RateType,
    Resource,
    ResourceRole,
)
from resource_billing.repositories.billing_repository import BillingRepository
from resource_billing.services.calendar_utils import utc_today

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResourceCreateData:
    emp_code: str
    name: str
    email: str
    joining_date: date
    role: ResourceRole = ResourceRole.RESOURCE


@dataclass(slots=True)
class ResourceUpdateData:
    emp_code: str | None = None
    name: str | None = None
    email: str | None = None
    joining_date: date | None = None


@dataclass(slots=True)
class ProjectCreateData:
    code: str
    name: str
    description: str | None
    start_date: date
    end_date: date | None
    status: ProjectStatus = ProjectStatus.ACTIVE
    po: str | None = None
    line_item: str | None = None


@dataclass(slots=True)
class ProjectUpdateData:
    code: str | None = None
    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus | None = None
    po: str | None = None
    line_item: str | None = None
    # True when the caller sent end_date explicitly, so None clears it.
    end_date_set: bool = False


@dataclass(slots=True)
class ResourceImportRow:
    emp_code: str | None = None
    name: str | None = None
    email: str | None = None
    joining_date: date | None = None


@dataclass(slots=True)
class ResourceImportSummary:
    total: int
    success: int
    errors: list[dict[str, object]]

    @property
    def failed(self) -> int:
        return len(self.errors)


@dataclass(slots=True)
class AssignmentUpsertData:
    resource_id: UUID
    rate: Decimal
    rate_type: RateType | None = None
    currency: str | None = None
    assigned_days: int | None = None
    start_date: date | None = None


class ManagementService:
    """Service implementing resource, project and assignment lifecycle rules."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = BillingRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_resource(resource: Resource) -> dict[str, object]:
        return {
            "id": str(resource.id),
            "emp_code": resource.emp_code,
            "name": resource.name,
            "email": resource.email,
            "joining_date": resource.joining_date.isoformat(),
            "role": resource.role.value,
        }

    @staticmethod
    def serialize_project(project: Project, *, resource_count: int | None = None) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": str(project.id),
            "code": project.code,
            "name": project.name,
            "description": project.description,
            "status": project.status.value,
            "po": project.po,
            "line_item": project.line_item,
            "start_date": project.start_date.isoformat(),
            "end_date": project.end_date.isoformat() if project.end_date else None,
        }
        if resource_count is not None:
            payload["resource_count"] = resource_count
        return payload

    @staticmethod
    def serialize_assignment(assignment: ProjectResource, resource: Resource | None = None) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": str(assignment.id),
            "project_id": str(assignment.project_id),
            "resource_id": str(assignment.resource_id),
            "rate": str(assignment.rate),
            "rate_type": assignment.rate_type.value,
            "currency": assignment.currency,
            "assigned_days": assignment.assigned_days,
            "start_date": assignment.start_date.isoformat(),
        }
        if resource is not None:
            payload["resource_name"] = resource.name
            payload["resource_email"] = resource.email
        return payload

    # ---------- Lookups ----------
    def _ensure_resource(self, resource_id: UUID) -> Resource:
        resource = self.repo.get_resource(resource_id)
        if resource is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found.")
        return resource

    def _ensure_project(self, project_id: UUID) -> Project:
        project = self.repo.get_project(project_id)
        if project is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found.")
        return project

    @staticmethod
    def _validate_date_range(start_date: date, end_date: date | None) -> None:
        if end_date is not None and end_date < start_date:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="end_date must be greater than or equal to start_date.",
            )

    def _commit_or_conflict(self, detail: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from exc

    # ---------- Resources ----------
    def list_resources(self) -> list[Resource]:
        return self.repo.list_resources()

    def get_resource(self, resource_id: UUID) -> Resource:
        return self._ensure_resource(resource_id)

    def create_resource(self, data: ResourceCreateData) -> Resource:
        emp_code = data.emp_code.strip()
        email = data.email.strip().lower()
        if self.repo.find_resource_conflict(email=email, emp_code=emp_code) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Resource with this email or employee code already exists.",
            )

        now = datetime.utcnow()
        resource = Resource(
            emp_code=emp_code,
            name=data.name.strip(),
            email=email,
            joining_date=data.joining_date,
            role=data.role,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_resource(resource)
        self._commit_or_conflict("Resource with this email or employee code already exists.")
        self.db.refresh(resource)
        logger.info("Created resource id=%s emp_code=%s", resource.id, resource.emp_code)
        return resource

    def update_resource(self, resource_id: UUID, data: ResourceUpdateData) -> Resource:
        resource = self._ensure_resource(resource_id)

        target_email = data.email.strip().lower() if data.email is not None else resource.email
        target_code = data.emp_code.strip() if data.emp_code is not None else resource.emp_code
        if target_email != resource.email or target_code != resource.emp_code:
            conflict = self.repo.find_resource_conflict(
                email=target_email,
                emp_code=target_code,
                exclude_id=resource.id,
            )
            if conflict is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Email or employee code already in use.",
                )

        resource.email = target_email
        resource.emp_code = target_code
        if data.name is not None:
            resource.name = data.name.strip()
        if data.joining_date is not None:
            resource.joining_date = data.joining_date
        resource.updated_at = datetime.utcnow()

        self._commit_or_conflict("Email or employee code already in use.")
        self.db.refresh(resource)
        return resource

    def bulk_import_resources(self, rows: list[ResourceImportRow]) -> ResourceImportSummary:
        """Create RESOURCE rows one by one; bad rows are reported, not fatal.

        Row numbers in errors are 1-based positions in ``rows``.
        """

        errors: list[dict[str, object]] = []
        success = 0
        for index, row in enumerate(rows, start=1):
            emp_code = (row.emp_code or "").strip()
            name = (row.name or "").strip()
            email = (row.email or "").strip().lower()
            if not emp_code or not name or not email or row.joining_date is None:
                errors.append({"row": index, "message": "Missing required fields."})
                continue

            if self.repo.find_resource_conflict(email=email, emp_code=emp_code) is not None:
                errors.append({"row": index, "message": f"Resource already exists: {email} or {emp_code}."})
                continue

            now = datetime.utcnow()
            resource = Resource(
                emp_code=emp_code,
                name=name,
                email=email,
                joining_date=row.joining_date,
                role=ResourceRole.RESOURCE,
                created_at=now,
                updated_at=now,
            )
            try:
                self.repo.add_resource(resource)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                errors.append({"row": index, "message": f"Resource already exists: {email} or {emp_code}."})
                continue
            success += 1

        logger.info("Bulk resource import total=%s success=%s failed=%s", len(rows), success, len(errors))
        return ResourceImportSummary(total=len(rows), success=success, errors=errors)

    def delete_resource(self, resource_id: UUID) -> None:
        resource = self._ensure_resource(resource_id)
        self.repo.delete_resource(resource)
        self.db.commit()
        logger.info("Deleted resource id=%s with its assignments and leaves", resource_id)

    # ---------- Projects ----------
    def list_projects(self) -> list[tuple[Project, int]]:
        counts = self.repo.resource_counts_by_project()
        return [(project, counts.get(project.id, 0)) for project in self.repo.list_projects()]

    def get_project(self, project_id: UUID) -> tuple[Project, list[tuple[ProjectResource, Resource]]]:
        project = self._ensure_project(project_id)
        return project, self.repo.list_assignments_with_resources([project.id])

    def create_project(self, data: ProjectCreateData) -> Project:
        self._validate_date_range(data.start_date, data.end_date)
        code = data.code.strip()
        if self.repo.get_project_by_code(code) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Project code already exists.")

        now = datetime.utcnow()
        project = Project(
            code=code,
            name=data.name.strip(),
            description=data.description.strip() if data.description else None,
            status=data.status,
            po=data.po,
            line_item=data.line_item,
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_project(project)
        self._commit_or_conflict("Project code already exists.")
        self.db.refresh(project)
        return project

    def update_project(self, project_id: UUID, data: ProjectUpdateData) -> Project:
        project = self._ensure_project(project_id)

        target_start = data.start_date or project.start_date
        target_end = data.end_date if data.end_date is not None or data.end_date_set else project.end_date
        self._validate_date_range(target_start, target_end)

        if data.code is not None:
            project.code = data.code.strip()
        if data.name is not None:
            project.name = data.name.strip()
        if data.description is not None:
            project.description = data.description.strip() if data.description else None
        if data.status is not None:
            project.status = data.status
        if data.po is not None:
            project.po = data.po
        if data.line_item is not None:
            project.line_item = data.line_item
        project.start_date = target_start
        project.end_date = target_end
        project.updated_at = datetime.utcnow()

        self._commit_or_conflict("Project code already exists.")
        self.db.refresh(project)
        return project

    def delete_project(self, project_id: UUID) -> None:
        project = self._ensure_project(project_id)
        self.repo.delete_project(project)
        self.db.commit()

    # ---------- Assignments ----------
    def upsert_assignment(self, project_id: UUID, data: AssignmentUpsertData) -> tuple[ProjectResource, bool]:
        """Assign a resource to a project, updating the existing assignment if present.

        Returns the assignment and whether it was newly created.
        """

        self._ensure_project(project_id)
        self._ensure_resource(data.resource_id)
        if data.rate < 0:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="rate must be greater or equal zero.",
            )

        currency = data.currency.strip().upper() if data.currency else None
        assignment = self.repo.get_assignment(project_id, data.resource_id)
        if assignment is not None:
            assignment.rate = data.rate
            assignment.rate_type = data.rate_type or RateType.HOURLY
            if currency is not None:
                assignment.currency = currency
            if data.assigned_days is not None:
                assignment.assigned_days = data.assigned_days
            if data.start_date is not None:
                assignment.start_date = data.start_date
            self.db.commit()
            self.db.refresh(assignment)
            logger.info("Updated assignment project_id=%s resource_id=%s", project_id, data.resource_id)
            return assignment, False

        assignment = ProjectResource(
            project_id=project_id,
            resource_id=data.resource_id,
            rate=data.rate,
            rate_type=data.rate_type or RateType.HOURLY,
            currency=currency or self.settings.default_currency,
            assigned_days=data.assigned_days or 0,
            start_date=data.start_date or utc_today(),
            assigned_at=datetime.utcnow(),
        )
        self.repo.add_assignment(assignment)
        self._commit_or_conflict("Resource is already assigned to this project.")
        self.db.refresh(assignment)
        logger.info("Created assignment project_id=%s resource_id=%s", project_id, data.resource_id)
        return assignment, True

    def remove_assignment(self, project_id: UUID, resource_id: UUID) -> None:
        assignment = self.repo.get_assignment(project_id, resource_id)
        if assignment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found.")
        self.repo.delete_assignment(assignment)
        self.db.commit()
