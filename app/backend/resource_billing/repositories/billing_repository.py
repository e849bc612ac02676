"""Repository helpers for resources, projects, assignments and leaves."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.orm import Session

from resource_billing.models.entities import (
    Leave,
    Project,
    ProjectResource,
    ProjectStatus,
    Resource,
    ResourceRole,
)
from resource_billing.services.billing_records import AssignmentRecord, ProjectBillingRecord, ResourceRecord
from resource_billing.services.leave_resolver import LeaveDay


class BillingRepository:
    """Persistence operations used by the management and billing services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Resources ----------
    def list_resources(self, *, role: ResourceRole | None = ResourceRole.RESOURCE) -> list[Resource]:
        stmt = select(Resource).order_by(Resource.name.asc())
        if role is not None:
            stmt = stmt.where(Resource.role == role)
        return self.db.scalars(stmt).all()

    def get_resource(self, resource_id: UUID) -> Resource | None:
        return self.db.scalar(select(Resource).where(Resource.id == resource_id))

    def get_resource_by_email(self, email: str) -> Resource | None:
        return self.db.scalar(select(Resource).where(func.lower(Resource.email) == email.lower()))

    def find_resource_conflict(
        self,
        *,
        email: str,
        emp_code: str,
        exclude_id: UUID | None = None,
    ) -> Resource | None:
        stmt = select(Resource).where(
            or_(func.lower(Resource.email) == email.lower(), Resource.emp_code == emp_code)
        )
        if exclude_id is not None:
            stmt = stmt.where(Resource.id != exclude_id)
        return self.db.scalar(stmt.limit(1))

    def add_resource(self, resource: Resource) -> Resource:
        self.db.add(resource)
        self.db.flush()
        return resource

    def delete_resource(self, resource: Resource) -> None:
        self.db.execute(delete(ProjectResource).where(ProjectResource.resource_id == resource.id))
        self.db.execute(delete(Leave).where(Leave.resource_id == resource.id))
        self.db.delete(resource)
        self.db.flush()

    # ---------- Projects ----------
    def list_projects(self, *, status: ProjectStatus | None = None) -> list[Project]:
        stmt = select(Project).order_by(Project.created_at.desc(), Project.code.asc())
        if status is not None:
            stmt = stmt.where(Project.status == status)
        return self.db.scalars(stmt).all()

    def get_project(self, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    def get_project_by_code(self, code: str) -> Project | None:
        return self.db.scalar(select(Project).where(Project.code == code))

    def add_project(self, project: Project) -> Project:
        self.db.add(project)
        self.db.flush()
        return project

    def delete_project(self, project: Project) -> None:
        self.db.execute(delete(ProjectResource).where(ProjectResource.project_id == project.id))
        self.db.delete(project)
        self.db.flush()

    def resource_counts_by_project(self) -> dict[UUID, int]:
        rows = self.db.execute(
            select(ProjectResource.project_id, func.count(ProjectResource.id)).group_by(ProjectResource.project_id)
        ).all()
        return {project_id: int(count) for project_id, count in rows}

    # ---------- Assignments ----------
    def get_assignment(self, project_id: UUID, resource_id: UUID) -> ProjectResource | None:
        return self.db.scalar(
            select(ProjectResource).where(
                and_(
                    ProjectResource.project_id == project_id,
                    ProjectResource.resource_id == resource_id,
                )
            )
        )

    def list_assignments_with_resources(self, project_ids: list[UUID]) -> list[tuple[ProjectResource, Resource]]:
        if not project_ids:
            return []
        rows = self.db.execute(
            select(ProjectResource, Resource)
            .join(Resource, Resource.id == ProjectResource.resource_id)
            .where(ProjectResource.project_id.in_(project_ids))
            .order_by(Resource.name.asc(), ProjectResource.resource_id.asc())
        ).all()
        return [(assignment, resource) for assignment, resource in rows]

    def list_assignments_for_resource(self, resource_id: UUID) -> list[ProjectResource]:
        return self.db.scalars(
            select(ProjectResource)
            .where(ProjectResource.resource_id == resource_id)
            .order_by(ProjectResource.start_date.asc())
        ).all()

    def add_assignment(self, assignment: ProjectResource) -> ProjectResource:
        self.db.add(assignment)
        self.db.flush()
        return assignment

    def delete_assignment(self, assignment: ProjectResource) -> None:
        self.db.delete(assignment)
        self.db.flush()

    # ---------- Leaves ----------
    def get_leave(self, resource_id: UUID, leave_date: date) -> Leave | None:
        return self.db.scalar(
            select(Leave).where(
                and_(
                    Leave.resource_id == resource_id,
                    Leave.leave_date == leave_date,
                )
            )
        )

    def list_leaves_for_resource(self, resource_id: UUID) -> list[Leave]:
        return self.db.scalars(
            select(Leave).where(Leave.resource_id == resource_id).order_by(Leave.leave_date.desc())
        ).all()

    def list_leaves_in_range(self, resource_id: UUID, start_date: date, end_date: date) -> list[LeaveDay]:
        rows = self.db.execute(
            select(Leave.leave_date, Leave.is_half_day).where(
                and_(
                    Leave.resource_id == resource_id,
                    Leave.leave_date >= start_date,
                    Leave.leave_date <= end_date,
                )
            )
        ).all()
        return [LeaveDay(leave_date=leave_date, is_half_day=bool(is_half_day)) for leave_date, is_half_day in rows]

    def add_leave(self, leave: Leave) -> Leave:
        self.db.add(leave)
        self.db.flush()
        return leave

    def delete_leave(self, leave: Leave) -> None:
        self.db.delete(leave)
        self.db.flush()

    # ---------- Billing read models ----------
    @staticmethod
    def _assignment_record(assignment: ProjectResource, resource: Resource) -> AssignmentRecord:
        return AssignmentRecord(
            project_id=assignment.project_id,
            resource_id=assignment.resource_id,
            resource_name=resource.name,
            rate=assignment.rate,
            rate_type=assignment.rate_type,
            currency=assignment.currency,
            assigned_days=assignment.assigned_days,
            start_date=assignment.start_date,
        )

    def _billing_records(self, projects: list[Project]) -> list[ProjectBillingRecord]:
        by_project: dict[UUID, list[AssignmentRecord]] = {project.id: [] for project in projects}
        for assignment, resource in self.list_assignments_with_resources(list(by_project)):
            by_project[assignment.project_id].append(self._assignment_record(assignment, resource))
        return [
            ProjectBillingRecord(
                id=project.id,
                code=project.code,
                name=project.name,
                po=project.po,
                line_item=project.line_item,
                assignments=by_project[project.id],
            )
            for project in projects
        ]

    def get_billing_project(self, project_id: UUID) -> ProjectBillingRecord | None:
        project = self.get_project(project_id)
        if project is None:
            return None
        return self._billing_records([project])[0]

    def list_billing_projects(self, *, active_only: bool) -> list[ProjectBillingRecord]:
        projects = self.list_projects(status=ProjectStatus.ACTIVE if active_only else None)
        return self._billing_records(projects)

    def get_resource_record(self, resource_id: UUID) -> ResourceRecord | None:
        resource = self.get_resource(resource_id)
        if resource is None:
            return None
        return ResourceRecord(id=resource.id, name=resource.name, emp_code=resource.emp_code, email=resource.email)

    def list_resource_assignments(self, resource_id: UUID) -> list[AssignmentRecord]:
        resource = self.get_resource(resource_id)
        if resource is None:
            return []
        return [
            self._assignment_record(assignment, resource)
            for assignment in self.list_assignments_for_resource(resource_id)
        ]
