"""Plain records consumed by the billing engine and the store contract that supplies them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from resource_billing.models.entities import RateType
from resource_billing.services.leave_resolver import LeaveStore


@dataclass(frozen=True, slots=True)
class AssignmentRecord:
    project_id: UUID
    resource_id: UUID
    resource_name: str
    rate: Decimal
    rate_type: RateType
    currency: str
    assigned_days: int
    start_date: date


@dataclass(frozen=True, slots=True)
class ProjectBillingRecord:
    id: UUID
    code: str
    name: str
    po: str | None = None
    line_item: str | None = None
    assignments: list[AssignmentRecord] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    id: UUID
    name: str
    emp_code: str
    email: str


class BillingStore(LeaveStore, Protocol):
    """Read-only data access required to build billing reports."""

    def get_billing_project(self, project_id: UUID) -> ProjectBillingRecord | None: ...

    def list_billing_projects(self, *, active_only: bool) -> list[ProjectBillingRecord]: ...

    def get_resource_record(self, resource_id: UUID) -> ResourceRecord | None: ...

    def list_resource_assignments(self, resource_id: UUID) -> list[AssignmentRecord]: ...
