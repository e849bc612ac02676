from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from resource_billing.models.entities import (
    Leave,
    Project,
    ProjectResource,
    ProjectStatus,
    RateType,
    Resource,
    ResourceRole,
)
from resource_billing.repositories.billing_repository import BillingRepository


def _create_resource(db: Session, *, emp_code: str, name: str, email: str) -> Resource:
    now = datetime.utcnow()
    resource = Resource(
        emp_code=emp_code,
        name=name,
        email=email,
        joining_date=date(2024, 1, 1),
        role=ResourceRole.RESOURCE,
        created_at=now,
        updated_at=now,
    )
    db.add(resource)
    db.commit()
    db.refresh(resource)
    return resource


def _create_project(db: Session, *, code: str, status: ProjectStatus = ProjectStatus.ACTIVE) -> Project:
    now = datetime.utcnow()
    project = Project(
        code=code,
        name=f"Project {code}",
        status=status,
        po="PO-1",
        line_item="LI-9",
        start_date=date(2024, 1, 1),
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def _assign(
    db: Session,
    *,
    project: Project,
    resource: Resource,
    rate: str,
    rate_type: RateType = RateType.DAILY,
    currency: str = "USD",
    start_date: date = date(2024, 1, 1),
    assigned_days: int = 0,
) -> ProjectResource:
    assignment = ProjectResource(
        project_id=project.id,
        resource_id=resource.id,
        rate=Decimal(rate),
        rate_type=rate_type,
        currency=currency,
        assigned_days=assigned_days,
        start_date=start_date,
        assigned_at=datetime.utcnow(),
    )
    db.add(assignment)
    db.commit()
    return assignment


def _add_leave(db: Session, resource: Resource, leave_date: date, *, half_day: bool = False) -> None:
    db.add(
        Leave(
            resource_id=resource.id,
            leave_date=leave_date,
            is_half_day=half_day,
            created_at=datetime.utcnow(),
        )
    )
    db.commit()


@pytest.fixture()
def billed_project(db_session: Session) -> tuple[Project, Resource]:
    resource = _create_resource(db_session, emp_code="EMP-1", name="Alice", email="alice@test.local")
    project = _create_project(db_session, code="APO")
    _assign(db_session, project=project, resource=resource, rate="50", assigned_days=200)
    _add_leave(db_session, resource, date(2024, 11, 4))
    _add_leave(db_session, resource, date(2024, 11, 5), half_day=True)
    return project, resource


def test_project_month_stats(
    client: TestClient,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
) -> None:
    project, resource = billed_project

    response = client.get(
        f"/api/v1/billing/stats/project/{project.id}",
        headers=admin_headers,
        params={"month": 10, "year": 2024},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["project_name"] == "Project APO"
    assert payload["total_project_amount"] == "975"
    assert payload["currency"] == "USD"
    row = payload["resources"][0]
    assert row["resource_id"] == str(resource.id)
    assert row["po"] == "PO-1"
    assert row["line_item"] == "LI-9"
    assert row["expected_working_days"] == 21
    assert row["leaves_taken"] == "1.5"
    assert row["actual_working_days"] == "19.5"
    assert row["annual_working_days"] == 200


def test_project_ytd_stats(
    client: TestClient,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
) -> None:
    project, _ = billed_project

    response = client.get(
        f"/api/v1/billing/stats/project/{project.id}",
        headers=admin_headers,
        params={"month": 10, "year": 2024, "period": "YTD"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["period"] == "YTD"
    assert payload["resources"][0]["expected_working_days"] == 240
    assert payload["total_project_amount"] == "11925"


def test_all_projects_stats_skip_inactive(
    client: TestClient,
    db_session: Session,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
) -> None:
    _, resource = billed_project
    archived = _create_project(db_session, code="OLD", status=ProjectStatus.INACTIVE)
    _assign(db_session, project=archived, resource=resource, rate="500")

    response = client.get(
        "/api/v1/billing/stats/project/ALL",
        headers=admin_headers,
        params={"month": 10, "year": 2024},
    )

    assert response.status_code == 200
    assert response.json()["project_name"] == "All Projects"
    assert response.json()["total_project_amount"] == "975"


def test_unknown_project_is_not_found(client: TestClient, admin_headers: dict[str, str]) -> None:
    missing = client.get(
        "/api/v1/billing/stats/project/00000000-0000-0000-0000-000000000000",
        headers=admin_headers,
    )
    malformed = client.get("/api/v1/billing/stats/project/nope", headers=admin_headers)

    assert missing.status_code == 404
    assert malformed.status_code == 404


def test_overview_and_annual_trend(
    client: TestClient,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
) -> None:
    project, _ = billed_project

    overview = client.get(
        "/api/v1/billing/stats/overview",
        headers=admin_headers,
        params={"month": 10, "year": 2024},
    )
    assert overview.status_code == 200
    assert overview.json()["grand_total"] == "975"
    assert overview.json()["projects"][0]["code"] == "APO"
    assert overview.json()["projects"][0]["active_resources"] == 1

    annual = client.get(
        "/api/v1/billing/stats/annual",
        headers=admin_headers,
        params={"year": 2024, "project_id": str(project.id)},
    )
    assert annual.status_code == 200
    data = annual.json()["data"]
    assert len(data) == 12
    assert data[10]["cost"] == "975"
    assert data[10]["expected_cost"] == "1050"
    assert data[11]["cost"] == "1100"


def test_mixed_currency_totals(
    client: TestClient,
    db_session: Session,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
) -> None:
    project, _ = billed_project
    other = _create_resource(db_session, emp_code="EMP-2", name="Bob", email="bob@test.local")
    _assign(db_session, project=project, resource=other, rate="10", rate_type=RateType.HOURLY, currency="INR")
    url = f"/api/v1/billing/stats/project/{project.id}"

    split = client.get(url, headers=admin_headers, params={"month": 10, "year": 2024})
    combined = client.get(
        url,
        headers=admin_headers,
        params={"month": 10, "year": 2024, "combine_currencies": "true"},
    )

    assert split.json()["mixed_currencies"] is True
    assert split.json()["total_project_amount"] is None
    assert split.json()["totals_by_currency"] == {"USD": "975", "INR": "1680"}
    assert combined.json()["total_project_amount"] == "2655"


def test_billing_requires_admin(client: TestClient, billed_project: tuple[Project, Resource]) -> None:
    response = client.get("/api/v1/billing/stats/overview", headers={"X-User-Email": "alice@test.local"})

    assert response.status_code == 403


def test_month_outside_range_is_rejected(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.get("/api/v1/billing/stats/overview", headers=admin_headers, params={"month": 12})

    assert response.status_code == 422


def test_my_stats(client: TestClient, billed_project: tuple[Project, Resource]) -> None:
    response = client.get(
        "/api/v1/me/stats",
        headers={"X-User-Email": "alice@test.local"},
        params={"month": 10, "year": 2024},
    )

    assert response.status_code == 200
    assert response.json()["month_stats"] == {"working_days": "19.5", "leaves_taken": "1.5"}
    assert response.json()["annual_stats"] == {"working_days": "260.5", "leaves_taken": "1.5"}


def test_resource_working_days(
    client: TestClient,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
) -> None:
    _, resource = billed_project

    response = client.get(
        f"/api/v1/resources/{resource.id}/working-days",
        headers=admin_headers,
        params={"month": 10, "year": 2024},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["total_business_days"] == 21
    assert payload["leave_days"] == "1.5"
    assert payload["total_assigned_days"] == 200
    assert payload["working_ratio"] == "92.86"


def test_store_failure_maps_to_server_error(
    client: TestClient,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    project, resource = billed_project

    def broken(self, resource_id, start_date, end_date):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(BillingRepository, "list_leaves_in_range", broken)

    response = client.get(
        f"/api/v1/billing/stats/project/{project.id}",
        headers=admin_headers,
        params={"month": 10, "year": 2024},
    )

    assert response.status_code == 500
    assert response.json()["resource_id"] == str(resource.id)
    assert response.json()["month"] == 10


def test_annual_trend_accepts_all_scope(
    client: TestClient,
    db_session: Session,
    admin_headers: dict[str, str],
    billed_project: tuple[Project, Resource],
) -> None:
    _, resource = billed_project
    archived = _create_project(db_session, code="OLD", status=ProjectStatus.INACTIVE)
    _assign(db_session, project=archived, resource=resource, rate="10")

    for scope in ("ALL", "all"):
        response = client.get(
            "/api/v1/billing/stats/annual",
            headers=admin_headers,
            params={"year": 2024, "project_id": scope},
        )
        assert response.status_code == 200
        payload = response.json()
        assert payload["project_id"] == "ALL"
        assert payload["data"][11]["cost"] == "1320"

    malformed = client.get(
        "/api/v1/billing/stats/annual",
        headers=admin_headers,
        params={"year": 2024, "project_id": "nope"},
    )
    assert malformed.status_code == 404
