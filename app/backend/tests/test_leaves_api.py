from __future__ import annotations

from datetime import date, datetime

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from resource_billing.models.entities import Resource, ResourceRole


def _create_resource(db: Session, *, emp_code: str, email: str) -> Resource:
    now = datetime.utcnow()
    resource = Resource(
        emp_code=emp_code,
        name=f"Resource {emp_code}",
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


def _headers(email: str) -> dict[str, str]:
    return {"X-User-Email": email}


def test_apply_leave_toggles(client: TestClient, db_session: Session) -> None:
    _create_resource(db_session, emp_code="EMP-1", email="alice@test.local")
    headers = _headers("alice@test.local")
    body = {"date": "2024-11-04", "is_half_day": True, "reason": "Dentist"}

    first = client.post("/api/v1/leaves/apply", headers=headers, json=body)
    assert first.status_code == 201
    assert first.json()["action"] == "created"
    assert first.json()["leave"]["date"] == "2024-11-04"
    assert first.json()["leave"]["is_half_day"] is True

    second = client.post("/api/v1/leaves/apply", headers=headers, json=body)
    assert second.status_code == 200
    assert second.json() == {"action": "removed", "leave": None}

    third = client.post("/api/v1/leaves/apply", headers=headers, json=body)
    assert third.status_code == 201
    assert third.json()["action"] == "created"

    listing = client.get("/api/v1/leaves/my", headers=headers)
    assert [row["date"] for row in listing.json()["items"]] == ["2024-11-04"]


def test_explicit_create_rejects_duplicate_day(client: TestClient, db_session: Session) -> None:
    _create_resource(db_session, emp_code="EMP-1", email="alice@test.local")
    headers = _headers("alice@test.local")

    assert client.post("/api/v1/leaves", headers=headers, json={"date": "2024-11-04"}).status_code == 201
    duplicate = client.post("/api/v1/leaves", headers=headers, json={"date": "2024-11-04", "is_half_day": True})

    assert duplicate.status_code == 409


def test_update_and_delete_leave(client: TestClient, db_session: Session) -> None:
    _create_resource(db_session, emp_code="EMP-1", email="alice@test.local")
    headers = _headers("alice@test.local")
    assert client.post("/api/v1/leaves", headers=headers, json={"date": "2024-11-05"}).status_code == 201

    patched = client.patch("/api/v1/leaves/2024-11-05", headers=headers, json={"is_half_day": True})
    assert patched.status_code == 200
    assert patched.json()["is_half_day"] is True

    assert client.delete("/api/v1/leaves/2024-11-05", headers=headers).status_code == 204
    assert client.delete("/api/v1/leaves/2024-11-05", headers=headers).status_code == 404
    assert client.patch("/api/v1/leaves/2024-11-05", headers=headers, json={"reason": "x"}).status_code == 404


def test_my_leaves_are_newest_first_and_scoped(client: TestClient, db_session: Session) -> None:
    _create_resource(db_session, emp_code="EMP-1", email="alice@test.local")
    _create_resource(db_session, emp_code="EMP-2", email="bob@test.local")
    for leave_date in ("2024-03-01", "2024-11-04", "2024-07-10"):
        client.post("/api/v1/leaves", headers=_headers("alice@test.local"), json={"date": leave_date})
    client.post("/api/v1/leaves", headers=_headers("bob@test.local"), json={"date": "2024-05-05"})

    response = client.get("/api/v1/leaves/my", headers=_headers("alice@test.local"))

    assert response.status_code == 200
    assert [row["date"] for row in response.json()["items"]] == ["2024-11-04", "2024-07-10", "2024-03-01"]


def test_weekend_leave_does_not_reduce_working_days(client: TestClient, db_session: Session) -> None:
    _create_resource(db_session, emp_code="EMP-1", email="alice@test.local")
    headers = _headers("alice@test.local")
    assert client.post("/api/v1/leaves", headers=headers, json={"date": "2024-11-02"}).status_code == 201

    stats = client.get("/api/v1/me/stats", headers=headers, params={"month": 10, "year": 2024})

    assert stats.status_code == 200
    assert stats.json()["month_stats"] == {"working_days": "21", "leaves_taken": "0"}


def test_leaves_require_linked_resource(client: TestClient) -> None:
    response = client.get("/api/v1/leaves/my")

    assert response.status_code == 403
