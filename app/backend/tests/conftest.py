from __future__ import annotations

from collections.abc import Generator
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from resource_billing.db.base import Base
from resource_billing.db.dependencies import get_db_session
import resource_billing.models.entities  # noqa: F401
from resource_billing.main import create_app
from resource_billing.models.entities import Leave, Project, ProjectResource, Resource, ResourceRole

TEST_TABLES = [
    Resource.__table__,
    Project.__table__,
    ProjectResource.__table__,
    Leave.__table__,
]


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_resource_row(
    db: Session,
    *,
    emp_code: str,
    name: str,
    email: str,
    role: ResourceRole = ResourceRole.RESOURCE,
) -> Resource:
    now = datetime.utcnow()
    row = Resource(
        emp_code=emp_code,
        name=name,
        email=email,
        joining_date=date(2024, 1, 1),
        role=role,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def auth_headers(email: str) -> dict[str, str]:
    return {"X-User-Email": email}


@pytest.fixture()
def admin_headers(db_session: Session) -> dict[str, str]:
    create_resource_row(
        db_session,
        emp_code="ADM-1",
        name="Admin User",
        email="admin@test.local",
        role=ResourceRole.ADMIN,
    )
    return auth_headers("admin@test.local")
