"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from backofhouse.database import Base, get_db
from backofhouse.main import app


class OrgHeaders(dict):
    """Dict subclass that also stores organization_id."""

    def __init__(self, *args, organization_id: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.organization_id = organization_id


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/backofhouse", "/backofhouse_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    from backofhouse import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def org_headers(client):
    """Create an organization and return headers scoping requests to it."""
    response = client.post("/api/v1/organizations", json={"name": "Test Kitchen"})
    assert response.status_code == 201
    organization_id = response.json()["id"]

    return OrgHeaders({"X-Organization-ID": str(organization_id)}, organization_id=organization_id)


@pytest.fixture
def other_org_headers(client):
    """A second organization, for scoping checks."""
    response = client.post("/api/v1/organizations", json={"name": "Other Kitchen"})
    assert response.status_code == 201
    organization_id = response.json()["id"]

    return OrgHeaders({"X-Organization-ID": str(organization_id)}, organization_id=organization_id)


@pytest.fixture
def create_master_ingredient(client, org_headers):
    """Factory creating master ingredients in the test organization."""

    def _create(**overrides):
        payload = {
            "item_code": f"ITEM-{len(created) + 1}",
            "product": "Test Ingredient",
            "current_price": "10.00",
            "recipe_unit_per_purchase_unit": "10",
            "yield_percent": "1",
        }
        payload.update(overrides)
        response = client.post("/api/v1/master-ingredients", headers=org_headers, json=payload)
        assert response.status_code == 201, response.text
        created.append(response.json())
        return response.json()

    created = []
    return _create
